import structlog

from ..config import Settings
from .provider import Storage


logger = structlog.get_logger(__name__)


def create_storage(settings: Settings) -> Storage:
    """
    Build the storage backend named by ``settings.storage_backend``.

    ``memory`` keeps everything in process. ``database`` connects to
    ``settings.database_url``, creating tables when ``auto_create_db`` is set.
    Demo data is seeded into either backend when ``seed_demo_data`` is set.
    """
    options = {"water_rate": settings.water_rate_per_liter, "due_day": settings.bill_due_day}
    backend = (settings.storage_backend or "").strip().lower()

    if backend == "memory":
        from .memory_provider import MemoryStorage

        storage: Storage = MemoryStorage(**options)
    elif backend == "database":
        from ..db import Base, make_engine, make_session_factory
        from ..models import models  # noqa: F401  registers tables on Base.metadata
        from .database_provider import DatabaseStorage

        engine = make_engine(settings.database_url)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
        storage = DatabaseStorage(make_session_factory(engine), **options)
    else:
        raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")

    logger.info("storage_ready", backend=storage.name)

    if settings.seed_demo_data:
        from ..services.seed import seed_demo_data

        seed_demo_data(storage)
    return storage

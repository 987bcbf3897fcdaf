import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection across sessions
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        if database_url.startswith("sqlite:///./"):
            os.makedirs(os.path.dirname(database_url[len("sqlite:///"):]) or ".", exist_ok=True)
        return create_engine(database_url, future=True, connect_args={"check_same_thread": False})

    # Configure connection pool for better performance
    return create_engine(
        database_url,
        future=True,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,  # Recycle connections after 1 hour
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    # One short-lived session per storage call; expire_on_commit off so rows stay readable after commit
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)

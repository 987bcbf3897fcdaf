"""
Activity trail.
Best-effort: the entity write has already happened when an activity is
recorded, so a failure here is logged and swallowed, never surfaced to the
caller. Entries are therefore at-most-once.
"""
import json
from typing import Any, Dict, Optional

import structlog

from ..schemas.activities import ActivityCreate, ActivityResponse


logger = structlog.get_logger(__name__)


def record_activity(
    storage,
    type: str,
    title: str,
    description: Optional[str] = None,
    user_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[ActivityResponse]:
    """
    Append an activity entry.

    Args:
        storage: Storage instance
        type: Activity type (bill_generated|payment_received|complaint_submitted|complaint_updated|notice_published)
        title: Short headline shown on the admin dashboard
        description: Optional longer text
        user_id: User the activity concerns
        metadata: Extra data, stored as a canonical JSON string

    Returns:
        The created activity, or None if it could not be written
    """
    metadata_json = None
    if metadata:
        metadata = {k: v for k, v in metadata.items() if v is not None}
        metadata_json = json.dumps(metadata, sort_keys=True, default=str)
    try:
        return storage.create_activity(
            ActivityCreate(
                type=type,
                title=title,
                description=description,
                user_id=user_id,
                metadata=metadata_json,
            )
        )
    except Exception as e:
        logger.warning("activity_write_failed", activity_type=type, error=str(e))
        return None

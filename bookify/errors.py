"""Classification of read-path failures into user-facing messages"""

import logging

from fastapi import HTTPException

logger = logging.getLogger(__name__)

INDEX_BUILDING_DETAIL = (
    "The database index required for this query is still being built. "
    "Please try again in a few minutes."
)


def is_missing_index_error(exc: Exception) -> bool:
    """Match the backend's "query needs an index" failure by its message"""
    message = str(exc).lower()
    return "index" in message and any(
        marker in message for marker in ("requires an index", "missing", "building", "not exist", "failed-precondition")
    )


def describe_query_error(exc: Exception, what: str) -> HTTPException:
    """
    Turn a failed read into the HTTPException shown to the caller.

    Missing/building index -> 503 with an actionable notice.
    Anything else -> 500 "Failed to load <what>. Please try again."
    """
    if is_missing_index_error(exc):
        logger.warning(f"⏳ Query for {what} needs an index: {exc}")
        return HTTPException(
            status_code=503,
            detail=INDEX_BUILDING_DETAIL,
            headers={"Retry-After": "120"},
        )
    logger.error(f"❌ Failed to load {what}: {exc}")
    return HTTPException(status_code=500, detail=f"Failed to load {what}. Please try again.")

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import ApiError
from ..extensions import db

logger = logging.getLogger(__name__)


def commit(error="update_failed"):
    """Commit the session, rolling back and raising ApiError(500) on failure."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Database commit failed (%s)", error)
        raise ApiError(500, error, str(e.orig) if getattr(e, "orig", None) else str(e))

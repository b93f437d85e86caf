import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from models import db
from services.exceptions import ConflictError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(conflict_message="Conflicting update, please retry."):
    """
    Commits the session when the block finishes, rolls everything back
    if anything inside raises. Unique-constraint violations surface as
    ConflictError.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("Integrity error, rolled back: %s", e.orig)
        raise ConflictError(conflict_message) from e
    except Exception:
        db.session.rollback()
        raise

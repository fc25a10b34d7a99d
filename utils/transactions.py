# utils/transactions.py
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from extensions import db
from utils.errors import ConflictError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(conflict_message="Conflicting write rejected by a uniqueness rule"):
    """
    One unit of work: commit everything written inside the block or nothing.

    A unique-constraint violation at flush/commit time is surfaced as
    ConflictError so a racing duplicate (e.g. a second batch initiation)
    gets the same answer as the pre-checked one.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("integrity error, rolled back: %s", exc.orig)
        raise ConflictError(conflict_message, code="duplicate") from exc
    except Exception:
        db.session.rollback()
        raise

from contextlib import contextmanager
import logging
from models import db


@contextmanager
def transactional(message="DB transaction failed", session=None):
    """Context manager to wrap a database transaction.

    Commits when the block exits cleanly; on any exception the session is
    rolled back and the exception is re-raised unchanged.
    """
    session = session or db.session
    try:
        yield session
        session.commit()
    except Exception as e:
        logging.error(f"{message}: %s", e, exc_info=True)
        session.rollback()
        raise

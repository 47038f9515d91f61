import logging

from sqlalchemy.exc import SQLAlchemyError

from mentorhub import db
from mentorhub.services.errors import InternalError

logger = logging.getLogger(__name__)


class UnitOfWork:
    """One database transaction around a multi-step ledger mutation.

    Used as a context manager: leaving the block normally commits, leaving it
    with an exception rolls everything back and re-raises. A database failure
    inside the block or while committing is surfaced as ``InternalError``.
    """

    def __init__(self, session=None):
        self.session = session if session is not None else db.session
        self.committed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
            if isinstance(exc, SQLAlchemyError):
                logger.error(f'Unit of work aborted by the database: {exc}')
                raise InternalError() from exc
            return False
        self.commit()
        return False

    def add(self, instance):
        self.session.add(instance)
        return instance

    def delete(self, instance):
        self.session.delete(instance)

    def flush(self):
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            logger.exception('Flush failed: %s', e)
            raise InternalError() from e

    def commit(self):
        try:
            self.session.commit()
            self.committed = True
        except SQLAlchemyError as e:
            logger.exception('Commit failed, rolling back: %s', e)
            self.session.rollback()
            raise InternalError() from e

    def rollback(self):
        self.session.rollback()

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from cookbook.shared.errors import UnexpectedError


def get_db(SessionLocal):
    """
    Get a database session, closed once the caller is done with it.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def storage_errors(db):
    """
    Roll back and re-raise any unclassified storage failure as UnexpectedError.
    Typed domain errors pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        raise UnexpectedError(f"Storage failure: {exc}") from exc

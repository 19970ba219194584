from contextlib import contextmanager
import logging

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import SQLModel, create_engine, Session
from storefront.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,      # checks dead connections
    pool_recycle=1800        # refresh every 30 min
)


def create_db_and_tables(bind=None):
    from storefront.models import user, category, product, cart, order, address
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session):
    """
    Commit everything done inside the block, or roll all of it back.

    The exception is always re-raised after the rollback so callers see the
    original error.
    """
    try:
        yield session
        session.commit()
    except Exception:
        logger.debug("Rolling back transaction")
        session.rollback()
        raise


def upsert_insert(session: Session, table):
    """INSERT construct supporting ON CONFLICT for the session's dialect."""
    dialect = session.get_bind().dialect.name

    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)

    raise RuntimeError(f"Conflict-safe inserts are not supported on {dialect}")

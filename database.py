# database.py
import logging
import sqlite3
from contextlib import contextmanager
from sqlalchemy import create_engine, event, exc
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from config import DATABASE_URL, DB_TIMEOUT_SECONDS, ENVIRONMENT
from paths import DATA_DIR
from Services.errors import InvalidTransition, Unavailable

logger = logging.getLogger(__name__)

# Make sure the Data directory exists
DATA_DIR.mkdir(exist_ok=True)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, timeout: float = DB_TIMEOUT_SECONDS) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout}  # Needed for SQLite
        )
    return create_engine(url, pool_pre_ping=True, pool_timeout=timeout)


logger.info(f"Environment: {ENVIRONMENT}")
logger.info(f"Database URL: {DATABASE_URL}")

engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db(bind: Engine = engine):
    from Models import Base
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database initialized at: {bind.url}")

# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Run one lifecycle operation as a single unit of work.

    Commits when the block exits normally and rolls back on any exception,
    so callers never observe a partially applied operation. Store failures
    (timeouts, deadlocks, dropped connections) surface as ``Unavailable``;
    a write that lost an optimistic-lock race surfaces as ``InvalidTransition``.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Concurrent update detected, transaction rolled back: {e}")
        raise InvalidTransition(
            "Entity was modified by a concurrent operation",
            details={"reason": "concurrent_update"},
        ) from e
    except (exc.OperationalError, exc.TimeoutError) as e:
        db.rollback()
        logger.error(f"Entity store unavailable, transaction rolled back: {e}")
        raise Unavailable("Entity store could not complete the transaction") from e
    except Exception:
        db.rollback()
        raise

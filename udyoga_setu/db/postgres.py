"""
SQL engine and raw-query helpers.

Everything goes through text() queries; rows come back as plain dicts.
DATABASE_URL may point at PostgreSQL in deployment or SQLite locally.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from udyoga_setu.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # request handlers and the cleanup task run on different threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


engine = create_engine(settings.sqlalchemy_url, echo=settings.debug, **_engine_options(settings.sqlalchemy_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """Session that commits when the block exits cleanly and rolls back otherwise."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def database_ready() -> bool:
    """Run SELECT 1; False (with the error logged) when the database is down."""
    try:
        with engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1
    except Exception as e:
        logger.error("Database unreachable: %s", e)
        return False


def execute_raw_sql(sql: str, params: dict = None) -> list:
    """All rows of a query as a list of dicts keyed by column name."""
    with get_db_session() as db:
        result = db.execute(text(sql), params or {})
        return [dict(row) for row in result.mappings()]


def fetch_one(sql: str, params: dict = None):
    rows = execute_raw_sql(sql, params)
    return rows[0] if rows else None


def in_clause(prefix: str, values: list) -> tuple:
    """
    Build an expanding IN (...) fragment with numbered bind params.

    Returns (fragment, params), e.g. ("(:job_0, :job_1)", {"job_0": .., "job_1": ..})
    """
    params = {f"{prefix}_{i}": v for i, v in enumerate(values)}
    fragment = "(" + ", ".join(f":{name}" for name in params) + ")"
    return fragment, params

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from storefront.config import (
    DATABASE_URL,
    DB_ECHO,
    DB_MAX_OVERFLOW,
    DB_POOL_RECYCLE,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
)
from storefront.utils.exceptions import InfrastructureError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

engine: Optional[Engine] = None
sessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def _pool_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
        "pool_recycle": DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


def init_engine(url: str = DATABASE_URL, **engine_options) -> Engine:
    """Create the process-wide engine and bind the session factory to it."""
    global engine
    if engine is not None:
        return engine

    options = {**_pool_options(url), **engine_options}
    engine = create_engine(url, echo=DB_ECHO, **options)
    sessionLocal.configure(bind=engine)
    logger.info(f"Database engine initialised ({engine.url.render_as_string(hide_password=True)})")
    return engine


def dispose_engine() -> None:
    global engine
    if engine is None:
        return
    engine.dispose()
    engine = None
    logger.info("Database engine disposed")


def get_db() -> Iterator[Session]:
    if engine is None:
        raise InfrastructureError("Database is not initialised")
    db = sessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request: commit on success, rollback on error."""
    if engine is None:
        raise InfrastructureError("Database is not initialised")
    db = sessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def health_check(db: Session) -> dict:
    try:
        now = db.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
        return {"status": "healthy", "timestamp": str(now), "database": db.bind.dialect.name}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "database": db.bind.dialect.name if db.bind else None}

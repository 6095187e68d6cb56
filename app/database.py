import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import DisconnectionError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import sessionmaker, Session

from app.config import settings
from app.core.exceptions import InfrastructureException

logger = logging.getLogger(__name__)

engine_kwargs: dict = {
    "pool_pre_ping": True,  # Verify connections before using
    "echo": settings.DEBUG,  # Log SQL queries in debug mode
}
if "sqlite" in settings.DATABASE_URL:
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )

# Create SQLAlchemy engine
engine = create_engine(settings.DATABASE_URL, **engine_kwargs)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency for database sessions.

    Yields a database session and ensures it's closed after use.

    Usage:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.query(Item).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_errors(db: Session) -> Iterator[None]:
    """
    Translate backing-store outages into a retryable InfrastructureException.

    Lost connections, pool checkout timeouts and statement timeouts all
    surface as OperationalError or TimeoutError. The session is rolled back
    so the caller gets a clean error instead of a silently empty result.
    """
    try:
        yield
    except (OperationalError, PoolTimeoutError, DisconnectionError) as e:
        db.rollback()
        logger.warning("store_unavailable", extra={"error": type(e).__name__})
        raise InfrastructureException("Backing store unavailable, retry the request") from e

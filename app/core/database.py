from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator, Optional
import logging
import redis
from .config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Process-wide store handles, set by init_db() and released by close_db()
engine: Optional[Engine] = None
SessionLocal: Optional[sessionmaker] = None
redis_client: Optional[redis.Redis] = None

def _create_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live as long as their single connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    # PostgreSQL with appropriate connection pool settings
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 minutes
    )

# Database initialization
def init_db() -> None:
    """Connect to the store and create tables. Safe to call more than once."""
    global engine, SessionLocal, redis_client

    if engine is not None:
        return

    # Register every model on Base.metadata before create_all
    from ..models import user, patient, appointment, health_record, preventive_care  # noqa: F401

    engine = _create_engine(settings.get_database_url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    # redis-py connects lazily on first command
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

def close_db() -> None:
    """Release the store connections on shutdown."""
    global engine, SessionLocal, redis_client

    if redis_client is not None:
        redis_client.close()
        redis_client = None

    if engine is not None:
        engine.dispose()
        logger.info("Database connections closed")
    engine = None
    SessionLocal = None

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    if SessionLocal is None:
        raise RuntimeError("Database is not initialized; call init_db() first")
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client

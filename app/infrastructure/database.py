"""Database engine, session factory and transaction boundary."""

from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict:
    options = {"isolation_level": settings.DB_ISOLATION_LEVEL}
    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        options.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        options.update(pool_pre_ping=True)
    return options


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit everything staged in the block, or roll all of it back."""
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise

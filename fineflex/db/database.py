"""
Database setup for the FineFlex ledger.

- SQLite file given by settings.DATABASE_URL (default ./fineflex.db)
- One session per request via get_db()
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from fineflex.core.config import settings

# SQLite connections are handed between FastAPI's worker threads
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """Create the users and expenses tables if they don't exist yet."""
    # Registers the ORM classes on Base.metadata
    from fineflex.db import tables  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    Dependency that provides a database session and ensures it's closed.

    Usage (in routes):
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

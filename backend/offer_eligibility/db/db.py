import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

# SQLAlchemy Database URL (SQLite for simplicity)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./offer_eligibility.db")


def build_engine(database_url: str) -> Engine:
    # SQLite-specific connection args only for SQLite
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


engine = build_engine(DATABASE_URL)

# Create session
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def init_db(bind: Engine = engine) -> None:
    """Create the offers and transactions tables if they do not exist yet."""
    # Import models so they are registered on Base.metadata
    from offer_eligibility.models import offer, transaction  # noqa: F401

    Base.metadata.create_all(bind=bind)

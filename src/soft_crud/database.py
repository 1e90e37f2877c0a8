"""
Database Configuration

Engine and session factory for SQLAlchemy-backed soft delete stores.
"""

import logging
import os
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./soft_crud.db")


def create_db_engine(url: Optional[str] = None) -> Engine:
    """Create an engine; SQLite connections may be shared across threads"""
    url = url or DATABASE_URL
    return create_engine(
        url,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    )


engine = create_db_engine()
SessionLocal = sessionmaker(autoflush=False, bind=engine)


def create_tables(bind: Optional[Engine] = None) -> None:
    """Create tables for every model registered on Base"""
    from .models import Base

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created successfully")


def get_db() -> Iterator[Session]:
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

"""
Database engine, session factory and declarative base.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings


def build_engine(database_url: str, echo: bool = False):
    """
    Create an engine for the given URL.

    SQLite connections are shared across threads so the same file can be
    used from a worker pool.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, echo=echo)


engine = build_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a session and close it when the caller is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

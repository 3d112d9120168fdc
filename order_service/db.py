# order_service/db.py

"""
Database configuration for the Order Service.
Builds the SQLAlchemy engine and session factory used by the SQL storage backend.
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Read DB settings from environment variables, with defaults for local/dev
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = os.getenv("POSTGRES_DB", "postgres")
POSTGRES_HOST = os.getenv("POSTGRES_HOST")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")


def build_database_url():
    """
    Resolves the database URL.
    An explicit DATABASE_URL wins, then a PostgreSQL URL when POSTGRES_HOST is set,
    and finally a local SQLite file for development.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if POSTGRES_HOST:
        # Compose the SQLAlchemy database URL, split for linting
        return (
            "postgresql://"
            f"{POSTGRES_USER}:{POSTGRES_PASSWORD}@"
            f"{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
        )
    return "sqlite:///./orders.db"


DATABASE_URL = build_database_url()

# Base class for the ORM models
Base = declarative_base()


def make_engine(url=DATABASE_URL):
    """
    Creates an engine for the given URL.
    pool_pre_ping=True helps maintain healthy connections in a pool.
    """
    connect_args = {}
    if url.startswith("sqlite"):
        # Endpoints run in a thread pool; SQLite connections are shared across threads.
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


def make_session_factory(engine):
    # autocommit=False ensures transactions must be committed explicitly.
    # autoflush=False means changes aren't flushed to DB until commit or explicit flush.
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings


def normalize_database_url(url: str) -> str:
    """Use the psycopg3 driver for plain postgresql:// URLs."""
    if url.startswith("postgresql://") and "+psycopg" not in url:
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def engine_options(url: str) -> dict:
    """
    Pool and timeout options for the credential store.

    Callers beyond pool_size + max_overflow wait at most pool_timeout seconds
    for a connection; PostgreSQL statements are cut off after
    db_statement_timeout_ms.
    """
    if url.startswith("sqlite"):
        # SQLite (used in tests): no server-side statement timeout
        return {"connect_args": {"check_same_thread": False, "timeout": settings.db_pool_timeout}}

    options = {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_pre_ping": True,
    }
    if url.startswith("postgresql"):
        options["connect_args"] = {
            "connect_timeout": settings.db_pool_timeout,
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
        }
    return options


database_url = normalize_database_url(settings.database_url)

engine = create_engine(database_url, **engine_options(database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

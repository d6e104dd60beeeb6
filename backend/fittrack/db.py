from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

# SQLAlchemy Base class for models to inherit
Base = declarative_base()


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite") and (
        ":memory:" in database_url or database_url.rstrip("/").endswith(":")
    )


def build_engine(database_url: str) -> Engine:
    """Create the engine backing one ActivityStore.

    SQLite connections are shared across threads (the store serializes
    access itself); an in-memory database is pinned to a single connection
    so every operation sees the same data.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(database_url):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True  # helps avoid stale connections
    return create_engine(database_url, **kwargs)

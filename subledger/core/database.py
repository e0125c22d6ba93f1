from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from subledger.core.config import settings

# Seconds a SQLite writer waits on a concurrent webhook's lock before failing
SQLITE_BUSY_TIMEOUT = 15


def engine_options(dsn: str) -> dict[str, Any]:
    """Engine keyword arguments for the ledger store at ``dsn``.

    SQLite connections are shared across request threads and wait for a
    concurrent writer's lock. Pooled server connections are pinged before
    use.
    """
    if dsn.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.APP_DATABASE_DSN, **engine_options(settings.APP_DATABASE_DSN))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a ledger session, closed when the request ends."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

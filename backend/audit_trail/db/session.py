from sqlalchemy import create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from audit_trail.core.config import settings

engine_kwargs: dict = {"pool_pre_ping": True}
connect_args: dict = {}

try:
    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() in {"postgresql", "postgres"}:
        # psycopg2/libpq option flag
        connect_args.setdefault("options", "-c client_encoding=UTF8")
except ArgumentError:
    # Keep defaults if URL parsing fails; create_engine raises below.
    pass

if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {**connect_args, "check_same_thread": False}
    if ":memory:" in settings.DATABASE_URL:
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, **engine_kwargs)


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # pragma: no cover
    """SQLite ignores FOREIGN KEY constraints unless asked per connection."""
    if not settings.DATABASE_URL.startswith("sqlite"):
        return
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


_async_engine = None
_async_session_factory = None


def get_async_engine():
    """Lazily create the async engine; the async driver is only needed when used."""
    global _async_engine
    if _async_engine is None:
        async_url = settings.async_database_url
        async_kwargs: dict = {}
        if async_url.startswith("sqlite") and ":memory:" in async_url:
            async_kwargs["poolclass"] = StaticPool
        else:
            async_kwargs["pool_pre_ping"] = True
        _async_engine = create_async_engine(async_url, **async_kwargs)
    return _async_engine


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_factory

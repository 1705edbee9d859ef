from sqlalchemy import MetaData, event, pool
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from src.config import config

_engine_options = {"echo": config.database.echo}
if config.database.async_url.startswith("sqlite"):
    # SQLite (dev, тесты): без пула, соединение не переживает event loop
    _engine_options["poolclass"] = pool.NullPool

# Асинхронный движок для работы с FastAPI
async_engine = create_async_engine(config.database.async_url, **_engine_options)

if async_engine.dialect.name == "sqlite":
    @event.listens_for(async_engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

# Асинхронные сессии для FastAPI
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    expire_on_commit=False,
    class_=AsyncSession
)

# Настройки именования в базе данных
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=convention)

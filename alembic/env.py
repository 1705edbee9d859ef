from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from src.config import config as app_config
from src.db.base import Base
import src.models  # noqa: F401  регистрирует таблицы в metadata

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# URL берётся из настроек приложения (DB_*), а не из alembic.ini
config.set_main_option("sqlalchemy.url", app_config.database.async_url)

target_metadata = Base.metadata


def do_run_migrations(connection):
    """Выполнение миграций синхронно."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations():
    """Асинхронное подключение для запуска миграций."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_offline():
    """Оффлайн режим миграций."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    import asyncio
    asyncio.run(run_async_migrations())

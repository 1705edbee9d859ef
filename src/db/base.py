from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase

from .session import metadata


class Base(DeclarativeBase):
    metadata = metadata


async def create_tables(engine: AsyncEngine) -> None:
    """Создаёт недостающие таблицы (для dev и тестов; в проде — alembic)."""
    # Модели должны быть зарегистрированы в metadata до create_all
    import src.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

# src/core/dependencies.py
"""
Контейнер зависимостей для управления жизненным циклом сервисов.
Конфигурация передаётся в сервисы явно, сами сервисы глобальный config не читают.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import aiofiles.os

from src.config import Config, config as default_config
from src.core.locks import KeyedLock
from src.db.base import create_tables
from src.db.session import async_engine
from src.services.avatar import AvatarService
from src.services.avatar_query import AvatarQueryService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Контейнер для всех сервисов приложения"""

    def __init__(self, settings: Config = default_config):
        self.settings = settings
        self._avatar_service: Optional[AvatarService] = None
        self._avatar_query_service: Optional[AvatarQueryService] = None

        self._initialized = False

    async def startup(self):
        """Инициализация всех сервисов при старте приложения"""
        if self._initialized:
            return

        app_settings = self.settings.app
        avatars_dir = app_settings.avatars_path
        await aiofiles.os.makedirs(avatars_dir, exist_ok=True)

        if not app_settings.is_production:
            # В проде схема создаётся миграциями alembic
            await create_tables(async_engine)

        self._avatar_service = AvatarService(
            avatars_dir=avatars_dir,
            max_file_size=app_settings.max_avatar_size,
            chunk_size=app_settings.upload_chunk_size,
            locks=KeyedLock()
        )
        self._avatar_query_service = AvatarQueryService(chunk_size=app_settings.upload_chunk_size)

        logger.info(
            f"Avatar storage ready: directory {avatars_dir}, "
            f"max size {app_settings.max_avatar_size} bytes"
        )
        self._initialized = True

    async def shutdown(self):
        """Корректное завершение работы всех сервисов"""
        if not self._initialized:
            return

        self._avatar_service = None
        self._avatar_query_service = None
        self._initialized = False

        await async_engine.dispose()

    @property
    def avatar_service(self) -> AvatarService:
        if not self._avatar_service:
            raise RuntimeError("Avatar service not initialized. Call startup() first.")
        return self._avatar_service

    @property
    def avatar_query_service(self) -> AvatarQueryService:
        if not self._avatar_query_service:
            raise RuntimeError("Avatar query service not initialized. Call startup() first.")
        return self._avatar_query_service


_service_container: Optional[ServiceContainer] = None


def get_service_container() -> ServiceContainer:
    """Получить экземпляр контейнера сервисов"""
    global _service_container
    if _service_container is None:
        _service_container = ServiceContainer()
    return _service_container


# FastAPI Dependencies
async def get_avatar_service() -> AvatarService:
    return get_service_container().avatar_service


async def get_avatar_query_service() -> AvatarQueryService:
    return get_service_container().avatar_query_service


@asynccontextmanager
async def service_lifespan():
    """Контекстный менеджер для управления жизненным циклом сервисов"""
    container = get_service_container()

    await container.startup()

    try:
        yield container
    finally:
        await container.shutdown()

# src/services/avatar_query.py
import logging
from dataclasses import dataclass
from types import ModuleType
from typing import Any, AsyncIterator, List

import aiofiles
import aiofiles.os

from src.core.exceptions import AvatarNotFoundError, StorageIOError
from src.models import Avatar
from src.repositories import avatar as avatar_repository
from src.services.file_writer import DEFAULT_CHUNK_SIZE, iter_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvatarPreview:
    media_type: str
    data: bytes


@dataclass(frozen=True)
class AvatarDownload:
    media_type: str
    length: int
    stream: AsyncIterator[bytes]
    handle: Any

    async def close(self) -> None:
        """Закрывает файл, даже если поток так и не начали читать. Повторный вызов безопасен."""
        await self.handle.close()


@dataclass(frozen=True)
class AvatarPage:
    items: List[Avatar]
    page: int
    size: int
    total: int


class AvatarQueryService:
    """Чтение аватаров: превью из БД, полный файл с диска, постраничный список."""

    def __init__(
            self,
            *,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
            avatars: ModuleType = avatar_repository
    ):
        self.chunk_size = chunk_size
        self.avatars = avatars

    async def _get_avatar(self, student_id: int, with_data: bool = True) -> Avatar:
        avatar = await self.avatars.find_avatar_by_student_id(student_id, with_data=with_data)
        if avatar is None:
            raise AvatarNotFoundError(student_id)
        return avatar

    async def get_preview(self, student_id: int) -> AvatarPreview:
        avatar = await self._get_avatar(student_id)
        return AvatarPreview(media_type=avatar.media_type, data=avatar.data)

    async def get_full_download(self, student_id: int) -> AvatarDownload:
        """
        Открывает файл аватара для потокового чтения.

        Файл открывается сразу, чтобы расхождение диска и БД (файла нет,
        размер не совпадает) обнаружилось до начала ответа. Кэш из БД
        в этом случае не используется. Владелец результата обязан вызвать
        `close()`: генератор закрывает файл, только если его начали читать.
        """
        avatar = await self._get_avatar(student_id, with_data=False)
        context = {"student_id": student_id, "path": avatar.file_path, "size": avatar.file_size}

        try:
            stat = await aiofiles.os.stat(avatar.file_path)
            if stat.st_size != avatar.file_size:
                raise StorageIOError(
                    f"Avatar file size {stat.st_size} differs from stored {avatar.file_size}",
                    context
                )
            handle = await aiofiles.open(avatar.file_path, "rb")
        except StorageIOError as e:
            logger.error(f"Avatar drift detected: {e.message} | {context}")
            raise
        except OSError as e:
            logger.error(f"Avatar file is not readable: {e} | {context}")
            raise StorageIOError(f"Avatar file {avatar.file_path} is not readable", context) from e

        return AvatarDownload(
            media_type=avatar.media_type,
            length=avatar.file_size,
            stream=iter_file(handle, self.chunk_size),
            handle=handle
        )

    async def list_avatars(self, page: int, size: int) -> AvatarPage:
        items = await self.avatars.list_avatars(offset=page * size, limit=size)
        total = await self.avatars.count_avatars()
        return AvatarPage(items=items, page=page, size=size, total=total)

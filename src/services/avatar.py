# src/services/avatar.py
import asyncio
import logging
from pathlib import Path
from types import ModuleType
from typing import Optional

from src.core.exceptions import (
    PayloadTooLargeError,
    StorageIOError,
    StudentNotFoundError,
    WriteConflictError,
)
from src.core.locks import KeyedLock
from src.repositories import avatar as avatar_repository
from src.repositories import student as student_repository
from src.services.avatar_path import resolve_avatar_path, sibling_pattern
from src.services.file_writer import (
    AsyncByteStream,
    DEFAULT_CHUNK_SIZE,
    read_file,
    remove_file,
    write_stream,
)

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def normalize_media_type(media_type: Optional[str]) -> str:
    if not media_type or "/" not in media_type:
        logger.debug(f"Malformed media type {media_type!r}, using {DEFAULT_MEDIA_TYPE}")
        return DEFAULT_MEDIA_TYPE
    return media_type.strip()


class AvatarService:
    """
    Загрузка аватаров студентов.

    Файл пишется на диск, его байты копируются в запись БД для превью.
    Загрузки одного студента выполняются строго по очереди.
    Между записью файла и сохранением записи остаётся окно, в котором
    диск и БД расходятся; повторная загрузка это исправляет.
    """

    def __init__(
            self,
            avatars_dir: Path,
            max_file_size: int,
            *,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
            avatars: ModuleType = avatar_repository,
            students: ModuleType = student_repository,
            locks: Optional[KeyedLock] = None
    ):
        self.avatars_dir = Path(avatars_dir)
        self.max_file_size = max_file_size
        self.chunk_size = chunk_size
        self.avatars = avatars
        self.students = students
        self.locks = locks or KeyedLock()

    async def upload_avatar(
            self,
            student_id: int,
            file_name: Optional[str],
            media_type: Optional[str],
            declared_size: Optional[int],
            stream: AsyncByteStream
    ) -> None:
        if not await self.students.student_exists(student_id):
            logger.info(f"Avatar upload rejected: student {student_id} not found")
            raise StudentNotFoundError(student_id)

        if declared_size is not None and declared_size > self.max_file_size:
            logger.info(
                f"Avatar upload rejected: student {student_id}, "
                f"declared size {declared_size} > {self.max_file_size}"
            )
            raise PayloadTooLargeError(self.max_file_size, declared_size)

        media_type = normalize_media_type(media_type)
        path, _ = resolve_avatar_path(self.avatars_dir, student_id, file_name)

        async with self.locks.acquire(student_id):
            written = await self._write(student_id, path, stream)

            data = await self._read_back(student_id, path, written)

            await self.avatars.upsert_avatar(
                student_id,
                file_path=str(path),
                file_size=written,
                media_type=media_type,
                data=data
            )
            await self._remove_stale_files(student_id, path)

        logger.info(f"Avatar uploaded: student {student_id}, path {path}, size {written}")

    async def _write(self, student_id: int, path: Path, stream: AsyncByteStream) -> int:
        try:
            return await write_stream(
                path,
                stream,
                max_bytes=self.max_file_size,
                chunk_size=self.chunk_size
            )
        except WriteConflictError:
            # Файл принадлежит другому писателю, не трогаем его
            logger.error(f"Avatar write conflict: student {student_id}, path {path}")
            raise
        except PayloadTooLargeError as e:
            logger.info(f"Avatar upload aborted: student {student_id}, {e.message}")
            await self._discard(path)
            raise
        except StorageIOError as e:
            logger.error(
                f"Avatar write failed: student {student_id}, path {path}, "
                f"written {e.details.get('written')}: {e.message}"
            )
            await self._discard(path)
            raise
        except (Exception, asyncio.CancelledError) as e:
            # Обрыв входного потока: запись в БД не делаем
            logger.warning(f"Avatar upload interrupted: student {student_id}, path {path}: {e!r}")
            await self._discard(path)
            raise

    async def _read_back(self, student_id: int, path: Path, written: int) -> bytes:
        try:
            data = await read_file(path)
        except StorageIOError as e:
            logger.error(f"Avatar read-back failed: student {student_id}, path {path}, size {written}: {e.message}")
            raise
        if len(data) != written:
            logger.error(
                f"Avatar size mismatch after write: student {student_id}, path {path}, "
                f"written {written}, read {len(data)}"
            )
            raise StorageIOError(
                f"File {path} changed during upload",
                {"student_id": student_id, "path": str(path), "size": written}
            )
        return data

    async def _discard(self, path: Path) -> None:
        try:
            await remove_file(path)
        except StorageIOError as e:
            logger.error(f"Failed to remove partial avatar file {path}: {e.message}")

    async def _remove_stale_files(self, student_id: int, current: Path) -> None:
        candidates = await asyncio.to_thread(lambda: list(self.avatars_dir.glob(sibling_pattern(student_id))))
        for stale in candidates:
            if stale == current:
                continue
            try:
                await remove_file(stale)
                logger.info(f"Removed stale avatar file {stale} of student {student_id}")
            except StorageIOError as e:
                logger.warning(f"Failed to remove stale avatar file {stale}: {e.message}")

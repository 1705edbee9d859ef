# src/services/file_writer.py
import inspect
from pathlib import Path
from typing import AsyncIterator, Optional, Protocol

import aiofiles
import aiofiles.os
from loguru import logger

from src.core.exceptions import PayloadTooLargeError, StorageIOError, WriteConflictError

DEFAULT_CHUNK_SIZE = 64 * 1024


class AsyncByteStream(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


async def _release(stream) -> None:
    close = getattr(stream, "close", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result


async def write_stream(
        path: Path,
        stream: AsyncByteStream,
        *,
        max_bytes: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int:
    """
    Потоково копирует `stream` в `path` и возвращает число записанных байт.

    Каталоги создаются при необходимости. Существующий файл удаляется, новый
    создаётся в эксклюзивном режиме: если между удалением и созданием файл
    появился снова, поднимается WriteConflictError, содержимое не трогается.
    Превышение `max_bytes` во время копирования даёт PayloadTooLargeError.
    Недописанный файл остаётся на диске, решение об удалении за вызывающим.
    Входной поток закрывается при любом исходе.
    """
    path = Path(path)
    written = 0
    try:
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            if await remove_file(path):
                logger.debug(f"Removed previous file {path}")
            try:
                out = await aiofiles.open(path, "xb")
            except FileExistsError as e:
                raise WriteConflictError(
                    f"File {path} was recreated by a concurrent writer",
                    {"path": str(path)}
                ) from e
            try:
                while True:
                    chunk = await stream.read(chunk_size)
                    if not chunk:
                        break
                    written += len(chunk)
                    if max_bytes is not None and written > max_bytes:
                        raise PayloadTooLargeError(max_bytes, written)
                    await out.write(chunk)
            finally:
                await out.close()
        except OSError as e:
            raise StorageIOError(
                f"Failed to write {path}: {e}",
                {"path": str(path), "written": written}
            ) from e
    finally:
        await _release(stream)

    logger.debug(f"Written {written} bytes to {path}")
    return written


async def read_file(path: Path) -> bytes:
    try:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except OSError as e:
        raise StorageIOError(f"Failed to read {path}: {e}", {"path": str(path)}) from e


async def remove_file(path: Path) -> bool:
    """Удаляет файл. Отсутствие файла ошибкой не считается."""
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        raise StorageIOError(f"Failed to remove {path}: {e}", {"path": str(path)}) from e
    return True


async def iter_file(handle, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Читает открытый aiofiles-хэндл кусками и закрывает его в конце."""
    try:
        while True:
            chunk = await handle.read(chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        await handle.close()

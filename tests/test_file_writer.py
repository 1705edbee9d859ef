import io

import pytest

from src.core.exceptions import PayloadTooLargeError, StorageIOError, WriteConflictError
from src.services import file_writer
from src.services.file_writer import iter_file, read_file, remove_file, write_stream


class TrackingStream:
    """Асинхронный поток байт, запоминающий закрытие."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)
        self.closed = False

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_write_creates_directories_and_returns_size(tmp_path):
    target = tmp_path / "nested" / "dir" / "1.png"
    stream = TrackingStream(b"x" * 1000)

    written = await write_stream(target, stream, chunk_size=64)

    assert written == 1000
    assert target.read_bytes() == b"x" * 1000
    assert stream.closed


class BrokenStream(TrackingStream):
    """Отдаёт первый кусок и падает на следующем чтении."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self._reads = 0

    async def read(self, size: int = -1) -> bytes:
        self._reads += 1
        if self._reads > 1:
            raise RuntimeError("connection reset")
        return await super().read(size)


@pytest.mark.asyncio
async def test_failed_stream_flushes_and_closes_output(tmp_path):
    target = tmp_path / "1.png"
    stream = BrokenStream(b"a" * 64 + b"b" * 64)

    with pytest.raises(RuntimeError):
        await write_stream(target, stream, chunk_size=64)

    # Файл закрыт: записанный кусок уже на диске, повторное создание не мешает
    assert target.read_bytes() == b"a" * 64
    assert stream.closed
    assert await write_stream(target, TrackingStream(b"retry")) == 5


@pytest.mark.asyncio
async def test_write_replaces_existing_file(tmp_path):
    target = tmp_path / "1.png"
    target.write_bytes(b"old content that is longer")

    await write_stream(target, TrackingStream(b"new"))

    assert target.read_bytes() == b"new"


@pytest.mark.asyncio
async def test_write_over_limit_raises_and_closes_stream(tmp_path):
    target = tmp_path / "1.png"
    stream = TrackingStream(b"y" * 200)

    with pytest.raises(PayloadTooLargeError) as exc_info:
        await write_stream(target, stream, max_bytes=100, chunk_size=64)

    assert exc_info.value.limit == 100
    assert exc_info.value.received > 100
    assert stream.closed


@pytest.mark.asyncio
async def test_write_exactly_at_limit_succeeds(tmp_path):
    target = tmp_path / "1.png"

    written = await write_stream(target, TrackingStream(b"z" * 128), max_bytes=128, chunk_size=64)

    assert written == 128


@pytest.mark.asyncio
async def test_concurrent_recreation_is_a_write_conflict(tmp_path, monkeypatch):
    target = tmp_path / "1.png"
    target.write_bytes(b"previous")

    async def racing_remove(path):
        # Другой писатель успевает создать файл сразу после удаления
        path.unlink()
        path.write_bytes(b"other writer")
        return True

    monkeypatch.setattr(file_writer, "remove_file", racing_remove)
    stream = TrackingStream(b"mine")

    with pytest.raises(WriteConflictError):
        await write_stream(target, stream)

    assert target.read_bytes() == b"other writer"
    assert stream.closed


@pytest.mark.asyncio
async def test_disk_error_is_storage_io_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_bytes(b"")

    with pytest.raises(StorageIOError):
        await write_stream(blocker / "1.png", TrackingStream(b"data"))


@pytest.mark.asyncio
async def test_read_and_remove_helpers(tmp_path):
    target = tmp_path / "1.bin"
    target.write_bytes(b"abc")

    assert await read_file(target) == b"abc"
    assert await remove_file(target) is True
    assert await remove_file(target) is False

    with pytest.raises(StorageIOError):
        await read_file(target)


@pytest.mark.asyncio
async def test_iter_file_yields_chunks(tmp_path):
    import aiofiles

    target = tmp_path / "1.bin"
    target.write_bytes(bytes(range(256)) * 3)

    handle = await aiofiles.open(target, "rb")
    chunks = [chunk async for chunk in iter_file(handle, chunk_size=100)]

    assert b"".join(chunks) == bytes(range(256)) * 3
    assert max(len(chunk) for chunk in chunks) == 100

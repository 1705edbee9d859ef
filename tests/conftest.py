import asyncio
import io
import os
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio
from starlette.datastructures import Headers, UploadFile

_TMP_DIR = Path(tempfile.mkdtemp(prefix="school-avatars-tests-"))

# Настройки должны быть в окружении до импорта src
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'test.db'}"
os.environ["APP_AVATARS_DIRECTORY"] = str(_TMP_DIR / "avatars")
os.environ["APP_ENVIRONMENT"] = "test"
os.environ["APP_LOG_LEVEL"] = "INFO"
os.environ["APP_MAX_AVATAR_SIZE"] = str(300 * 1024)
os.environ["LOG_GRAYLOG_ENABLED"] = "false"
os.environ["LOG_SYSLOG_ENABLED"] = "false"

from src.db.base import Base  # noqa: E402
from src.db.session import async_engine  # noqa: E402
from src.models import Student  # noqa: E402
from src.repositories.student import save_student  # noqa: E402

SEEDED_STUDENT_IDS = (1, 2, 5)


async def _reset_database(*student_ids: int) -> None:
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    for student_id in student_ids:
        await save_student(Student(id=student_id, name=f"Student {student_id}", age=17))


def make_upload(data: bytes, filename: str = "photo.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        size=len(data),
        filename=filename,
        headers=Headers({"content-type": content_type})
    )


@pytest_asyncio.fixture
async def db():
    await _reset_database(*SEEDED_STUDENT_IDS)
    yield


@pytest.fixture
def avatars_dir(tmp_path: Path) -> Path:
    return tmp_path / "avatars"


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from src.config import config
    from src.main import app

    asyncio.run(_reset_database(*SEEDED_STUDENT_IDS))

    with TestClient(app) as c:
        yield c

    for path in config.app.avatars_path.glob("*"):
        path.unlink()

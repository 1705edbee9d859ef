# src/services/avatar_path.py
import logging
import re
from pathlib import Path
from typing import NamedTuple, Optional

from src.core.exceptions import ValidationFailure

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "bin"

_EXTENSION_RE = re.compile(r"^[A-Za-z0-9]{1,16}$")


class AvatarPath(NamedTuple):
    path: Path
    extension: str


def _extension_from(file_name: Optional[str]) -> str:
    if not file_name or "." not in file_name:
        raise ValidationFailure(f"No extension in file name {file_name!r}")
    extension = file_name.rsplit(".", 1)[1]
    if not _EXTENSION_RE.match(extension):
        raise ValidationFailure(f"Malformed extension {extension!r} in file name {file_name!r}")
    return extension.lower()


def resolve_avatar_path(avatars_dir: Path, student_id: int, file_name: Optional[str]) -> AvatarPath:
    """
    Путь к файлу аватара: `<avatars_dir>/<student_id>.<ext>`.

    Расширение берётся из последнего сегмента имени файла после точки.
    Если имени нет, в нём нет точки или сегмент некорректен, используется `bin`.
    Файл у студента один: старые файлы с другим расширением удаляет сервис
    (см. `sibling_pattern`).
    """
    try:
        extension = _extension_from(file_name)
    except ValidationFailure as e:
        logger.debug(f"{e.message}, falling back to .{DEFAULT_EXTENSION}")
        extension = DEFAULT_EXTENSION
    return AvatarPath(Path(avatars_dir) / f"{student_id}.{extension}", extension)


def sibling_pattern(student_id: int) -> str:
    """Glob всех файлов аватара студента, с любым расширением."""
    return f"{student_id}.*"

# src/repositories/avatar.py
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import defer

from src.models.avatar import Avatar
from src.utils.db import with_db_session

logger = logging.getLogger(__name__)


@with_db_session()
async def upsert_avatar(
        session: AsyncSession,
        student_id: int,
        *,
        file_path: str,
        file_size: int,
        media_type: str,
        data: bytes
) -> Avatar:
    """
    Создание аватара студента или обновление существующего.

    Запись на студента одна: при повторной загрузке все поля
    перезаписываются целиком в той же строке.
    """
    stmt = select(Avatar).where(Avatar.student_id == student_id)
    result = await session.execute(stmt)
    avatar = result.scalar_one_or_none()

    if avatar is None:
        avatar = Avatar(student_id=student_id)
        session.add(avatar)
        logger.debug(f"Creating avatar record for student {student_id}")

    avatar.file_path = file_path
    avatar.file_size = file_size
    avatar.media_type = media_type
    avatar.data = data

    await session.flush()
    await session.refresh(avatar)
    return avatar


@with_db_session(commit=False)
async def find_avatar_by_student_id(
        session: AsyncSession,
        student_id: int,
        *,
        with_data: bool = True
) -> Optional[Avatar]:
    """
    Получение аватара по ID студента.

    При `with_data=False` байты превью не загружаются; обращение к
    `Avatar.data` у такого объекта после закрытия сессии недопустимо.
    """
    stmt = select(Avatar).where(Avatar.student_id == student_id)
    if not with_data:
        stmt = stmt.options(defer(Avatar.data))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


@with_db_session(commit=False)
async def list_avatars(session: AsyncSession, offset: int, limit: int) -> List[Avatar]:
    """Страница аватаров в порядке добавления, без байтов превью."""
    stmt = select(Avatar).options(defer(Avatar.data)).order_by(Avatar.id).offset(offset).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


@with_db_session(commit=False)
async def count_avatars(session: AsyncSession) -> int:
    """Общее количество аватаров."""
    result = await session.execute(select(func.count()).select_from(Avatar))
    return result.scalar_one()

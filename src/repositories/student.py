# src/repositories/student.py
"""Минимальный контракт студентов, нужный подсистеме аватаров."""
import logging
from typing import Optional

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Student
from src.utils.db import with_db_session

logger = logging.getLogger(__name__)


@with_db_session(commit=False)
async def get_student_by_id(session: AsyncSession, student_id: int) -> Optional[Student]:
    """Получение студента по ID."""
    return await session.get(Student, student_id)


@with_db_session(commit=False)
async def student_exists(session: AsyncSession, student_id: int) -> bool:
    """Проверка существования студента."""
    stmt = select(exists().where(Student.id == student_id))
    result = await session.execute(stmt)
    return bool(result.scalar())


@with_db_session()
async def save_student(session: AsyncSession, student: Student) -> Student:
    """Создание или обновление студента."""
    student = await session.merge(student)
    await session.flush()
    await session.refresh(student)
    return student


@with_db_session()
async def delete_student_by_id(session: AsyncSession, student_id: int) -> bool:
    """Удаление студента. Возвращает False, если студента не было."""
    result = await session.execute(delete(Student).where(Student.id == student_id))
    deleted = result.rowcount > 0
    if deleted:
        logger.info(f"Student {student_id} deleted")
    return deleted

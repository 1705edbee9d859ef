import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import AsyncIterator, Awaitable, Callable, Concatenate, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError, DatabaseError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)


T = TypeVar('T')
P = ParamSpec('P')


@asynccontextmanager
async def get_async_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def with_db_session(commit: bool = True) -> Callable[
    [Callable[Concatenate[AsyncSession, P], Awaitable[T]]], Callable[P, Awaitable[T]]
]:
    """
    Декоратор: открывает сессию и передаёт её первым аргументом.

    При `commit=True` транзакция фиксируется после успешного вызова.
    Ошибки SQLAlchemy откатываются и пробрасываются как DatabaseError.
    """
    def decorator(func: Callable[Concatenate[AsyncSession, P], Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            async with get_async_db() as session:
                try:
                    result = await func(session, *args, **kwargs)
                    if commit:
                        await session.commit()
                    return result
                except SQLAlchemyError as e:
                    await session.rollback()
                    logger.error(f"Database error in {func.__name__}: {str(e)}")
                    raise DatabaseError(f"Database operation failed: {str(e)}", params=None, orig=e) from e

        return wrapper

    return decorator

# src/api/v1/endpoints/avatars.py
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, UploadFile, File, HTTPException, Response
from starlette import status
from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse

from src.core.dependencies import get_avatar_query_service, get_avatar_service
from src.core.exceptions import (
    NotFoundError,
    PayloadTooLargeError,
    StorageIOError,
    WriteConflictError,
)
from src.schemas.avatar import AvatarPageResponse
from src.services.avatar import AvatarService
from src.services.avatar_query import AvatarQueryService

logger = logging.getLogger(__name__)

router = APIRouter()

STORAGE_ERROR_DETAIL = "Ошибка хранилища аватаров"


@router.post("/student/{student_id}/avatar", summary="Загрузка аватара студента")
async def upload_avatar(
        student_id: int,
        avatar_service: Annotated[AvatarService, Depends(get_avatar_service)],
        avatar: UploadFile = File(...)
):
    """Сохраняет файл на диск и копию в БД. Повторная загрузка заменяет аватар."""
    try:
        await avatar_service.upload_avatar(
            student_id,
            file_name=avatar.filename,
            media_type=avatar.content_type,
            declared_size=avatar.size,
            stream=avatar
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except PayloadTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=e.message)
    except (StorageIOError, WriteConflictError):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=STORAGE_ERROR_DETAIL)

    return Response(status_code=status.HTTP_200_OK)


@router.get("/student/{student_id}/avatar/preview", summary="Превью аватара из БД")
async def download_avatar_preview(
        student_id: int,
        query_service: Annotated[AvatarQueryService, Depends(get_avatar_query_service)]
):
    try:
        preview = await query_service.get_preview(student_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    return Response(content=preview.data, media_type=preview.media_type)


@router.get("/student/{student_id}/avatar", summary="Скачивание аватара с диска")
async def download_avatar(
        student_id: int,
        query_service: Annotated[AvatarQueryService, Depends(get_avatar_query_service)]
):
    """Отдаёт файл потоком. Если файла на диске нет, возвращает 500, а не превью."""
    try:
        download = await query_service.get_full_download(student_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except StorageIOError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=STORAGE_ERROR_DETAIL)

    return StreamingResponse(
        content=download.stream,
        media_type=download.media_type,
        headers={"Content-Length": str(download.length)},
        background=BackgroundTask(download.close)
    )


@router.get("/avatar", summary="Список аватаров", response_model=AvatarPageResponse)
async def get_all_avatars(
        query_service: Annotated[AvatarQueryService, Depends(get_avatar_query_service)],
        page: int = 0,
        size: int = 10
):
    page_result = await query_service.list_avatars(max(page, 0), max(size, 0))
    return AvatarPageResponse.model_validate(page_result, from_attributes=True)

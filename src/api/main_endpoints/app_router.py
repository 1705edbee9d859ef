import logging

from fastapi import APIRouter

from src.config import config
from src.version import APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/port", summary="Порт и имя приложения")
async def get_port():
    logger.info("Was invoked method for get server port")
    response = f"Application '{config.app.app_name}' is running on port: {config.app.port}"
    logger.debug(f"Response: {response}")
    return {"application": config.app.app_name, "port": config.app.port, "message": response}


@router.get("/version")
async def read_version():
    return {"version": APP_VERSION}


@router.get("/health")
async def health_check():
    return {"status": "ok"}

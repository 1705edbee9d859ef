import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.logging import LoggingIntegration

from src.api.routes import include_routers
from src.config import config
from src.config.logger import setup_logging
from src.core.dependencies import service_lifespan
from src.version import APP_VERSION


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with service_lifespan() as container:
        app.state.services = container
        logger.info(f"Старт {config.app.service_name} {APP_VERSION}")
        yield
    logger.info("Завершение работы")


# Логи в Sentry не перехватываем, события только для ERROR и выше
sentry_logging = LoggingIntegration(
    level=None,
    event_level=logging.ERROR
)

if config.app.is_production and config.app.sentry_dsn:
    sentry_sdk.init(
        dsn=config.app.sentry_dsn,
        integrations=[sentry_logging],
        traces_sample_rate=0.01,
        profiles_sample_rate=0,
        max_breadcrumbs=5,
        attach_stacktrace=False,
        before_send=lambda event, hint: None if event.get('level') == 'info' else event,
        ignore_errors=[KeyboardInterrupt, SystemExit]
    )

app = FastAPI(lifespan=lifespan,
              title="School Avatars API",
              docs_url="/docs" if config.app.enable_docs else None,
              redoc_url="/redoc" if config.app.enable_docs else None,
              openapi_url="/openapi.json" if config.app.enable_docs else None,
              version=APP_VERSION
              )

logger = setup_logging(
    config.logging,
    service_name=config.app.service_name,
    log_level=config.app.log_level,
    app=app
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.app.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

include_routers(app)

instrumentator = Instrumentator(excluded_handlers=["/metrics"])

instrumentator.instrument(app).expose(app)


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(app, host=config.app.host, port=config.app.port, log_level=config.app.log_level.lower())

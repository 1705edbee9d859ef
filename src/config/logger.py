import logging
import socket
import sys
import time
import uuid
from logging.handlers import SysLogHandler
from typing import Callable, Iterable, List, Optional

import graypy
from fastapi import FastAPI, Request, Response
from rfc5424logging import Rfc5424SysLogHandler
from starlette.middleware.base import BaseHTTPMiddleware

from src.config.settings import LoggingConfig

DEFAULT_EXCLUDED_PATHS = frozenset({"/metrics", "/api/health"})
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "multipart")
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | service={service} | %(message)s"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Пишет в лог начало и конец каждого запроса с общим ID.

    ID берётся из заголовка X-Request-ID клиента или генерируется
    и возвращается в ответе. Ответы 5xx пишутся уровнем ERROR,
    размер тела загрузки попадает в лог вместе с методом и путём.
    """

    def __init__(
            self,
            app: FastAPI,
            logger: logging.Logger,
            excluded_paths: Iterable[str] = DEFAULT_EXCLUDED_PATHS
    ):
        super().__init__(app)
        self.logger = logger
        self.excluded_paths = frozenset(excluded_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        client = request.client.host if request.client else "-"
        body_size = request.headers.get("content-length", "-")

        self.logger.info(f"[{request_id}] -> {request.method} {request.url.path} from {client}, body {body_size}")
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            self.logger.exception(f"[{request_id}] !! {request.method} {request.url.path} "
                                  f"after {time.perf_counter() - started:.4f}s: {exc!r}")
            raise

        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        self.logger.log(
            level,
            f"[{request_id}] <- {response.status_code} {request.method} {request.url.path} "
            f"in {time.perf_counter() - started:.4f}s"
        )
        response.headers["X-Request-ID"] = request_id
        return response


class _SkipMetricsAccess(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return "/metrics" not in record.getMessage()


def _console_handler(service_name: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT.replace("{service}", service_name)))
    return handler


def _remote_handlers(settings: LoggingConfig, service_name: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if settings.graylog_enabled:
        handlers.append(graypy.GELFUDPHandler(settings.graylog_host, settings.graylog_port, localname=service_name))

    if settings.syslog_enabled:
        # TCP-соединение открывается сразу, сервер может быть недоступен
        try:
            syslog = Rfc5424SysLogHandler(
                address=(settings.syslog_host, settings.syslog_port),
                socktype=socket.SOCK_STREAM,
                appname=service_name,
                msg_as_utf8=True,
                facility=SysLogHandler.LOG_USER
            )
        except OSError as e:
            logging.getLogger(__name__).warning(
                f"Syslog {settings.syslog_host}:{settings.syslog_port} недоступен: {e}"
            )
        else:
            syslog.setLevel(logging.DEBUG)
            handlers.append(syslog)

    return handlers


def setup_logging(
        settings: LoggingConfig,
        *,
        service_name: str,
        log_level: str = "INFO",
        app: Optional[FastAPI] = None,
        excluded_paths: Iterable[str] = DEFAULT_EXCLUDED_PATHS
) -> logging.Logger:
    """
    Перенастраивает корневой логгер и возвращает логгер сервиса.

    Консоль включена всегда; Graylog и Syslog по флагам из `settings`.
    Если передан `app`, подключается RequestLoggingMiddleware.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    root.addHandler(_console_handler(service_name))
    for handler in _remote_handlers(settings, service_name):
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").addFilter(_SkipMetricsAccess())

    logger = logging.getLogger(service_name)
    if app is not None:
        app.add_middleware(RequestLoggingMiddleware, logger=logger, excluded_paths=excluded_paths)
    return logger

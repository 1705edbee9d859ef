import logging

import graypy
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.config.logger import RequestLoggingMiddleware, setup_logging
from src.config.settings import LoggingConfig


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_adds_enabled_handlers(restore_root_logger):
    settings = LoggingConfig(graylog_enabled=True, syslog_enabled=False)

    logger = setup_logging(settings, service_name="avatars-test", log_level="warning")

    root = logging.getLogger()
    assert logger.name == "avatars-test"
    assert root.level == logging.WARNING
    assert any(isinstance(h, graypy.GELFUDPHandler) for h in root.handlers)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_request_id_is_echoed_and_failures_logged(caplog):
    app = FastAPI()

    @app.get("/ok")
    async def ok():
        return {"ok": True}

    @app.get("/broken")
    async def broken():
        raise RuntimeError("disk gone")

    app.add_middleware(RequestLoggingMiddleware, logger=logging.getLogger("avatars-test"))

    with TestClient(app, raise_server_exceptions=False) as client, caplog.at_level(logging.INFO):
        r = client.get("/ok", headers={"X-Request-ID": "abc123"})
        assert r.headers["X-Request-ID"] == "abc123"

        assert client.get("/broken").status_code == 500

    assert any("[abc123] <- 200 GET /ok" in m for m in caplog.messages)
    assert any("!! GET /broken" in rec.getMessage() and rec.levelno == logging.ERROR for rec in caplog.records)

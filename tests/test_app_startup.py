import logging
from logging.handlers import RotatingFileHandler
import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockcanon import create_app
from stockcanon.extensions import db
from stockcanon.utils.logging import RequestIdFilter


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "LOG_DIR": str(tmp_path / "logs"),
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def test_app_reports_database_online(app):
    assert app.config["DATABASE_AVAILABLE"] is True
    assert app.config["DATABASE_ERROR"] is None


def test_health_endpoint(app):
    response = app.test_client().get("/health/")
    assert response.status_code == 200
    assert response.get_json() == {"status": "OK", "database": "online"}


def test_logging_writes_rotating_file(app, tmp_path):
    log_path = tmp_path / "logs" / "stockcanon.log"
    assert log_path.parent.is_dir()

    root_logger = logging.getLogger()
    file_handlers = [
        handler
        for handler in root_logger.handlers
        if getattr(handler, "baseFilename", "") == str(log_path)
    ]
    assert len(file_handlers) == 1
    assert any(isinstance(item, RequestIdFilter) for item in file_handlers[0].filters)


def test_request_id_header_is_used(app):
    seen = {}

    @app.get("/_request-id")
    def show_request_id():
        from flask import g

        seen["request_id"] = g.request_id
        return "ok"

    app.test_client().get("/_request-id", headers={"X-Request-ID": "scan-42"})
    assert seen["request_id"] == "scan-42"


def test_unhandled_errors_return_json(app):
    @app.get("/_boom")
    def boom():
        raise RuntimeError("exploded")

    response = app.test_client().get("/_boom")
    assert response.status_code == 500
    assert response.get_json()["error"] == "exploded"


def test_unknown_route_keeps_default_404(app):
    response = app.test_client().get("/no-such-page")
    assert response.status_code == 404


def test_console_handler_added_alongside_file_handlers(tmp_path, monkeypatch):
    root_logger = logging.getLogger()
    monkeypatch.setattr(
        root_logger,
        "handlers",
        [
            handler
            for handler in root_logger.handlers
            if type(handler) is not logging.StreamHandler
        ],
    )
    existing = RotatingFileHandler(tmp_path / "other.log")
    root_logger.addHandler(existing)
    preexisting = list(root_logger.handlers)

    config = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "LOG_DIR": str(tmp_path / "logs"),
    }
    create_app(config)
    create_app(config)

    console_handlers = [
        handler
        for handler in root_logger.handlers
        if type(handler) is logging.StreamHandler
    ]
    assert len(console_handlers) == 1
    assert any(isinstance(item, RequestIdFilter) for item in console_handlers[0].filters)

    existing.close()
    for handler in root_logger.handlers:
        if handler not in preexisting:
            handler.close()

import logging

from src.todo_web.logs import APP_LOGGER, configure_logging
from src.todo_web.settings import get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("PERSISTENCE_BACKEND", "SQLITE_DB_PATH", "CORS_ALLOW_ORIGINS", "LOG_LEVEL",
                     "VIEWPORT_WIDTH", "VIEWPORT_HEIGHT"):
            monkeypatch.delenv(name, raising=False)
        settings = get_settings()
        assert settings.persistence_backend == "memory"
        assert settings.sqlite_db_path == "./data/todos.db"
        assert settings.cors_allow_origins == ["*"]
        assert settings.log_level == "INFO"
        assert (settings.viewport_width, settings.viewport_height) == (1280, 800)

    def test_overrides_and_fallbacks(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "Postgres")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("VIEWPORT_WIDTH", "wide")
        monkeypatch.setenv("VIEWPORT_HEIGHT", "900")
        settings = get_settings()
        assert settings.persistence_backend == "memory"
        assert settings.cors_allow_origins == ["http://a.test", "http://b.test"]
        assert settings.log_level == "DEBUG"
        assert settings.viewport_width == 1280
        assert settings.viewport_height == 900


class TestLogging:
    def test_configure_is_idempotent(self):
        logger = configure_logging("DEBUG")
        handlers = list(logger.handlers)
        configure_logging("WARNING")
        assert logger.name == APP_LOGGER
        assert logger.handlers == handlers
        assert logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        assert configure_logging("chatty").level == logging.INFO

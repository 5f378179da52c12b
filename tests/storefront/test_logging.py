import logging
import logging.handlers

from storefront.utils.logging import configure_logging, get_log_level


class TestLogLevel:
    def test_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("STOREFRONT_LOG_LEVEL", raising=False)
        assert get_log_level("production") == "INFO"
        assert get_log_level("development") == "DEBUG"
        assert get_log_level("test") == "WARNING"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "ERROR")
        assert get_log_level("development") == "ERROR"


class TestConfigureLogging:
    def test_file_handlers_written_to_log_dir(self, tmp_path):
        configure_logging(env="test", level="INFO", log_dir=str(tmp_path))

        assert (tmp_path / "storefront.log").exists()
        assert (tmp_path / "storefront_error.log").exists()
        assert logging.getLogger().level == logging.INFO

    def test_console_only_without_log_dir(self):
        configure_logging(env="test", log_dir=None)
        handlers = logging.getLogger().handlers
        assert not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)

"""
Tests for the command-line entry point and logging setup.
"""

import json
import logging

import pytest

import app
from core.logging import setup_logging
from database.engine import reset_engine


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers, root.level = handlers, level
    reset_engine()


class TestCli:
    """app.main() commands."""

    def test_init_db_creates_database(self, tmp_path, monkeypatch):
        db_path = tmp_path / "nested" / "news.db"
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")

        assert app.main(["init-db"]) == 0
        assert db_path.exists()

    def test_configuration_error_exit_code(self, monkeypatch, capsys):
        monkeypatch.setenv("NEWS_MAX_ARTICLES", "zero")

        assert app.main(["init-db"]) == 2
        assert "NEWS_MAX_ARTICLES" in capsys.readouterr().err

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            app.main([])


class TestLogging:
    """setup_logging() output formats."""

    def test_json_format(self, capsys):
        setup_logging("DEBUG", "json", service_name="health-news")
        logging.getLogger("collector.test").info("hello")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "hello"
        assert record["logger"] == "collector.test"
        assert record["service"] == "health-news"

    def test_level_applied(self):
        setup_logging("WARNING")
        assert logging.getLogger().level == logging.WARNING

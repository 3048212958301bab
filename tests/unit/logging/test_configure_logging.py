"""Unit tests for configure_logging."""

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from shelfscan.config.models import LoggingConfig
from shelfscan.logging import JSONFormatter, configure_logging


@pytest.fixture(autouse=True)
def _restore(restore_root_logger):
    yield


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_stderr_text_by_default(self) -> None:
        configure_logging(LoggingConfig(level="debug"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert not isinstance(handler.formatter, JSONFormatter)

    def test_level_case_insensitive(self) -> None:
        configure_logging(LoggingConfig(level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

    def test_json_file_output(self, tmp_path: Path) -> None:
        """JSON records go to the rotating log file."""
        log_file = tmp_path / "logs" / "shelfscan.log"
        configure_logging(
            LoggingConfig(file=log_file, format="json", include_stderr=False)
        )

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], RotatingFileHandler)

        logging.getLogger("shelfscan.test").info("hello %s", "world")
        root.handlers[0].flush()

        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert entry["message"] == "hello world"

    def test_file_and_stderr(self, tmp_path: Path) -> None:
        configure_logging(LoggingConfig(file=tmp_path / "shelfscan.log"))
        assert len(logging.getLogger().handlers) == 2

    def test_unusable_file_falls_back_to_stderr(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A log file that cannot be opened still leaves stderr logging."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        configure_logging(
            LoggingConfig(file=blocker / "shelfscan.log", include_stderr=False)
        )

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert not isinstance(handlers[0], RotatingFileHandler)
        assert "Could not open log file" in capsys.readouterr().err

    def test_handlers_replaced(self) -> None:
        configure_logging(LoggingConfig())
        configure_logging(LoggingConfig())
        assert len(logging.getLogger().handlers) == 1

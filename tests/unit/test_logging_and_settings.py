"""
Tests for structured logging and application settings.
"""

import json
import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from katalon_assist.core.config import Settings
from katalon_assist.core.logging_config import (
    StructuredFormatter, get_execution_logger, get_healing_logger, setup_logging
)


@pytest.fixture
def restore_logging():
    """Put back the root handlers replaced by setup_logging()."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for name in ("healing", "execution"):
        for handler in logging.getLogger(name).handlers[:]:
            logging.getLogger(name).removeHandler(handler)
            handler.close()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestStructuredLogging:
    """Test JSON log records and context adapters."""

    def test_formatter_includes_context(self):
        record = logging.LogRecord("healing.engine", logging.INFO, __file__, 10, "Healed %s", ("loginBtn",), None)
        record.object_name = "loginBtn"
        record.operation = "heal"
        record.metadata = {"strategy": "css_conversion"}

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "Healed loginBtn"
        assert data["level"] == "INFO"
        assert data["object_name"] == "loginBtn"
        assert data["metadata"] == {"strategy": "css_conversion"}
        assert "run_id" not in data

    def test_adapters_stamp_context(self):
        healing = get_healing_logger("engine", "loginBtn")
        execution = get_execution_logger("supervisor", "execution_1_abc")

        assert healing.logger.name == "healing.engine"
        assert healing.extra == {"object_name": "loginBtn"}
        assert execution.logger.name == "execution.supervisor"
        assert execution.extra == {"run_id": "execution_1_abc"}

        _, kwargs = execution.process("msg", {"extra": {"operation": "test_execution"}})
        assert kwargs["extra"] == {"run_id": "execution_1_abc", "operation": "test_execution"}

    def test_setup_logging_writes_operation_logs(self, tmp_path, restore_logging):
        loggers = setup_logging(log_level="DEBUG", log_dir=str(tmp_path))
        assert set(loggers) == {"healing", "execution"}

        get_execution_logger("supervisor", "execution_1_abc").log_operation_failure(
            "test_execution", 1.5, "exit code 1", error_code="non_zero_exit")
        for handler in logging.getLogger().handlers + logging.getLogger("execution").handlers:
            handler.flush()

        lines = (tmp_path / "execution_operations.log").read_text().strip().splitlines()
        record = json.loads(lines[-1])
        assert record["run_id"] == "execution_1_abc"
        assert record["success"] is False
        assert record["error_code"] == "non_zero_exit"
        assert (tmp_path / "assistant_errors.log").read_text().strip()
        assert (tmp_path / "assistant_all.log").exists()


class TestSettings:
    """Test application settings validation."""

    def test_defaults(self, monkeypatch):
        for name in ("EXECUTION_TIMEOUT_SECONDS", "HEALING_HISTORY_LIMIT", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.EXECUTION_TIMEOUT_SECONDS == 1800
        assert settings.HEALING_HISTORY_LIMIT == 1000
        assert settings.LOG_LEVEL == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("EXECUTION_TIMEOUT_SECONDS", "60")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.EXECUTION_TIMEOUT_SECONDS == 60
        assert settings.LOG_LEVEL == "DEBUG"

    @pytest.mark.parametrize("name,value", [
        ("EXECUTION_TIMEOUT_SECONDS", "0"),
        ("HEALING_HISTORY_LIMIT", "0"),
        ("LOG_LEVEL", "LOUD"),
    ])
    def test_invalid_values_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None)


def test_package_exposes_logging_entry_hook():
    import katalon_assist

    assert katalon_assist.setup_logging is setup_logging

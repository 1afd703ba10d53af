"""
Unit tests for error handling and structured logging.
"""

import json
import logging

import pytest

from drl_scheduler.utils.exceptions import DRLSchedulerError, ErrorContext, FitError
from drl_scheduler.utils.logging_config import OperationLogger, StructuredFormatter, get_logger


class TestErrors:
    """Test cases for the exception hierarchy."""

    def test_context_in_message(self):
        error = DRLSchedulerError("failed", context={"node": "node-a"})
        assert str(error) == "failed (Context: node=node-a)"

    def test_error_context_annotates(self):
        with pytest.raises(FitError) as exc_info:
            with ErrorContext("learn", "Agent").add_context(batch_size=4):
                raise FitError("nan loss")

        assert exc_info.value.context == {"operation": "learn", "component": "Agent", "batch_size": 4}

    def test_error_context_passes_other_errors(self):
        with pytest.raises(KeyError):
            with ErrorContext("learn"):
                raise KeyError("x")


class TestLogging:
    """Test cases for the structured log format."""

    def test_structured_record(self):
        record = logging.LogRecord("DRL-Scheduler.Agent", logging.INFO, __file__, 1, "hello", None, None)
        record.component = "Agent"
        record.context = {"steps": 3}

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["message"] == "hello"
        assert payload["context"] == {"steps": 3}

    def test_component_logger_context(self, caplog):
        logger = get_logger("Plugin")
        with caplog.at_level(logging.INFO, logger="DRL-Scheduler.Plugin"):
            logger.decision_log("node-a", explored=True, pod="p")

        record = caplog.records[-1]
        assert record.component == "Plugin"
        assert record.context == {"decision": "node-a", "explored": True, "pod": "p"}

    def test_operation_logger_reraises(self, caplog):
        logger = get_logger("Plugin")
        with caplog.at_level(logging.DEBUG, logger="DRL-Scheduler.Plugin"):
            with pytest.raises(ValueError):
                with OperationLogger(logger, "pre_score", pod="p"):
                    raise ValueError("boom")

        assert any("OPERATION_ERROR" in r.getMessage() for r in caplog.records)

import json
import logging

import pytest

from threadscope.observability.logging_config import get_logger, setup_logging
from threadscope.utils.correlation import CorrelationContext


@pytest.fixture(autouse=True)
def _restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_logs_carry_context_fields(capsys):
    setup_logging(level="INFO", log_format="json", service_name="threadscope-test")
    capsys.readouterr()

    with CorrelationContext("cid-42"):
        get_logger("threadscope.test").info("hello", extra={"channel": "general"})

    record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert record["message"] == "hello"
    assert record["level"] == "INFO"
    assert record["service"] == "threadscope-test"
    assert record["correlation_id"] == "cid-42"
    assert record["channel"] == "general"


def test_text_format_and_level(capsys):
    setup_logging(level="WARNING", log_format="text")
    capsys.readouterr()

    log = get_logger("threadscope.test")
    log.info("hidden")
    log.warning("shown")

    out = capsys.readouterr().out
    assert "shown" in out and "hidden" not in out
    assert "WARNING" in out

import json
import logging

from redshell.logging_utils import StructuredJsonFormatter, log_event


def test_log_event_attaches_event_and_correlation_id(caplog):
    logger = logging.getLogger("redshell.test")
    with caplog.at_level(logging.INFO, logger="redshell.test"):
        log_event(logger, logging.INFO, "verdict.intent", "cid-9", job_id="42", decision="APPROVE")

    (record,) = caplog.records
    assert record.event == "verdict.intent"
    assert record.cid == "cid-9"
    assert record.job_id == "42"
    assert record.getMessage() == "verdict.intent | cid=cid-9 | job_id=42 decision=APPROVE"


def test_structured_formatter_emits_json():
    record = logging.LogRecord("redshell", logging.WARNING, __file__, 1, "submission failed", None, None)
    record.event = "verdict.submission.failed"
    record.cid = "cid-1"
    payload = json.loads(StructuredJsonFormatter().format(record))
    assert payload == {
        "level": "WARNING",
        "message": "submission failed",
        "logger": "redshell",
        "event": "verdict.submission.failed",
        "cid": "cid-1",
    }

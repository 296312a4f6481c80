import logging

from sqlalchemy.exc import OperationalError

from cortana_rules.core import errors


def test_log_exception_renders_context(caplog):
    logger = logging.getLogger("test_errors")
    caplog.set_level(logging.ERROR)

    errors.log_exception(logger, "Rule execution record failed", extra={"rule_id": "r1", "note": None}, exc=RuntimeError("boom"))

    [record] = caplog.records
    assert record.getMessage() == "Rule execution record failed rule_id=r1: boom"
    assert record.exc_info is not None


def test_invalid_request_is_a_value_error():
    assert issubclass(errors.InvalidEvaluationRequest, ValueError)
    assert issubclass(errors.RuleStoreError, errors.RuleEngineError)


def test_error_message_prefers_driver_error():
    exc = OperationalError("INSERT INTO rule_executions ...", {}, Exception("database is locked"))
    assert errors.error_message(exc) == "database is locked"
    assert errors.error_message(KeyError()) == "KeyError"

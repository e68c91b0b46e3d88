import io
import json
import logging

from icebox.logging_config import ActorContext, StructuredFormatter, get_logger


def _record(msg="hello", **extra):
    record = logging.LogRecord("icebox.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_one_json_object_with_extras():
    line = StructuredFormatter().format(_record(trip_id=5))
    payload = json.loads(line)
    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "icebox.test"
    assert payload["trip_id"] == 5


def test_actor_context_is_included_and_cleared():
    ActorContext.set(actor_id=3, actor_role="worker")
    try:
        payload = json.loads(StructuredFormatter().format(_record()))
        assert payload["actor_id"] == 3
        assert payload["actor_role"] == "worker"
    finally:
        ActorContext.clear()
    assert ActorContext.get_all() == {}


def test_get_logger_is_namespaced():
    assert get_logger("services.cash").name == "icebox.services.cash"


def test_handler_writes_json_lines():
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("icebox.test.stream")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        logger.info("Trip settled", extra={"amount_due_cents": 1400})
    finally:
        logger.removeHandler(handler)
    assert json.loads(stream.getvalue())["amount_due_cents"] == 1400

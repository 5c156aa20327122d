import json
import logging

import pytest
from pydantic import ValidationError

from slugline.core.config import Settings
from slugline.core.logging_config import JsonFormatter, RequestIdFilter, request_id_ctx_var
from slugline.core.sentry import init_sentry


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("slugline.services.posts", logging.INFO, __file__, 1, "post_created", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_lifts_extras_to_top_level() -> None:
    token = request_id_ctx_var.set("req-1")
    try:
        record = _record(slug="my-trip", attempt=2)
        RequestIdFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx_var.reset(token)

    assert payload["message"] == "post_created"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["slug"] == "my-trip"
    assert payload["attempt"] == 2


def test_request_id_defaults_to_dash() -> None:
    record = _record()
    RequestIdFilter().filter(record)
    assert record.request_id == "-"


def test_sentry_is_off_without_dsn() -> None:
    assert init_sentry() is False


def test_settings_reject_unknown_exhaustion_policy() -> None:
    with pytest.raises(ValidationError):
        Settings(slug_exhaustion_policy="give_up")
    with pytest.raises(ValidationError):
        Settings(slug_max_attempts=0)
    assert Settings(slug_exhaustion_policy="error").slug_exhaustion_policy == "error"

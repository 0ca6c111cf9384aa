"""Tests for the JSON log formatter."""
import json
from datetime import datetime, timezone
from types import SimpleNamespace

from hotelscout.logging_config import format_record


def make_record(message="hello", **extra):
    return {
        "time": datetime(2025, 11, 15, 12, 0, tzinfo=timezone.utc),
        "level": SimpleNamespace(name="INFO"),
        "message": message,
        "name": "hotelscout.provider.gateway",
        "function": "_execute",
        "line": 10,
        "extra": extra,
        "exception": None,
    }


def render(record):
    # Undo the brace escaping loguru expects, drop the exception placeholder
    line = format_record(record).split("\n")[0]
    return json.loads(line.replace("{{", "{").replace("}}", "}"))


def test_context_fields_always_present():
    data = render(make_record())

    assert data["level"] == "INFO"
    assert data["correlation_id"] == ""
    assert data["session_id"] == ""
    assert data["operation"] == ""
    assert "extra" not in data


def test_bound_values_are_carried():
    data = render(make_record(session_id="abc", status_code=429, attempt=2))

    assert data["session_id"] == "abc"
    assert data["extra"] == {"status_code": 429, "attempt": 2}


def test_cookie_values_are_redacted():
    data = render(make_record(headers={"Cookie": "secret=1", "accept": "json"}))

    assert data["extra"]["headers"] == {"Cookie": "[redacted]", "accept": "json"}


def test_braces_in_messages_are_escaped():
    output = format_record(make_record(message="payload {x}"))

    assert "{{x}}" in output
    assert output.endswith("\n{exception}")

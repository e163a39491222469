"""Tests for the command line interface."""

import json
from unittest.mock import patch

import pytest

from calendar_booking.__main__ import _load_event_payload, main
from calendar_booking.models.event import BusyInterval
from calendar_booking.utils.exceptions import InvalidInputError
from conftest import utc


@pytest.fixture
def run(service, credentials, app_config, capsys):
    def _run(*argv):
        with patch(
            "calendar_booking.__main__.build_service", return_value=(service, credentials)
        ):
            code = main(list(argv), app_config=app_config)
        return code, capsys.readouterr().out

    return _run


def test_availability_command(run, provider):
    provider.busy = [BusyInterval(start=utc(2026, 3, 2, 9), end=utc(2026, 3, 2, 17))]

    code, out = run("--availability", "cal-1", "--date", "2026-03-02", "--tenant", "t1")

    assert code == 0
    assert json.loads(out) == {
        "availability": [{"start": "2026-03-02T17:00:00Z", "end": "2026-03-02T18:00:00Z"}]
    }


def test_error_is_reported_with_status(run):
    code, out = run("--availability", "cal-1", "--date", "2026-03-02")

    assert code == 1
    assert json.loads(out) == {"error": "Calendar not accessible", "status": 403}


def test_book_command(run, provider, tmp_path):
    payload_file = tmp_path / "event.json"
    payload_file.write_text(json.dumps({"subject": "Intro"}))

    code, out = run("--book", "cal-1", "--tenant", "t1", "--event-json", str(payload_file))

    assert code == 0
    assert json.loads(out)["event"]["id"] == "evt-1"
    assert provider.created == [("ext-1", {"subject": "Intro"})]


def test_list_calendars_requires_owner(run):
    code, out = run("--list-calendars")
    assert code == 1
    assert json.loads(out)["status"] == 400


def test_load_event_payload_inline():
    assert _load_event_payload('{"subject": "x"}') == {"subject": "x"}
    assert _load_event_payload(None) is None
    with pytest.raises(InvalidInputError):
        _load_event_payload("{not json")


def test_book_command_with_long_inline_payload(run, provider):
    payload = {
        "subject": "Intro call " * 30,
        "body": {"contentType": "HTML", "content": "<p>Agenda</p>"},
        "start": {"dateTime": "2026-03-02T10:00:00", "timeZone": "UTC"},
        "end": {"dateTime": "2026-03-02T11:00:00", "timeZone": "UTC"},
    }
    raw = json.dumps(payload)
    assert len(raw) > 255

    code, out = run("--book", "cal-1", "--tenant", "t1", "--event-json", raw)

    assert code == 0
    assert json.loads(out)["event"]["id"] == "evt-1"
    assert provider.created == [("ext-1", payload)]


def test_book_command_with_unreadable_payload(run, provider):
    code, out = run("--book", "cal-1", "--tenant", "t1", "--event-json", "x" * 300)

    assert code == 1
    assert json.loads(out)["status"] == 400
    assert provider.created == []


def test_list_calendars_for_disconnected_owner(run):
    code, out = run("--list-calendars", "--owner", "stranger@example.com")

    assert code == 1
    assert json.loads(out) == {
        "error": "Owner stranger@example.com is not connected, run --connect-owner first",
        "status": 503,
    }


def test_owner_not_connected_status(run, credentials):
    credentials.disconnect_owner("owner@example.com")

    code, out = run("--availability", "cal-1", "--date", "2026-03-02", "--tenant", "t1")

    assert code == 1
    assert json.loads(out) == {"error": "Calendar owner not connected", "status": 503}

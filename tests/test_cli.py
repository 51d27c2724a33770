"""Tests for the maxwell command line."""

import json

import pytest

from maxwell.cli import main

NOW = "2026-10-12T10:00:00-07:00"


class TestIntentCommand:
    def test_prints_intent_json(self, capsys):
        assert main(["intent", "remind me to call mom at 3pm", "--now", NOW]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["type"] == "reminder"
        assert data["action"] == "create"
        assert data["entities"]["title"] == "call mom"
        assert data["entities"]["time"] == "2026-10-12T15:00:00-07:00"

    def test_bad_now_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["intent", "hello", "--now", "yesterday-ish"])
        assert exc_info.value.code == 2
        assert "ISO 8601" in capsys.readouterr().out


class TestParseEventCommand:
    def test_prints_event(self, capsys):
        code = main(["parse-event", "Lunch with Sam at Nobu tomorrow at 1pm", "--now", NOW])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["title"] == "Lunch"
        assert data["location"] == "Nobu"
        assert data["attendees"] == ["Sam"]
        assert data["start_time"] == "2026-10-13T13:00:00-07:00"

    def test_unparseable_event(self, capsys):
        assert main(["parse-event", "just some text with no date", "--now", NOW]) == 1
        assert "Could not find" in capsys.readouterr().out


class TestFreeTimeCommand:
    def test_lists_slots(self, tmp_path, capsys):
        events = tmp_path / "events.json"
        events.write_text(json.dumps([
            {
                "title": "Standup",
                "start_time": "2026-10-13T10:00:00+00:00",
                "end_time": "2026-10-13T11:00:00+00:00",
            }
        ]))
        code = main(["free-time", str(events), "--date", "2026-10-13", "--duration", "30", "--timezone", "UTC"])
        assert code == 0
        slots = json.loads(capsys.readouterr().out)
        assert [(s["start"], s["end"]) for s in slots] == [
            ("2026-10-13T09:00:00+00:00", "2026-10-13T10:00:00+00:00"),
            ("2026-10-13T11:00:00+00:00", "2026-10-13T17:00:00+00:00"),
        ]

    def test_missing_file(self, tmp_path, capsys):
        code = main(["free-time", str(tmp_path / "nope.json"), "--date", "2026-10-13"])
        assert code == 1
        assert "could not read events" in capsys.readouterr().out

    def test_invalid_event(self, tmp_path, capsys):
        events = tmp_path / "events.json"
        events.write_text(json.dumps([{"title": "No times"}]))
        assert main(["free-time", str(events), "--date", "2026-10-13"]) == 1
        assert "invalid event" in capsys.readouterr().out

    def test_invalid_duration(self, tmp_path, capsys):
        events = tmp_path / "events.json"
        events.write_text("[]")
        assert main(["free-time", str(events), "--date", "2026-10-13", "--duration", "0"]) == 1
        assert "duration_minutes must be positive" in capsys.readouterr().out


class TestCheckCommand:
    def test_check(self, capsys):
        main(["check"])
        out = capsys.readouterr().out
        assert "Maxwell Configuration Check" in out
        assert "User timezone" in out


class TestNoCommand:
    def test_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

"""Tests for the structured event log."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from evmabi import logbook


def _entries(path: Path) -> list:
    return path.read_text(encoding="utf-8").strip().splitlines()


def test_event_line_format(isolated_home: Path) -> None:
    logbook.log_event("abi", "load", path="Token.json", entries=3)

    lines = _entries(isolated_home / "logs" / "evmabi.log")
    assert len(lines) == 1
    timestamp, rest = lines[0].split(" | ", 1)
    assert timestamp.endswith("+00:00")
    category, payload = rest.split(" ", 1)
    assert category == "[ABI]"
    assert json.loads(payload) == {"action": "load", "status": "success", "path": "Token.json", "entries": 3}


def test_failure_status_and_shared_logger(isolated_home: Path) -> None:
    assert logbook.get_logger() is logbook.get_logger()
    logbook.log_event("cli", "decode-input", status="failure", error="unknown selector")
    logbook.log_event("cli", "selectors")

    lines = _entries(isolated_home / "logs" / "evmabi.log")
    assert [json.loads(line.split("] ", 1)[1])["status"] for line in lines] == ["failure", "success"]


def test_explicit_path(tmp_path: Path) -> None:
    target = tmp_path / "elsewhere" / "events.log"
    logbook.EventLogger(target).log("cli", "describe")
    assert "[CLI]" in target.read_text(encoding="utf-8")


def test_console_handler_is_opt_in(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    logbook.EventLogger(tmp_path / "quiet.log").log("cli", "describe")
    assert "[CLI]" not in capsys.readouterr().err
    logbook.reset_logger()
    logbook.EventLogger(tmp_path / "loud.log", console=True).log("cli", "describe")
    assert "[CLI]" in capsys.readouterr().err

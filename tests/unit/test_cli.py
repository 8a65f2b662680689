"""Unit tests for the command line interface."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from canvas_agent.cli import build_parser, load_attachment, main

REPLY = json.dumps(
    [
        {"operation": "card", "parameters": {"name": "A"}},
        {"operation": "card", "parameters": {"name": "B"}},
    ]
)


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parse_prints_calls(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    reply = tmp_path / "reply.txt"
    reply.write_text(f"Here you go:\n```json\n{REPLY}\n```", encoding="utf-8")

    assert main(["parse", str(reply)]) == 0

    out = json.loads(capsys.readouterr().out)
    assert [c["parameters"]["name"] for c in out["calls"]] == ["A", "B"]
    assert out["strategy"]


def test_parse_failure_exits_with_one(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    reply = tmp_path / "reply.txt"
    reply.write_text("No structured content here.", encoding="utf-8")

    assert main(["parse", str(reply)]) == 1
    assert "Parse failed" in capsys.readouterr().err


def test_layout_prints_placements(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    reply = tmp_path / "reply.json"
    reply.write_text(REPLY, encoding="utf-8")

    assert main(["layout", str(reply), "--x", "100", "--y", "50"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["mode"] == "grid"
    assert [n["position"] for n in out["nodes"]] == [
        {"x": 100.0 - 288.0, "y": -50.0},
        {"x": 100.0 + 8.0, "y": -50.0},
    ]


def test_layout_falls_back_to_a_summary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    reply = tmp_path / "reply.txt"
    reply.write_text("Just some prose.", encoding="utf-8")

    assert main(["layout", str(reply)]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["mode"] == "summary"
    assert out["nodes"][0]["parameters"]["summary"] == "Just some prose."


def test_configuration_errors_exit_with_two(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("CANVAS_AGENT_SUMMARY_TIMEOUT_SECONDS", "-1")

    assert main(["parse", "missing.txt"]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_ask_without_api_key_exits_with_two(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["ask", "hello"]) == 2
    assert "API key" in capsys.readouterr().err


def test_missing_input_file_exits_with_one() -> None:
    assert main(["parse", "does-not-exist.txt"]) == 1


def test_load_attachment(tmp_path: Path) -> None:
    notes = tmp_path / "notes.md"
    notes.write_text("# Notes", encoding="utf-8")
    image = tmp_path / "photo.png"
    image.write_bytes(b"\x89PNG")

    md = load_attachment(notes)
    png = load_attachment(image)

    assert md.file_type == "md"
    assert md.decoded_text() == "# Notes"
    assert png.is_image
    assert png.data_url.startswith("data:image/png;base64,")

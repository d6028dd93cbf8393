"""Integration tests for the CLI."""

from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

import pytest

from docchat.cli import main

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def no_config(tmp_path: Path) -> list[str]:
    """Global args pointing at a config file that does not exist."""
    return ["--config", str(tmp_path / "missing.toml")]


def test_render_file_to_html(
    tmp_path: Path, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    """render converts a file with the default HTML classes."""
    doc = tmp_path / "answer.md"
    doc.write_text("Hello **world**\n\n1. one\n2. `two`\n")
    main([*no_config, "render", str(doc)])
    out = capsys.readouterr().out
    assert out == (
        '<p class="my-2">Hello <strong>world</strong></p>'
        '<ol class="list-decimal list-inside my-2 pl-5 space-y-1">'
        "<li>one</li>"
        '<li><code class="bg-gem-mist/50 px-1 py-0.5 rounded-sm font-mono text-sm">two</code></li>'
        "</ol>\n"
    )


def test_render_stdin(
    monkeypatch: pytest.MonkeyPatch, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    """Without a file argument the text is read from stdin."""
    monkeypatch.setattr("sys.stdin", io.StringIO("a < b"))
    main([*no_config, "render", "--escape"])
    assert capsys.readouterr().out == '<p class="my-2">a &lt; b</p>\n'


def test_render_rich_format(
    tmp_path: Path, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    doc = tmp_path / "answer.md"
    doc.write_text("- *first*\n- second")
    main([*no_config, "render", str(doc), "--format", "rich"])
    assert capsys.readouterr().out == "  • [italic]first[/italic]\n  • second\n"


def test_render_uses_configured_classes(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """[html] table in the config overrides the emitted classes."""
    config_file = tmp_path / "config.toml"
    config_file.write_text('[html]\nparagraph_class = "para"\ncode_class = ""\n')
    doc = tmp_path / "answer.md"
    doc.write_text("run `make`")
    main(["--config", str(config_file), "render", str(doc)])
    assert capsys.readouterr().out == '<p class="para">run <code>make</code></p>\n'


def test_render_missing_file_exits(tmp_path: Path, no_config: list[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main([*no_config, "render", str(tmp_path / "nope.md")])
    assert exc_info.value.code == 1


def test_invalid_config_exits(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A malformed config file is reported on stderr, not as a traceback."""
    config_file = tmp_path / "config.toml"
    config_file.write_text("endpoint = 42\n")
    with pytest.raises(SystemExit):
        main(["--config", str(config_file), "render", str(config_file)])
    assert "endpoint" in capsys.readouterr().err


def test_sources_prints_latest_sources(
    transcript_file: Path, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    main([*no_config, "sources", str(transcript_file)])
    assert capsys.readouterr().out == (
        "Source 1: manual.pdf\n"
        '<p class="my-2">To reset the device, hold the <em>reset</em> button.</p>\n'
        "\n"
    )


def test_sources_without_sourced_message(
    tmp_path: Path, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "t.json"
    path.write_text(json.dumps([{"role": "user", "parts": [{"text": "hi"}]}]))
    main([*no_config, "sources", str(path)])
    assert capsys.readouterr().out == "No message with sources.\n"


def test_sources_missing_transcript_exits(tmp_path: Path, no_config: list[str]) -> None:
    with pytest.raises(SystemExit):
        main([*no_config, "sources", str(tmp_path / "nope.json")])


def test_sources_invalid_transcript_exits(
    tmp_path: Path, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "t.json"
    path.write_text("{broken")
    with pytest.raises(SystemExit):
        main([*no_config, "sources", str(path)])
    assert "Invalid JSON" in capsys.readouterr().err


def test_render_undecodable_file_exits(
    tmp_path: Path, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    """A file that is not UTF-8 is reported on stderr, not as a traceback."""
    doc = tmp_path / "bad.md"
    doc.write_bytes(b"caf\xe9\n")
    with pytest.raises(SystemExit) as exc_info:
        main([*no_config, "render", str(doc)])
    assert exc_info.value.code == 1
    assert "Cannot read" in capsys.readouterr().err


def test_render_undecodable_stdin_exits(
    monkeypatch: pytest.MonkeyPatch, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"caf\xe9\n"), encoding="utf-8"))
    with pytest.raises(SystemExit) as exc_info:
        main([*no_config, "render"])
    assert exc_info.value.code == 1
    assert "Cannot read stdin" in capsys.readouterr().err


def test_sources_undecodable_transcript_exits(
    tmp_path: Path, no_config: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "t.json"
    path.write_bytes(b'[{"role": "user", "parts": [{"text": "caf\xe9"}]}]')
    with pytest.raises(SystemExit) as exc_info:
        main([*no_config, "sources", str(path)])
    assert exc_info.value.code == 1
    assert "Cannot read" in capsys.readouterr().err

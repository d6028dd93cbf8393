"""Shared fixtures: sample chat messages, transcript JSON, config."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from docchat.config import Config
from docchat.history import ChatMessage, Source

if TYPE_CHECKING:
    from pathlib import Path

ENDPOINT = "https://chat.example.test/ask"

SAMPLE_ANSWER_JSON: dict[str, Any] = {
    "role": "model",
    "parts": [{"text": "Hold **reset** for:\n- 5 seconds\n- then release"}],
    "groundingChunks": [
        {
            "retrievedContext": {
                "title": "manual.pdf",
                "uri": "files/manual.pdf",
                "text": "To reset the device, hold the *reset* button.",
            }
        },
        {"retrievedContext": {"title": "empty.pdf"}},
        {"web": {"uri": "https://example.com"}},
    ],
}


@pytest.fixture
def sourced_answer() -> ChatMessage:
    """A model answer grounded by one source."""
    return ChatMessage(
        role="model",
        text="Hold **reset** for 5 seconds.",
        sources=(Source(text="To reset the device, hold the *reset* button.", title="manual.pdf"),),
    )


@pytest.fixture
def chat_config() -> Config:
    """Config with an endpoint and two example questions."""
    return Config(
        endpoint=ENDPOINT,
        document_name="Device Manuals",
        example_questions=["How do I reset it?", "What does the warranty cover?"],
    )


@pytest.fixture
def transcript_file(tmp_path: Path) -> Path:
    """A transcript with a question and a sourced answer."""
    path = tmp_path / "transcript.json"
    path.write_text(
        json.dumps([{"role": "user", "parts": [{"text": "How do I reset?"}]}, SAMPLE_ANSWER_JSON])
    )
    return path

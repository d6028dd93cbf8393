"""Chat history model: messages, grounding sources, transcript files."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

ROLES = ("user", "model")


class HistoryError(Exception):
    """Raised when a message or transcript has an unexpected shape."""


@dataclass(frozen=True)
class Source:
    """A retrieved document excerpt that grounds a model answer."""

    text: str
    title: str | None = None
    uri: str | None = None


@dataclass(frozen=True)
class ChatMessage:
    """One turn of the conversation."""

    role: str  # "user" | "model"
    text: str
    sources: tuple[Source, ...] = ()

    @property
    def has_sources(self) -> bool:
        """Whether this is a model answer with at least one source to show."""
        return self.role == "model" and len(self.sources) > 0


def _source_from_json(chunk: Any) -> Source | None:
    """Parse one grounding chunk; chunks without retrieved text yield None."""
    if not isinstance(chunk, dict):
        return None
    context = chunk.get("retrievedContext")
    if not isinstance(context, dict) or not context.get("text"):
        return None
    return Source(text=str(context["text"]), title=context.get("title"), uri=context.get("uri"))


def message_from_json(data: Any) -> ChatMessage:
    """Build a ChatMessage from the transcript/wire shape.

    ``{"role": ..., "parts": [{"text": ...}], "groundingChunks": [...]}``
    Only the first part carries the displayed text.
    Raises HistoryError if role or parts are missing or malformed.
    """
    if not isinstance(data, dict):
        msg = f"Expected a message object, got {type(data).__name__}"
        raise HistoryError(msg)
    role = data.get("role")
    if role not in ROLES:
        msg = f"Invalid message role: {role!r}"
        raise HistoryError(msg)
    parts = data.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        msg = "Message has no parts"
        raise HistoryError(msg)
    text = parts[0].get("text") or ""
    chunks = data.get("groundingChunks") or []
    if not isinstance(chunks, list):
        msg = "groundingChunks must be a list"
        raise HistoryError(msg)
    sources = tuple(s for s in (_source_from_json(c) for c in chunks) if s is not None)
    return ChatMessage(role=role, text=str(text), sources=sources)


def message_to_json(message: ChatMessage) -> dict[str, Any]:
    """Inverse of message_from_json."""
    data: dict[str, Any] = {"role": message.role, "parts": [{"text": message.text}]}
    if message.sources:
        chunks = []
        for source in message.sources:
            context: dict[str, str] = {"text": source.text}
            if source.title is not None:
                context["title"] = source.title
            if source.uri is not None:
                context["uri"] = source.uri
            chunks.append({"retrievedContext": context})
        data["groundingChunks"] = chunks
    return data


def load_transcript(path: Path) -> list[ChatMessage]:
    """Load a JSON transcript. Returns an empty history if the file does not exist."""
    if not path.exists():
        return []
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read {path}: {e}"
        raise HistoryError(msg) from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON in {path}: {e}"
        raise HistoryError(msg) from e
    if not isinstance(data, list):
        msg = f"Transcript {path} must contain a list of messages"
        raise HistoryError(msg)
    return [message_from_json(entry) for entry in data]


def save_transcript(path: Path, history: Sequence[ChatMessage]) -> None:
    """Write the history as a JSON transcript."""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps([message_to_json(m) for m in history], indent=2) + "\n"
    path.write_text(text, encoding="utf-8")


def latest_sourced_index(history: Sequence[ChatMessage]) -> int | None:
    """Return the index of the most recent model message with sources, or None."""
    for idx in range(len(history) - 1, -1, -1):
        if history[idx].has_sources:
            return idx
    return None


def sources_label(count: int) -> str:
    """Human-readable hint shown under a sourced answer."""
    return f"{count} source{'s' if count != 1 else ''} found."

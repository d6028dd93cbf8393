"""Request/response message types for TUI ↔ backend communication."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias

from docchat.history import ChatMessage

# === Requests (TUI → Backend) ===


@dataclass(frozen=True)
class AskRequest:
    """Ask the backend to send a query, with the history preceding it, to the chat service."""

    query: str
    history: tuple[ChatMessage, ...] = field(default_factory=tuple)
    chat_id: int = 0  # answers to an abandoned chat are dropped


Request: TypeAlias = AskRequest


# === Responses (Backend → TUI) ===


@dataclass(frozen=True)
class AskResult:
    """Report the model's answer to a query."""

    message: ChatMessage
    chat_id: int = 0


@dataclass(frozen=True)
class ErrorResult:
    """Report an error processing a request."""

    request_type: str
    error: str
    chat_id: int = 0


Response: TypeAlias = AskResult | ErrorResult

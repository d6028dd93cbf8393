"""Chat service client — sends a query with its history, returns the answer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from docchat.history import ChatMessage, HistoryError, message_from_json, message_to_json

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 120.0  # seconds; retrieval plus generation can be slow


class ChatAPIError(Exception):
    """Raised when the chat service rejects a query or returns garbage."""


def _build_payload(query: str, history: Sequence[ChatMessage]) -> dict[str, Any]:
    return {"query": query, "history": [message_to_json(m) for m in history]}


async def ask(
    endpoint: str,
    query: str,
    history: Sequence[ChatMessage],
    *,
    timeout: float = REQUEST_TIMEOUT,
) -> ChatMessage:
    """POST a query to the chat service and parse the model's answer.

    The service replies with a single message in transcript shape
    (``parts`` plus optional ``groundingChunks``).
    """
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.post(endpoint, json=_build_payload(query, history))

    if response.status_code >= httpx.codes.BAD_REQUEST:
        msg = f"Chat service returned HTTP {response.status_code}: {response.text[:200]}"
        raise ChatAPIError(msg)

    try:
        data = response.json()
    except ValueError as e:
        msg = f"Chat service returned invalid JSON: {e}"
        raise ChatAPIError(msg) from e
    if not isinstance(data, dict):
        msg = "Chat service reply must be a JSON object"
        raise ChatAPIError(msg)

    try:
        message = message_from_json({**data, "role": "model"})
    except HistoryError as e:
        msg = f"Unexpected reply shape: {e}"
        raise ChatAPIError(msg) from e

    if not message.text:
        logger.warning("Chat service returned an empty answer for %r", query[:50])
    logger.debug("Answer with %d source(s)", len(message.sources))
    return message

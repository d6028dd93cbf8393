"""Backend worker — processes the request queue, dispatches to the chat service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docchat.client import ask
from docchat.messages import AskRequest, AskResult, ErrorResult, Request, Response

if TYPE_CHECKING:
    import asyncio

logger = logging.getLogger(__name__)


async def _handle_ask(req: AskRequest, endpoint: str) -> AskResult:
    """Send one query to the chat service."""
    message = await ask(endpoint, req.query, req.history)
    return AskResult(message=message, chat_id=req.chat_id)


async def backend_worker(
    request_queue: asyncio.Queue[Request],
    response_queue: asyncio.Queue[Response],
    endpoint: str,
) -> None:
    """Process requests from the TUI and post results back."""
    while True:
        req = await request_queue.get()
        try:
            result: Response
            if isinstance(req, AskRequest):
                result = await _handle_ask(req, endpoint)
            else:
                result = ErrorResult(request_type=type(req).__name__, error="Unknown request type")
            await response_queue.put(result)
        except Exception as e:  # noqa: BLE001
            logger.warning("%s failed", type(req).__name__, exc_info=True)
            await response_queue.put(
                ErrorResult(request_type=type(req).__name__, error=str(e), chat_id=req.chat_id)
            )
        finally:
            request_queue.task_done()

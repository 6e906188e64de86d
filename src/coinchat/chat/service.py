"""Chat pipeline: text -> Intent -> Reply."""

import time
from uuid import uuid4

import structlog

from coinchat.chat.reply import Reply
from coinchat.chat.responder import ResponseGenerator
from coinchat.logging import get_logger
from coinchat.nlu.parser import parse_message

logger = get_logger(__name__)


class ChatService:
    """Handles one user message at a time.

    The Intent stays internal; callers only ever see the Reply.
    """

    def __init__(self, responder: ResponseGenerator) -> None:
        self._responder = responder

    async def handle_message(self, text: str) -> Reply:
        with structlog.contextvars.bound_contextvars(message_id=uuid4().hex[:12]):
            started = time.perf_counter()
            intent = parse_message(text)
            reply = await self._responder.generate(intent)
            logger.info(
                "message_handled",
                intent=intent.type.value,
                error=reply.error,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return reply

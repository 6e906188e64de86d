"""Chat layer -- reply generation and the message pipeline."""

from coinchat.chat.reply import Reply
from coinchat.chat.responder import ResponseGenerator
from coinchat.chat.service import ChatService

__all__ = ["ChatService", "Reply", "ResponseGenerator"]

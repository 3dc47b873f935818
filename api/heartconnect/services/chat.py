from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi.concurrency import run_in_threadpool

from ..config import MESSAGE_MAX_LENGTH
from ..errors import Forbidden, NotFound, ValidationError
from ..storage import Storage

logger = logging.getLogger(__name__)

Publisher = Callable[[str, dict[str, Any]], Awaitable[Any]]


def is_participant(match: dict[str, Any], user_id: str) -> bool:
    return user_id in {match["user1_id"], match["user2_id"]}


def require_participant(storage: Storage, match_id: str, user_id: str) -> dict[str, Any]:
    match = storage.get_match(match_id)
    if not match:
        raise NotFound("Match not found")
    if not is_participant(match, user_id):
        raise Forbidden()
    return match


def validate_content(content: Any) -> str:
    """Length-checked message body, stored exactly as sent."""
    if not isinstance(content, str) or not content:
        raise ValidationError("content: Message cannot be empty")
    if len(content) > MESSAGE_MAX_LENGTH:
        raise ValidationError(f"content: Message must be {MESSAGE_MAX_LENGTH} characters or fewer")
    return content


def mark_read(storage: Storage, match_id: str, requester_id: str) -> int:
    """Mark messages sent to ``requester_id`` in this match as read. Own messages are untouched."""
    require_participant(storage, match_id, requester_id)
    return storage.mark_messages_read(match_id, requester_id)


def get_messages(storage: Storage, match_id: str, requester_id: str) -> list[dict[str, Any]]:
    """Match history, oldest first. Fetching history marks incoming messages as read."""
    require_participant(storage, match_id, requester_id)
    messages = storage.list_messages(match_id)
    storage.mark_messages_read(match_id, requester_id)
    return messages


async def send_message(
    storage: Storage,
    publish: Publisher,
    match_id: str,
    sender_id: str,
    content: Any,
) -> dict[str, Any]:
    await run_in_threadpool(require_participant, storage, match_id, sender_id)
    body = validate_content(content)
    message = await run_in_threadpool(storage.create_message, match_id, sender_id, body)
    delivered = await publish(match_id, {"type": "new_message", "matchId": match_id, "message": message})
    logger.debug(f"[chat] message_id={message['id']} match_id={match_id} delivered={delivered}")
    return message

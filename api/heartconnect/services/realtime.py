from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder

from ..errors import Forbidden, NotFound
from ..http_helpers import camelize
from ..storage import Storage
from .chat import require_participant

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


class SubscriberRegistry:
    """match_id -> live connections. Every mutation happens under one lock."""

    def __init__(self) -> None:
        self._by_match: dict[str, set[Connection]] = {}
        self._match_of: dict[Connection, str] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, conn: Connection, match_id: str) -> str | None:
        """Register ``conn`` under ``match_id``, leaving any previous match. Returns the previous match id."""
        async with self._lock:
            previous = self._discard(conn)
            self._by_match.setdefault(match_id, set()).add(conn)
            self._match_of[conn] = match_id
            return previous

    async def unsubscribe(self, conn: Connection) -> str | None:
        async with self._lock:
            return self._discard(conn)

    async def subscribers(self, match_id: str) -> list[Connection]:
        async with self._lock:
            return list(self._by_match.get(match_id, ()))

    def _discard(self, conn: Connection) -> str | None:
        match_id = self._match_of.pop(conn, None)
        if match_id is None:
            return None
        conns = self._by_match.get(match_id)
        if conns is not None:
            conns.discard(conn)
            if not conns:
                del self._by_match[match_id]
        return match_id

    def subscription_of(self, conn: Connection) -> str | None:
        return self._match_of.get(conn)

    def subscriber_count(self, match_id: str) -> int:
        return len(self._by_match.get(match_id, ()))

    def active_matches(self) -> list[str]:
        return list(self._by_match)


class RealtimeHub:
    """Per-match fan-out of chat events to subscribed connections."""

    def __init__(self) -> None:
        self.registry = SubscriberRegistry()

    async def handle_message(self, conn: Connection, user_id: str, raw: str, storage: Storage) -> None:
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"[realtime] dropping non-JSON frame from user_id={user_id}")
            return
        if not isinstance(payload, dict):
            logger.warning(f"[realtime] dropping non-object frame from user_id={user_id}")
            return

        if payload.get("type") != "subscribe":
            logger.debug(f"[realtime] ignoring frame type={payload.get('type')!r} from user_id={user_id}")
            return

        match_id = payload.get("matchId")
        if not isinstance(match_id, str) or not match_id.strip():
            logger.warning(f"[realtime] subscribe without matchId from user_id={user_id}")
            return

        try:
            await run_in_threadpool(require_participant, storage, match_id, user_id)
        except (Forbidden, NotFound) as exc:
            logger.warning(f"[realtime] subscribe rejected user_id={user_id} match_id={match_id}: {exc.message}")
            await self._send(conn, {"type": "error", "message": exc.message})
            return

        previous = await self.registry.subscribe(conn, match_id)
        if previous and previous != match_id:
            logger.info(f"[realtime] user_id={user_id} moved from match_id={previous} to match_id={match_id}")
        else:
            logger.info(f"[realtime] user_id={user_id} subscribed to match_id={match_id}")
        await self._send(conn, {"type": "subscribed", "matchId": match_id})

    async def disconnect(self, conn: Connection) -> None:
        match_id = await self.registry.unsubscribe(conn)
        if match_id:
            logger.info(f"[realtime] connection left match_id={match_id}")

    async def publish(self, match_id: str, payload: dict[str, Any]) -> int:
        """Send ``payload`` to every subscriber of ``match_id``. Returns the number of deliveries."""
        data = jsonable_encoder(camelize(payload))
        delivered = 0
        for conn in await self.registry.subscribers(match_id):
            if await self._send(conn, data):
                delivered += 1
            else:
                await self.registry.unsubscribe(conn)
        return delivered

    async def _send(self, conn: Connection, data: Any) -> bool:
        try:
            await conn.send_json(data)
            return True
        except Exception as exc:
            logger.warning(f"[realtime] send failed: {exc!r}")
            return False

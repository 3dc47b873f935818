from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from ..config import DAILY_SWIPE_LIMIT, SWIPE_TIMEZONE
from ..errors import Blocked, NotFound, QuotaExceeded, ValidationError
from ..storage import Storage

logger = logging.getLogger(__name__)

DIRECTIONS = ("like", "pass")


@dataclass
class SwipeResult:
    swipe: dict[str, Any]
    is_match: bool
    match: dict[str, Any] | None = None


def swipe_day(now: datetime, tz: str = SWIPE_TIMEZONE) -> str:
    """Calendar day (YYYY-MM-DD) the daily swipe counter is keyed on."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz)).date().isoformat()


def is_premium(profile: dict[str, Any] | None) -> bool:
    return bool(profile and profile.get("is_premium"))


def other_participant(match: dict[str, Any], user_id: str) -> str:
    """The participant of ``match`` that is not ``user_id``; column order carries no meaning."""
    if match["user1_id"] == user_id:
        return match["user2_id"]
    return match["user1_id"]


def get_daily_status(storage: Storage, user_id: str, now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    profile = storage.get_profile(user_id)
    count = storage.get_daily_swipe_count(user_id, swipe_day(now))
    return {"count": count, "limit": None if is_premium(profile) else DAILY_SWIPE_LIMIT}


def record_swipe(
    storage: Storage,
    swiper_id: str,
    swiped_id: str,
    direction: str,
    now: datetime | None = None,
) -> SwipeResult:
    if direction not in DIRECTIONS:
        raise ValidationError("direction must be one of: like, pass")
    if swiper_id == swiped_id:
        raise ValidationError("You cannot swipe on yourself")
    if storage.get_user(swiped_id) is None:
        raise NotFound("User not found")

    now = now or datetime.now(timezone.utc)
    day = swipe_day(now)
    premium = is_premium(storage.get_profile(swiper_id))

    if not premium and storage.get_daily_swipe_count(swiper_id, day) >= DAILY_SWIPE_LIMIT:
        raise QuotaExceeded()

    if storage.is_user_blocked(swiper_id, swiped_id):
        raise Blocked()

    # the read above can be stale under concurrent swipes; the reservation is authoritative
    if not premium and not storage.reserve_daily_swipe(swiper_id, day, DAILY_SWIPE_LIMIT):
        raise QuotaExceeded()

    swipe = storage.create_swipe(swiper_id, swiped_id, direction)

    is_match = False
    match = None
    if direction == "like" and storage.find_like(swiped_id, swiper_id):
        match, created = storage.create_match(swiper_id, swiped_id)
        is_match = created
        if created:
            logger.info(f"[swipe] match created match_id={match['id']} users={swiper_id},{swiped_id}")

    return SwipeResult(swipe=swipe, is_match=is_match, match=match if is_match else None)

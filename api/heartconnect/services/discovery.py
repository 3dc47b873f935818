from __future__ import annotations

import logging
from typing import Any

from ..config import DISCOVER_DEFAULT_LIMIT, DISCOVER_MAX_LIMIT
from ..errors import ProfileIncomplete
from ..storage import Storage

logger = logging.getLogger(__name__)

EVERYONE = "everyone"


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DISCOVER_DEFAULT_LIMIT
    return max(1, min(int(limit), DISCOVER_MAX_LIMIT))


def gender_filter(looking_for: str | None) -> str | None:
    """Gender a candidate must have, or None when the requester is open to everyone."""
    if not looking_for or looking_for == EVERYONE:
        return None
    return looking_for


def exclusion_set(storage: Storage, user_id: str) -> set[str]:
    return storage.list_swiped_ids(user_id) | storage.list_blocked_ids(user_id) | {user_id}


def get_candidates(storage: Storage, user_id: str, limit: int | None = DISCOVER_DEFAULT_LIMIT) -> list[dict[str, Any]]:
    """
    Next profiles to show ``user_id`` in the swipe feed.

    Candidates have a complete profile, have not been swiped on by the
    requester, are not blocked in either direction, and fall inside the
    requester's age window and gender preference. Ordering is the storage's
    stable insertion order.
    """
    profile = storage.get_profile(user_id)
    if not profile or not profile.get("is_profile_complete"):
        raise ProfileIncomplete()

    excluded = exclusion_set(storage, user_id)
    candidates = storage.list_discoverable(
        exclude_ids=excluded,
        age_min=profile.get("age_range_min"),
        age_max=profile.get("age_range_max"),
        gender=gender_filter(profile.get("looking_for")),
        limit=clamp_limit(limit),
    )
    logger.debug(f"[discover] user_id={user_id} excluded={len(excluded)} candidates={len(candidates)}")
    return candidates

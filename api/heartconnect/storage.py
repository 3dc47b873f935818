"""
Persistence contract used by the discovery, swipe and chat services.

Rows are plain dicts keyed by column name. Composite shapes:

- ``UserWithProfile``: user columns plus ``profile`` (profile dict or None)
- ``MatchWithUsers``: match columns plus ``user1`` and ``user2`` (UserWithProfile)
- ``MessageWithSender``: message columns plus ``sender`` (user dict)
"""

from typing import Any, Protocol

Row = dict[str, Any]


class Storage(Protocol):
    # users
    def get_user(self, user_id: str) -> Row | None: ...

    def upsert_user(
        self,
        user_id: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        profile_image_url: str | None = None,
    ) -> Row: ...

    def get_user_with_profile(self, user_id: str) -> Row | None: ...

    # profiles
    def get_profile(self, user_id: str) -> Row | None: ...

    def create_profile(self, user_id: str, fields: dict[str, Any]) -> Row: ...

    def update_profile(self, user_id: str, fields: dict[str, Any]) -> Row | None: ...

    # discovery
    def list_swiped_ids(self, user_id: str) -> set[str]: ...

    def list_blocked_ids(self, user_id: str) -> set[str]: ...

    def list_discoverable(
        self,
        exclude_ids: set[str],
        age_min: int | None,
        age_max: int | None,
        gender: str | None,
        limit: int,
    ) -> list[Row]: ...

    # swipes
    def create_swipe(self, swiper_id: str, swiped_id: str, direction: str) -> Row: ...

    def find_like(self, swiper_id: str, swiped_id: str) -> Row | None: ...

    def get_swipes_between(self, user_a: str, user_b: str) -> list[Row]: ...

    def get_daily_swipe_count(self, user_id: str, day: str) -> int: ...

    def increment_daily_swipe_count(self, user_id: str, day: str) -> int: ...

    def reserve_daily_swipe(self, user_id: str, day: str, limit: int) -> bool: ...

    # matches
    def create_match(self, user1_id: str, user2_id: str) -> tuple[Row, bool]: ...

    def get_match(self, match_id: str) -> Row | None: ...

    def get_match_between(self, user_a: str, user_b: str) -> Row | None: ...

    def list_matches_for_user(self, user_id: str) -> list[Row]: ...

    # messages
    def create_message(self, match_id: str, sender_id: str, content: str) -> Row: ...

    def list_messages(self, match_id: str) -> list[Row]: ...

    def mark_messages_read(self, match_id: str, reader_id: str) -> int: ...

    # safety
    def create_block(self, blocker_id: str, blocked_id: str) -> Row: ...

    def remove_block(self, blocker_id: str, blocked_id: str) -> int: ...

    def list_blocks(self, blocker_id: str) -> list[Row]: ...

    def is_user_blocked(self, user_a: str, user_b: str) -> bool: ...

    def create_report(self, reporter_id: str, reported_id: str, reason: str, details: str | None) -> Row: ...

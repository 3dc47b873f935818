import logging
import uuid
from typing import Any, Iterable

from sqlalchemy import and_, delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError

from .database import SessionLocal
from .errors import ValidationError
from .models import Block, DailySwipe, Match, Message, Profile, Report, Swipe, User, _now_utc

logger = logging.getLogger(__name__)

USERS = User.__table__
PROFILES = Profile.__table__
SWIPES = Swipe.__table__
MATCHES = Match.__table__
MESSAGES = Message.__table__
BLOCKS = Block.__table__
REPORTS = Report.__table__
DAILY_SWIPES = DailySwipe.__table__

# Columns a user may write through the profile endpoints. Premium and
# completion flags are server-controlled.
PROFILE_WRITABLE_FIELDS = (
    "bio",
    "age",
    "gender",
    "location",
    "latitude",
    "longitude",
    "interests",
    "photos",
    "looking_for",
    "age_range_min",
    "age_range_max",
    "max_distance",
)


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    return tuple(sorted((user_a, user_b)))


def pair_key(user_a: str, user_b: str) -> str:
    low, high = canonical_pair(user_a, user_b)
    return f"{low}:{high}"


def _writable(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if k in PROFILE_WRITABLE_FIELDS}


def _profile_dict(row) -> dict[str, Any]:
    out = dict(row)
    out["interests"] = list(out.get("interests") or [])
    out["photos"] = list(out.get("photos") or [])
    return out


class SqlStorage:
    """SQLAlchemy implementation of :class:`heartconnect.storage.Storage`."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or SessionLocal

    # ------------------------------------------------------------------ users

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        with self._session_factory() as db:
            row = db.execute(select(USERS).where(USERS.c.id == user_id)).mappings().first()
        return dict(row) if row else None

    def upsert_user(
        self,
        user_id: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        profile_image_url: str | None = None,
    ) -> dict[str, Any]:
        values = {
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
            "profile_image_url": profile_image_url,
        }
        stmt = update(USERS).where(USERS.c.id == user_id).values(**values, updated_at=_now_utc())
        with self._session_factory() as db:
            try:
                if db.execute(stmt).rowcount:
                    db.commit()
                else:
                    try:
                        db.execute(insert(USERS).values(id=user_id, **values))
                        db.commit()
                    except IntegrityError:
                        # concurrent first login for the same id, or an email owned by another row
                        db.rollback()
                        if not db.execute(stmt).rowcount:
                            raise
                        db.commit()
            except IntegrityError as exc:
                db.rollback()
                logger.warning(f"[auth] email conflict for user_id={user_id} email={email}")
                raise ValidationError("Email is already linked to another account") from exc
        return self.get_user(user_id)

    def get_user_with_profile(self, user_id: str) -> dict[str, Any] | None:
        with self._session_factory() as db:
            found = self._users_with_profiles(db, [user_id])
        return found.get(user_id)

    def _users_with_profiles(self, db, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        ids = list({uid for uid in user_ids})
        if not ids:
            return {}
        users = db.execute(select(USERS).where(USERS.c.id.in_(ids))).mappings().all()
        profiles = db.execute(select(PROFILES).where(PROFILES.c.user_id.in_(ids))).mappings().all()
        by_user = {p["user_id"]: _profile_dict(p) for p in profiles}
        return {u["id"]: {**dict(u), "profile": by_user.get(u["id"])} for u in users}

    # --------------------------------------------------------------- profiles

    def get_profile(self, user_id: str) -> dict[str, Any] | None:
        with self._session_factory() as db:
            row = db.execute(select(PROFILES).where(PROFILES.c.user_id == user_id)).mappings().first()
        return _profile_dict(row) if row else None

    def create_profile(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        values = _writable(fields)
        now = _now_utc()
        update_stmt = (
            update(PROFILES)
            .where(PROFILES.c.user_id == user_id)
            .values(**values, is_profile_complete=True, updated_at=now)
        )
        with self._session_factory() as db:
            if db.execute(update_stmt).rowcount:
                db.commit()
            else:
                try:
                    db.execute(
                        insert(PROFILES).values(
                            id=str(uuid.uuid4()),
                            user_id=user_id,
                            **values,
                            is_profile_complete=True,
                        )
                    )
                    db.commit()
                except IntegrityError:
                    db.rollback()
                    db.execute(update_stmt)
                    db.commit()
        return self.get_profile(user_id)

    def update_profile(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        values = _writable(fields)
        if values:
            with self._session_factory() as db:
                db.execute(
                    update(PROFILES).where(PROFILES.c.user_id == user_id).values(**values, updated_at=_now_utc())
                )
                db.commit()
        return self.get_profile(user_id)

    def set_premium(self, user_id: str, is_premium: bool) -> dict[str, Any] | None:
        """Operator-side premium toggle; not reachable from the profile endpoints."""
        with self._session_factory() as db:
            db.execute(
                update(PROFILES)
                .where(PROFILES.c.user_id == user_id)
                .values(is_premium=is_premium, updated_at=_now_utc())
            )
            db.commit()
        return self.get_profile(user_id)

    # -------------------------------------------------------------- discovery

    def list_swiped_ids(self, user_id: str) -> set[str]:
        with self._session_factory() as db:
            rows = db.execute(select(SWIPES.c.swiped_id).where(SWIPES.c.swiper_id == user_id)).all()
        return {r[0] for r in rows}

    def list_blocked_ids(self, user_id: str) -> set[str]:
        with self._session_factory() as db:
            blocked = db.execute(select(BLOCKS.c.blocked_id).where(BLOCKS.c.blocker_id == user_id)).all()
            blockers = db.execute(select(BLOCKS.c.blocker_id).where(BLOCKS.c.blocked_id == user_id)).all()
        return {r[0] for r in blocked} | {r[0] for r in blockers}

    def list_discoverable(
        self,
        exclude_ids: set[str],
        age_min: int | None,
        age_max: int | None,
        gender: str | None,
        limit: int,
    ) -> list[dict[str, Any]]:
        stmt = select(PROFILES).where(PROFILES.c.is_profile_complete.is_(True))
        if exclude_ids:
            stmt = stmt.where(PROFILES.c.user_id.not_in(list(exclude_ids)))
        if age_min is not None:
            stmt = stmt.where(PROFILES.c.age >= age_min)
        if age_max is not None:
            stmt = stmt.where(PROFILES.c.age <= age_max)
        if gender is not None:
            stmt = stmt.where(PROFILES.c.gender == gender)
        stmt = stmt.order_by(PROFILES.c.created_at.asc(), PROFILES.c.id.asc()).limit(limit)

        with self._session_factory() as db:
            profiles = db.execute(stmt).mappings().all()
            ids = [p["user_id"] for p in profiles]
            users = db.execute(select(USERS).where(USERS.c.id.in_(ids))).mappings().all() if ids else []
        users_by_id = {u["id"]: dict(u) for u in users}
        return [
            {**users_by_id[p["user_id"]], "profile": _profile_dict(p)}
            for p in profiles
            if p["user_id"] in users_by_id
        ]

    # ----------------------------------------------------------------- swipes

    def create_swipe(self, swiper_id: str, swiped_id: str, direction: str) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "swiper_id": swiper_id,
            "swiped_id": swiped_id,
            "direction": direction,
            "created_at": _now_utc(),
        }
        with self._session_factory() as db:
            db.execute(insert(SWIPES).values(**row))
            db.commit()
        return row

    def find_like(self, swiper_id: str, swiped_id: str) -> dict[str, Any] | None:
        with self._session_factory() as db:
            row = db.execute(
                select(SWIPES)
                .where(
                    SWIPES.c.swiper_id == swiper_id,
                    SWIPES.c.swiped_id == swiped_id,
                    SWIPES.c.direction == "like",
                )
                .limit(1)
            ).mappings().first()
        return dict(row) if row else None

    def get_swipes_between(self, user_a: str, user_b: str) -> list[dict[str, Any]]:
        with self._session_factory() as db:
            rows = db.execute(
                select(SWIPES)
                .where(
                    or_(
                        and_(SWIPES.c.swiper_id == user_a, SWIPES.c.swiped_id == user_b),
                        and_(SWIPES.c.swiper_id == user_b, SWIPES.c.swiped_id == user_a),
                    )
                )
                .order_by(SWIPES.c.created_at.asc())
            ).mappings().all()
        return [dict(r) for r in rows]

    def get_daily_swipe_count(self, user_id: str, day: str) -> int:
        with self._session_factory() as db:
            count = db.execute(
                select(DAILY_SWIPES.c.count).where(DAILY_SWIPES.c.user_id == user_id, DAILY_SWIPES.c.date == day)
            ).scalar()
        return int(count or 0)

    def increment_daily_swipe_count(self, user_id: str, day: str) -> int:
        bump = (
            update(DAILY_SWIPES)
            .where(DAILY_SWIPES.c.user_id == user_id, DAILY_SWIPES.c.date == day)
            .values(count=DAILY_SWIPES.c.count + 1)
        )
        with self._session_factory() as db:
            if db.execute(bump).rowcount:
                db.commit()
            else:
                try:
                    db.execute(insert(DAILY_SWIPES).values(id=str(uuid.uuid4()), user_id=user_id, date=day, count=1))
                    db.commit()
                except IntegrityError:
                    # another request created today's row first
                    db.rollback()
                    db.execute(bump)
                    db.commit()
        return self.get_daily_swipe_count(user_id, day)

    def reserve_daily_swipe(self, user_id: str, day: str, limit: int) -> bool:
        """Take one swipe from today's quota if any is left. The check and the increment are one statement."""
        bump = (
            update(DAILY_SWIPES)
            .where(
                DAILY_SWIPES.c.user_id == user_id,
                DAILY_SWIPES.c.date == day,
                DAILY_SWIPES.c.count < limit,
            )
            .values(count=DAILY_SWIPES.c.count + 1)
        )
        with self._session_factory() as db:
            if db.execute(bump).rowcount:
                db.commit()
                return True
            existing = db.execute(
                select(DAILY_SWIPES.c.id).where(DAILY_SWIPES.c.user_id == user_id, DAILY_SWIPES.c.date == day)
            ).first()
            if limit < 1 or existing is not None:
                db.rollback()
                return False
            try:
                db.execute(insert(DAILY_SWIPES).values(id=str(uuid.uuid4()), user_id=user_id, date=day, count=1))
                db.commit()
                return True
            except IntegrityError:
                db.rollback()
                reserved = bool(db.execute(bump).rowcount)
                db.commit()
                return reserved

    # ---------------------------------------------------------------- matches

    def create_match(self, user1_id: str, user2_id: str) -> tuple[dict[str, Any], bool]:
        """Insert the match for this pair unless one exists. Returns ``(match, created)``."""
        row = {
            "id": str(uuid.uuid4()),
            "user1_id": user1_id,
            "user2_id": user2_id,
            "pair_key": pair_key(user1_id, user2_id),
            "created_at": _now_utc(),
        }
        try:
            with self._session_factory() as db:
                db.execute(insert(MATCHES).values(**row))
                db.commit()
        except IntegrityError:
            existing = self.get_match_between(user1_id, user2_id)
            if existing is None:
                raise
            return existing, False
        return row, True

    def get_match(self, match_id: str) -> dict[str, Any] | None:
        with self._session_factory() as db:
            row = db.execute(select(MATCHES).where(MATCHES.c.id == match_id)).mappings().first()
            if not row:
                return None
            users = self._users_with_profiles(db, [row["user1_id"], row["user2_id"]])
        user1 = users.get(row["user1_id"])
        user2 = users.get(row["user2_id"])
        if not user1 or not user2:
            return None
        return {**dict(row), "user1": user1, "user2": user2}

    def get_match_between(self, user_a: str, user_b: str) -> dict[str, Any] | None:
        with self._session_factory() as db:
            row = db.execute(select(MATCHES).where(MATCHES.c.pair_key == pair_key(user_a, user_b))).mappings().first()
        return dict(row) if row else None

    def list_matches_for_user(self, user_id: str) -> list[dict[str, Any]]:
        with self._session_factory() as db:
            rows = db.execute(
                select(MATCHES)
                .where(or_(MATCHES.c.user1_id == user_id, MATCHES.c.user2_id == user_id))
                .order_by(MATCHES.c.created_at.desc())
            ).mappings().all()
            users = self._users_with_profiles(db, [r["user1_id"] for r in rows] + [r["user2_id"] for r in rows])
        out = []
        for r in rows:
            user1 = users.get(r["user1_id"])
            user2 = users.get(r["user2_id"])
            if user1 and user2:
                out.append({**dict(r), "user1": user1, "user2": user2})
        return out

    # --------------------------------------------------------------- messages

    def create_message(self, match_id: str, sender_id: str, content: str) -> dict[str, Any]:
        message_id = str(uuid.uuid4())
        with self._session_factory() as db:
            db.execute(
                insert(MESSAGES).values(
                    id=message_id,
                    match_id=match_id,
                    sender_id=sender_id,
                    content=content,
                    is_read=False,
                    created_at=_now_utc(),
                )
            )
            db.commit()
            row = db.execute(select(MESSAGES).where(MESSAGES.c.id == message_id)).mappings().first()
        return dict(row)

    def list_messages(self, match_id: str) -> list[dict[str, Any]]:
        with self._session_factory() as db:
            rows = db.execute(
                select(MESSAGES)
                .where(MESSAGES.c.match_id == match_id)
                .order_by(MESSAGES.c.created_at.asc(), MESSAGES.c.seq.asc())
            ).mappings().all()
            sender_ids = list({r["sender_id"] for r in rows})
            senders = db.execute(select(USERS).where(USERS.c.id.in_(sender_ids))).mappings().all() if sender_ids else []
        by_id = {s["id"]: dict(s) for s in senders}
        return [{**dict(r), "sender": by_id[r["sender_id"]]} for r in rows if r["sender_id"] in by_id]

    def mark_messages_read(self, match_id: str, reader_id: str) -> int:
        with self._session_factory() as db:
            result = db.execute(
                update(MESSAGES)
                .where(
                    MESSAGES.c.match_id == match_id,
                    MESSAGES.c.sender_id != reader_id,
                    MESSAGES.c.is_read.is_(False),
                )
                .values(is_read=True)
            )
            db.commit()
        return int(result.rowcount or 0)

    # ----------------------------------------------------------------- safety

    def create_block(self, blocker_id: str, blocked_id: str) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "blocker_id": blocker_id,
            "blocked_id": blocked_id,
            "created_at": _now_utc(),
        }
        try:
            with self._session_factory() as db:
                db.execute(insert(BLOCKS).values(**row))
                db.commit()
        except IntegrityError:
            with self._session_factory() as db:
                existing = db.execute(
                    select(BLOCKS).where(BLOCKS.c.blocker_id == blocker_id, BLOCKS.c.blocked_id == blocked_id)
                ).mappings().first()
            if existing is None:
                raise
            return dict(existing)
        return row

    def remove_block(self, blocker_id: str, blocked_id: str) -> int:
        with self._session_factory() as db:
            result = db.execute(
                delete(BLOCKS).where(BLOCKS.c.blocker_id == blocker_id, BLOCKS.c.blocked_id == blocked_id)
            )
            db.commit()
        return int(result.rowcount or 0)

    def list_blocks(self, blocker_id: str) -> list[dict[str, Any]]:
        with self._session_factory() as db:
            rows = db.execute(
                select(BLOCKS).where(BLOCKS.c.blocker_id == blocker_id).order_by(BLOCKS.c.created_at.desc())
            ).mappings().all()
        return [dict(r) for r in rows]

    def is_user_blocked(self, user_a: str, user_b: str) -> bool:
        with self._session_factory() as db:
            row = db.execute(
                select(BLOCKS.c.id)
                .where(
                    or_(
                        and_(BLOCKS.c.blocker_id == user_a, BLOCKS.c.blocked_id == user_b),
                        and_(BLOCKS.c.blocker_id == user_b, BLOCKS.c.blocked_id == user_a),
                    )
                )
                .limit(1)
            ).first()
        return row is not None

    def create_report(self, reporter_id: str, reported_id: str, reason: str, details: str | None) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "reporter_id": reporter_id,
            "reported_id": reported_id,
            "reason": reason,
            "details": details,
            "created_at": _now_utc(),
        }
        with self._session_factory() as db:
            db.execute(insert(REPORTS).values(**row))
            db.commit()
        logger.info(f"[safety] report filed reporter_id={reporter_id} reported_id={reported_id} reason={reason}")
        return row

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_uuid)
    email = Column(String(254), unique=True, nullable=True)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, default=_uuid)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    bio = Column(Text, nullable=True)
    age = Column(Integer, nullable=False)
    gender = Column(String(50), nullable=False)
    location = Column(String(255), nullable=True)
    latitude = Column(String(32), nullable=True)
    longitude = Column(String(32), nullable=True)
    interests = Column(JSON, nullable=False, default=list)
    photos = Column(JSON, nullable=False, default=list)
    looking_for = Column(String(50), nullable=True)
    age_range_min = Column(Integer, nullable=True, default=18)
    age_range_max = Column(Integer, nullable=True, default=99)
    max_distance = Column(Integer, nullable=True, default=50)
    is_premium = Column(Boolean, nullable=False, default=False)
    is_profile_complete = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)

    __table_args__ = (Index("idx_profiles_discoverable", "is_profile_complete", "gender", "age"),)


class Swipe(Base):
    __tablename__ = "swipes"

    id = Column(String(64), primary_key=True, default=_uuid)
    swiper_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    swiped_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    direction = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)

    __table_args__ = (
        Index("idx_swipes_swiper", "swiper_id"),
        Index("idx_swipes_swiped", "swiped_id"),
    )


class Match(Base):
    __tablename__ = "matches"

    id = Column(String(64), primary_key=True, default=_uuid)
    user1_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user2_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    pair_key = Column(String(130), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)

    __table_args__ = (
        UniqueConstraint("pair_key", name="uq_matches_pair_key"),
        Index("idx_matches_user1", "user1_id"),
        Index("idx_matches_user2", "user2_id"),
    )


class Message(Base):
    __tablename__ = "messages"

    seq = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, unique=True, default=_uuid)
    match_id = Column(String(64), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)

    __table_args__ = (Index("idx_messages_match_created", "match_id", "created_at"),)


class Block(Base):
    __tablename__ = "blocks"

    id = Column(String(64), primary_key=True, default=_uuid)
    blocker_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    blocked_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)

    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_blocks_pair"),
        Index("idx_blocks_blocked", "blocked_id"),
    )


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(64), primary_key=True, default=_uuid)
    reporter_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reported_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reason = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)


class DailySwipe(Base):
    __tablename__ = "daily_swipes"

    id = Column(String(64), primary_key=True, default=_uuid)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(String(10), nullable=False)
    count = Column(Integer, nullable=False, default=0)

    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_swipes_user_date"),)

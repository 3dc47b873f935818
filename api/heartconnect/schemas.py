from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import REPORT_DETAILS_MAX_LENGTH


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class _AgeWindowModel(_CamelModel):
    @model_validator(mode="after")
    def _check_age_window(self):
        lo = getattr(self, "age_range_min", None)
        hi = getattr(self, "age_range_max", None)
        if lo is not None and hi is not None and lo > hi:
            raise ValueError("ageRangeMin must not exceed ageRangeMax")
        return self


class ProfileInput(_AgeWindowModel):
    bio: str | None = Field(default=None, max_length=500)
    age: int = Field(ge=18, le=100)
    gender: str = Field(min_length=1, max_length=50)
    location: str | None = Field(default=None, max_length=255)
    latitude: str | None = Field(default=None, max_length=32)
    longitude: str | None = Field(default=None, max_length=32)
    interests: list[str] = Field(default_factory=list)
    photos: list[str] = Field(min_length=1, max_length=9)
    looking_for: str | None = Field(default=None, alias="lookingFor", max_length=50)
    age_range_min: int | None = Field(default=18, alias="ageRangeMin", ge=18, le=100)
    age_range_max: int | None = Field(default=99, alias="ageRangeMax", ge=18, le=100)
    max_distance: int | None = Field(default=50, alias="maxDistance", ge=1, le=500)


class ProfileUpdate(_AgeWindowModel):
    bio: str | None = Field(default=None, max_length=500)
    age: int | None = Field(default=None, ge=18, le=100)
    gender: str | None = Field(default=None, min_length=1, max_length=50)
    location: str | None = Field(default=None, max_length=255)
    latitude: str | None = Field(default=None, max_length=32)
    longitude: str | None = Field(default=None, max_length=32)
    interests: list[str] | None = None
    photos: list[str] | None = Field(default=None, min_length=1, max_length=9)
    looking_for: str | None = Field(default=None, alias="lookingFor", max_length=50)
    age_range_min: int | None = Field(default=None, alias="ageRangeMin", ge=18, le=100)
    age_range_max: int | None = Field(default=None, alias="ageRangeMax", ge=18, le=100)
    max_distance: int | None = Field(default=None, alias="maxDistance", ge=1, le=500)


class SwipeInput(_CamelModel):
    swiped_id: str = Field(alias="swipedId", min_length=1)
    direction: Literal["like", "pass"]


class MessageInput(_CamelModel):
    content: str


class ReportInput(_CamelModel):
    reported_id: str = Field(alias="reportedId", min_length=1)
    reason: Literal["inappropriate", "scam", "fake", "harassment", "other"]
    details: str | None = Field(default=None, max_length=REPORT_DETAILS_MAX_LENGTH)


class BlockInput(_CamelModel):
    blocked_id: str = Field(alias="blockedId", min_length=1)

"""Typed models for directory response payloads.

Each endpoint's body is decoded once, here, into one of these models.
Nothing downstream of the strategies looks at raw JSON.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ethoslink.models import ActivityRecord, ActivityType, UserRecord, UserStatus, WeeklySample

_SENTIMENT_SCORES = {"positive": 1, "neutral": 0, "negative": -1}


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ReviewCounts(_Wire):
    positive: int = 0
    neutral: int = 0
    negative: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.neutral + self.negative


class ReviewStats(_Wire):
    received: ReviewCounts = Field(default_factory=ReviewCounts)


class VouchCounts(_Wire):
    count: int = 0
    amount_wei_total: Optional[float] = Field(default=None, alias="amountWeiTotal")


class VouchStats(_Wire):
    given: VouchCounts = Field(default_factory=VouchCounts)
    received: VouchCounts = Field(default_factory=VouchCounts)


class UserStats(_Wire):
    review: ReviewStats = Field(default_factory=ReviewStats)
    vouch: VouchStats = Field(default_factory=VouchStats)


class DirectoryUser(_Wire):
    """One user as returned by any ``/users/by/*`` endpoint."""
    id: Optional[int] = None
    profile_id: Optional[int] = Field(default=None, alias="profileId")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    username: Optional[str] = None
    score: int = 0
    status: Optional[str] = None
    userkeys: list[str] = Field(default_factory=list)
    xp_total: int = Field(default=0, alias="xpTotal")
    rank: Optional[int] = None
    percentile: Optional[float] = None
    stats: UserStats = Field(default_factory=UserStats)

    @field_validator("score", "xp_total", mode="before")
    @classmethod
    def _none_is_zero(cls, v):
        return 0 if v is None else v

    def to_record(self) -> UserRecord:
        keys = list(dict.fromkeys(self.userkeys))
        if not keys and self.profile_id is not None:
            keys = [f"profileId:{self.profile_id}"]
        if not keys and self.id is not None:
            keys = [f"userId:{self.id}"]
        status = UserStatus.INACTIVE if (self.status or "").upper() == "INACTIVE" else UserStatus.ACTIVE
        return UserRecord(
            canonical_keys=tuple(keys),
            score=self.score,
            xp_total=self.xp_total,
            review_count=self.stats.review.received.total,
            vouch_count=self.stats.vouch.received.count,
            rank=self.rank,
            percentile=self.percentile,
            status=status,
            display_name=self.display_name,
            username=self.username,
            profile_id=self.profile_id,
        )


class FarcasterMatch(_Wire):
    user: DirectoryUser
    username: Optional[str] = None


class FarcasterUsernamesResponse(_Wire):
    users: list[FarcasterMatch] = Field(default_factory=list)
    not_found_usernames: list[str] = Field(default_factory=list, alias="notFoundUsernames")
    error_usernames: list[str] = Field(default_factory=list, alias="errorUsernames")


def _identity_text(value: Any) -> str:
    if isinstance(value, dict):
        for key in ("userkey", "username", "address", "name"):
            if value.get(key):
                return str(value[key])
        keys = value.get("userkeys") or []
        return str(keys[0]) if keys else ""
    return "" if value is None else str(value)


class WireActivity(_Wire):
    id: str = ""
    type: str = Field(default="review", validation_alias=AliasChoices("type", "activityType"))
    score: float = 0
    comment: Optional[str] = None
    author: str = Field(default="", validation_alias=AliasChoices("author", "from"))
    subject: str = Field(default="", validation_alias=AliasChoices("subject", "to"))
    timestamp: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("timestamp", "createdAt"))
    eth_amount: Optional[str] = Field(default=None, validation_alias=AliasChoices("ethAmount", "eth_amount"))

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, data):
        # Feed items nest the payload under "data" and the parties as objects.
        if not isinstance(data, dict):
            return data
        merged = dict(data)
        inner = merged.pop("data", None)
        if isinstance(inner, dict):
            for key, value in inner.items():
                merged.setdefault(key, value)
        for party in ("author", "subject", "from", "to"):
            if party in merged:
                merged[party] = _identity_text(merged[party])
        if merged.get("id") is not None:
            merged["id"] = str(merged["id"])
        for key in ("timestamp", "createdAt"):
            if isinstance(merged.get(key), (int, float)):
                merged[key] = datetime.fromtimestamp(merged[key], tz=timezone.utc)
        return merged

    @field_validator("score", mode="before")
    @classmethod
    def _sentiment(cls, v):
        if isinstance(v, str):
            lowered = v.strip().lower()
            if lowered in _SENTIMENT_SCORES:
                return _SENTIMENT_SCORES[lowered]
        return 0 if v is None else v

    @field_validator("timestamp")
    @classmethod
    def _aware(cls, v):
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_record(self) -> ActivityRecord:
        return ActivityRecord(
            id=self.id,
            activity_type=ActivityType.parse(self.type),
            score=self.score,
            actor=self.author,
            subject=self.subject,
            timestamp=self.timestamp,
            comment=self.comment,
            eth_amount=self.eth_amount,
        )


class ActivityPage(_Wire):
    values: list[WireActivity] = Field(default_factory=list)
    total: int = 0

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, data):
        if isinstance(data, list):
            return {"values": data, "total": len(data)}
        return data


class WireWeeklyXp(_Wire):
    week: int
    weekly_xp: int = Field(default=0, alias="weeklyXp")
    cumulative_xp: int = Field(default=0, alias="cumulativeXp")

    def to_sample(self) -> WeeklySample:
        return WeeklySample(week=self.week, weekly_xp=self.weekly_xp, cumulative_xp=self.cumulative_xp)


class Season(_Wire):
    id: int
    name: str = ""
    start_date: Optional[str] = Field(default=None, alias="startDate")
    week: Optional[int] = None


class SeasonsResponse(_Wire):
    seasons: list[Season] = Field(default_factory=list)
    current_season: Optional[Season] = Field(default=None, alias="currentSeason")


class UserList(_Wire):
    """Search and leaderboard bodies: a bare list or ``{values|profiles|users: [...]}``."""
    users: list[DirectoryUser] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _unwrap(cls, data):
        if isinstance(data, list):
            return {"users": data}
        if isinstance(data, dict):
            for key in ("values", "profiles", "users"):
                if isinstance(data.get(key), list):
                    return {"users": data[key]}
        return {"users": []}


class VoteList(_Wire):
    values: list[dict] = Field(default_factory=list)
    total: int = 0

"""Request-scoped value objects shared by the engine components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class UserStatus(Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ActivityType(Enum):
    REVIEW = "review"
    VOUCH = "vouch"
    SLASH = "slash"
    VOTE = "vote"
    ATTESTATION = "attestation"
    PROJECT = "project"
    MARKET = "market"
    UNVOUCH = "unvouch"
    INVITATION = "invitation-accepted"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "ActivityType":
        """Map a directory type string onto the enum.

        Case is ignored and the slash lifecycle (``open-slash``,
        ``closed-slash``) folds into ``SLASH``. Anything unrecognised is
        ``OTHER`` so it never counts as a review or vouch.
        """
        text = str(value or "").strip().lower()
        for member in cls:
            if text == member.value:
                return member
        if text.endswith("-slash"):
            return cls.SLASH
        return cls.OTHER


@dataclass(frozen=True)
class UserRecord:
    """A resolved directory user. Built once per lookup and never mutated."""
    canonical_keys: tuple[str, ...]
    score: int = 0
    xp_total: int = 0
    review_count: int = 0
    vouch_count: int = 0
    rank: Optional[int] = None
    percentile: Optional[float] = None
    status: UserStatus = UserStatus.ACTIVE
    display_name: Optional[str] = None
    username: Optional[str] = None
    profile_id: Optional[int] = None

    @property
    def primary_key(self) -> str:
        return self.canonical_keys[0] if self.canonical_keys else ""

    @property
    def address(self) -> Optional[str]:
        for key in self.canonical_keys:
            if key.startswith("address:"):
                return key[len("address:"):]
        return None

    def to_dict(self) -> dict:
        return {
            "userkey": self.primary_key,
            "userkeys": list(self.canonical_keys),
            "address": self.address,
            "displayName": self.display_name,
            "username": self.username,
            "profileId": self.profile_id,
            "score": self.score,
            "xpTotal": self.xp_total,
            "reviewCount": self.review_count,
            "vouchCount": self.vouch_count,
            "rank": self.rank,
            "percentile": self.percentile,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class ActivityRecord:
    id: str
    activity_type: ActivityType
    score: float
    actor: str
    subject: str
    timestamp: Optional[datetime]
    comment: Optional[str] = None
    eth_amount: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "activityType": self.activity_type.value,
            "score": self.score,
            "actor": self.actor,
            "subject": self.subject,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "comment": self.comment,
            "ethAmount": self.eth_amount,
        }


@dataclass(frozen=True)
class WeeklySample:
    """XP earned in one week of a season."""
    week: int
    weekly_xp: int
    cumulative_xp: int = 0

    def to_dict(self) -> dict:
        return {"week": self.week, "weeklyXp": self.weekly_xp, "cumulativeXp": self.cumulative_xp}


@dataclass
class ExecutionResult:
    """The envelope every dispatcher operation returns.

    ``is_real_data`` is true only when the payload came from the live
    directory. A failed result never carries data.
    """
    success: bool
    data: Any = None
    message: str = ""
    is_real_data: bool = False

    def __post_init__(self):
        if not self.success:
            self.data = None
            self.is_real_data = False

    @classmethod
    def failure(cls, message: str) -> "ExecutionResult":
        return cls(success=False, data=None, message=message, is_real_data=False)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "data": self.data,
            "message": self.message,
            "isRealData": self.is_real_data,
        }


@dataclass(frozen=True)
class TimeframeSummary:
    timeframe: str
    value: float
    period_start: datetime
    period_end: datetime
    detail: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "timeframe": self.timeframe,
            "timeframeValue": self.value,
            "periodStart": self.period_start.isoformat(),
            "periodEnd": self.period_end.isoformat(),
            "detail": dict(self.detail),
        }

"""Read-only fallback datasets for the synthetic and static degradation tiers.

Both are process-wide constants. Nothing here is ever written to.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from ethoslink.identity import IdentityDescriptor
from ethoslink.models import ActivityRecord, ActivityType, UserRecord, WeeklySample

DAY = timedelta(days=1)


def _match_keys(descriptor: IdentityDescriptor) -> list[str]:
    keys = [descriptor.userkey, descriptor.normalized_value, descriptor.raw_input.strip()]
    return [k.lower() for k in dict.fromkeys(keys) if k]


# ── Synthetic tier ──

@dataclass(frozen=True)
class SyntheticProfile:
    record: UserRecord
    weekly_xp: tuple[int, ...] = ()
    reviews: tuple[tuple[str, int, str, int], ...] = ()  # (author, score, comment, days_ago)


_VITALIK_ADDRESS = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
_COOKED_ADDRESS = "0x742d35Cc6736C0532925a3b8D9d8bAdE3C0F16C3"

_VITALIK_WALLET = SyntheticProfile(
    record=UserRecord(
        canonical_keys=(f"address:{_VITALIK_ADDRESS}",),
        score=892, xp_total=20410, review_count=47, vouch_count=23,
        rank=15, percentile=96.0,
    ),
    weekly_xp=(610, 720, 655, 802),
    reviews=(
        ("0x742d35Cc6736C0532925a3b8D9d8bAdE3C0F16C3", 85, "Excellent contributor to the ecosystem", 1),
        ("0x1234567890abcdef1234567890abcdef12345678", 92, "Trusted and reliable in DeFi interactions", 2),
    ),
)

_VITALIK = SyntheticProfile(
    record=UserRecord(
        canonical_keys=(
            "service:x.com:username:VitalikButerin",
            f"address:{_VITALIK_ADDRESS}",
        ),
        score=1547, xp_total=48210, review_count=234, vouch_count=156,
        rank=1, percentile=99.9, display_name="Vitalik Buterin", username="VitalikButerin",
    ),
    weekly_xp=(1210, 1340, 1185, 1402),
    reviews=_VITALIK_WALLET.reviews,
)

_COOKEDZERA = SyntheticProfile(
    record=UserRecord(
        canonical_keys=(f"address:{_COOKED_ADDRESS}", "profileId:10"),
        score=456, xp_total=5505, review_count=28, vouch_count=12,
        rank=156, percentile=75.0, username="cookedzera", profile_id=10,
    ),
    weekly_xp=(180, 240, 205, 265),
    reviews=(
        (_VITALIK_ADDRESS, 78, "Great work on Web3 development projects", 3),
        ("0x9876543210fedcba9876543210fedcba98765432", 82, "Reliable community member and developer", 7),
    ),
)

SYNTHETIC_PROFILES: dict[str, SyntheticProfile] = {
    f"address:{_VITALIK_ADDRESS}".lower(): _VITALIK_WALLET,
    "service:x.com:username:vitalikbuterin": _VITALIK,
    "vitalik": _VITALIK,
    "cookedzera": _COOKEDZERA,
    "profileid:10": _COOKEDZERA,
}


class SyntheticDirectory:
    """Deterministic illustrative stand-in for the live directory."""

    def __init__(self, profiles: Optional[dict[str, SyntheticProfile]] = None):
        self.profiles = SYNTHETIC_PROFILES if profiles is None else profiles

    def _profile(self, descriptor: IdentityDescriptor) -> Optional[SyntheticProfile]:
        for key in _match_keys(descriptor):
            if key in self.profiles:
                return self.profiles[key]
        return None

    def _unique(self) -> list[SyntheticProfile]:
        seen, unique = set(), []
        for profile in self.profiles.values():
            if id(profile) not in seen:
                seen.add(id(profile))
                unique.append(profile)
        return unique

    def find(self, descriptor: IdentityDescriptor) -> Optional[UserRecord]:
        profile = self._profile(descriptor)
        return profile.record if profile else None

    def weekly_xp(self, descriptor: IdentityDescriptor) -> list[WeeklySample]:
        profile = self._profile(descriptor)
        if not profile:
            return []
        samples, cumulative = [], 0
        for week, xp in enumerate(profile.weekly_xp, start=1):
            cumulative += xp
            samples.append(WeeklySample(week=week, weekly_xp=xp, cumulative_xp=cumulative))
        return samples

    def activities(self, descriptor: IdentityDescriptor, limit: int = 10, now: Optional[datetime] = None) -> list[ActivityRecord]:
        profile = self._profile(descriptor)
        if not profile:
            return []
        now = now or datetime.now(timezone.utc)
        cycle = (ActivityType.REVIEW, ActivityType.VOUCH, ActivityType.SLASH)
        activities = []
        for i in range(min(limit, 5)):
            kind = cycle[i % 3]
            activities.append(ActivityRecord(
                id=f"activity_{i}",
                activity_type=kind,
                score=20 + i * 15,
                actor="0x1234567890abcdef1234567890abcdef12345678",
                subject=profile.record.primary_key,
                timestamp=now - i * DAY,
                comment=f"Activity {i + 1}",
                eth_amount="0.1" if kind == ActivityType.VOUCH else None,
            ))
        return activities

    def reviews(self, descriptor: IdentityDescriptor, now: Optional[datetime] = None) -> list[ActivityRecord]:
        profile = self._profile(descriptor)
        if not profile:
            return []
        now = now or datetime.now(timezone.utc)
        return [
            ActivityRecord(
                id=f"review_{i + 1}",
                activity_type=ActivityType.REVIEW,
                score=score,
                actor=author,
                subject=profile.record.primary_key,
                timestamp=now - days_ago * DAY,
                comment=comment,
            )
            for i, (author, score, comment, days_ago) in enumerate(profile.reviews)
        ]

    def search(self, query: str, limit: int = 10) -> list[UserRecord]:
        q = query.strip().lower()
        if not q:
            return []
        matches = []
        for key, profile in self.profiles.items():
            if q in key or any(q in k.lower() for k in profile.record.canonical_keys):
                if profile.record not in matches:
                    matches.append(profile.record)
        return matches[:limit]

    def leaderboard(self, limit: int = 10, metric: str = "score") -> list[UserRecord]:
        records = [p.record for p in self._unique()]
        key = (lambda r: r.xp_total) if metric == "xp" else (lambda r: r.score)
        return sorted(records, key=key, reverse=True)[:limit]


# ── Static tier ──

@dataclass(frozen=True)
class StaticUser:
    address: str
    username: str
    xp: int
    score: int
    reputation: float
    attestations: int
    rank: int
    recent_weeks: tuple[int, ...]

    def to_record(self) -> UserRecord:
        return UserRecord(
            canonical_keys=(f"address:{self.address}",),
            score=self.score,
            xp_total=self.xp,
            review_count=self.attestations,
            rank=self.rank,
            username=self.username,
            display_name=self.username,
        )


@dataclass(frozen=True)
class StaticAttestation:
    from_address: str
    to_address: str
    score: float
    comment: str


STATIC_USERS: tuple[StaticUser, ...] = (
    StaticUser("0x1234567890abcdef1234567890abcdef12345678", "alice.eth", 15240, 1920, 4.8, 89, 1,
               (2100, 2300, 2200, 2150)),
    StaticUser("0xabcdef1234567890abcdef1234567890abcdef12", "vitalik.eth", 12890, 2010, 4.9, 156, 2,
               (1700, 1810, 1800, 1890)),
    StaticUser("0x9876543210fedcba9876543210fedcba98765432", "user123", 1420, 1180, 3.2, 12, 1247,
               (400, 430, 430, 420)),
    StaticUser("0xfedcba9876543210fedcba9876543210fedcba98", "bob.eth", 8750, 1640, 4.1, 67, 5,
               (1300, 1320, 1300, 1280)),
    StaticUser("0x5555555555555555555555555555555555555555", "charlie.eth", 6540, 1510, 3.8, 45, 8,
               (920, 950, 950, 980)),
)

STATIC_ATTESTATIONS: tuple[StaticAttestation, ...] = (
    StaticAttestation("0x1234567890abcdef1234567890abcdef12345678",
                      "0x9876543210fedcba9876543210fedcba98765432", 4.5, "Great contributor to the ecosystem"),
    StaticAttestation("0xfedcba9876543210fedcba9876543210fedcba98",
                      "0x9876543210fedcba9876543210fedcba98765432", 4.0, "Reliable and trustworthy"),
    StaticAttestation("0x5555555555555555555555555555555555555555",
                      "0x9876543210fedcba9876543210fedcba98765432", 3.8, "Good participation in governance"),
)


class StaticStore:
    """Locally stored users, matched by case-insensitive username or address."""

    def __init__(self, users: tuple[StaticUser, ...] = STATIC_USERS,
                 attestations: tuple[StaticAttestation, ...] = STATIC_ATTESTATIONS):
        self.users = users
        self.attestations = attestations

    def _user(self, descriptor: IdentityDescriptor) -> Optional[StaticUser]:
        keys = set(_match_keys(descriptor))
        for user in self.users:
            if user.username.lower() in keys or user.address.lower() in keys:
                return user
        return None

    def find(self, descriptor: IdentityDescriptor) -> Optional[UserRecord]:
        user = self._user(descriptor)
        return user.to_record() if user else None

    def weekly_xp(self, descriptor: IdentityDescriptor) -> list[WeeklySample]:
        user = self._user(descriptor)
        if not user:
            return []
        return [WeeklySample(week=i, weekly_xp=xp) for i, xp in enumerate(user.recent_weeks, start=1)]

    def reviews(self, descriptor: IdentityDescriptor, now: Optional[datetime] = None) -> list[ActivityRecord]:
        user = self._user(descriptor)
        if not user:
            return []
        now = now or datetime.now(timezone.utc)
        return [
            ActivityRecord(
                id=f"attestation_{i + 1}",
                activity_type=ActivityType.ATTESTATION,
                score=a.score,
                actor=a.from_address,
                subject=a.to_address,
                timestamp=now,
                comment=a.comment,
            )
            for i, a in enumerate(self.attestations)
            if a.to_address.lower() == user.address.lower()
        ]

    def search(self, query: str, limit: int = 10) -> list[UserRecord]:
        q = query.strip().lower()
        if not q:
            return []
        return [u.to_record() for u in self.users
                if q in u.username.lower() or q in u.address.lower()][:limit]

    def leaderboard(self, limit: int = 10, metric: str = "score") -> list[UserRecord]:
        key = (lambda u: u.xp) if metric == "xp" else (lambda u: u.score)
        return [u.to_record() for u in sorted(self.users, key=key, reverse=True)[:limit]]

"""
ethoslink.identity — Classify raw user identifiers into typed descriptors.

Accepted forms, first match wins:
    address:0x…, service:x.com:username:…, profileId:N, userId:N,
    telegram:N, discord:N, farcaster:name|N  (plus a few aliases)
    0x + 40 hex chars                         → Address
    *.eth                                     → EnsName
    anything else                             → Unknown (resolved by trial)

Bare numeric tokens are left as Unknown on purpose: a number may be a
Farcaster id, a Discord id or a Telegram id, and the resolution chain is
the one that tries them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class IdentityKind(Enum):
    ADDRESS = "address"
    ENS_NAME = "ens_name"
    FARCASTER_ID = "farcaster_id"
    FARCASTER_USERNAME = "farcaster_username"
    TWITTER_USERNAME = "twitter_username"
    DISCORD_ID = "discord_id"
    TELEGRAM_ID = "telegram_id"
    PROFILE_ID = "profile_id"
    USER_ID = "user_id"
    UNKNOWN = "unknown"


ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
NUMERIC_RE = re.compile(r"^\d+$")
DISCORD_ID_RE = re.compile(r"^\d{17,19}$")
TELEGRAM_ID_RE = re.compile(r"^\d{8,12}$")

# Longest prefixes first so "service:x.com:username:" wins over shorter ones.
_PREFIXES: tuple[tuple[str, IdentityKind], ...] = (
    ("service:x.com:username:", IdentityKind.TWITTER_USERNAME),
    ("service:farcaster:", IdentityKind.FARCASTER_USERNAME),
    ("service:discord:", IdentityKind.DISCORD_ID),
    ("service:telegram:", IdentityKind.TELEGRAM_ID),
    ("telegramId:", IdentityKind.TELEGRAM_ID),
    ("discordId:", IdentityKind.DISCORD_ID),
    ("profileId:", IdentityKind.PROFILE_ID),
    ("farcaster:", IdentityKind.FARCASTER_USERNAME),
    ("telegram:", IdentityKind.TELEGRAM_ID),
    ("discord:", IdentityKind.DISCORD_ID),
    ("address:", IdentityKind.ADDRESS),
    ("twitter:", IdentityKind.TWITTER_USERNAME),
    ("userId:", IdentityKind.USER_ID),
    ("x:", IdentityKind.TWITTER_USERNAME),
)

# Kinds whose value must be an integer for the directory to accept it.
_NUMERIC_KINDS = {IdentityKind.PROFILE_ID, IdentityKind.USER_ID}


@dataclass(frozen=True)
class IdentityDescriptor:
    """Typed classification of one raw identifier. Immutable."""
    raw_input: str
    kind: IdentityKind
    normalized_value: str

    @property
    def is_numeric(self) -> bool:
        return bool(NUMERIC_RE.match(self.normalized_value))

    @property
    def userkey(self) -> str:
        """The directory userkey form of this identity."""
        value = self.normalized_value
        if self.kind in (IdentityKind.ADDRESS, IdentityKind.ENS_NAME):
            return f"address:{value}"
        if self.kind == IdentityKind.TWITTER_USERNAME:
            return f"service:x.com:username:{value}"
        if self.kind in (IdentityKind.FARCASTER_ID, IdentityKind.FARCASTER_USERNAME):
            return f"service:farcaster:{value}"
        if self.kind == IdentityKind.DISCORD_ID:
            return f"service:discord:{value}"
        if self.kind == IdentityKind.TELEGRAM_ID:
            return f"service:telegram:{value}"
        if self.kind == IdentityKind.PROFILE_ID:
            return f"profileId:{value}"
        if self.kind == IdentityKind.USER_ID:
            return f"userId:{value}"
        return value

    def to_dict(self) -> dict:
        return {
            "rawInput": self.raw_input,
            "kind": self.kind.value,
            "normalizedValue": self.normalized_value,
            "userkey": self.userkey,
        }


def _classify_prefixed(raw: str, cleaned: str) -> IdentityDescriptor | None:
    lowered = cleaned.lower()
    for prefix, kind in _PREFIXES:
        if not lowered.startswith(prefix.lower()):
            continue
        value = cleaned[len(prefix):].strip()
        if not value:
            return None
        if kind == IdentityKind.FARCASTER_USERNAME and NUMERIC_RE.match(value):
            kind = IdentityKind.FARCASTER_ID
        elif kind == IdentityKind.ADDRESS and value.lower().endswith(".eth"):
            kind = IdentityKind.ENS_NAME
        elif kind == IdentityKind.TWITTER_USERNAME:
            value = value.lstrip("@")
        if kind in _NUMERIC_KINDS and not NUMERIC_RE.match(value):
            return None
        return IdentityDescriptor(raw, kind, value)
    return None


def normalize(raw: str) -> IdentityDescriptor:
    """Classify *raw* by pattern alone. Never raises."""
    raw = "" if raw is None else str(raw)
    cleaned = raw.strip()

    prefixed = _classify_prefixed(raw, cleaned)
    if prefixed is not None:
        return prefixed

    if ADDRESS_RE.match(cleaned):
        return IdentityDescriptor(raw, IdentityKind.ADDRESS, cleaned)

    if cleaned.lower().endswith(".eth") and len(cleaned) > len(".eth"):
        return IdentityDescriptor(raw, IdentityKind.ENS_NAME, cleaned)

    if cleaned.startswith("@") and len(cleaned) > 1:
        return IdentityDescriptor(raw, IdentityKind.TWITTER_USERNAME, cleaned[1:])

    return IdentityDescriptor(raw, IdentityKind.UNKNOWN, cleaned)


def looks_like_discord_id(value: str) -> bool:
    return bool(DISCORD_ID_RE.match(value))


def looks_like_telegram_id(value: str) -> bool:
    return bool(TELEGRAM_ID_RE.match(value))

"""
ethoslink.directory.strategies — Ordered identity resolution against the directory.

Each strategy is bound to one directory endpoint shape. The chain picks the
strategies applicable to a descriptor and tries them one at a time until
one returns a user:

    explicit kind   → the single strategy for that kind
    Unknown         → X/Twitter, Farcaster username, address, profile id,
                      then (numeric input only) Farcaster id, Discord id,
                      Telegram id

A failing strategy (transport error, error status, malformed body, empty
result) is a miss; the chain moves on. Exhausting the chain returns None,
which means "unknown to the directory", not an error.

Usage:
    chain = ResolutionChain(DirectoryClient(config))
    record = await chain.resolve(normalize("cookedzera"))
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import httpx
from pydantic import ValidationError

from ethoslink.directory.client import DirectoryClient, DirectoryError
from ethoslink.directory.wire import DirectoryUser
from ethoslink.identity import (
    IdentityDescriptor,
    IdentityKind,
    looks_like_discord_id,
    looks_like_telegram_id,
    normalize,
)
from ethoslink.models import UserRecord

logger = logging.getLogger(__name__)

# Failures that count as "try the next strategy".
LOOKUP_ERRORS = (httpx.HTTPError, DirectoryError, ValidationError, ValueError)


class LookupStrategy(ABC):
    """One lookup method bound to one identity class."""

    name: str = "unknown"
    kind: IdentityKind = IdentityKind.UNKNOWN

    def accepts_trial(self, descriptor: IdentityDescriptor) -> bool:
        """Whether this strategy is worth trying for an Unknown descriptor."""
        return False

    @abstractmethod
    async def fetch(self, client: DirectoryClient, value: str) -> list[DirectoryUser]:
        ...


class AddressStrategy(LookupStrategy):
    name = "address"
    kind = IdentityKind.ADDRESS

    def accepts_trial(self, descriptor):
        return True

    async def fetch(self, client, value):
        return await client.users_by_addresses([value])


class EnsStrategy(LookupStrategy):
    # The address endpoint resolves ENS names server-side.
    name = "ens"
    kind = IdentityKind.ENS_NAME

    async def fetch(self, client, value):
        return await client.users_by_addresses([value])


class TwitterStrategy(LookupStrategy):
    name = "x.com"
    kind = IdentityKind.TWITTER_USERNAME

    def accepts_trial(self, descriptor):
        return True

    async def fetch(self, client, value):
        return await client.users_by_twitter([value.lstrip("@")])


class FarcasterUsernameStrategy(LookupStrategy):
    name = "farcaster-username"
    kind = IdentityKind.FARCASTER_USERNAME

    def accepts_trial(self, descriptor):
        return True

    async def fetch(self, client, value):
        result = await client.users_by_farcaster_usernames([value])
        return [match.user for match in result.users]


class FarcasterIdStrategy(LookupStrategy):
    name = "farcaster-id"
    kind = IdentityKind.FARCASTER_ID

    def accepts_trial(self, descriptor):
        return descriptor.is_numeric and int(descriptor.normalized_value) > 0

    async def fetch(self, client, value):
        return await client.users_by_farcaster_ids([value])


class DiscordStrategy(LookupStrategy):
    name = "discord"
    kind = IdentityKind.DISCORD_ID

    def accepts_trial(self, descriptor):
        return looks_like_discord_id(descriptor.normalized_value)

    async def fetch(self, client, value):
        return await client.users_by_discord([value])


class TelegramStrategy(LookupStrategy):
    name = "telegram"
    kind = IdentityKind.TELEGRAM_ID

    def accepts_trial(self, descriptor):
        return looks_like_telegram_id(descriptor.normalized_value)

    async def fetch(self, client, value):
        return await client.users_by_telegram([value])


class ProfileIdStrategy(LookupStrategy):
    name = "profile-id"
    kind = IdentityKind.PROFILE_ID

    def accepts_trial(self, descriptor):
        return descriptor.is_numeric

    async def fetch(self, client, value):
        return await client.users_by_profile_ids([int(value)])


class UserIdStrategy(LookupStrategy):
    name = "user-id"
    kind = IdentityKind.USER_ID

    async def fetch(self, client, value):
        return await client.users_by_user_ids([int(value)])


DEFAULT_STRATEGIES: tuple[LookupStrategy, ...] = (
    AddressStrategy(),
    EnsStrategy(),
    TwitterStrategy(),
    FarcasterUsernameStrategy(),
    FarcasterIdStrategy(),
    DiscordStrategy(),
    TelegramStrategy(),
    ProfileIdStrategy(),
    UserIdStrategy(),
)

# Most real-world queries are social usernames, so those go first.
TRIAL_ORDER: tuple[IdentityKind, ...] = (
    IdentityKind.TWITTER_USERNAME,
    IdentityKind.FARCASTER_USERNAME,
    IdentityKind.ADDRESS,
    IdentityKind.PROFILE_ID,
    IdentityKind.FARCASTER_ID,
    IdentityKind.DISCORD_ID,
    IdentityKind.TELEGRAM_ID,
)


class ResolutionChain:
    """Resolve identity descriptors to directory users, first success wins.

    Args:
        client: Directory client the strategies call.
        strategies: Strategy set, one per identity kind.
        trial_order: Kinds tried, in order, for Unknown descriptors.
    """

    def __init__(
        self,
        client: DirectoryClient,
        strategies: Sequence[LookupStrategy] = DEFAULT_STRATEGIES,
        trial_order: Sequence[IdentityKind] = TRIAL_ORDER,
    ):
        self.client = client
        self._by_kind = {s.kind: s for s in strategies}
        self._trial_order = tuple(trial_order)

    def plan(self, descriptor: IdentityDescriptor) -> list[LookupStrategy]:
        """The strategies that will be tried for *descriptor*, in order."""
        if not descriptor.normalized_value:
            return []
        if descriptor.kind != IdentityKind.UNKNOWN:
            strategy = self._by_kind.get(descriptor.kind)
            return [strategy] if strategy else []
        plan = []
        for kind in self._trial_order:
            strategy = self._by_kind.get(kind)
            if strategy is not None and strategy.accepts_trial(descriptor):
                plan.append(strategy)
        return plan

    async def resolve(self, descriptor: IdentityDescriptor) -> Optional[UserRecord]:
        """Return the first user any applicable strategy finds, else None."""
        for strategy in self.plan(descriptor):
            try:
                users = await strategy.fetch(self.client, descriptor.normalized_value)
            except LOOKUP_ERRORS as e:
                logger.debug("Strategy %s failed for %r: %s", strategy.name, descriptor.normalized_value, e)
                continue
            if users:
                # Directory order is canonical; the first match is the answer.
                logger.info("Resolved %r via %s", descriptor.normalized_value, strategy.name)
                return users[0].to_record()
            logger.debug("Strategy %s found nothing for %r", strategy.name, descriptor.normalized_value)
        logger.info("No directory user for %r (%s)", descriptor.normalized_value, descriptor.kind.value)
        return None

    async def resolve_identifier(self, raw: str) -> Optional[UserRecord]:
        return await self.resolve(normalize(raw))

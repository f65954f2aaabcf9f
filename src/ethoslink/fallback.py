"""
ethoslink.fallback — Three-tier degradation with provenance.

Tiers are tried in order until one yields a non-empty value:

    LIVE       — the external directory
    SYNTHETIC  — deterministic illustrative dataset
    STATIC     — locally stored dataset

Any exception inside a tier counts as "empty". The returned TierResult
records which tier answered; only LIVE counts as real data. None means
every tier came up empty.

Usage:
    controller = DegradationController()
    result = await controller.run(
        live=lambda: chain.resolve(descriptor),
        synthetic=lambda: synthetic.find(descriptor),
        static=lambda: store.find(descriptor),
        label="profile",
    )
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


class DataTier(Enum):
    LIVE = "live"
    SYNTHETIC = "synthetic"
    STATIC = "static"


TierSource = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class TierResult:
    value: Any
    tier: DataTier

    @property
    def is_real_data(self) -> bool:
        return self.tier == DataTier.LIVE


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, set, str)):
        return len(value) == 0
    return False


class DegradationController:
    """Run a data-producing operation across the degradation tiers.

    Args:
        synthetic: Whether the synthetic tier may answer.
        static: Whether the static tier may answer.
    """

    def __init__(self, *, synthetic: bool = True, static: bool = True):
        self.synthetic_enabled = synthetic
        self.static_enabled = static

    async def _attempt(self, tier: DataTier, source: TierSource, label: str) -> Any:
        try:
            value = source()
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            logger.warning("%s tier failed for %s: %s", tier.value, label or "operation", e, extra={"tier": tier.value})
            return None
        return value

    async def run(
        self,
        live: Optional[TierSource] = None,
        synthetic: Optional[TierSource] = None,
        static: Optional[TierSource] = None,
        *,
        label: str = "",
    ) -> Optional[TierResult]:
        tiers = [
            (DataTier.LIVE, live),
            (DataTier.SYNTHETIC, synthetic if self.synthetic_enabled else None),
            (DataTier.STATIC, static if self.static_enabled else None),
        ]
        for tier, source in tiers:
            if source is None:
                continue
            value = await self._attempt(tier, source, label)
            if not is_empty(value):
                if tier != DataTier.LIVE:
                    logger.info("Serving %s from %s tier", label or "result", tier.value, extra={"tier": tier.value})
                return TierResult(value, tier)
            logger.debug("%s tier empty for %s", tier.value, label or "operation", extra={"tier": tier.value})
        return None

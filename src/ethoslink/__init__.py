"""ethoslink — Identity resolution and intent execution for Web3 reputation queries."""

__version__ = "0.1.0"

from ethoslink.identity import IdentityDescriptor, IdentityKind, normalize
from ethoslink.models import (
    ActivityRecord, ActivityType, ExecutionResult,
    TimeframeSummary, UserRecord, UserStatus, WeeklySample,
)
from ethoslink.config import EngineConfig
from ethoslink.directory import DirectoryClient, DirectoryError, ResolutionChain
from ethoslink.temporal import Timeframe, aggregate, group_activities, reputation_trend
from ethoslink.fallback import DataTier, DegradationController, TierResult
from ethoslink.fallback_data import StaticStore, SyntheticDirectory
from ethoslink.dispatcher import Intent, IntentDispatcher, compare_records

__all__ = [
    "__version__",
    "IdentityDescriptor",
    "IdentityKind",
    "normalize",
    "ActivityRecord",
    "ActivityType",
    "ExecutionResult",
    "TimeframeSummary",
    "UserRecord",
    "UserStatus",
    "WeeklySample",
    "EngineConfig",
    "DirectoryClient",
    "DirectoryError",
    "ResolutionChain",
    "Timeframe",
    "aggregate",
    "group_activities",
    "reputation_trend",
    "DataTier",
    "DegradationController",
    "TierResult",
    "StaticStore",
    "SyntheticDirectory",
    "Intent",
    "IntentDispatcher",
    "compare_records",
]

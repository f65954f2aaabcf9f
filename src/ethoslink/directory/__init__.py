"""Directory access: the HTTP client, payload models and the resolution chain."""

from .client import DirectoryClient, DirectoryError
from .strategies import (
    LookupStrategy,
    ResolutionChain,
    DEFAULT_STRATEGIES,
    TRIAL_ORDER,
)

__all__ = [
    "DirectoryClient",
    "DirectoryError",
    "LookupStrategy",
    "ResolutionChain",
    "DEFAULT_STRATEGIES",
    "TRIAL_ORDER",
]

"""Global test configuration — runs before any test module imports."""
import logging
import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Keep test output readable; JSON logs only for warnings and up.
os.environ.setdefault("ETHOSLINK_LOG_LEVEL", "WARNING")
for var in ("ETHOS_API_BASE_URL", "ETHOSLINK_REQUEST_TIMEOUT",
            "ETHOSLINK_SYNTHETIC_TIER", "ETHOSLINK_STATIC_TIER"):
    os.environ.pop(var, None)

API = "https://api.ethos.network/api/v2"
FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def api():
    """Directory base URL every mocked route hangs off."""
    return API


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def directory_user():
    """Factory for ``/users/by/*`` response items."""
    def make(score=1373, xp=5505, reviews=(8, 1, 0), vouches=2, userkeys=None, **extra):
        positive, neutral, negative = reviews
        body = {
            "id": 4242,
            "profileId": 10,
            "displayName": "cooked",
            "username": "cookedzera",
            "score": score,
            "status": "ACTIVE",
            "userkeys": list(userkeys) if userkeys is not None else [
                "profileId:10",
                "address:0x742d35Cc6736C0532925a3b8D9d8bAdE3C0F16C3",
                "service:x.com:username:cookedzera",
            ],
            "xpTotal": xp,
            "stats": {
                "review": {"received": {"positive": positive, "neutral": neutral, "negative": negative}},
                "vouch": {"given": {"count": 0}, "received": {"count": vouches}},
            },
        }
        body.update(extra)
        return body
    return make


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """setup_logging() attaches handlers to the shared ``ethoslink`` logger."""
    logger = logging.getLogger("ethoslink")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)

"""Engine configuration.

Configuration via environment (see ``EngineConfig.from_env``):
    ETHOS_API_BASE_URL         — directory base URL
    ETHOS_CLIENT_ID            — value of the X-Ethos-Client header
    ETHOS_HTTP_TIMEOUT         — transport timeout in seconds (default 15)
    ETHOSLINK_REQUEST_TIMEOUT  — end-to-end timeout per execute() call (unset = none)
    ETHOSLINK_SYNTHETIC_TIER   — 0/1, enable the synthetic dataset tier (default 1)
    ETHOSLINK_STATIC_TIER      — 0/1, enable the static store tier (default 1)
    ETHOSLINK_LOG_LEVEL        — log level (default INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ethoslink import __version__

DEFAULT_BASE_URL = "https://api.ethos.network/api/v2"
DEFAULT_CLIENT_ID = f"ethoslink/{__version__}"


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class EngineConfig:
    base_url: str = DEFAULT_BASE_URL
    client_id: str = DEFAULT_CLIENT_ID
    http_timeout: float = 15.0
    request_timeout: Optional[float] = None
    synthetic_tier: bool = True
    static_tier: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be positive")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        request_timeout = env.get("ETHOSLINK_REQUEST_TIMEOUT", "").strip()
        return cls(
            base_url=env.get("ETHOS_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            client_id=env.get("ETHOS_CLIENT_ID", DEFAULT_CLIENT_ID),
            http_timeout=float(env.get("ETHOS_HTTP_TIMEOUT", "15")),
            request_timeout=float(request_timeout) if request_timeout else None,
            synthetic_tier=_flag(env.get("ETHOSLINK_SYNTHETIC_TIER"), True),
            static_tier=_flag(env.get("ETHOSLINK_STATIC_TIER"), True),
            log_level=env.get("ETHOSLINK_LOG_LEVEL", "INFO"),
        )

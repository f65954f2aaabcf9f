"""Async client for the external reputation directory.

One method per endpoint. Methods raise on failure (``DirectoryError`` for
HTTP error statuses, ``httpx.HTTPError`` for transport problems,
``pydantic.ValidationError`` for malformed bodies); callers decide what a
failure means.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ethoslink.config import EngineConfig
from ethoslink.directory.wire import (
    ActivityPage,
    DirectoryUser,
    FarcasterUsernamesResponse,
    SeasonsResponse,
    UserList,
    VoteList,
    WireWeeklyXp,
)

logger = logging.getLogger(__name__)

DIRECTIONS = {
    "all": "all",
    "given": "given",
    "author": "given",
    "received": "received",
    "subject": "received",
}


class DirectoryError(Exception):
    """Raised when the directory answers with an error status."""

    def __init__(self, status: int, detail: str):
        self.status = status
        self.detail = detail
        super().__init__(f"[{status}] {detail}")


def _users(body: Any) -> list[DirectoryUser]:
    if not isinstance(body, list):
        return []
    return [DirectoryUser.model_validate(item) for item in body if isinstance(item, dict)]


class DirectoryClient:
    """Lightweight async client for the directory API.

    Pass ``http`` to share an ``httpx.AsyncClient`` (tests inject one bound
    to a mock transport); otherwise one is created and owned here.
    """

    def __init__(self, config: Optional[EngineConfig] = None, *, http: Optional[httpx.AsyncClient] = None):
        self.config = config or EngineConfig()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=self.config.http_timeout)
        self._headers = {
            "Content-Type": "application/json",
            "X-Ethos-Client": self.config.client_id,
        }

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    # -- internal --

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.config.base_url}{path}"
        r = await self._http.request(method, url, headers=self._headers, **kwargs)
        logger.debug("%s %s -> %d", method, path, r.status_code)
        if r.status_code >= 400:
            detail = r.text[:200] if r.text else r.reason_phrase
            raise DirectoryError(r.status_code, detail)
        if not r.content:
            return None
        return r.json()

    async def _post(self, path: str, body: dict) -> Any:
        return await self._request("POST", path, json=body)

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self._request("GET", path, params=params)

    # -- Users by identity class --

    async def users_by_addresses(self, addresses: list[str]) -> list[DirectoryUser]:
        return _users(await self._post("/users/by/address", {"addresses": addresses}))

    async def users_by_profile_ids(self, profile_ids: list[int]) -> list[DirectoryUser]:
        return _users(await self._post("/users/by/profile-id", {"profileIds": profile_ids}))

    async def users_by_user_ids(self, user_ids: list[int]) -> list[DirectoryUser]:
        return _users(await self._post("/users/by/ids", {"userIds": user_ids}))

    async def users_by_twitter(self, ids_or_usernames: list[str]) -> list[DirectoryUser]:
        return _users(await self._post("/users/by/x", {"accountIdsOrUsernames": ids_or_usernames}))

    async def users_by_discord(self, discord_ids: list[str]) -> list[DirectoryUser]:
        return _users(await self._post("/users/by/discord", {"discordIds": discord_ids}))

    async def users_by_telegram(self, telegram_ids: list[str]) -> list[DirectoryUser]:
        return _users(await self._post("/users/by/telegram", {"telegramIds": telegram_ids}))

    async def users_by_farcaster_ids(self, farcaster_ids: list[str]) -> list[DirectoryUser]:
        return _users(await self._post("/users/by/farcaster", {"farcasterIds": farcaster_ids}))

    async def users_by_farcaster_usernames(self, usernames: list[str]) -> FarcasterUsernamesResponse:
        body = await self._post("/users/by/farcaster/usernames", {"farcasterUsernames": usernames})
        return FarcasterUsernamesResponse.model_validate(body or {})

    # -- Discovery --

    async def search(self, query: str, limit: int = 10) -> list[DirectoryUser]:
        body = await self._get("/search", {"q": query, "limit": limit})
        return UserList.model_validate(body).users

    async def leaderboard(self, limit: int = 10, metric: str = "score") -> list[DirectoryUser]:
        if metric == "xp":
            body = await self._get("/xp/leaderboard", {"limit": limit})
        else:
            body = await self._get("/leaderboard", {"limit": limit})
        return UserList.model_validate(body).users

    # -- Activities --

    async def profile_activities(
        self,
        userkey: str,
        direction: str = "all",
        activity_types: Optional[list[str]] = None,
        limit: int = 50,
    ) -> ActivityPage:
        """Activities for one profile, newest first."""
        scope = DIRECTIONS.get(direction, "all")
        body: dict = {
            "userkey": userkey,
            "limit": limit,
            "offset": 0,
            "orderBy": {"field": "timestamp", "direction": "desc"},
        }
        if activity_types:
            body["filter"] = list(activity_types)
        return ActivityPage.model_validate(await self._post(f"/activities/profile/{scope}", body) or {})

    async def activity_feed(
        self,
        activity_types: Optional[list[str]] = None,
        limit: int = 50,
        day_range: Optional[int] = None,
    ) -> ActivityPage:
        body: dict = {"limit": limit}
        if activity_types:
            body["filter"] = list(activity_types)
        if day_range:
            body["dayRange"] = day_range
        return ActivityPage.model_validate(await self._post("/activities/feed", body) or {})

    async def activity(self, activity_type: str, activity_id: int) -> Optional[dict]:
        body = await self._get(f"/activities/{quote(activity_type, safe='')}/{int(activity_id)}")
        return body if isinstance(body, dict) and body else None

    async def votes(self, activity_type: str, activity_id: int) -> VoteList:
        body = await self._get("/votes", {"type": activity_type, "activityId": int(activity_id)})
        return VoteList.model_validate(body or {})

    async def review_between(self, author_userkey: str, subject_userkey: str) -> Optional[dict]:
        body = await self._get(
            "/reviews/latest/between",
            {"authorUserKey": author_userkey, "subjectUserKey": subject_userkey},
        )
        return body if isinstance(body, dict) and body else None

    # -- XP --

    async def xp_total(self, userkey: str) -> int:
        body = await self._get(f"/xp/user/{quote(userkey, safe='')}")
        return int(body) if isinstance(body, (int, float)) else 0

    async def seasons(self) -> SeasonsResponse:
        return SeasonsResponse.model_validate(await self._get("/xp/seasons") or {})

    async def season_xp(self, userkey: str, season_id: int) -> int:
        body = await self._get(f"/xp/user/{quote(userkey, safe='')}/season/{int(season_id)}")
        return int(body) if isinstance(body, (int, float)) else 0

    async def weekly_xp(self, userkey: str, season_id: int) -> list[WireWeeklyXp]:
        body = await self._get(f"/xp/user/{quote(userkey, safe='')}/season/{int(season_id)}/weekly")
        if not isinstance(body, list):
            return []
        return [WireWeeklyXp.model_validate(item) for item in body if isinstance(item, dict)]

    async def xp_rank(self, userkey: str) -> Optional[int]:
        body = await self._get(f"/xp/user/{quote(userkey, safe='')}/leaderboard-rank")
        return int(body) if isinstance(body, (int, float)) and body > 0 else None

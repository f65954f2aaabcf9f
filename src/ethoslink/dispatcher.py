"""
ethoslink.dispatcher — Execute an (intent, parameters) pair against the directory.

The language-model collaborator hands over an intent name and a parameter
map; every operation here answers with an ExecutionResult envelope and
never raises:

    missing required parameter  → success=False, names the parameter
    unknown identity            → success=False, "No profile found ..."
    unsupported intent          → success=False, names the intent
    anything unexpected         → success=False, "API call failed: ..."

Identity parameters go through normalize → ResolutionChain, wrapped by the
DegradationController so that the synthetic and static datasets can answer
when the live directory cannot. ``isRealData`` reports which tier answered.

Usage:
    async with IntentDispatcher(EngineConfig.from_env()) as dispatcher:
        result = await dispatcher.execute("user_profile", {"userkey": "cookedzera"})
        print(result.to_dict())
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from ethoslink.config import EngineConfig
from ethoslink.directory.client import DIRECTIONS, DirectoryClient
from ethoslink.directory.strategies import LOOKUP_ERRORS, ResolutionChain
from ethoslink.fallback import DegradationController, TierResult
from ethoslink.fallback_data import StaticStore, SyntheticDirectory
from ethoslink.identity import IdentityDescriptor, normalize
from ethoslink.log import bind_request
from ethoslink.models import ActivityRecord, ExecutionResult, UserRecord, WeeklySample
from ethoslink.temporal import Timeframe, aggregate, in_window, reputation_trend, window_start

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Intent(Enum):
    USER_PROFILE = "user_profile"
    USER_STATS = "user_stats"
    USER_REVIEWS = "user_reviews"
    USER_COMPARISON = "user_comparison"
    LEADERBOARD = "leaderboard"
    SEARCH_USERS = "search_users"
    USER_ACTIVITIES = "user_activities"
    ACTIVITY_HISTORY = "activity_history"
    ACTIVITY_FEED = "activity_feed"
    ACTIVITY_DETAILS = "activity_details"
    ACTIVITY_VOTES = "activity_votes"
    REVIEW_BETWEEN = "review_between"
    USER_NETWORKS = "user_networks"
    REPUTATION_TRENDS = "reputation_trends"


class MissingParameter(Exception):
    """A required parameter for the requested intent was not supplied."""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(f"{message} (missing parameter: {parameter})")


NETWORK_PREFIXES = (
    ("service:x.com:", "twitter"),
    ("service:farcaster:", "farcaster"),
    ("service:discord:", "discord"),
    ("service:telegram:", "telegram"),
    ("address:", "ethereum"),
)

MAX_LIMIT = 100
HISTORY_LIMIT = 100


# ─── Parameter helpers ─────────────────────────────────────────────

def _param(params: Mapping[str, Any], *names: str) -> Any:
    """First non-empty value among *names* (aliases), strings stripped."""
    for name in names:
        value = params.get(name)
        if isinstance(value, str):
            value = value.strip()
        if value not in (None, "", [], ()):
            return value
    return None


def _require(params: Mapping[str, Any], names: tuple[str, ...], message: str) -> Any:
    value = _param(params, *names)
    if value is None:
        raise MissingParameter(names[0], message)
    return value


def _int(value: Any, default: int, *, low: int = 1, high: int = MAX_LIMIT) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(number, high))


def _list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v).strip() for v in value if str(v).strip()]


# ─── Pure computations ─────────────────────────────────────────────

def compare_records(a: UserRecord, b: UserRecord) -> dict:
    """Signed deltas ``a - b``. Rank is reversed: a lower rank number is better."""
    rank_diff = None
    if a.rank is not None and b.rank is not None:
        rank_diff = b.rank - a.rank
    return {
        "scoreDiff": a.score - b.score,
        "reviewDiff": a.review_count - b.review_count,
        "vouchDiff": a.vouch_count - b.vouch_count,
        "xpDiff": a.xp_total - b.xp_total,
        "rankDiff": rank_diff,
    }


def networks_from_keys(userkeys) -> dict:
    networks: dict[str, dict] = {}
    for key in userkeys:
        for prefix, network in NETWORK_PREFIXES:
            if key.startswith(prefix) and network not in networks:
                networks[network] = {"userkey": key, "connected": True}
    return networks


class IntentDispatcher:
    """Stateless entry point mapping intents onto directory operations.

    Args:
        config: Engine configuration (defaults to ``EngineConfig()``).
        client: Directory client; created from *config* when omitted.
        synthetic: Synthetic dataset for the second degradation tier.
        static: Static store for the third degradation tier.
        clock: Callable returning the current aware datetime.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        client: Optional[DirectoryClient] = None,
        synthetic: Optional[SyntheticDirectory] = None,
        static: Optional[StaticStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or EngineConfig()
        self._owns_client = client is None
        self.client = client or DirectoryClient(self.config)
        self.chain = ResolutionChain(self.client)
        self.controller = DegradationController(
            synthetic=self.config.synthetic_tier, static=self.config.static_tier,
        )
        self.synthetic = synthetic or SyntheticDirectory()
        self.static = static or StaticStore()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._handlers: dict[str, Callable[[dict], Awaitable[ExecutionResult]]] = {
            Intent.USER_PROFILE.value: self.user_profile,
            Intent.USER_STATS.value: self.user_stats,
            Intent.USER_REVIEWS.value: self.user_reviews,
            Intent.USER_COMPARISON.value: self.user_comparison,
            Intent.LEADERBOARD.value: self.leaderboard,
            Intent.SEARCH_USERS.value: self.search_users,
            Intent.USER_ACTIVITIES.value: self.user_activities,
            Intent.ACTIVITY_HISTORY.value: self.activity_history,
            Intent.ACTIVITY_FEED.value: self.activity_feed,
            Intent.ACTIVITY_DETAILS.value: self.activity_details,
            Intent.ACTIVITY_VOTES.value: self.activity_votes,
            Intent.REVIEW_BETWEEN.value: self.review_between,
            Intent.USER_NETWORKS.value: self.user_networks,
            Intent.REPUTATION_TRENDS.value: self.reputation_trends,
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    @property
    def supported_intents(self) -> list[str]:
        return list(self._handlers)

    # ─── Entry point ───────────────────────────────────────────────

    async def execute(self, intent: Any, parameters: Optional[Mapping[str, Any]] = None) -> ExecutionResult:
        """Run *intent* with *parameters*. Always returns an envelope."""
        name = intent.value if isinstance(intent, Intent) else str(intent or "").strip()
        bind_request(name)
        handler = self._handlers.get(name)
        if handler is None:
            logger.info("Unsupported intent %r", name)
            return ExecutionResult.failure(f'Intent "{name}" not supported')

        try:
            params = dict(parameters or {})
            logger.info("Executing %s", name, extra={"parameters": params})
            if self.config.request_timeout:
                return await asyncio.wait_for(handler(params), self.config.request_timeout)
            return await handler(params)
        except MissingParameter as e:
            return ExecutionResult.failure(str(e))
        except asyncio.TimeoutError:
            logger.warning("Intent %s timed out after %.1fs", name, self.config.request_timeout)
            return ExecutionResult.failure("request timed out")
        except Exception as e:
            logger.exception("Intent %s failed", name)
            return ExecutionResult.failure(f"API call failed: {e}")

    # ─── Tier plumbing ─────────────────────────────────────────────

    def _now(self) -> datetime:
        return self._clock()

    async def resolve(self, descriptor: IdentityDescriptor) -> Optional[TierResult]:
        """Resolve one identity across all degradation tiers."""
        return await self.controller.run(
            live=lambda: self.chain.resolve(descriptor),
            synthetic=lambda: self.synthetic.find(descriptor),
            static=lambda: self.static.find(descriptor),
            label=f"profile {descriptor.normalized_value!r}",
        )

    async def _for_user(
        self,
        descriptor: IdentityDescriptor,
        label: str,
        live: Callable[[UserRecord], Awaitable[Any]],
        synthetic: Optional[Callable[[UserRecord], Any]] = None,
        static: Optional[Callable[[UserRecord], Any]] = None,
    ) -> Optional[TierResult]:
        """Resolve within each tier, then build that tier's payload."""

        async def live_tier():
            record = await self.chain.resolve(descriptor)
            return None if record is None else await live(record)

        def tier_from(store, build):
            if build is None:
                return None

            def run():
                record = store.find(descriptor)
                return None if record is None else build(record)
            return run

        return await self.controller.run(
            live=live_tier,
            synthetic=tier_from(self.synthetic, synthetic),
            static=tier_from(self.static, static),
            label=f"{label} {descriptor.normalized_value!r}",
        )

    @staticmethod
    def _not_found(userkey: str) -> ExecutionResult:
        return ExecutionResult.failure(f'No profile found for "{userkey}"')

    @staticmethod
    def _ok(result: TierResult, message: str, data: Any = None) -> ExecutionResult:
        return ExecutionResult(
            success=True,
            data=result.value if data is None else data,
            message=message,
            is_real_data=result.is_real_data,
        )

    # ─── Live helpers ──────────────────────────────────────────────

    async def _soft(self, what: str, userkey: str, call: Awaitable[T]) -> Optional[T]:
        try:
            return await call
        except LOOKUP_ERRORS as e:
            logger.warning("%s unavailable for %s: %s", what, userkey, e)
            return None

    async def _live_season(self, userkey: str) -> tuple[list, Optional[int]]:
        """Weekly samples and season XP for the current season."""
        seasons = await self._soft("Seasons", userkey, self.client.seasons())
        if seasons is None or seasons.current_season is None:
            return [], None
        season_id = seasons.current_season.id
        weekly = await self._soft("Weekly XP", userkey, self.client.weekly_xp(userkey, season_id))
        season_xp = await self._soft("Season XP", userkey, self.client.season_xp(userkey, season_id))
        return [w.to_sample() for w in weekly or []], season_xp

    async def _live_activities(self, userkey: str, direction: str, types: Optional[list[str]], limit: int) -> list[ActivityRecord]:
        page = await self.client.profile_activities(userkey, direction, types, limit)
        return [a.to_record() for a in page.values]

    async def _live_history(self, record: UserRecord, types: Optional[list[str]]) -> tuple[list, list]:
        given, received = await asyncio.gather(
            self._live_activities(record.primary_key, "given", types, HISTORY_LIMIT),
            self._live_activities(record.primary_key, "received", types, HISTORY_LIMIT),
        )
        return given, received

    # ─── Operations ────────────────────────────────────────────────

    async def user_profile(self, params: dict) -> ExecutionResult:
        userkey = _require(params, ("userkey", "user"), "User identifier required")
        result = await self.resolve(normalize(str(userkey)))
        if result is None:
            return self._not_found(userkey)
        return self._ok(result, "Profile data retrieved successfully", result.value.to_dict())

    async def user_stats(self, params: dict) -> ExecutionResult:
        userkey = _require(params, ("userkey", "user"), "User identifier required")
        timeframe = Timeframe.parse(_param(params, "timeframe", "period") or "week", default=Timeframe.ALL)
        descriptor = normalize(str(userkey))
        now = self._now()

        def payload(
            record: UserRecord,
            series: list,
            xp_rank: Optional[int] = None,
            season_xp: Optional[int] = None,
            total_xp: Optional[int] = None,
        ) -> dict:
            total = record.xp_total if total_xp is None else total_xp
            summary = aggregate(series, timeframe, lifetime_total=total, now=now)
            samples = [s for s in series if isinstance(s, WeeklySample)]
            data = record.to_dict()
            data.update(summary.to_dict())
            data["totalXp"] = total
            if season_xp is None and samples and samples[-1].cumulative_xp:
                season_xp = samples[-1].cumulative_xp
            data["seasonXp"] = season_xp
            data["weeklyXp"] = [s.to_dict() for s in samples[-4:]]
            data["xpRank"] = xp_rank if xp_rank is not None else record.rank
            return data

        async def live(record: UserRecord):
            key = record.primary_key
            series, season_xp = await self._live_season(key)
            if not series:
                try:
                    series = await self._live_activities(key, "all", None, 50)
                except LOOKUP_ERRORS as e:
                    logger.warning("Activity history unavailable for %s: %s", key, e)
                    series = []
            total_xp = None
            if not record.xp_total:
                total_xp = await self._soft("Total XP", key, self.client.xp_total(key))
            xp_rank = await self._soft("XP rank", key, self.client.xp_rank(key))
            return payload(record, series, xp_rank, season_xp, total_xp)

        def synthetic(record: UserRecord):
            series = self.synthetic.weekly_xp(descriptor) or self.synthetic.activities(descriptor, 50, now)
            return payload(record, series)

        def static(record: UserRecord):
            return payload(record, self.static.weekly_xp(descriptor))

        result = await self._for_user(descriptor, "stats", live, synthetic, static)
        if result is None:
            return self._not_found(userkey)
        return self._ok(result, f"Statistics retrieved successfully ({timeframe.value})")

    async def user_reviews(self, params: dict) -> ExecutionResult:
        userkey = _require(params, ("userkey", "user"), "User identifier required")
        limit = _int(_param(params, "limit"), 50)
        descriptor = normalize(str(userkey))
        now = self._now()

        def payload(record: UserRecord, reviews: list[ActivityRecord]) -> dict:
            return {
                "userkey": record.primary_key,
                "reviews": [r.to_dict() for r in reviews[:limit]],
                "count": min(len(reviews), limit),
            }

        async def live(record: UserRecord):
            reviews = await self._live_activities(record.primary_key, "received", ["review"], limit)
            return payload(record, reviews)

        result = await self._for_user(
            descriptor, "reviews", live,
            synthetic=lambda record: payload(record, self.synthetic.reviews(descriptor, now)),
            static=lambda record: payload(record, self.static.reviews(descriptor, now)),
        )
        if result is None:
            return self._not_found(userkey)
        return self._ok(result, f"Retrieved {result.value['count']} reviews")

    async def user_comparison(self, params: dict) -> ExecutionResult:
        userkeys = _list(_param(params, "userkeys", "users"))
        if len(userkeys) < 2:
            raise MissingParameter("userkeys", "Two user identifiers required for comparison")
        first, second = userkeys[0], userkeys[1]

        res_a, res_b = await asyncio.gather(
            self.resolve(normalize(first)),
            self.resolve(normalize(second)),
        )
        missing = [key for key, res in ((first, res_a), (second, res_b)) if res is None]
        if missing:
            names = ", ".join(f'"{m}"' for m in missing)
            return ExecutionResult.failure(f"No profile found for {names}")

        a, b = res_a.value, res_b.value
        return ExecutionResult(
            success=True,
            data={
                "profile1": a.to_dict(),
                "profile2": b.to_dict(),
                "comparison": compare_records(a, b),
            },
            message="Comparison completed successfully",
            is_real_data=res_a.is_real_data and res_b.is_real_data,
        )

    async def leaderboard(self, params: dict) -> ExecutionResult:
        limit = _int(_param(params, "limit"), 10)
        metric = str(_param(params, "metric") or "score").lower()
        metric = "xp" if metric in ("xp", "experience") else "score"

        async def live():
            return [u.to_record().to_dict() for u in await self.client.leaderboard(limit, metric)][:limit]

        result = await self.controller.run(
            live=live,
            synthetic=lambda: [r.to_dict() for r in self.synthetic.leaderboard(limit, metric)],
            static=lambda: [r.to_dict() for r in self.static.leaderboard(limit, metric)],
            label="leaderboard",
        )
        if result is None:
            return ExecutionResult.failure("No leaderboard data available")
        return self._ok(result, f"Retrieved top {len(result.value)} users by {metric}")

    async def search_users(self, params: dict) -> ExecutionResult:
        query = str(_require(params, ("query", "q"), "Search query required"))
        limit = _int(_param(params, "limit"), 10)

        async def live():
            return [u.to_record().to_dict() for u in await self.client.search(query, limit)]

        result = await self.controller.run(
            live=live,
            synthetic=lambda: [r.to_dict() for r in self.synthetic.search(query, limit)],
            static=lambda: [r.to_dict() for r in self.static.search(query, limit)],
            label=f"search {query!r}",
        )
        if result is None:
            return ExecutionResult.failure(f'No users found matching "{query}"')
        return self._ok(result, f'Found {len(result.value)} users matching "{query}"')

    async def user_activities(self, params: dict) -> ExecutionResult:
        userkey = _require(params, ("userkey", "user"), "User identifier required")
        direction = DIRECTIONS.get(str(_param(params, "direction") or "all").lower(), "all")
        activity_type = _param(params, "activity_type", "activityType")
        types = [str(activity_type).lower()] if activity_type else None
        limit = _int(_param(params, "limit"), 50)
        descriptor = normalize(str(userkey))
        now = self._now()

        def payload(record: UserRecord, activities: list[ActivityRecord]) -> dict:
            return {
                "userkey": record.primary_key,
                "direction": direction,
                "activities": [a.to_dict() for a in activities[:limit]],
                "total": len(activities[:limit]),
            }

        async def live(record: UserRecord):
            return payload(record, await self._live_activities(record.primary_key, direction, types, limit))

        def synthetic(record: UserRecord):
            activities = self.synthetic.activities(descriptor, limit, now)
            if types:
                activities = [a for a in activities if a.activity_type.value in types]
            return payload(record, activities)

        result = await self._for_user(descriptor, "activities", live, synthetic)
        if result is None:
            return self._not_found(userkey)
        return self._ok(result, f"Retrieved {result.value['total']} activities")

    async def activity_history(self, params: dict) -> ExecutionResult:
        userkey = _require(params, ("userkey", "user"), "User identifier required")
        timeframe = Timeframe.parse(_param(params, "timeframe", "period") or "month", default=Timeframe.MONTH)
        activity_type = _param(params, "activity_type", "activityType")
        types = [str(activity_type).lower()] if activity_type else None
        descriptor = normalize(str(userkey))
        now = self._now()
        start = window_start(timeframe, now)

        def payload(record: UserRecord, given: list, received: list) -> dict:
            given = in_window(given, start, now)
            received = in_window(received, start, now)
            merged = sorted(given + received, key=lambda a: a.timestamp, reverse=True)
            return {
                "userkey": record.primary_key,
                "activities": [a.to_dict() for a in merged],
                "summary": {
                    "timeframe": timeframe.value,
                    "periodStart": start.isoformat(),
                    "periodEnd": now.isoformat(),
                    "totalActivities": len(merged),
                    "given": len(given),
                    "received": len(received),
                },
            }

        async def live(record: UserRecord):
            given, received = await self._live_history(record, types)
            return payload(record, given, received)

        def synthetic(record: UserRecord):
            received = self.synthetic.activities(descriptor, HISTORY_LIMIT, now)
            if types:
                received = [a for a in received if a.activity_type.value in types]
            return payload(record, [], received)

        result = await self._for_user(descriptor, "history", live, synthetic)
        if result is None:
            return self._not_found(userkey)
        total = result.value["summary"]["totalActivities"]
        return self._ok(result, f"Retrieved {total} activities for the last {timeframe.value}")

    async def activity_feed(self, params: dict) -> ExecutionResult:
        types = _list(_param(params, "activity_types", "activityTypes", "activity_type", "activityType")) or None
        limit = _int(_param(params, "limit"), 50)
        day_range = _int(_param(params, "day_range", "dayRange"), 0, low=0, high=3650) or None

        async def live():
            page = await self.client.activity_feed(types, limit, day_range)
            if not page.values:
                return None
            return {"activities": [a.to_record().to_dict() for a in page.values], "total": page.total or len(page.values)}

        result = await self.controller.run(live=live, label="activity feed")
        if result is None:
            return ExecutionResult.failure("No recent activity found")
        return self._ok(result, f"Retrieved {len(result.value['activities'])} recent activities")

    def _activity_ref(self, params: dict) -> tuple[str, Optional[int]]:
        activity_type = str(_require(params, ("activity_type", "activityType", "type"), "Activity type required")).lower()
        raw_id = _require(params, ("activity_id", "activityId", "id"), "Activity id required")
        try:
            return activity_type, int(raw_id)
        except (TypeError, ValueError):
            return activity_type, None

    async def activity_details(self, params: dict) -> ExecutionResult:
        activity_type, activity_id = self._activity_ref(params)
        if activity_id is None:
            return ExecutionResult.failure("Activity id must be numeric")

        result = await self.controller.run(
            live=lambda: self.client.activity(activity_type, activity_id),
            label=f"activity {activity_type}/{activity_id}",
        )
        if result is None:
            return ExecutionResult.failure(f"Activity {activity_type} #{activity_id} not found")
        return self._ok(result, f"Retrieved {activity_type} #{activity_id}")

    async def activity_votes(self, params: dict) -> ExecutionResult:
        activity_type, activity_id = self._activity_ref(params)
        if activity_id is None:
            return ExecutionResult.failure("Activity id must be numeric")

        async def live():
            votes = await self.client.votes(activity_type, activity_id)
            return {
                "activityType": activity_type,
                "activityId": activity_id,
                "votes": votes.values,
                "total": votes.total or len(votes.values),
            }

        result = await self.controller.run(live=live, label=f"votes {activity_type}/{activity_id}")
        if result is None:
            return ExecutionResult.failure(f"No votes found for {activity_type} #{activity_id}")
        return self._ok(result, f"Retrieved {result.value['total']} votes")

    async def review_between(self, params: dict) -> ExecutionResult:
        author = str(_require(params, ("author", "authorUserKey", "author_userkey"), "Review author required"))
        subject = str(_require(params, ("subject", "subjectUserKey", "subject_userkey"), "Review subject required"))
        author_desc, subject_desc = normalize(author), normalize(subject)
        now = self._now()

        async def live():
            a, s = await asyncio.gather(self.chain.resolve(author_desc), self.chain.resolve(subject_desc))
            if a is None or s is None:
                return None
            review = await self.client.review_between(a.primary_key, s.primary_key)
            if review is None:
                return None
            return {"author": a.primary_key, "subject": s.primary_key, "review": review}

        def synthetic():
            a, s = self.synthetic.find(author_desc), self.synthetic.find(subject_desc)
            if a is None or s is None:
                return None
            author_keys = {k.lower() for k in a.canonical_keys} | {(a.address or "").lower()}
            for review in self.synthetic.reviews(subject_desc, now):
                if review.actor.lower() in author_keys:
                    return {"author": a.primary_key, "subject": s.primary_key, "review": review.to_dict()}
            return None

        result = await self.controller.run(live=live, synthetic=synthetic, label=f"review {author}->{subject}")
        if result is None:
            return ExecutionResult.failure(f'No review found from "{author}" to "{subject}"')
        return self._ok(result, "Review retrieved successfully")

    async def user_networks(self, params: dict) -> ExecutionResult:
        userkey = _require(params, ("userkey", "user"), "User identifier required")
        result = await self.resolve(normalize(str(userkey)))
        if result is None:
            return self._not_found(userkey)
        record = result.value
        networks = networks_from_keys(record.canonical_keys)
        return self._ok(
            result,
            f"Found {len(networks)} connected networks",
            {"userkey": record.primary_key, "networks": networks},
        )

    async def reputation_trends(self, params: dict) -> ExecutionResult:
        userkey = _require(params, ("userkey", "user"), "User identifier required")
        timeframe = Timeframe.parse(_param(params, "timeframe", "period") or "month", default=Timeframe.MONTH)
        descriptor = normalize(str(userkey))
        now = self._now()
        start = window_start(timeframe, now)

        def payload(record: UserRecord, activities: list) -> dict:
            trend = reputation_trend(in_window(activities, start, now), timeframe)
            trend["userkey"] = record.primary_key
            return trend

        async def live(record: UserRecord):
            given, received = await self._live_history(record, None)
            return payload(record, given + received)

        def synthetic(record: UserRecord):
            return payload(record, self.synthetic.activities(descriptor, HISTORY_LIMIT, now))

        result = await self._for_user(descriptor, "trends", live, synthetic)
        if result is None:
            return self._not_found(userkey)
        points = len(result.value["dataPoints"])
        return self._ok(result, f"Computed {points} trend points for the last {timeframe.value}")

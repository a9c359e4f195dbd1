"""
Report pipeline: connect -> aggregate -> render.

Both reports return a ReportResult instead of raising; the delivery adapters
decide how a failure is shown. A connection is opened per report and closed on
every exit path.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional

from . import storage
from .clock import Clock
from .config import Settings
from .exceptions import DataSourceError, TransportError
from .metrics import MetricAggregator, Metrics, ReportWindows
from .report import render_new_users, render_stats
from .storage import RecordStore

logger = logging.getLogger(__name__)

STATS_FAILURE = "Failed to fetch statistics. Please check the logs for more information."
NEW_USERS_FAILURE = "Failed to fetch today's new users. Please check the logs."

TRANSPORT = "transport"
QUERY = "query"

Connector = Callable[[], AsyncContextManager[RecordStore]]


@dataclass(frozen=True)
class ReportFailure:
    kind: str  # TRANSPORT or QUERY
    error: DataSourceError

    @classmethod
    def from_error(cls, error: DataSourceError) -> "ReportFailure":
        return cls(TRANSPORT if isinstance(error, TransportError) else QUERY, error)


@dataclass(frozen=True)
class ReportResult:
    text: Optional[str] = None
    metrics: Optional[Metrics] = None
    users: List[Dict[str, Any]] = field(default_factory=list)
    failure: Optional[ReportFailure] = None
    failure_message: str = STATS_FAILURE

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def message(self) -> str:
        """Text to show a chat user: the report, or the fixed failure string"""
        if self.ok and self.text is not None:
            return self.text
        return self.failure_message


def _log_failure(what: str, error: DataSourceError) -> None:
    cause = error.__cause__ or error
    logger.error("MongoDB error while fetching %s:", what)
    logger.error("- Error Name: %s", type(cause).__name__)
    logger.error("- Error Message: %s", cause)
    logger.error("- Error Code: %s", error.code)
    logger.error("- Full Error: %r", cause, exc_info=error)


class StatsService:
    def __init__(self, settings: Settings, connect: Optional[Connector] = None, clock: Optional[Clock] = None):
        self.settings = settings
        self._connect = connect or (
            lambda: storage.connect(settings.mongodb_uri, settings.database_name)
        )
        self.clock = clock or Clock(settings.zoneinfo)

    async def build_stats(self) -> ReportResult:
        try:
            async with self._connect() as store:
                windows = ReportWindows.compute(self.clock)
                metrics = await MetricAggregator(store, self.clock).collect(windows)
        except DataSourceError as e:
            _log_failure("statistics", e)
            return ReportResult(failure=ReportFailure.from_error(e), failure_message=STATS_FAILURE)

        text = render_stats(metrics, windows.start_of_today, self.clock.now())
        return ReportResult(text=text, metrics=metrics)

    async def build_new_users(self) -> ReportResult:
        try:
            async with self._connect() as store:
                aggregator = MetricAggregator(store, self.clock)
                windows = ReportWindows.compute(self.clock)
                if logger.isEnabledFor(logging.DEBUG):
                    await self._log_recent_sample(aggregator, windows)
                users = await aggregator.today_new_users(windows, limit=self.settings.new_users_limit)
        except DataSourceError as e:
            _log_failure("today's new users", e)
            return ReportResult(failure=ReportFailure.from_error(e), failure_message=NEW_USERS_FAILURE)

        text = render_new_users(users, self.clock.tz)
        return ReportResult(text=text, users=users, failure_message=NEW_USERS_FAILURE)

    async def get_stats(self) -> str:
        return (await self.build_stats()).message

    async def get_today_new_users(self) -> str:
        return (await self.build_new_users()).message

    async def check_connection(self) -> List[str]:
        """Startup diagnostic: log the collections the bot can see"""
        try:
            async with self._connect() as store:
                names = await store.collection_names()
        except DataSourceError as e:
            _log_failure("collection list", e)
            return []
        logger.info("Successfully connected to MongoDB, collections: %s", sorted(names))
        return names

    @staticmethod
    async def _log_recent_sample(aggregator: MetricAggregator, windows: ReportWindows) -> None:
        try:
            sample = await aggregator.recent_users_sample(windows)
        except DataSourceError as e:
            # diagnostic only, the listing still goes out
            logger.warning("Could not fetch recent users sample: %s", e)
            return
        logger.debug("Recent users (last 7 days): %d", len(sample))
        for i, user in enumerate(sample, start=1):
            logger.debug(
                "Recent user %d: email=%s createdAt=%r (%s) created_at=%r (%s)",
                i,
                user.get("email"),
                user.get("createdAt"),
                type(user.get("createdAt")).__name__,
                user.get("created_at"),
                type(user.get("created_at")).__name__,
            )

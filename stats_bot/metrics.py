from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from .clock import Clock, TimeWindow
from .schema import (
    CREATED,
    DELETED,
    LAST_ACTIVE,
    PLAN,
    TRIAL_PLAN,
    VERIFIED,
    all_of,
    equals_predicate,
    newest_first,
    not_deleted_predicate,
    window_predicate,
)
from .storage import COMMENTS, GUESTS, PENDING_SIGNUPS, USERS, WEBSITES, RecordStore

logger = logging.getLogger(__name__)

ONLINE_THRESHOLD = timedelta(minutes=5)
RECENT_PERIOD = timedelta(days=7)

USER_LISTING_FIELDS = [
    "email",
    "name",
    "username",
    "createdAt",
    "created_at",
    "plan",
    "planType",
    "emailVerified",
    "email_verified",
    "lastActive",
    "last_active",
    "websites_count",
]


@dataclass(frozen=True)
class ReportWindows:
    """All time windows of one run, derived from a single reading of the clock"""
    now: datetime
    start_of_today: datetime
    yesterday: TimeWindow
    today: TimeWindow
    before_yesterday: TimeWindow
    online: TimeWindow
    last_7_days: TimeWindow

    @classmethod
    def compute(cls, clock: Clock) -> "ReportWindows":
        now = clock.now()
        start_of_today = clock.start_of_day(now)
        start_of_yesterday = clock.add_days(start_of_today, -1)
        return cls(
            now=now,
            start_of_today=start_of_today,
            yesterday=TimeWindow(
                start_of_yesterday,
                start_of_today - timedelta(milliseconds=1),
                end_inclusive=True,
            ),
            today=TimeWindow(start_of_today, clock.add_days(start_of_today, 1)),
            before_yesterday=TimeWindow(end=start_of_yesterday),
            online=TimeWindow(start=now - ONLINE_THRESHOLD),
            last_7_days=TimeWindow(now - RECENT_PERIOD, now, end_inclusive=True),
        )


@dataclass(frozen=True)
class Metrics:
    total_users: int
    users_created_yesterday: int
    online_users: int
    trial_users: int
    verified_users: int
    unverified_users: int
    total_websites: int
    total_comments: int
    total_guests: int
    total_pending_signups: int
    users_before_yesterday: int
    users_lost_yesterday: int
    new_users_today: int
    new_websites_today: int
    new_comments_today: int
    new_guests_today: int
    new_pending_signups_today: int
    new_trial_users_today: int
    new_verified_users_today: int
    new_unverified_users_today: int
    generated_at: Optional[datetime] = None


def metric_queries(w: ReportWindows) -> List[Tuple[str, str, Dict[str, Any]]]:
    """(metric, collection, filter) for every counted metric"""
    active = not_deleted_predicate()
    trial = equals_predicate(PLAN, TRIAL_PLAN)
    verified = equals_predicate(VERIFIED, True)
    unverified = equals_predicate(VERIFIED, False)
    created_today = window_predicate(CREATED, w.today)

    return [
        ("total_users", USERS, {}),
        ("users_created_yesterday", USERS, window_predicate(CREATED, w.yesterday)),
        ("online_users", USERS, window_predicate(LAST_ACTIVE, w.online)),
        ("trial_users", USERS, all_of(trial, active)),
        ("verified_users", USERS, all_of(verified, active)),
        ("unverified_users", USERS, all_of(unverified, active)),
        ("total_websites", WEBSITES, {}),
        ("total_comments", COMMENTS, {}),
        ("total_guests", GUESTS, {}),
        ("total_pending_signups", PENDING_SIGNUPS, {}),
        ("users_before_yesterday", USERS, window_predicate(CREATED, w.before_yesterday)),
        ("users_lost_yesterday", USERS, window_predicate(DELETED, w.yesterday)),
        ("new_users_today", USERS, all_of(created_today, active)),
        ("new_websites_today", WEBSITES, created_today),
        ("new_comments_today", COMMENTS, created_today),
        ("new_guests_today", GUESTS, created_today),
        ("new_pending_signups_today", PENDING_SIGNUPS, created_today),
        ("new_trial_users_today", USERS, all_of(trial, created_today, active)),
        ("new_verified_users_today", USERS, all_of(verified, created_today, active)),
        ("new_unverified_users_today", USERS, all_of(unverified, created_today, active)),
    ]


class MetricAggregator:
    def __init__(self, store: RecordStore, clock: Clock):
        self.store = store
        self.clock = clock

    async def collect(self, windows: Optional[ReportWindows] = None) -> Metrics:
        w = windows or ReportWindows.compute(self.clock)
        values: Dict[str, Any] = {}
        for name, collection, predicate in metric_queries(w):
            values[name] = await self.store.count(collection, predicate)
            logger.debug("metric %s = %s", name, values[name])
        return Metrics(generated_at=w.now, **values)

    async def today_new_users(
        self,
        windows: Optional[ReportWindows] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        w = windows or ReportWindows.compute(self.clock)
        users = await self.store.find(
            USERS,
            all_of(window_predicate(CREATED, w.today), not_deleted_predicate()),
            projection=USER_LISTING_FIELDS,
            sort=newest_first(CREATED),
            limit=limit,
        )
        logger.debug("found %d users created today", len(users))
        return users

    async def recent_users_sample(
        self,
        windows: Optional[ReportWindows] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """Newest users of the last 7 days, for diagnosing field/encoding drift"""
        w = windows or ReportWindows.compute(self.clock)
        return await self.store.find(
            USERS,
            all_of(window_predicate(CREATED, w.last_7_days), not_deleted_predicate()),
            projection=USER_LISTING_FIELDS,
            sort=newest_first(CREATED),
            limit=limit,
        )

"""
Tests for report rendering
"""
from dataclasses import replace
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from stats_bot.metrics import Metrics
from stats_bot.report import (
    NO_NEW_USERS,
    derive_rates,
    format_date,
    format_datetime,
    percentage,
    render_new_users,
    render_stats,
)

BERLIN = ZoneInfo("Europe/Berlin")


def make_metrics(**overrides) -> Metrics:
    values = dict(
        total_users=100,
        users_created_yesterday=4,
        online_users=3,
        trial_users=20,
        verified_users=70,
        unverified_users=25,
        total_websites=50,
        total_comments=400,
        total_guests=12,
        total_pending_signups=6,
        users_before_yesterday=90,
        users_lost_yesterday=2,
        new_users_today=5,
        new_websites_today=2,
        new_comments_today=10,
        new_guests_today=1,
        new_pending_signups_today=2,
        new_trial_users_today=3,
        new_verified_users_today=4,
        new_unverified_users_today=1,
    )
    values.update(overrides)
    return Metrics(**values)


class TestRates:
    def test_percentage(self):
        assert percentage(5, 100) == "5.00"
        assert percentage(1, 3) == "33.33"
        assert percentage(2, 3) == "66.67"

    @pytest.mark.parametrize("part", [0, 7])
    def test_zero_denominator_is_zero(self, part):
        rate = percentage(part, 0)
        assert rate == 0
        assert isinstance(rate, int)

    def test_all_rates_zero_on_empty_totals(self):
        rates = derive_rates(make_metrics(
            total_users=0, total_websites=0, total_comments=0, users_before_yesterday=0,
        ))
        assert (rates.churn, rates.user_growth, rates.website_growth, rates.comment_growth) == (0, 0, 0, 0)

    def test_user_growth(self):
        assert derive_rates(make_metrics(total_users=100, new_users_today=5)).user_growth == "5.00"

    def test_churn_ignores_losses_without_base(self):
        assert derive_rates(make_metrics(users_before_yesterday=0, users_lost_yesterday=9)).churn == 0

    def test_derived(self):
        rates = derive_rates(make_metrics())
        assert rates.churn == "2.22"
        assert rates.website_growth == "4.00"
        assert rates.comment_growth == "2.50"


class TestFormatting:
    def test_date(self):
        assert format_date(datetime(2024, 5, 1)) == "5/1/2024"

    def test_datetime(self):
        assert format_datetime(datetime(2024, 5, 1, 13, 5, 9)) == "5/1/2024, 1:05:09 PM"
        assert format_datetime(datetime(2024, 12, 31, 0, 0, 0)) == "12/31/2024, 12:00:00 AM"
        assert format_datetime(datetime(2024, 1, 2, 12, 30, 0)) == "1/2/2024, 12:30:00 PM"


class TestRenderStats:
    def test_layout(self):
        day = datetime(2024, 5, 1, tzinfo=BERLIN)
        text = render_stats(make_metrics(), day, datetime(2024, 5, 1, 9, 0, 0, tzinfo=BERLIN))

        assert text == "\n".join([
            "📊 Daily SaaS Statistics Report",
            "",
            "🚀 TODAY'S ACTIVITY (5/1/2024)",
            "• New Users: 5 (+5.00% growth)",
            "• New Websites: 2 (+4.00% growth)",
            "• New Comments: 10 (+2.50% growth)",
            "• New Trial Users: 3",
            "• New Verified Users: 4",
            "• New Unverified Users: 1",
            "• New Guests: 1",
            "• New Pending Signups: 2",
            "",
            "👥 TOTAL USER METRICS",
            "• Total Users: 100 (+4 yesterday)",
            "• Currently Online: 3",
            "• Trial Users: 20",
            "• Verified Users: 70",
            "• Unverified Users: 25",
            "• Total Guests: 12",
            "• Pending Signups: 6",
            "",
            "🌐 PLATFORM OVERVIEW",
            "• Total Websites: 50",
            "• Total Comments: 400",
            "• Daily Churn Rate: 2.22%",
            "",
            "📈 KEY INSIGHTS",
            "• User Conversion: 4/5 verified today",
            "• Trial Adoption: 3/5 started trials",
            "• Engagement: 10 comments from 5 new users",
            "",
            "Generated at: 5/1/2024, 9:00:00 AM",
        ])

    def test_zero_rates_render_without_decimals(self):
        day = datetime(2024, 5, 1, tzinfo=BERLIN)
        empty = replace(make_metrics(), total_users=0, new_users_today=0, users_before_yesterday=0)
        text = render_stats(empty, day, day)
        assert "• New Users: 0 (+0% growth)" in text
        assert "• Daily Churn Rate: 0%" in text


class TestRenderNewUsers:
    def test_empty(self):
        assert render_new_users([]) == NO_NEW_USERS
        assert render_new_users(iter(())) == "No new users registered today."

    def test_mixed_batch(self):
        created = datetime(2024, 5, 1, 8, 15, 0)  # naive UTC from the driver
        users = [
            {"email": "ann@example.com", "name": "Ann", "createdAt": created,
             "emailVerified": True, "plan": "trial", "websites_count": 2,
             "lastActive": "2024-05-01T09:00:00.000Z"},
            {"email": "bob@example.com", "username": "bob", "created_at": "2024-05-01T07:00:00.000Z",
             "email_verified": False, "planType": "pro", "websites_count": 1},
            {"email": "cy@example.com", "createdAt": 1714550400000},
        ]

        text = render_new_users(users, BERLIN)
        header, *blocks = text.split("\n\n")

        assert header == "📊 Today's New Users Report (3 total)"
        assert len(blocks) == 3
        assert blocks[0] == "\n".join([
            "1. Ann (ann@example.com)",
            "   Registered: 5/1/2024, 10:15:00 AM",
            "   Status: ✅ Verified",
            "   Type: 🔄 Trial User",
            "   Plan: trial",
            "   Websites: 2",
            "   Last Active: 5/1/2024, 11:00:00 AM",
        ])
        assert blocks[1] == "\n".join([
            "2. bob (bob@example.com)",
            "   Registered: 5/1/2024, 9:00:00 AM",
            "   Status: ❌ Unverified",
            "   Type: 💎 Regular User",
            "   Plan: pro",
            "   Websites: 1",
            "   Not active yet",
        ])
        assert blocks[2] == "\n".join([
            "3. No name (cy@example.com)",
            "   Registered: 5/1/2024, 10:00:00 AM",
            "   Status: ❌ Unverified",
            "   Type: 💎 Regular User",
            "   Websites: 0",
            "   Not active yet",
        ])

    def test_registered_unknown_when_missing(self):
        text = render_new_users([{"email": "x@example.com"}], timezone.utc)
        assert "   Registered: Unknown" in text

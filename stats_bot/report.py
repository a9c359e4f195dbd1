"""
Text rendering of the daily statistics report and the new-users listing
"""
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Iterable, Mapping, Optional, Union

from . import schema
from .metrics import Metrics

NO_NEW_USERS = "No new users registered today."

Rate = Union[str, int]


def percentage(part: int, whole: int) -> Rate:
    """part/whole as a percentage with two decimals; 0 when whole is 0"""
    if not whole:
        return 0
    return f"{part / whole * 100:.2f}"


@dataclass(frozen=True)
class Rates:
    churn: Rate
    user_growth: Rate
    website_growth: Rate
    comment_growth: Rate


def derive_rates(m: Metrics) -> Rates:
    return Rates(
        churn=percentage(m.users_lost_yesterday, m.users_before_yesterday),
        user_growth=percentage(m.new_users_today, m.total_users),
        website_growth=percentage(m.new_websites_today, m.total_websites),
        comment_growth=percentage(m.new_comments_today, m.total_comments),
    )


# en-US locale style, e.g. 5/1/2024 and 5/1/2024, 9:05:00 AM
def format_date(dt: datetime) -> str:
    return f"{dt.month}/{dt.day}/{dt.year}"


def format_datetime(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{format_date(dt)}, {hour}:{dt.minute:02d}:{dt.second:02d} {suffix}"


def render_stats(m: Metrics, day: datetime, generated_at: Optional[datetime] = None) -> str:
    """Render the daily report for the day starting at `day`"""
    rates = derive_rates(m)
    generated_at = generated_at or m.generated_at or day
    report_lines = [
        "📊 Daily SaaS Statistics Report",
        "",
        f"🚀 TODAY'S ACTIVITY ({format_date(day)})",
        f"• New Users: {m.new_users_today} (+{rates.user_growth}% growth)",
        f"• New Websites: {m.new_websites_today} (+{rates.website_growth}% growth)",
        f"• New Comments: {m.new_comments_today} (+{rates.comment_growth}% growth)",
        f"• New Trial Users: {m.new_trial_users_today}",
        f"• New Verified Users: {m.new_verified_users_today}",
        f"• New Unverified Users: {m.new_unverified_users_today}",
        f"• New Guests: {m.new_guests_today}",
        f"• New Pending Signups: {m.new_pending_signups_today}",
        "",
        "👥 TOTAL USER METRICS",
        f"• Total Users: {m.total_users} (+{m.users_created_yesterday} yesterday)",
        f"• Currently Online: {m.online_users}",
        f"• Trial Users: {m.trial_users}",
        f"• Verified Users: {m.verified_users}",
        f"• Unverified Users: {m.unverified_users}",
        f"• Total Guests: {m.total_guests}",
        f"• Pending Signups: {m.total_pending_signups}",
        "",
        "🌐 PLATFORM OVERVIEW",
        f"• Total Websites: {m.total_websites}",
        f"• Total Comments: {m.total_comments}",
        f"• Daily Churn Rate: {rates.churn}%",
        "",
        "📈 KEY INSIGHTS",
        f"• User Conversion: {m.new_verified_users_today}/{m.new_users_today} verified today",
        f"• Trial Adoption: {m.new_trial_users_today}/{m.new_users_today} started trials",
        f"• Engagement: {m.new_comments_today} comments from {m.new_users_today} new users",
        "",
        f"Generated at: {format_datetime(generated_at)}",
    ]
    return "\n".join(report_lines)


def render_user(index: int, user: Mapping[str, Any], tz: Optional[tzinfo] = None) -> str:
    name = schema.resolve(user, schema.DISPLAY_NAME) or "No name"
    created = schema.resolve_time(user, schema.CREATED, tz)
    last_active = schema.resolve_time(user, schema.LAST_ACTIVE, tz)
    plan = schema.resolve(user, schema.PLAN)

    lines = [
        f"{index}. {name} ({user.get('email')})",
        f"   Registered: {format_datetime(created) if created else 'Unknown'}",
        f"   Status: {'✅ Verified' if schema.resolve_flag(user, schema.VERIFIED) else '❌ Unverified'}",
        f"   Type: {'🔄 Trial User' if schema.is_trial(user) else '💎 Regular User'}",
    ]
    if plan:
        lines.append(f"   Plan: {plan}")
    lines.append(f"   Websites: {user.get('websites_count') or 0}")
    if last_active:
        lines.append(f"   Last Active: {format_datetime(last_active)}")
    else:
        lines.append("   Not active yet")
    return "\n".join(lines)


def render_new_users(users: Iterable[Mapping[str, Any]], tz: Optional[tzinfo] = None) -> str:
    users = list(users)
    if not users:
        return NO_NEW_USERS
    blocks = [render_user(i, user, tz) for i, user in enumerate(users, start=1)]
    return f"📊 Today's New Users Report ({len(users)} total)\n\n" + "\n\n".join(blocks)

"""
Field resolution over the two naming conventions of the product database.

Records written by older code use snake_case (``created_at``), newer code uses
camelCase (``createdAt``), and timestamps may be stored as BSON dates, ISO-8601
strings or epoch milliseconds (int or double). Every logical concept maps to an
ordered list of physical field names; the functions here resolve a concept on a
single record, or build the MongoDB filter that selects records by it.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .clock import TimeWindow

CREATED = "created"
DELETED = "deleted"
VERIFIED = "verified"
PLAN = "plan"
LAST_ACTIVE = "last_active"
DISPLAY_NAME = "display_name"

# canonical name first
FIELD_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    CREATED: ("createdAt", "created_at"),
    DELETED: ("deletedAt", "deleted_at"),
    VERIFIED: ("emailVerified", "email_verified"),
    PLAN: ("plan", "planType"),
    LAST_ACTIVE: ("lastActive", "last_active"),
    DISPLAY_NAME: ("name", "username"),
}

TRIAL_PLAN = "trial"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def candidates(concept: str) -> Tuple[str, ...]:
    return FIELD_CANDIDATES[concept]


def resolve(record: Mapping[str, Any], concept: str) -> Any:
    """First candidate field that is present and not null, else None"""
    for name in candidates(concept):
        value = record.get(name)
        if value is not None:
            return value
    return None


def resolve_flag(record: Mapping[str, Any], concept: str) -> bool:
    return resolve(record, concept) is True


def is_trial(record: Mapping[str, Any]) -> bool:
    return resolve(record, PLAN) == TRIAL_PLAN


# --- timestamp encodings ---------------------------------------------------

def to_iso(dt: datetime) -> str:
    """UTC ISO string with millisecond precision, e.g. 2024-05-01T22:00:00.000Z"""
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"


def to_epoch_ms(dt: datetime) -> int:
    return (dt.astimezone(timezone.utc) - _EPOCH) // timedelta(milliseconds=1)


def to_epoch_ms_float(dt: datetime) -> float:
    return float(to_epoch_ms(dt))


# (BSON $type, converter of a window bound into that encoding)
TIMESTAMP_ENCODINGS: List[Tuple[Any, Callable[[datetime], Any]]] = [
    ("date", lambda dt: dt),
    ("string", to_iso),
    (["int", "long"], to_epoch_ms),
    ("double", to_epoch_ms_float),
]


def to_datetime(value: Any, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Coerce any stored timestamp encoding to an aware datetime in `tz`.

    Naive datetimes and ISO strings without an offset are taken as UTC, which is
    how the driver hands BSON dates back. Anything unparseable gives None.
    """
    if value is None or isinstance(value, bool):
        return None
    dt: Optional[datetime] = None
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    elif isinstance(value, (int, float)):
        try:
            dt = _EPOCH + timedelta(milliseconds=value)
        except (OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
    if dt is None:
        return None
    return dt.astimezone(tz) if tz is not None else dt.astimezone()


def resolve_time(record: Mapping[str, Any], concept: str, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    return to_datetime(resolve(record, concept), tz)


# --- query builders --------------------------------------------------------

def _bounds(window: TimeWindow, convert: Callable[[datetime], Any]) -> Dict[str, Any]:
    cond: Dict[str, Any] = {}
    if window.start is not None:
        cond["$gte"] = convert(window.start)
    if window.end is not None:
        cond["$lte" if window.end_inclusive else "$lt"] = convert(window.end)
    return cond


def window_predicate(concept: str, window: TimeWindow) -> Dict[str, Any]:
    """Filter for records whose `concept` timestamp falls in `window`.

    One clause per (field name, encoding) pair, OR-ed together: each clause pins
    the BSON type and compares against the bound converted to that encoding.
    """
    clauses = []
    for name in candidates(concept):
        for bson_type, convert in TIMESTAMP_ENCODINGS:
            cond: Dict[str, Any] = {"$type": bson_type}
            cond.update(_bounds(window, convert))
            clauses.append({name: cond})
    return {"$or": clauses}


def not_deleted_predicate() -> Dict[str, Any]:
    # {field: None} matches both null and missing
    return {name: None for name in candidates(DELETED)}


def equals_predicate(concept: str, value: Any) -> Dict[str, Any]:
    """Filter for resolve(record, concept) == value"""
    names = candidates(concept)
    clauses = []
    for i, name in enumerate(names):
        clause: Dict[str, Any] = {earlier: None for earlier in names[:i]}
        clause[name] = value
        clauses.append(clause)
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


def all_of(*predicates: Dict[str, Any]) -> Dict[str, Any]:
    parts = [p for p in predicates if p]
    if not parts:
        return {}
    if len(parts) == 1:
        return parts[0]
    return {"$and": parts}


def newest_first(concept: str) -> List[Tuple[str, int]]:
    return [(name, -1) for name in candidates(concept)]

"""Featured and trending selection over an in-memory candidate set."""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from toptens.config import FEATURED_WINDOW_DAYS


FEATURED_WINDOW = timedelta(days=FEATURED_WINDOW_DAYS)
RECENCY_HORIZON_HOURS = 24 * 7
RECENCY_FLOOR = 0.1


class Policy(str, enum.Enum):
    FEATURED = "featured"
    TRENDING = "trending"


class TimeFilter(str, enum.Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


@dataclass(frozen=True)
class Candidate:
    record : Any
    like_count : int
    comment_count : int
    view_count : int
    created_at : datetime
    is_public : bool = True


def as_aware(value : datetime) -> datetime:
    # sqlite hands back naive timestamps, they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def window_start(time_filter : TimeFilter, now : datetime) -> datetime | None:
    """Earliest creation time admitted by ``time_filter``; None means unbounded."""
    if time_filter is TimeFilter.TODAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_filter is TimeFilter.WEEK:
        return now - timedelta(days=7)
    if time_filter is TimeFilter.MONTH:
        return now - timedelta(days=30)
    return None


def trending_score(candidate : Candidate, now : datetime) -> float:
    engagement = candidate.like_count + 2 * candidate.comment_count + 0.1 * candidate.view_count
    age_hours = (now - as_aware(candidate.created_at)).total_seconds() / 3600
    recency = max(RECENCY_FLOOR, 1 - age_hours / RECENCY_HORIZON_HOURS)
    return engagement * recency


def _created_since(candidate : Candidate, start : datetime | None) -> bool:
    return start is None or as_aware(candidate.created_at) >= start


def select_featured(candidates : list[Candidate], now : datetime, limit : int) -> list[Candidate]:
    start = now - FEATURED_WINDOW
    eligible = [c for c in candidates if c.is_public and _created_since(c, start)]
    eligible.sort(
        key=lambda c: (c.like_count, c.comment_count, c.view_count, as_aware(c.created_at)),
        reverse=True,
    )
    return eligible[:limit]


def select_trending(
    candidates : list[Candidate],
    now : datetime,
    limit : int,
    time_filter : TimeFilter = TimeFilter.WEEK,
) -> list[Candidate]:
    start = window_start(time_filter, now)
    eligible = [c for c in candidates if c.is_public and _created_since(c, start)]
    # sorted() is stable, exact ties keep their source order
    ranked = sorted(eligible, key=lambda c: trending_score(c, now), reverse=True)
    return ranked[:limit]


def select_top(
    candidates : list[Candidate],
    policy : Policy,
    limit : int,
    now : datetime,
    time_filter : TimeFilter = TimeFilter.WEEK,
) -> list[Any]:
    """Ordered records for ``policy``; scores never leave this module."""
    if limit < 1:
        return []
    now = as_aware(now)
    if policy is Policy.FEATURED:
        selected = select_featured(candidates, now, limit)
    else:
        selected = select_trending(candidates, now, limit, time_filter)
    return [c.record for c in selected]

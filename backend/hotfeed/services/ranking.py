from __future__ import annotations

from datetime import datetime, timezone

# Decay steepness; changing it changes every ranking.
GRAVITY = 1.5
SECONDS_PER_HOUR = 3600.0


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def age_hours(created_at: datetime, now: datetime) -> float:
    # Future-dated posts (clock skew) are clamped to age zero.
    age = (_as_utc(now) - _as_utc(created_at)).total_seconds() / SECONDS_PER_HOUR
    return max(0.0, age)


def hot_score(raw_score: int | None, created_at: datetime, now: datetime) -> float:
    """Decayed rank value: (score + 1) / (1 + age_hours) ** 1.5.

    ``now`` is passed in so one query ranks every post against the same instant.
    A missing score counts as 0.
    """
    return ((raw_score or 0) + 1) / (1.0 + age_hours(created_at, now)) ** GRAVITY

"""
Spaced-repetition scheduling for vocabulary review items.

Pure functions over ReviewItem; callers pass ``now`` explicitly and persist
the returned copy. Nothing here reads the clock or mutates its input.

  compute_next_review   interval ladder (1 → 6 → 15 → ×EF) + SM-2 ease update
  apply_review_action   compute_next_review + seen/correct/mastery bookkeeping
  apply_master_action   jump straight to a 30-day interval
  apply_unmaster_action make the item due immediately
  apply_star_action     flag as hardest and halve the interval
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from ssatprep.models.flashcard import ReviewItem
from ssatprep.models.vocabulary import Difficulty

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
PASSING_QUALITY = 3
MAX_MASTERY_LEVEL = 4.0

MASTERED_INTERVAL_DAYS = 30.0
MASTERED_EASE_FACTOR = 2.8
STARRED_DIFFICULTY = 5


class SchedulingError(ValueError):
    """Base class for rejected scheduler input."""


class InvalidQualityScore(SchedulingError):
    """Quality is not an integer in 0..5."""


class InvalidInterval(SchedulingError):
    """Interval is non-finite, zero or negative."""


class InvalidEaseFactor(SchedulingError):
    """Ease factor is not a finite number."""


@dataclass(frozen=True)
class NextReview:
    next_interval: float
    next_ease_factor: float
    next_review_date: datetime


def _validate_quality(quality: int) -> None:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityScore(f"quality must be an integer, got {quality!r}")
    if not 0 <= quality <= 5:
        raise InvalidQualityScore(f"quality must be between 0 and 5, got {quality}")


def _validate_interval(interval_days: float) -> None:
    if not math.isfinite(interval_days) or interval_days <= 0:
        raise InvalidInterval(f"interval must be a positive number of days, got {interval_days!r}")


def _validate_ease_factor(ease_factor: float) -> None:
    if not math.isfinite(ease_factor):
        raise InvalidEaseFactor(f"ease factor must be finite, got {ease_factor!r}")


def _review_date(now: datetime, days: float) -> datetime:
    # Intervals have no ceiling; the date saturates at the calendar limit
    try:
        return now + timedelta(days=days)
    except OverflowError:
        return datetime.max.replace(tzinfo=now.tzinfo)


def _round_half_up(value: float) -> int:
    # round() would send 2.5 to 2; review intervals round halves up
    return math.floor(value + 0.5)


def compute_next_review(
    ease_factor: float,
    interval_days: float,
    quality: int,
    now: datetime,
) -> NextReview:
    """
    Compute the next interval, ease factor and absolute review date.

    A failed recall (quality < 3) resets the interval to one day and leaves the
    ease factor alone. A passing recall climbs the ladder 1 → 6 → 15 and then
    multiplies by the ease factor held *before* this review.
    """
    _validate_quality(quality)
    _validate_interval(interval_days)
    _validate_ease_factor(ease_factor)

    new_ease = ease_factor
    if quality < PASSING_QUALITY:
        new_interval: float = 1
    else:
        if interval_days == 1:
            new_interval = 6
        elif interval_days <= 6:
            new_interval = 15
        else:
            new_interval = _round_half_up(interval_days * ease_factor)

        lapse = 5 - quality
        new_ease = ease_factor + (0.1 - lapse * (0.08 + lapse * 0.02))
        new_ease = max(new_ease, MIN_EASE_FACTOR)

    return NextReview(
        next_interval=new_interval,
        next_ease_factor=new_ease,
        next_review_date=_review_date(now, new_interval),
    )


def _next_mastery_level(current: float, quality: int) -> float:
    if quality >= 4:
        level = current + 0.5
    elif quality == PASSING_QUALITY:
        level = current + 0.2
    else:
        level = current - 0.3
    return max(0.0, min(MAX_MASTERY_LEVEL, level))


def new_review_item(item_id: str, now: datetime) -> ReviewItem:
    """Defaults for a word the learner has never acted on."""
    return ReviewItem(item_id=item_id, next_review_at=now)


def apply_review_action(
    item: ReviewItem,
    quality: int,
    now: datetime,
    difficulty_rating: int | None = None,
) -> ReviewItem:
    """Record one completed review and reschedule the item."""
    result = compute_next_review(item.ease_factor, item.interval_days, quality, now)
    passed = quality >= PASSING_QUALITY
    return item.model_copy(update={
        "times_seen": item.times_seen + 1,
        "times_correct": item.times_correct + (1 if passed else 0),
        "interval_days": result.next_interval,
        "ease_factor": result.next_ease_factor,
        "next_review_at": result.next_review_date,
        "mastery_level": _next_mastery_level(item.mastery_level, quality),
        "difficulty_rating": difficulty_rating or item.difficulty_rating,
        "last_seen_at": now,
    })


def apply_master_action(item: ReviewItem, now: datetime) -> ReviewItem:
    return item.model_copy(update={
        "is_mastered": True,
        "mastery_level": MAX_MASTERY_LEVEL,
        "interval_days": MASTERED_INTERVAL_DAYS,
        "ease_factor": MASTERED_EASE_FACTOR,
        "next_review_at": _review_date(now, MASTERED_INTERVAL_DAYS),
        "times_seen": item.times_seen + 1,
        "times_correct": item.times_correct + 1,
        "last_seen_at": now,
    })


def apply_unmaster_action(item: ReviewItem, now: datetime) -> ReviewItem:
    # Interval and ease factor keep whatever the master action set
    return item.model_copy(update={
        "is_mastered": False,
        "next_review_at": now,
    })


def apply_star_action(item: ReviewItem, now: datetime) -> ReviewItem:
    _validate_interval(item.interval_days)
    interval = max(1.0, item.interval_days / 2)
    return item.model_copy(update={
        "difficulty_rating": STARRED_DIFFICULTY,
        "interval_days": interval,
        "next_review_at": _review_date(now, interval),
        "times_seen": item.times_seen + 1,
        "last_seen_at": now,
    })


# --- Deriving a quality score from a plain right/wrong answer ---

FAST_RESPONSE_MS = 3000
STEADY_RESPONSE_MS = 8000


def derive_quality(
    is_correct: bool,
    response_time_ms: int | None = None,
    difficulty: Difficulty | str | None = None,
) -> int:
    """
    Map a correctness flag (and optionally answer speed and a self-reported
    difficulty) onto the 0–5 quality scale.
    """
    quality = 4 if is_correct else 1
    if is_correct and response_time_ms is not None:
        if response_time_ms < FAST_RESPONSE_MS:
            quality = 5
        elif response_time_ms < STEADY_RESPONSE_MS:
            quality = 4
        else:
            quality = 3

    difficulty = Difficulty(difficulty) if difficulty is not None else None
    if difficulty is Difficulty.EASY and is_correct:
        quality = min(5, quality + 1)
    if difficulty is Difficulty.HARD:
        quality = max(1, quality - 1)
    return quality


def adjust_difficulty_rating(rating: int, difficulty: Difficulty | str | None) -> int:
    """Nudge the 1–5 personal difficulty rating toward the learner's own verdict."""
    difficulty = Difficulty(difficulty) if difficulty is not None else None
    if difficulty is Difficulty.EASY:
        return max(1, rating - 1)
    if difficulty is Difficulty.HARD:
        return min(5, rating + 1)
    return rating

"""
Priority ranking for the vocabulary review queue.

Each item falls into the first matching tier (smaller = shown sooner):

  1      never reviewed                         NEW
  2..7   due and not mastered, 2 + (5 - level)  OVERDUE
  8      starred (difficulty_rating == 5)       DIFFICULT
  10     accuracy below 60%                     DIFFICULT
  15     everything else                        REVIEW
  20     mastered                               REVIEW

Ties within a tier go to the item that is more days overdue.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from typing import TypeVar

from ssatprep.models.flashcard import PriorityLabel, ProgressStats, ReviewItem
from ssatprep.services.scheduler import MAX_MASTERY_LEVEL, STARRED_DIFFICULTY

T = TypeVar("T")

TIER_NEW = 1
TIER_DUE_BASE = 2
TIER_STARRED = 8
TIER_ERROR_PRONE = 10
TIER_DEFAULT = 15
TIER_MASTERED = 20

ERROR_PRONE_ACCURACY = 0.6

_ONE_DAY = timedelta(days=1)


def is_due(item: ReviewItem, now: datetime) -> bool:
    return item.next_review_at <= now and not item.is_mastered


def priority_tier(item: ReviewItem, now: datetime) -> float:
    if item.times_seen == 0:
        return TIER_NEW
    if is_due(item, now):
        return TIER_DUE_BASE + (5 - item.mastery_level)
    if item.difficulty_rating == STARRED_DIFFICULTY:
        return TIER_STARRED
    if item.times_seen > 0 and item.times_correct / item.times_seen < ERROR_PRONE_ACCURACY:
        return TIER_ERROR_PRONE
    if item.is_mastered:
        return TIER_MASTERED
    return TIER_DEFAULT


def priority_label(tier: float) -> PriorityLabel:
    if tier <= TIER_NEW:
        return PriorityLabel.NEW
    if tier < TIER_STARRED:
        return PriorityLabel.OVERDUE
    if tier <= TIER_ERROR_PRONE:
        return PriorityLabel.DIFFICULT
    return PriorityLabel.REVIEW


def days_overdue(item: ReviewItem, now: datetime) -> int:
    return max(0, math.floor((now - item.next_review_at) / _ONE_DAY))


def rank_for_review(
    entries: Iterable[tuple[ReviewItem, T]],
    limit: int,
    now: datetime,
) -> list[tuple[ReviewItem, T]]:
    """
    Order (item, metadata) pairs for presentation and keep the first ``limit``.

    Sorting is stable, so entries that tie on tier and overdue days keep
    their input order. The input is not modified.
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    ranked = sorted(
        entries,
        key=lambda entry: (priority_tier(entry[0], now), -days_overdue(entry[0], now)),
    )
    return ranked[:limit]


# --- Queue filters and summary counts ---


def filter_entries(
    entries: Iterable[tuple[ReviewItem, T]],
    now: datetime,
    due_only: bool = False,
    mastered_only: bool = False,
) -> list[tuple[ReviewItem, T]]:
    result = list(entries)
    if due_only:
        result = [e for e in result if is_due(e[0], now)]
    if mastered_only:
        result = [e for e in result if e[0].is_mastered]
    return result


def summarize_progress(items: Sequence[ReviewItem], now: datetime) -> ProgressStats:
    return ProgressStats(
        total=len(items),
        due_for_review=sum(1 for i in items if i.times_seen > 0 and is_due(i, now)),
        mastered=sum(1 for i in items if i.is_mastered),
        learning=sum(
            1 for i in items
            if 0 < i.mastery_level < MAX_MASTERY_LEVEL and not i.is_mastered
        ),
        new=sum(1 for i in items if i.times_seen == 0),
    )

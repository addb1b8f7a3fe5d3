"""
Flashcard review router.

Endpoints:
  GET  /flashcards                 — ranked review queue (optionally due/mastered only)
  GET  /flashcards/stats           — total / due / mastered / learning / new counts
  POST /flashcards/{id}/review     — submit a quality score (or right/wrong), reschedule
  POST /flashcards/{id}/master     — mark as mastered, push out 30 days
  POST /flashcards/{id}/unmaster   — clear mastered flag, due immediately
  POST /flashcards/{id}/star       — flag as hardest, halve the interval
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from ssatprep.config import settings
from ssatprep.db.sqlite import (
    get_db,
    get_progress,
    get_word,
    list_all_words,
    list_progress_for_user,
    upsert_progress,
)
from ssatprep.dependencies import get_now, get_user_id
from ssatprep.models.flashcard import (
    FlashcardQueue,
    ProgressStats,
    RankedFlashcard,
    ReviewItem,
    ReviewRequest,
    ReviewResult,
)
from ssatprep.models.vocabulary import VocabularyWord
from ssatprep.services.review_queue import (
    days_overdue,
    filter_entries,
    priority_label,
    priority_tier,
    rank_for_review,
    summarize_progress,
)
from ssatprep.services.scheduler import (
    SchedulingError,
    adjust_difficulty_rating,
    apply_master_action,
    apply_review_action,
    apply_star_action,
    apply_unmaster_action,
    derive_quality,
    new_review_item,
)

logger = logging.getLogger(__name__)
router = APIRouter()


async def _load_entries(
    db: aiosqlite.Connection, user_id: str, now: datetime
) -> list[tuple[ReviewItem, VocabularyWord]]:
    """Join every stored word with the user's progress, defaulting unseen words."""
    words = await list_all_words(db)
    progress = await list_progress_for_user(db, user_id)
    return [(progress.get(w.id) or new_review_item(w.id, now), w) for w in words]


async def _load_item(
    db: aiosqlite.Connection, user_id: str, word_id: str, now: datetime
) -> ReviewItem:
    word = await get_word(db, word_id)
    if not word:
        raise HTTPException(status_code=404, detail="Vocabulary word not found")
    return await get_progress(db, user_id, word_id) or new_review_item(word_id, now)


# --- Endpoints ---


@router.get("/", response_model=FlashcardQueue)
async def get_queue(
    limit: int | None = Query(default=None, ge=1, le=100),
    due_only: bool = Query(default=False),
    mastered_only: bool = Query(default=False),
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardQueue:
    """Return the user's flashcards ordered by review priority."""
    if limit is None:
        limit = settings.default_review_limit
    entries = await _load_entries(db, user_id, now)
    stats = summarize_progress([item for item, _ in entries], now)

    selected = filter_entries(entries, now, due_only=due_only, mastered_only=mastered_only)
    ranked = rank_for_review(selected, limit, now)

    items = []
    for item, word in ranked:
        tier = priority_tier(item, now)
        items.append(
            RankedFlashcard(
                word=word,
                progress=item,
                tier=tier,
                label=priority_label(tier),
                days_overdue=days_overdue(item, now),
            )
        )
    logger.debug("Queue for %s: %d of %d entries", user_id, len(items), len(entries))
    return FlashcardQueue(items=items, total=len(items), stats=stats)


@router.get("/stats", response_model=ProgressStats)
async def get_stats(
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> ProgressStats:
    entries = await _load_entries(db, user_id, now)
    return summarize_progress([item for item, _ in entries], now)


@router.post("/{word_id}/review", response_model=ReviewResult)
async def review_card(
    word_id: str,
    body: ReviewRequest,
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    """Submit a review for a flashcard and reschedule it."""
    if body.quality is not None:
        quality = body.quality
    elif body.is_correct is not None:
        quality = derive_quality(body.is_correct, body.response_time_ms, body.difficulty)
    else:
        raise HTTPException(status_code=422, detail="Provide either quality or is_correct")

    item = await _load_item(db, user_id, word_id, now)

    rating = body.difficulty_rating
    if rating is None and body.difficulty is not None:
        rating = adjust_difficulty_rating(item.difficulty_rating, body.difficulty)

    try:
        updated = apply_review_action(item, quality, now, difficulty_rating=rating)
    except SchedulingError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    saved = await upsert_progress(db, user_id, updated)
    logger.info(
        "Reviewed %s for %s: quality=%d interval=%s ease=%.2f",
        word_id, user_id, quality, saved.interval_days, saved.ease_factor,
    )
    return ReviewResult(
        user_id=user_id,
        quality=quality,
        progress=saved,
        message=f"Review updated, next review in {saved.interval_days:g} days",
    )


async def _apply_action(
    action: Callable[[ReviewItem, datetime], ReviewItem],
    message: str,
    word_id: str,
    user_id: str,
    now: datetime,
    db: aiosqlite.Connection,
) -> ReviewResult:
    item = await _load_item(db, user_id, word_id, now)
    try:
        updated = action(item, now)
    except SchedulingError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    saved = await upsert_progress(db, user_id, updated)
    logger.info("%s: %s for %s", message, word_id, user_id)
    return ReviewResult(user_id=user_id, progress=saved, message=message)


@router.post("/{word_id}/master", response_model=ReviewResult)
async def master_card(
    word_id: str,
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    return await _apply_action(
        apply_master_action, "Word marked as mastered", word_id, user_id, now, db
    )


@router.post("/{word_id}/unmaster", response_model=ReviewResult)
async def unmaster_card(
    word_id: str,
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    return await _apply_action(
        apply_unmaster_action, "Word unmarked, ready for review", word_id, user_id, now, db
    )


@router.post("/{word_id}/star", response_model=ReviewResult)
async def star_card(
    word_id: str,
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    return await _apply_action(
        apply_star_action, "Word starred for extra practice", word_id, user_id, now, db
    )

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ssatprep.models.vocabulary import Difficulty, VocabularyWord


class ReviewItem(BaseModel):
    """One learner's review history for one vocabulary word."""

    item_id: str
    times_seen: int = 0
    times_correct: int = 0      # reviews graded quality >= 3
    interval_days: float = 1.0  # days until the next scheduled review
    ease_factor: float = 2.5    # floored at 1.3
    mastery_level: float = 0.0  # 0–4, distinct from is_mastered
    is_mastered: bool = False   # set only by the master/unmaster actions
    difficulty_rating: int = 3  # 1–5; 5 = starred
    next_review_at: datetime
    last_seen_at: datetime | None = None


class PriorityLabel(str, Enum):
    NEW = "NEW"
    OVERDUE = "OVERDUE"
    DIFFICULT = "DIFFICULT"
    REVIEW = "REVIEW"


class RankedFlashcard(BaseModel):
    word: VocabularyWord
    progress: ReviewItem
    tier: float
    label: PriorityLabel
    days_overdue: int


class ProgressStats(BaseModel):
    total: int
    due_for_review: int
    mastered: int
    learning: int
    new: int


class FlashcardQueue(BaseModel):
    items: list[RankedFlashcard]
    total: int
    stats: ProgressStats


class ReviewRequest(BaseModel):
    # Either an explicit 0–5 quality, or a correctness flag to derive one from
    quality: int | None = None
    is_correct: bool | None = None
    response_time_ms: int | None = Field(default=None, ge=0)
    difficulty: Difficulty | None = None
    difficulty_rating: int | None = Field(default=None, ge=1, le=5)


class ReviewResult(BaseModel):
    user_id: str
    quality: int | None = None
    progress: ReviewItem
    message: str

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from ssatprep.config import settings
from ssatprep.models.flashcard import ReviewItem
from ssatprep.models.vocabulary import VocabularyWord, VocabularyWordCreate

_db_path: Path | None = None

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS vocabulary_words (
    id               TEXT PRIMARY KEY,
    word             TEXT NOT NULL UNIQUE,
    definition       TEXT NOT NULL,
    part_of_speech   TEXT DEFAULT '',
    example_sentence TEXT DEFAULT '',
    synonyms         TEXT NOT NULL DEFAULT '[]',
    antonyms         TEXT NOT NULL DEFAULT '[]',
    category         TEXT DEFAULT 'vocabulary',
    difficulty       TEXT DEFAULT 'medium',
    created_at       TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS user_flashcard_progress (
    user_id           TEXT NOT NULL,
    item_id           TEXT NOT NULL REFERENCES vocabulary_words(id) ON DELETE CASCADE,
    times_seen        INTEGER NOT NULL DEFAULT 0,
    times_correct     INTEGER NOT NULL DEFAULT 0,
    interval_days     REAL NOT NULL DEFAULT 1,
    ease_factor       REAL NOT NULL DEFAULT 2.5,
    mastery_level     REAL NOT NULL DEFAULT 0,
    is_mastered       INTEGER NOT NULL DEFAULT 0,
    difficulty_rating INTEGER NOT NULL DEFAULT 3,
    next_review_at    TEXT NOT NULL,
    last_seen_at      TEXT,
    created_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL,
    PRIMARY KEY (user_id, item_id)
);
CREATE INDEX IF NOT EXISTS idx_progress_review ON user_flashcard_progress(user_id, next_review_at);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# --- Vocabulary words ---


def _row_to_word(row: aiosqlite.Row) -> VocabularyWord:
    d = dict(row)
    d["synonyms"] = json.loads(d["synonyms"] or "[]")
    d["antonyms"] = json.loads(d["antonyms"] or "[]")
    return VocabularyWord(**d)


async def create_word(db: aiosqlite.Connection, word: VocabularyWordCreate) -> VocabularyWord:
    word_id = str(uuid.uuid4())
    await db.execute(
        """INSERT INTO vocabulary_words
           (id, word, definition, part_of_speech, example_sentence,
            synonyms, antonyms, category, difficulty, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            word_id,
            word.word.strip().lower(),
            word.definition,
            word.part_of_speech,
            word.example_sentence,
            json.dumps(word.synonyms),
            json.dumps(word.antonyms),
            word.category,
            word.difficulty.value,
            _now(),
        ),
    )
    await db.commit()
    return await get_word(db, word_id)  # type: ignore[return-value]


async def get_word(db: aiosqlite.Connection, word_id: str) -> VocabularyWord | None:
    cursor = await db.execute("SELECT * FROM vocabulary_words WHERE id = ?", (word_id,))
    row = await cursor.fetchone()
    return _row_to_word(row) if row else None


async def find_word_by_text(db: aiosqlite.Connection, text: str) -> VocabularyWord | None:
    cursor = await db.execute(
        "SELECT * FROM vocabulary_words WHERE word = ?", (text.strip().lower(),)
    )
    row = await cursor.fetchone()
    return _row_to_word(row) if row else None


async def list_words(
    db: aiosqlite.Connection, offset: int = 0, limit: int = 50
) -> tuple[list[VocabularyWord], int]:
    cursor = await db.execute("SELECT COUNT(*) FROM vocabulary_words")
    total = (await cursor.fetchone())[0]

    cursor = await db.execute(
        "SELECT * FROM vocabulary_words ORDER BY word ASC LIMIT ? OFFSET ?",
        (limit, offset),
    )
    rows = await cursor.fetchall()
    return [_row_to_word(r) for r in rows], total


async def list_all_words(db: aiosqlite.Connection) -> list[VocabularyWord]:
    cursor = await db.execute("SELECT * FROM vocabulary_words ORDER BY created_at ASC, word ASC")
    rows = await cursor.fetchall()
    return [_row_to_word(r) for r in rows]


async def delete_word(db: aiosqlite.Connection, word_id: str) -> bool:
    cursor = await db.execute("DELETE FROM vocabulary_words WHERE id = ?", (word_id,))
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Per-user review progress ---


def _row_to_review_item(row: aiosqlite.Row) -> ReviewItem:
    d = dict(row)
    return ReviewItem(
        item_id=d["item_id"],
        times_seen=d["times_seen"],
        times_correct=d["times_correct"],
        interval_days=d["interval_days"],
        ease_factor=d["ease_factor"],
        mastery_level=d["mastery_level"],
        is_mastered=bool(d["is_mastered"]),
        difficulty_rating=d["difficulty_rating"],
        next_review_at=_from_iso(d["next_review_at"]),
        last_seen_at=_from_iso(d["last_seen_at"]),
    )


async def get_progress(
    db: aiosqlite.Connection, user_id: str, item_id: str
) -> ReviewItem | None:
    cursor = await db.execute(
        "SELECT * FROM user_flashcard_progress WHERE user_id = ? AND item_id = ?",
        (user_id, item_id),
    )
    row = await cursor.fetchone()
    return _row_to_review_item(row) if row else None


async def list_progress_for_user(
    db: aiosqlite.Connection, user_id: str
) -> dict[str, ReviewItem]:
    """Return the user's progress rows keyed by item id."""
    cursor = await db.execute(
        "SELECT * FROM user_flashcard_progress WHERE user_id = ? ORDER BY next_review_at ASC",
        (user_id,),
    )
    rows = await cursor.fetchall()
    items = [_row_to_review_item(r) for r in rows]
    return {item.item_id: item for item in items}


async def upsert_progress(
    db: aiosqlite.Connection, user_id: str, item: ReviewItem
) -> ReviewItem:
    """Write a progress row; concurrent writers on the same key are last-write-wins."""
    now = _now()
    await db.execute(
        """INSERT INTO user_flashcard_progress
           (user_id, item_id, times_seen, times_correct, interval_days, ease_factor,
            mastery_level, is_mastered, difficulty_rating, next_review_at, last_seen_at,
            created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(user_id, item_id) DO UPDATE SET
               times_seen = excluded.times_seen,
               times_correct = excluded.times_correct,
               interval_days = excluded.interval_days,
               ease_factor = excluded.ease_factor,
               mastery_level = excluded.mastery_level,
               is_mastered = excluded.is_mastered,
               difficulty_rating = excluded.difficulty_rating,
               next_review_at = excluded.next_review_at,
               last_seen_at = excluded.last_seen_at,
               updated_at = excluded.updated_at""",
        (
            user_id,
            item.item_id,
            item.times_seen,
            item.times_correct,
            item.interval_days,
            item.ease_factor,
            item.mastery_level,
            int(item.is_mastered),
            item.difficulty_rating,
            _to_iso(item.next_review_at),
            _to_iso(item.last_seen_at),
            now,
            now,
        ),
    )
    await db.commit()
    return await get_progress(db, user_id, item.item_id)  # type: ignore[return-value]

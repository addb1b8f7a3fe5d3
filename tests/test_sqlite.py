"""Tests for the SQLite vocabulary and progress store."""

from datetime import timedelta

import pytest

from ssatprep.db.sqlite import (
    create_word,
    delete_word,
    find_word_by_text,
    get_progress,
    get_word,
    list_all_words,
    list_progress_for_user,
    list_words,
    upsert_progress,
)
from ssatprep.models.vocabulary import Difficulty, VocabularyWordCreate
from ssatprep.services.scheduler import apply_review_action, new_review_item


def _word(text, definition="a definition", **kw):
    return VocabularyWordCreate(word=text, definition=definition, **kw)


class TestVocabularyWords:
    async def test_create_and_fetch(self, db):
        created = await create_word(
            db,
            _word(
                "Abundant", "existing in large quantities",
                synonyms=["plentiful"], antonyms=["scarce"], difficulty=Difficulty.EASY,
            ),
        )
        fetched = await get_word(db, created.id)

        assert fetched == created
        assert fetched.word == "abundant"
        assert fetched.synonyms == ["plentiful"]
        assert fetched.antonyms == ["scarce"]
        assert fetched.difficulty is Difficulty.EASY

    async def test_find_by_text_ignores_case(self, db):
        created = await create_word(db, _word("meticulous"))
        found = await find_word_by_text(db, "  Meticulous ")
        assert found is not None and found.id == created.id

    async def test_missing_word(self, db):
        assert await get_word(db, "nope") is None
        assert await find_word_by_text(db, "nope") is None

    async def test_list_pages_alphabetically(self, db):
        for text in ("zealous", "benevolent", "candid"):
            await create_word(db, _word(text))

        items, total = await list_words(db, offset=1, limit=1)
        assert total == 3
        assert [w.word for w in items] == ["candid"]
        assert len(await list_all_words(db)) == 3

    async def test_delete_cascades_progress(self, db, now):
        word = await create_word(db, _word("ephemeral"))
        await upsert_progress(db, "u1", new_review_item(word.id, now))

        assert await delete_word(db, word.id) is True
        assert await get_progress(db, "u1", word.id) is None
        assert await delete_word(db, word.id) is False


class TestProgress:
    async def test_insert_then_update(self, db, now):
        word = await create_word(db, _word("candid"))
        first = await upsert_progress(db, "u1", new_review_item(word.id, now))
        assert first.times_seen == 0
        assert first.next_review_at == now

        reviewed = apply_review_action(first, 5, now)
        saved = await upsert_progress(db, "u1", reviewed)

        assert saved.times_seen == 1
        assert saved.interval_days == 6
        assert saved.ease_factor == pytest.approx(2.6)
        assert saved.next_review_at == now + timedelta(days=6)
        assert saved.last_seen_at == now

    async def test_progress_is_per_user(self, db, now):
        word = await create_word(db, _word("candid"))
        await upsert_progress(db, "u1", apply_review_action(new_review_item(word.id, now), 5, now))

        assert await get_progress(db, "u2", word.id) is None
        assert set(await list_progress_for_user(db, "u1")) == {word.id}
        assert await list_progress_for_user(db, "u2") == {}

    async def test_mastered_flag_round_trips(self, db, now):
        word = await create_word(db, _word("candid"))
        item = new_review_item(word.id, now).model_copy(update={"is_mastered": True})
        saved = await upsert_progress(db, "u1", item)
        assert saved.is_mastered is True

"""Tests for vocabulary question generation and its offline fallback."""

import json
import random
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from ssatprep.db.sqlite import create_word, upsert_progress
from ssatprep.models.flashcard import PriorityLabel
from ssatprep.models.question import FocusWord
from ssatprep.models.vocabulary import VocabularyWordCreate
from ssatprep.services.llm_service import LLMUnavailableError
from ssatprep.services.question_generator import (
    build_fallback_questions,
    build_vocabulary_prompt,
    generate_vocabulary_questions,
)
from ssatprep.services.scheduler import apply_master_action, new_review_item

WORDS = {
    "abundant": "existing in large quantities",
    "meticulous": "showing great attention to detail",
    "candid": "truthful and straightforward",
    "lethargic": "sluggish and apathetic",
}


@pytest.fixture
async def stored_words(db):
    created = {}
    for word, definition in WORDS.items():
        created[word] = await create_word(db, VocabularyWordCreate(word=word, definition=definition))
    return created


class TestFallback:
    async def test_fallback_when_llm_unavailable(self, db, stored_words, now):
        with patch(
            "ssatprep.services.question_generator.chat_json",
            new_callable=AsyncMock,
            side_effect=LLMUnavailableError("offline"),
        ):
            result = await generate_vocabulary_questions(db, "u1", 3, now, rng=random.Random(7))

        assert result.is_fallback is True
        assert len(result.questions) == 3
        for q in result.questions:
            assert q.correct_answer in q.options
            assert len(q.options) == 4
            assert len(set(q.options)) == 4
            assert WORDS[q.focus_word] == q.correct_answer

    async def test_invalid_json_falls_back(self, db, stored_words, now):
        with patch(
            "ssatprep.services.question_generator.chat_json",
            new_callable=AsyncMock,
            side_effect=json.JSONDecodeError("bad", "{", 0),
        ):
            result = await generate_vocabulary_questions(db, "u1", 2, now)
        assert result.is_fallback is True
        assert len(result.questions) == 2

    async def test_no_usable_questions_falls_back(self, db, stored_words, now):
        reply = {"questions": [{"question": "Q?", "options": ["a", "b"], "correct_answer": "c"}]}
        with patch(
            "ssatprep.services.question_generator.chat_json",
            new_callable=AsyncMock,
            return_value=reply,
        ):
            result = await generate_vocabulary_questions(db, "u1", 2, now)
        assert result.is_fallback is True

    async def test_no_vocabulary(self, db, now):
        result = await generate_vocabulary_questions(db, "u1", 5, now)
        assert result.questions == []
        assert result.focus_words == []

    def test_single_word_has_no_distractors(self, now):
        from ssatprep.models.vocabulary import VocabularyWord

        word = VocabularyWord(
            id="w1", word="candid", definition="truthful", part_of_speech="adj",
            example_sentence="", synonyms=[], antonyms=[], category="vocabulary",
            difficulty="medium", created_at="2026-01-01 00:00:00",
        )
        [question] = build_fallback_questions([word], [word], random.Random(1))
        assert question.options == ["truthful"]
        assert question.correct_answer == "truthful"


    def test_duplicate_definitions_are_not_repeated_as_options(self, now):
        from ssatprep.models.vocabulary import VocabularyWord

        def word(word_id, text, definition):
            return VocabularyWord(
                id=word_id, word=text, definition=definition, part_of_speech="",
                example_sentence="", synonyms=[], antonyms=[], category="vocabulary",
                difficulty="medium", created_at="2026-01-01 00:00:00",
            )

        focus = word("w1", "candid", "truthful")
        others = [
            word("w2", "ample", "plentiful"),
            word("w3", "abundant", "plentiful"),
            word("w4", "copious", "plentiful"),
        ]
        [question] = build_fallback_questions([focus], [focus, *others], random.Random(3))
        assert sorted(question.options) == ["plentiful", "truthful"]


class TestLLMPath:
    async def test_llm_questions_are_used(self, db, stored_words, now):
        reply = {
            "questions": [
                {
                    "focus_word": "abundant",
                    "question": "Which word means plentiful?",
                    "options": ["abundant", "scarce", "candid", "lethargic"],
                    "correct_answer": "abundant",
                    "explanation": "Abundant means plentiful.",
                },
                {"question": "", "options": [], "correct_answer": ""},
            ]
        }
        with patch(
            "ssatprep.services.question_generator.chat_json",
            new_callable=AsyncMock,
            return_value=reply,
        ) as mock_chat:
            result = await generate_vocabulary_questions(db, "u1", 4, now)

        assert result.is_fallback is False
        assert len(result.questions) == 1
        assert result.questions[0].id.startswith("ai_")
        assert result.questions[0].correct_answer == "abundant"

        _, user_prompt = mock_chat.call_args.args[:2]
        for word in WORDS:
            assert word in user_prompt

    async def test_focus_words_follow_review_priority(self, db, stored_words, now):
        mastered = apply_master_action(new_review_item(stored_words["abundant"].id, now), now)
        await upsert_progress(db, "u1", mastered)
        overdue = new_review_item(stored_words["candid"].id, now).model_copy(
            update={"times_seen": 2, "times_correct": 1, "next_review_at": now - timedelta(days=3)}
        )
        await upsert_progress(db, "u1", overdue)

        with patch(
            "ssatprep.services.question_generator.chat_json",
            new_callable=AsyncMock,
            side_effect=LLMUnavailableError("offline"),
        ):
            result = await generate_vocabulary_questions(db, "u1", 3, now)

        labels = {fw.word: fw.label for fw in result.focus_words}
        assert "abundant" not in labels
        assert labels["candid"] is PriorityLabel.OVERDUE
        assert labels["meticulous"] is PriorityLabel.NEW
        assert labels["lethargic"] is PriorityLabel.NEW


def test_prompt_lists_labels():
    from ssatprep.models.vocabulary import VocabularyWord

    word = VocabularyWord(
        id="w1", word="candid", definition="truthful", part_of_speech="",
        example_sentence="", synonyms=[], antonyms=[], category="vocabulary",
        difficulty="medium", created_at="2026-01-01 00:00:00",
    )
    prompt = build_vocabulary_prompt([(FocusWord(word="candid", label=PriorityLabel.OVERDUE), word)])
    assert "candid [OVERDUE]: truthful" in prompt
    assert prompt.startswith("Write 1 questions")


def test_questions_endpoint_uses_fallback_without_llm(client):
    for word, definition in WORDS.items():
        client.post("/vocabulary/", json={"word": word, "definition": definition})

    res = client.post("/questions/vocabulary", json={"count": 2})
    assert res.status_code == 200
    body = res.json()
    assert body["is_fallback"] is True
    assert len(body["questions"]) == 2
    assert [fw["label"] for fw in body["focus_words"]] == ["NEW", "NEW"]

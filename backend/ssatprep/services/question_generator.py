"""
Vocabulary question generation.

  1. Ranks the learner's words with the review queue and labels each focus
     word NEW / OVERDUE / DIFFICULT / REVIEW
  2. Asks the LLM via llm_service.chat_json() for multiple-choice questions
  3. Parses {"questions": [{"question", "options", "correct_answer", ...}]}

Soft failures: LLMUnavailableError, invalid JSON or an empty result fall back
to definition questions built from the stored vocabulary.
"""
from __future__ import annotations

import json
import logging
import random
from datetime import datetime

import aiosqlite

from ssatprep.db.sqlite import list_all_words, list_progress_for_user
from ssatprep.models.flashcard import ReviewItem
from ssatprep.models.question import FocusWord, Question, QuestionSet
from ssatprep.models.vocabulary import VocabularyWord
from ssatprep.services.llm_service import LLMUnavailableError, chat_json
from ssatprep.services.review_queue import priority_label, priority_tier, rank_for_review
from ssatprep.services.scheduler import new_review_item

logger = logging.getLogger(__name__)

MAX_DISTRACTORS = 3

SYSTEM_PROMPT = (
    "You are an SSAT vocabulary tutor writing multiple-choice practice questions. "
    "Respond ONLY with valid JSON in exactly this structure:\n"
    '{"questions": [{"focus_word": "string", "question": "string", '
    '"options": ["A", "B", "C", "D"], "correct_answer": "string", "explanation": "string"}]}\n'
    "Rules:\n"
    "- Write one question per focus word, in the order given.\n"
    "- Each question has exactly four options and correct_answer is one of them.\n"
    "- Mix definition, synonym, antonym and sentence-completion questions.\n"
    "- Words labelled NEW or OVERDUE get straightforward definition or context questions.\n"
    "- Words labelled DIFFICULT get harder synonym or antonym questions.\n"
    "- Explanations must be one or two sentences."
)


def build_vocabulary_prompt(focus: list[tuple[FocusWord, VocabularyWord]]) -> str:
    lines = [f"Write {len(focus)} questions for these focus words:"]
    for fw, word in focus:
        lines.append(f"- {word.word} [{fw.label.value}]: {word.definition}")
    return "\n".join(lines)


def _parse_questions(result: dict, stamp: str) -> list[Question]:
    questions: list[Question] = []
    if not isinstance(result, dict):
        return questions
    for i, raw in enumerate(result.get("questions") or []):
        if not isinstance(raw, dict):
            continue
        text = (raw.get("question") or "").strip()
        options = [str(o) for o in raw.get("options") or [] if str(o).strip()]
        answer = str(raw.get("correct_answer") or raw.get("correctAnswer") or "").strip()
        if not text or len(options) < 2 or answer not in options:
            continue
        questions.append(
            Question(
                id=f"ai_{stamp}_{i}",
                question=text,
                options=options,
                correct_answer=answer,
                explanation=(raw.get("explanation") or "").strip(),
                focus_word=raw.get("focus_word"),
            )
        )
    return questions


def build_fallback_questions(
    focus_words: list[VocabularyWord],
    all_words: list[VocabularyWord],
    rng: random.Random,
) -> list[Question]:
    """One definition question per focus word, distractors drawn from the other words."""
    questions = []
    for word in focus_words:
        others = list(dict.fromkeys(
            w.definition for w in all_words
            if w.id != word.id and w.definition != word.definition
        ))
        wrong = rng.sample(others, min(MAX_DISTRACTORS, len(others)))
        options = [word.definition, *wrong]
        rng.shuffle(options)
        explanation = f'"{word.word}" means {word.definition}.'
        if word.example_sentence:
            explanation += f" Example: {word.example_sentence}"
        questions.append(
            Question(
                id=f"fallback_{word.id}",
                question=f'What does "{word.word}" mean?',
                options=options,
                correct_answer=word.definition,
                explanation=explanation,
                focus_word=word.word,
            )
        )
    return questions


async def generate_vocabulary_questions(
    db: aiosqlite.Connection,
    user_id: str,
    count: int,
    now: datetime,
    rng: random.Random | None = None,
) -> QuestionSet:
    """
    Generate up to ``count`` questions aimed at the words the learner most
    needs to review. Does not raise on LLM trouble; falls back instead.
    """
    rng = rng or random.Random()
    words = await list_all_words(db)
    progress = await list_progress_for_user(db, user_id)

    entries: list[tuple[ReviewItem, VocabularyWord]] = [
        (progress.get(w.id) or new_review_item(w.id, now), w) for w in words
    ]
    ranked = rank_for_review(entries, count, now)
    focus = [
        (FocusWord(word=w.word, label=priority_label(priority_tier(item, now))), w)
        for item, w in ranked
    ]
    focus_words = [fw for fw, _ in focus]
    generated_at = now.isoformat()

    if not focus:
        logger.info("No vocabulary stored; nothing to generate for user %s", user_id)
        return QuestionSet(questions=[], focus_words=[], generated_at=generated_at, is_fallback=True)

    try:
        result = await chat_json(SYSTEM_PROMPT, build_vocabulary_prompt(focus), max_tokens=2048)
        questions = _parse_questions(result, stamp=now.strftime("%Y%m%d%H%M%S"))[:count]
        if questions:
            return QuestionSet(
                questions=questions,
                focus_words=focus_words,
                generated_at=generated_at,
                is_fallback=False,
            )
        logger.warning("LLM returned no usable questions for user %s", user_id)
    except LLMUnavailableError:
        logger.info("LLM unavailable, using fallback questions for user %s", user_id)
    except json.JSONDecodeError as e:
        logger.warning("LLM returned invalid JSON for user %s: %s", user_id, e)

    questions = build_fallback_questions([w for _, w in focus], words, rng)
    return QuestionSet(
        questions=questions,
        focus_words=focus_words,
        generated_at=generated_at,
        is_fallback=True,
    )

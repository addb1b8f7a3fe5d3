from datetime import datetime

import aiosqlite
from fastapi import APIRouter, Depends

from ssatprep.config import settings
from ssatprep.db.sqlite import get_db
from ssatprep.dependencies import get_now
from ssatprep.models.question import QuestionRequest, QuestionSet
from ssatprep.services.question_generator import generate_vocabulary_questions

router = APIRouter()


@router.post("/vocabulary", response_model=QuestionSet)
async def vocabulary_questions(
    body: QuestionRequest,
    now: datetime = Depends(get_now),
    db: aiosqlite.Connection = Depends(get_db),
) -> QuestionSet:
    """Multiple-choice questions built around the words the learner most needs to review."""
    user_id = body.user_id or settings.default_user_id
    return await generate_vocabulary_questions(db, user_id, body.count, now)

from pydantic import BaseModel, Field

from ssatprep.models.flashcard import PriorityLabel


class Question(BaseModel):
    id: str
    type: str = "vocabulary"
    question: str
    options: list[str]
    correct_answer: str
    explanation: str = ""
    focus_word: str | None = None


class FocusWord(BaseModel):
    word: str
    label: PriorityLabel


class QuestionRequest(BaseModel):
    user_id: str | None = None
    count: int = Field(default=5, ge=1, le=20)


class QuestionSet(BaseModel):
    questions: list[Question]
    focus_words: list[FocusWord]
    generated_at: str
    is_fallback: bool

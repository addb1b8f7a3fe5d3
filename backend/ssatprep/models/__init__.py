from ssatprep.models.flashcard import (
    FlashcardQueue,
    PriorityLabel,
    ProgressStats,
    RankedFlashcard,
    ReviewItem,
    ReviewRequest,
    ReviewResult,
)
from ssatprep.models.question import FocusWord, Question, QuestionRequest, QuestionSet
from ssatprep.models.vocabulary import (
    Difficulty,
    VocabularyWord,
    VocabularyWordCreate,
    VocabularyWordList,
)

__all__ = [
    "Difficulty",
    "FlashcardQueue",
    "FocusWord",
    "PriorityLabel",
    "ProgressStats",
    "Question",
    "QuestionRequest",
    "QuestionSet",
    "RankedFlashcard",
    "ReviewItem",
    "ReviewRequest",
    "ReviewResult",
    "VocabularyWord",
    "VocabularyWordCreate",
    "VocabularyWordList",
]

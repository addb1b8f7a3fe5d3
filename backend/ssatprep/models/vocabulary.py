from enum import Enum

from pydantic import BaseModel


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class VocabularyWordCreate(BaseModel):
    word: str
    definition: str
    part_of_speech: str = ""
    example_sentence: str = ""
    synonyms: list[str] = []
    antonyms: list[str] = []
    category: str = "vocabulary"
    difficulty: Difficulty = Difficulty.MEDIUM


class VocabularyWord(BaseModel):
    id: str
    word: str
    definition: str
    part_of_speech: str
    example_sentence: str
    synonyms: list[str]
    antonyms: list[str]
    category: str
    difficulty: Difficulty
    created_at: str


class VocabularyWordList(BaseModel):
    items: list[VocabularyWord]
    total: int
    offset: int
    limit: int

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from ssatprep.db.sqlite import (
    create_word,
    delete_word,
    find_word_by_text,
    get_db,
    get_word,
    list_words,
)
from ssatprep.models.vocabulary import VocabularyWord, VocabularyWordCreate, VocabularyWordList

router = APIRouter()


@router.post("/", response_model=VocabularyWord, status_code=201)
async def create_vocab_word(
    body: VocabularyWordCreate, db: aiosqlite.Connection = Depends(get_db)
):
    if not body.word.strip() or not body.definition.strip():
        raise HTTPException(status_code=422, detail="word and definition are required")
    existing = await find_word_by_text(db, body.word)
    if existing:
        raise HTTPException(409, f"Duplicate word. Existing entry: {existing.id}")
    return await create_word(db, body)


@router.get("/", response_model=VocabularyWordList)
async def list_vocab_words(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: aiosqlite.Connection = Depends(get_db),
):
    items, total = await list_words(db, offset, limit)
    return VocabularyWordList(items=items, total=total, offset=offset, limit=limit)


@router.get("/{word_id}", response_model=VocabularyWord)
async def get_vocab_word(word_id: str, db: aiosqlite.Connection = Depends(get_db)):
    word = await get_word(db, word_id)
    if not word:
        raise HTTPException(status_code=404, detail="Vocabulary word not found")
    return word


@router.delete("/{word_id}", status_code=204)
async def delete_vocab_word(word_id: str, db: aiosqlite.Connection = Depends(get_db)):
    deleted = await delete_word(db, word_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Vocabulary word not found")

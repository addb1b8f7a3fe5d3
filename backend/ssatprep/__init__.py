from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ssatprep.config import settings
from ssatprep.db import init_all_databases


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield


def create_app() -> FastAPI:
    application = FastAPI(
        title="SSAT Prep Review Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from ssatprep.routers import flashcards, health, questions, vocabulary

    application.include_router(health.router)
    application.include_router(
        vocabulary.router, prefix="/vocabulary", tags=["vocabulary"]
    )
    application.include_router(
        flashcards.router, prefix="/flashcards", tags=["flashcards"]
    )
    application.include_router(
        questions.router, prefix="/questions", tags=["questions"]
    )

    return application


app = create_app()

from __future__ import annotations  # FastAPI server exposing the interview session engine

import logging
from functools import lru_cache
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import practice_router, router
from config.registry import TEXT_GENERATOR_KEY, bind_model, is_bound
from config.settings import settings
from storage.migrate import migrate
from text_generation import LlmTextGenerator


logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent / "app_config.json"


@lru_cache(maxsize=1)
def _default_text_generator() -> LlmTextGenerator:  # Build the LLM-backed generator once per process
    path = Path(settings.LLM_CONFIG_PATH)
    if not path.exists():
        path = CONFIG_PATH
    logger.info("Loading LLM routes from %s", path)
    return LlmTextGenerator.from_path(path)


def create_app() -> FastAPI:  # Assemble the FastAPI application
    if not is_bound(TEXT_GENERATOR_KEY):
        bind_model(TEXT_GENERATOR_KEY, _default_text_generator)
    migrate(settings.DB_PATH)
    application = FastAPI(title="Mock Interview API")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    application.include_router(practice_router)

    @application.get("/api/health")
    def health() -> dict:
        return {"status": "ok", "max_questions": settings.MAX_QUESTIONS}

    return application


app = create_app()

"""FastAPI relay between the browser assistant and Gemini.

Endpoints:
- GET /health
- POST /upload  { "image": "data:image/png;base64,..." }
"""
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skribbl_relay.common.config import Settings, load_settings
from skribbl_relay.common.errors import InvalidInput, ProviderUnavailable
from skribbl_relay.common.schema import ErrorOut, UploadIn, WordsOut
from skribbl_relay.predict.fetcher import PredictionFetcher
from skribbl_relay.predict.gemini_client import GeminiClient
from skribbl_relay.serve.limits import BodySizeLimitMiddleware

LOGGER = logging.getLogger("skribbl_relay.serve.app")

NO_IMAGE = "No image provided"
BAD_BODY = "Invalid request body"
UNAVAILABLE = "Gemini AI is unavailable. Try again later."


def build_fetcher(settings: Settings) -> tuple[PredictionFetcher, GeminiClient]:
    client = GeminiClient(
        api_key=settings.api_key,
        model=settings.model,
        temperature=settings.temperature,
        max_retries=settings.provider_max_retries,
        timeout=settings.request_timeout,
        base_url=settings.base_url,
    )
    fetcher = PredictionFetcher(
        client,
        max_attempts=settings.max_attempts,
        base_delay=settings.backoff_base,
        strict=settings.strict_words,
    )
    return fetcher, client


def get_fetcher(request: Request) -> PredictionFetcher:
    return request.app.state.fetcher


def create_app(settings: Settings | None = None, fetcher: PredictionFetcher | None = None) -> FastAPI:
    """
    Build the relay app.

    The model client is created here, once, and shared by every request.
    Pass ``fetcher`` to bypass Gemini entirely (tests).
    """
    settings = settings or load_settings()
    client: GeminiClient | None = None
    if fetcher is None:
        fetcher, client = build_fetcher(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        LOGGER.info("Relay ready (model=%s, attempts=%d)", settings.model, fetcher.max_attempts)
        yield
        if client is not None:
            await client.aclose()

    app = FastAPI(title="skribbl-relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.fetcher = fetcher

    # CORS must wrap the size guard so 413 responses carry CORS headers
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidInput)
    async def _invalid_input(_: Request, exc: InvalidInput) -> JSONResponse:
        return JSONResponse(status_code=400, content=ErrorOut(error=str(exc)).model_dump())

    @app.exception_handler(RequestValidationError)
    async def _bad_body(_: Request, exc: RequestValidationError) -> JSONResponse:
        LOGGER.info("Invalid request body: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": BAD_BODY})

    @app.exception_handler(ProviderUnavailable)
    async def _unavailable(_: Request, exc: ProviderUnavailable) -> JSONResponse:
        LOGGER.error("Prediction failed: %s (cause: %r)", exc, exc.__cause__)
        return JSONResponse(status_code=503, content={"error": UNAVAILABLE})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "model": settings.model}

    @app.post("/upload", response_model=WordsOut)
    async def upload(
        body: UploadIn | None = None,
        fetcher: PredictionFetcher = Depends(get_fetcher),
    ) -> WordsOut:
        if body is None or not body.image:
            raise InvalidInput(NO_IMAGE)
        if not isinstance(body.image, str):
            raise InvalidInput(BAD_BODY)
        words = await fetcher.fetch(body.image)
        return WordsOut(words=words)

    return app

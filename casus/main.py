"""
Casus — FastAPI application entry point.

Routes: POST /api/chat, the /api fallback, then static assets for every other path.

Run with:
    uvicorn casus.main:app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from casus.config import settings
from casus.routers import chat, fallback
from casus.services import inference

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log the upstream in use; close the shared upstream client on shutdown."""
    logger.info(
        "Starting Casus (env=%s, provider=%s)", settings.app_env, settings.upstream_provider
    )
    yield
    logger.info("Shutting down Casus.")
    await inference.aclose()


app = FastAPI(
    title="Casus",
    description="French-language role-playing-game assistant: chat relay, persona and dice.",
    version="1.0.0",
    lifespan=lifespan,
    # every non-/api path belongs to the static mount
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# ── CORS ─────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────────────────────

app.include_router(chat.router)
# POST /api/chat is matched first; any other /api request lands here
app.mount("/api", fallback.router, name="api-fallback")


# ── Global exception handler ─────────────────────────────────────────────────

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return the same error body as the chat endpoint for anything unhandled."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url)
    return JSONResponse(
        status_code=500,
        content={"error": "Failed to process request"},
    )


# ── Static assets (must stay last) ───────────────────────────────────────────

app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

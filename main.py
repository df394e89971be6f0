"""
Backend FastAPI for the documentation assistant (RAG over the knowledge base)
"""

import argparse
import asyncio
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import docs_assistant.config as config
from docs_assistant.api.chat import router as chat_router
from docs_assistant.api.deps import get_rate_governor
from docs_assistant.api.docs import router as docs_router
from docs_assistant.api.middleware import RateLimitMiddleware

# Setup logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


# ===============================
# FASTAPI APP
# ===============================
app = FastAPI(title="Docs Assistant API", description="API for the documentation assistant with RAG", version="1.0.0")

_sweeper_task: asyncio.Task | None = None


async def _sweep_rate_limits():
    """Periodically drop expired rate-limit records so memory tracks active clients only."""
    governor = get_rate_governor()
    interval = governor.window_ms / 1000
    while True:
        await asyncio.sleep(interval)
        removed = governor.sweep()
        if removed:
            logger.info(f"[RATE LIMIT] Removed {removed} expired records")


@app.on_event("startup")
async def startup_event():
    """Initialize resources on application startup."""
    global _sweeper_task
    logger.info("Starting Docs Assistant API...")
    logger.info(
        f"Retrieval mode: {config.RETRIEVAL_MODE} | store: {config.STORE_BACKEND} | "
        f"rate limit: {config.RATE_LIMIT_REQUESTS} req / {config.RATE_LIMIT_WINDOW_MS}ms"
    )

    _sweeper_task = asyncio.create_task(_sweep_rate_limits())


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup resources on application shutdown."""
    logger.info("Shutting down Docs Assistant API...")

    if _sweeper_task:
        _sweeper_task.cancel()
        try:
            await _sweeper_task
        except asyncio.CancelledError:
            pass


# Rate limiting for /api/chat
app.add_middleware(RateLimitMiddleware, governor=get_rate_governor())

# Allow CORS (for the frontend to call the backend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify the frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)

# Include routes
app.include_router(chat_router)
app.include_router(docs_router)


if __name__ == "__main__":
    import uvicorn

    parser = argparse.ArgumentParser(description="Docs Assistant API")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging (includes retrieved context)")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host=host, port=port)

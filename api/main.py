"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from api.dispatcher import GameDispatcher
from api.routes import game
from api.session import SessionStore, connect_session_store
from config import config
from core.game import GameError

logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[f"{config.rate_limit.requests_per_minute}/minute"],
)


def configure_logging(level: str = config.log_level) -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=logging.DEBUG if config.debug else level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


def _game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    """Translate game and session errors into their HTTP status."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect the session store once at startup and close it on shutdown."""
    if app.state.dispatcher is None:
        app.state.dispatcher = GameDispatcher(await connect_session_store())
    yield
    await app.state.dispatcher.store.close()


def create_app(store: SessionStore | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        store: Session store to use; when omitted one is connected from
            the configuration at startup

    Returns:
        The configured FastAPI app
    """
    app = FastAPI(
        title="Blackjack",
        description="Single-player blackjack with per-session game state",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.dispatcher = GameDispatcher(store) if store is not None else None

    # Add rate limiter to app state and exception handlers
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(GameError, _game_error_handler)

    # CORS middleware with configurable origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allowed_origins,
        allow_credentials=config.cors.allow_credentials,
        allow_methods=config.cors.allow_methods,
        allow_headers=config.cors.allow_headers,
    )

    app.add_api_route("/api/health", health_check, methods=["GET"])

    app.include_router(game.router, prefix="/api/game", tags=["game"])

    return app


configure_logging()
app = create_app()

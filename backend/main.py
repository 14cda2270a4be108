"""
coLoc FastAPI application.

Entry point for the game server: one authoritative in-memory game state,
mirrored to every connected client over /ws.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.routes import game as game_routes
from backend.routes import ws as ws_routes
from backend.services.relay import ActionRelay
from engine.kernel.catalog import Catalog, load_catalog
from engine.kernel.store import GameStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and shutdown. State lives in memory and dies with the process."""
    catalog: Catalog = app.state.catalog
    logger.info(
        "coLoc server starting env=%s cards=%d experiments=%d",
        settings.ENVIRONMENT,
        len(catalog.cards),
        len(catalog.experiments),
    )

    yield

    relay: ActionRelay = app.state.relay
    snapshot = relay.snapshot
    logger.info(
        "coLoc server stopping sessions=%d teams=%d",
        len(snapshot["sessions"]),
        len(snapshot["teams"]),
    )


def create_app(store: GameStore | None = None, catalog: Catalog | None = None) -> FastAPI:
    """
    Build the application around one GameStore.

    Tests pass their own store (and catalog) so every app starts from a
    known snapshot.
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="coLoc",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.relay = ActionRelay(store=store)
    app.state.catalog = catalog if catalog is not None else load_catalog(settings.CATALOG_PATH or None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    app.include_router(game_routes.router)
    app.include_router(ws_routes.router)

    @app.get("/health")
    async def health():
        """Health check endpoint for uptime monitoring."""
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)

"""
Escape Room Backend - FastAPI Application Entry Point
"""

import logging
import os

from fastapi import FastAPI

from escaperoom import __version__
from escaperoom.api import game
from escaperoom.engine.dispatcher import CommandDispatcher
from escaperoom.llm.client import get_default_credential

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def create_app(dispatcher: CommandDispatcher | None = None) -> FastAPI:
    """Build the application around a dispatcher and its session store"""
    app = FastAPI(
        title="Escape Room",
        description="AI-generated text escape room engine",
        version=__version__,
    )
    app.state.dispatcher = dispatcher or CommandDispatcher(
        default_credential=get_default_credential()
    )

    app.include_router(game.router, prefix="/api/game", tags=["game"])

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {"status": "ok", "name": "Escape Room", "version": __version__}

    return app


app = create_app()

"""
FastAPI entrypoint for the Gazette Matcher client.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from gazette_matcher.api import router, view_router
from gazette_matcher.client import MatcherClient
from gazette_matcher.config import Settings, get_settings
from gazette_matcher.errors import MatcherError
from gazette_matcher.session import MatcherSession

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    settings = settings or get_settings()
    client = MatcherClient(settings, transport=transport)
    session = MatcherSession(settings, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.fetch_on_start:
            try:
                await session.refresh()
            except MatcherError as exc:
                logger.warning("Initial record fetch failed: %s", exc.message)
        yield
        await session.close()

    app = FastAPI(title="Gazette Matcher", version="0.1.0", lifespan=lifespan)
    app.include_router(router)
    app.include_router(view_router)
    app.state.settings = settings
    app.state.session = session
    return app


app = create_app()

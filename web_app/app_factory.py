"""FastAPI application factory."""

import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

import linkblog
from .middleware.logging import LoggingMiddleware
from .web import web_router

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")


def create_app(
    store,
    service,
    feed,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.

    Every handler reads its collaborators from ``app.state``. The store is
    safe for concurrent use; config, templates and paths are not changed
    after startup.

    Args:
        store: Link store instance
        service: LinkblogService instance
        feed: FeedMaterializer instance
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="linkblog",
        description="Link sharing service with short redirects and an RSS feed",
        version=linkblog.__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.store = store
    app.state.service = service
    app.state.feed = feed
    app.state.config = config

    app.add_middleware(LoggingMiddleware)

    if os.path.isdir(STATIC_DIR):
        app.mount("/s", StaticFiles(directory=STATIC_DIR), name="static")

    app.include_router(web_router, tags=["Web"])

    return app

"""Web interface routes implementation."""

import os
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from linkblog.common.logging_config import get_logger
from linkblog.common.url_builder import build_short_url
from linkblog.database.models import LinkRecord
from linkblog.exceptions import (
    ArtifactError,
    DuplicateKeyError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from linkblog.feed import FeedArtifact

router = APIRouter()
logger = get_logger("web")

template_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
templates = Jinja2Templates(directory=template_dir)

DUPLICATE_URL_MESSAGE = "url already exists"
NOT_FOUND_BODY = "404 not found"
RSS_MEDIA_TYPE = "application/rss+xml"

# The resolver answers any method, like the redirect it issues.
RESOLVE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def _collect(records: AsyncIterator[LinkRecord]) -> List[LinkRecord]:
    """Drain a link stream; on a store error keep what arrived and log."""
    links = []
    try:
        async for record in records:
            links.append(record)
    except StoreError as e:
        logger.error(f"Error listing links: {e}")
    return links


def _etag_matches(if_none_match: Optional[str], artifact: FeedArtifact) -> bool:
    if not if_none_match:
        return False
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate.strip('"') == artifact.etag:
            return True
    return False


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index(request: Request):
    """Recent links, newest first."""
    service = request.app.state.service
    links = await _collect(service.list_recent())
    return templates.TemplateResponse(request, "index.html", {"links": links})


@router.get("/hits/", response_class=HTMLResponse, include_in_schema=False)
async def hits(request: Request):
    """Links ordered by hit count."""
    service = request.app.state.service
    links = await _collect(service.list_by_hits())
    return templates.TemplateResponse(request, "hits.html", {"links": links})


@router.get("/admin/add/", response_class=HTMLResponse, include_in_schema=False)
async def add_form(request: Request):
    """Serve the submission form."""
    return templates.TemplateResponse(request, "add.html", {"message": None})


@router.post("/admin/add/", response_class=HTMLResponse, include_in_schema=False)
async def add_link(
    request: Request,
    url: Optional[str] = Form(None),
    desc: Optional[str] = Form(None),
):
    """Handle form submission to add a link."""
    service = request.app.state.service
    config = request.app.state.config

    try:
        identifier = await service.add_link(url, desc)
    except ValidationError as e:
        return templates.TemplateResponse(
            request,
            "add.html",
            {"message": str(e)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except DuplicateKeyError:
        return templates.TemplateResponse(
            request,
            "add.html",
            {"message": DUPLICATE_URL_MESSAGE},
            status_code=status.HTTP_409_CONFLICT,
        )
    except StoreError as e:
        logger.error(f"Error adding link: {e}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    short_url = build_short_url(identifier, config.public_base_url)
    return templates.TemplateResponse(
        request,
        "added.html",
        {"identifier": identifier, "short_url": short_url},
    )


@router.get("/rss/", include_in_schema=False)
async def rss(request: Request):
    """Serve the cached feed, rebuilding it when missing or stale."""
    feed = request.app.state.feed

    try:
        artifact = await feed.get_feed()
    except ArtifactError as e:
        logger.error(f"Error serving feed: {e}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    headers = {"ETag": artifact.quoted_etag}
    if _etag_matches(request.headers.get("if-none-match"), artifact):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)

    return Response(content=artifact.body, media_type=RSS_MEDIA_TYPE, headers=headers)


@router.api_route("/:/{identifier:path}", methods=RESOLVE_METHODS, include_in_schema=False)
async def resolve(request: Request, identifier: str):
    """Redirect a short link to its target URL."""
    service = request.app.state.service

    try:
        url = await service.resolve(identifier)
    except NotFoundError:
        return PlainTextResponse(NOT_FOUND_BODY, status_code=status.HTTP_404_NOT_FOUND)
    except StoreError as e:
        logger.error(f"Error resolving {identifier}: {e}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return RedirectResponse(url=url, status_code=status.HTTP_301_MOVED_PERMANENTLY)

"""Stream resolution and TV listing endpoints."""

from __future__ import annotations

from typing import cast

import httpx
import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from plumenest.domain.entities.stream import MediaType
from plumenest.domain.exceptions import NoServersFoundError, StreamResolutionError
from plumenest.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stream"])

# "tv" is the catalog's own name for episodic content.
_MEDIA_TYPES: dict[str, MediaType] = {
    "movie": "movie",
    "episode": "episode",
    "tv": "episode",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def parse_media_type(raw: str | None) -> MediaType | None:
    if raw is None:
        return None
    return _MEDIA_TYPES.get(raw.strip().lower())


@router.get("/stream")
async def get_stream(
    request: Request,
    content_id: str | None = Query(default=None, alias="id"),
    media_type: str | None = Query(default=None, alias="type"),
) -> JSONResponse:
    """Resolve a playable stream for one movie or episode."""
    state = cast(AppState, request.app.state)

    if not content_id or not content_id.strip():
        return _error(400, "Missing required query parameter 'id'.")
    parsed_type = parse_media_type(media_type)
    if parsed_type is None:
        return _error(400, "Query parameter 'type' must be 'movie' or 'tv'.")
    content_id = content_id.strip()

    with structlog.contextvars.bound_contextvars(
        content_id=content_id, media_type=parsed_type
    ):
        try:
            result = await state.resolve_stream_uc.execute(content_id, parsed_type)
        except NoServersFoundError as e:
            log.warning("stream_request_no_servers")
            return _error(404, str(e))
        except StreamResolutionError as e:
            log.warning("stream_request_failed", error=str(e))
            return _error(502, str(e))

    return JSONResponse(content=result.to_dict())


@router.get("/seasons")
async def get_seasons(
    request: Request,
    show_id: str | None = Query(default=None, alias="showId"),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    if not show_id or not show_id.strip():
        return _error(400, "Missing required query parameter 'showId'.")

    try:
        seasons = await state.catalog_listing_uc.seasons(show_id.strip())
    except httpx.InvalidURL:
        return _error(400, "Query parameter 'showId' is not a valid identifier.")
    except httpx.HTTPError as e:
        log.warning("seasons_request_failed", show_id=show_id, error=str(e))
        return _error(502, "Could not fetch seasons from the catalog.")
    return JSONResponse(content=seasons)


@router.get("/episodes")
async def get_episodes(
    request: Request,
    season_id: str | None = Query(default=None, alias="seasonId"),
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    if not season_id or not season_id.strip():
        return _error(400, "Missing required query parameter 'seasonId'.")

    try:
        episodes = await state.catalog_listing_uc.episodes(season_id.strip())
    except httpx.InvalidURL:
        return _error(400, "Query parameter 'seasonId' is not a valid identifier.")
    except httpx.HTTPError as e:
        log.warning("episodes_request_failed", season_id=season_id, error=str(e))
        return _error(502, "Could not fetch episodes from the catalog.")
    return JSONResponse(content=episodes)

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .dependencies import get_token_manager
from .errors import AuthExchangeError, RemoteApiError, SpotifyProxyError
from .models import Summary
from .spotify_client import summarize_now_playing, summarize_track
from .token_manager import TokenManager

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong"
TOP_TRACKS_LIMIT = 10


router = APIRouter(prefix="/spotify")


def error_response(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=500)


@router.get("", response_model=Summary)
@router.get("/summary", response_model=Summary)
async def summary(tokens: TokenManager = Depends(get_token_manager)):
    """Currently playing track, top tracks and playback controls in one response."""
    try:
        await tokens.ensure_access_token()
        top, now = await asyncio.gather(
            tokens.call(lambda sp: sp.current_user_top_tracks(limit=TOP_TRACKS_LIMIT)),
            tokens.call(lambda sp: sp.current_user_playing_track()),
        )
    except SpotifyProxyError as exc:
        logger.error("Summary failed: %s", getattr(exc, "payload", None) or exc)
        return error_response(GENERIC_ERROR)

    return Summary(
        now_playing=summarize_now_playing(now),
        top_tracks=[summarize_track(t) for t in top.get("items") or [] if isinstance(t, dict)],
    )


@router.get("/stop")
async def stop(tokens: TokenManager = Depends(get_token_manager)):
    """Pause playback on the active device."""
    try:
        await tokens.refresh()
        await tokens.call(lambda sp: sp.pause_playback())
    except RemoteApiError as exc:
        logger.error("Pause failed: %s", exc.payload or exc)
        return error_response(exc.reason or exc.message or GENERIC_ERROR)
    except AuthExchangeError as exc:
        logger.error("Pause failed, no access token: %s", exc.payload or exc)
        return error_response(GENERIC_ERROR)
    return {"success": True}


@router.post("/play/{track_id}")
async def play(track_id: str, tokens: TokenManager = Depends(get_token_manager)):
    """Start playing the given track on the active device."""
    uri = f"spotify:track:{track_id}"
    try:
        await tokens.refresh()
        await tokens.call(lambda sp: sp.start_playback([uri]))
    except RemoteApiError as exc:
        logger.error("Play %s failed: %s", uri, exc.payload or exc)
        return error_response(exc.reason or exc.message or GENERIC_ERROR)
    except AuthExchangeError as exc:
        logger.error("Play %s failed, no access token: %s", uri, exc.payload or exc)
        return error_response(GENERIC_ERROR)
    return {"success": True}

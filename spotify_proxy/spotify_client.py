from __future__ import annotations

from typing import Any, Dict, List

import httpx

from .errors import RemoteApiError
from .models import NowPlaying, TrackSummary


SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"


class SpotifyClient:
    """Spotify Web API calls made with a single access token."""

    def __init__(self, http: httpx.AsyncClient, access_token: str):
        self.http = http
        self.access_token = access_token

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """Make a Web API request and return the parsed JSON object.

        Player endpoints answer with 204 or an empty body; those come back as {}.
        """
        try:
            resp = await self.http.request(
                method,
                f"{SPOTIFY_API_BASE_URL}{path}",
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
        except httpx.HTTPError as e:
            raise RemoteApiError(None, message=f"Spotify API request failed: {e}") from e

        if resp.status_code >= 400:
            raise RemoteApiError.from_response(resp)

        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            payload = resp.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    async def current_user_top_tracks(self, *, limit: int = 10) -> Dict[str, Any]:
        return await self.request_json("GET", "/me/top/tracks", params={"limit": limit})

    async def current_user_playing_track(self) -> Dict[str, Any]:
        return await self.request_json("GET", "/me/player/currently-playing")

    async def pause_playback(self) -> Dict[str, Any]:
        return await self.request_json("PUT", "/me/player/pause")

    async def start_playback(self, uris: List[str]) -> Dict[str, Any]:
        return await self.request_json("PUT", "/me/player/play", json={"uris": uris})


def play_url(track_id: str) -> str:
    return f"/spotify/play/{track_id}"


def _first_artist(track: Dict[str, Any]) -> str:
    artists = track.get("artists") or []
    if artists and isinstance(artists[0], dict) and artists[0].get("name"):
        return str(artists[0]["name"])
    return "Unknown Artist"


def summarize_track(track: Dict[str, Any]) -> TrackSummary:
    track_id = str(track.get("id") or "")
    return TrackSummary(
        id=track_id,
        name=str(track.get("name") or ""),
        artist=_first_artist(track),
        play_url=play_url(track_id),
    )


def summarize_now_playing(payload: Dict[str, Any] | None) -> NowPlaying | None:
    """Reshape a currently-playing response; None when nothing is playing."""
    track = (payload or {}).get("item")
    if not isinstance(track, dict):
        return None
    return NowPlaying(
        name=str(track.get("name") or ""),
        artist=_first_artist(track),
        url=(track.get("external_urls") or {}).get("spotify"),
    )

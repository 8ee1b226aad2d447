from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ClientIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., description="Spotify application client id")
    client_secret: str = Field(..., description="Spotify application client secret")
    redirect_uri: str = Field(..., description="Registered OAuth redirect URI")


class TrackSummary(BaseModel):
    id: str
    name: str
    artist: str
    play_url: str = Field(..., description="Relative URL that starts playback of this track")


class NowPlaying(BaseModel):
    name: str
    artist: str
    url: str | None = Field(None, description="open.spotify.com link for the track")


class Controls(BaseModel):
    stop_url: str = "/spotify/stop"


class Summary(BaseModel):
    now_playing: NowPlaying | None = None
    top_tracks: list[TrackSummary] = Field(default_factory=list)
    controls: Controls = Field(default_factory=Controls)

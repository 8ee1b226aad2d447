from __future__ import annotations

import logging
import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel

from .errors import ConfigError
from .models import ClientIdentity


DEFAULT_REDIRECT_URI = "http://localhost:8888/callback"
DEFAULT_PORT = 8888
REFRESH_TOKEN_KEY = "SPOTIFY_REFRESH_TOKEN"

SCOPES = (
    "user-read-currently-playing",
    "user-top-read",
    "user-modify-playback-state",
    "user-read-playback-state",
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseModel):
    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    env_file: str = ".env"
    request_timeout: float = 10.0
    log_level: str = "INFO"
    scopes: tuple[str, ...] = SCOPES

    @property
    def identity(self) -> ClientIdentity:
        return ClientIdentity(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri,
        )

    @property
    def base_url(self) -> str:
        uri = self.redirect_uri.rstrip("/")
        if uri.endswith("/callback"):
            uri = uri[: -len("/callback")]
        return uri


def get_required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def _get_number_env(name: str, default, cast):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"Environment variable {name} must be a number, got {raw!r}") from None


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the process environment.

    The .env file (explicit argument, SPOTIFY_ENV_FILE, or the nearest one found
    from the working directory) is loaded first and overrides pre-set values.
    It is also where the refresh token gets written after authorization.
    """
    env_file = env_file or os.getenv("SPOTIFY_ENV_FILE") or find_dotenv(usecwd=True) or ".env"
    load_dotenv(dotenv_path=env_file, override=True)

    return Settings(
        client_id=get_required_env("SPOTIFY_CLIENT_ID"),
        client_secret=get_required_env("SPOTIFY_CLIENT_SECRET"),
        redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
        host=os.getenv("HOST") or "127.0.0.1",
        port=_get_number_env("PORT", DEFAULT_PORT, int),
        env_file=os.path.abspath(env_file),
        request_timeout=_get_number_env("SPOTIFY_REQUEST_TIMEOUT", 10.0, float),
        log_level=os.getenv("LOG_LEVEL") or "INFO",
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

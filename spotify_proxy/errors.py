from __future__ import annotations

from typing import Any

import httpx


class SpotifyProxyError(Exception):
    """Base class for errors raised by the proxy."""


class ConfigError(SpotifyProxyError):
    pass


class UserCanceledAuth(SpotifyProxyError):
    """The authorization callback arrived without a code."""


class AuthExchangeError(SpotifyProxyError):
    """The accounts service rejected a token request or could not be reached."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class RemoteApiError(SpotifyProxyError):
    """A Web API call failed.

    ``status`` is None for transport failures. ``reason`` and ``message`` are
    pulled out of the error body when Spotify sent one, otherwise None.
    """

    def __init__(
        self,
        status: int | None,
        message: str | None = None,
        reason: str | None = None,
        payload: Any = None,
    ):
        super().__init__(f"Spotify API error {status}: {message or reason or payload}")
        self.status = status
        self.message = message
        self.reason = reason
        self.payload = payload

    @classmethod
    def from_response(cls, resp: httpx.Response) -> "RemoteApiError":
        try:
            payload: Any = resp.json()
        except ValueError:
            payload = resp.text or None

        message = reason = None
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            message = error.get("message")
            reason = error.get("reason")
        elif isinstance(error, str):
            message = payload.get("error_description") or error
        return cls(resp.status_code, message=message, reason=reason, payload=payload)

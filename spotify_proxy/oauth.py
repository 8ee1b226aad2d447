from __future__ import annotations

import json
import logging
import urllib.parse
from typing import Any, Dict, Iterable

import httpx

from .config import SCOPES
from .errors import AuthExchangeError
from .models import ClientIdentity

logger = logging.getLogger(__name__)

SPOTIFY_ACCOUNTS_BASE_URL = "https://accounts.spotify.com"
TOKEN_URL = f"{SPOTIFY_ACCOUNTS_BASE_URL}/api/token"


class AccountsClient:
    """Authorization-code grant and token refresh against accounts.spotify.com."""

    def __init__(self, identity: ClientIdentity, http: httpx.AsyncClient, *, scopes: Iterable[str] = SCOPES):
        self.identity = identity
        self.http = http
        self.scopes = tuple(scopes)

    def authorize_url(self) -> str:
        params = {
            "response_type": "code",
            "client_id": self.identity.client_id,
            "scope": " ".join(self.scopes),
            "redirect_uri": self.identity.redirect_uri,
        }
        return f"{SPOTIFY_ACCOUNTS_BASE_URL}/authorize?{urllib.parse.urlencode(params, quote_via=urllib.parse.quote)}"

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        return await self._post_form(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            auth=(self.identity.client_id, self.identity.client_secret),
        )

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        # Client credentials go in the form body for this grant.
        return await self._post_form(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.identity.redirect_uri,
                "client_id": self.identity.client_id,
                "client_secret": self.identity.client_secret,
            }
        )

    async def _post_form(self, form: Dict[str, str], *, auth: tuple[str, str] | None = None) -> Dict[str, Any]:
        try:
            resp = await self.http.post(
                TOKEN_URL,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                auth=auth,
            )
        except httpx.HTTPError as e:
            raise AuthExchangeError(f"Spotify token request failed: {e}", payload=str(e)) from e

        try:
            payload = resp.json()
        except json.JSONDecodeError:
            payload = resp.text

        if resp.status_code >= 400:
            raise AuthExchangeError(f"Spotify token request failed (HTTP {resp.status_code})", payload=payload)

        if not isinstance(payload, dict):
            raise AuthExchangeError("Spotify token response was not a JSON object", payload=payload)

        return payload

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

import httpx

from .config import REFRESH_TOKEN_KEY
from .credential_store import DotenvCredentialStore
from .errors import AuthExchangeError, RemoteApiError
from .oauth import AccountsClient
from .spotify_client import SpotifyClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A 401 invalidates the cached token and the call is replayed this many times.
MAX_UNAUTHORIZED_RETRIES = 1


class TokenManager:
    """Owns the process-wide access token.

    The token is either cached (valid as far as we know) or absent. Expiry is
    not tracked: staleness shows up as a 401 from the Web API, which drops the
    cached token so the next call mints a fresh one from the refresh token.
    """

    def __init__(self, accounts: AccountsClient, store: DotenvCredentialStore, http: httpx.AsyncClient):
        self.accounts = accounts
        self.store = store
        self.http = http
        self._access_token: str | None = None

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def set_access_token(self, access_token: str) -> None:
        self._access_token = access_token

    def invalidate(self, stale: str | None = None) -> None:
        # Another request may already have replaced the stale token.
        if stale is None or self._access_token == stale:
            self._access_token = None

    async def ensure_access_token(self) -> str:
        if self._access_token:
            return self._access_token
        return await self.refresh()

    async def refresh(self) -> str:
        """Mint a new access token from the stored refresh token."""
        refresh_token = self.store.get(REFRESH_TOKEN_KEY)
        if not refresh_token:
            raise AuthExchangeError("No refresh token stored; complete authorization first")

        try:
            payload = await self.accounts.refresh_access_token(refresh_token)
        except AuthExchangeError as e:
            logger.error("Access token refresh failed: %s", e.payload)
            raise

        access_token = payload.get("access_token")
        if not access_token:
            raise AuthExchangeError("Token refresh response had no access_token", payload=payload)

        self._access_token = str(access_token)
        logger.info("Access token refreshed (expires in %ss)", payload.get("expires_in", "?"))
        return self._access_token

    async def call(self, request: Callable[[SpotifyClient], Awaitable[T]]) -> T:
        """Run ``request`` with the current token, re-minting once on a 401."""
        retries = 0
        while True:
            token = await self.ensure_access_token()
            try:
                return await request(SpotifyClient(self.http, token))
            except RemoteApiError as e:
                if e.status != 401 or retries >= MAX_UNAUTHORIZED_RETRIES:
                    raise
                retries += 1
                logger.info("Spotify rejected the access token; refreshing and retrying")
                self.invalidate(token)

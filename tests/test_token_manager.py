import base64
import os
import unittest

import httpx

from spotify_proxy.credential_store import DotenvCredentialStore
from spotify_proxy.errors import AuthExchangeError, RemoteApiError
from spotify_proxy.oauth import AccountsClient
from spotify_proxy.token_manager import TokenManager

from tests.fakes import EnvTestCase, FakeSpotify, respond


class TestTokenManager(EnvTestCase, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.spotify = FakeSpotify()
        self.http = httpx.AsyncClient(transport=self.spotify.transport)
        self.addAsyncCleanup(self.http.aclose)

        self.env_path.write_text("SPOTIFY_REFRESH_TOKEN=stored-refresh\n", encoding="utf-8")
        self.store = DotenvCredentialStore(self.env_path)
        accounts = AccountsClient(self.make_settings().identity, self.http)
        self.tokens = TokenManager(accounts, self.store, self.http)

    async def test_mint_uses_basic_auth_and_stored_refresh_token(self):
        token = await self.tokens.ensure_access_token()

        self.assertEqual(token, "access-1")
        request = self.spotify.token_requests[0]
        expected = "Basic " + base64.b64encode(b"client-id:client-secret").decode("ascii")
        self.assertEqual(request.headers["Authorization"], expected)
        body = request.content.decode("utf-8")
        self.assertIn("grant_type=refresh_token", body)
        self.assertIn("refresh_token=stored-refresh", body)

    async def test_cached_token_is_reused(self):
        self.spotify.route("GET", "/me/top/tracks", respond(200, json={"items": []}))

        await self.tokens.call(lambda sp: sp.current_user_top_tracks())
        await self.tokens.call(lambda sp: sp.current_user_top_tracks())

        self.assertEqual(len(self.spotify.token_requests), 1)
        auth_headers = {r.headers["Authorization"] for r in self.spotify.api_requests}
        self.assertEqual(auth_headers, {"Bearer access-1"})

    async def test_unauthorized_triggers_one_remint_and_retry(self):
        self.spotify.route(
            "GET",
            "/me/top/tracks",
            respond(401, json={"error": {"status": 401, "message": "The access token expired"}}),
            respond(200, json={"items": [{"id": "a"}]}),
        )

        result = await self.tokens.call(lambda sp: sp.current_user_top_tracks())

        self.assertEqual(result, {"items": [{"id": "a"}]})
        self.assertEqual(len(self.spotify.token_requests), 2)
        self.assertEqual(
            [r.headers["Authorization"] for r in self.spotify.api_requests],
            ["Bearer access-1", "Bearer access-2"],
        )
        self.assertEqual(self.tokens.access_token, "access-2")

    async def test_second_unauthorized_surfaces(self):
        self.spotify.route("GET", "/me/top/tracks", respond(401, json={"error": {"status": 401, "message": "Invalid access token"}}))

        with self.assertRaises(RemoteApiError) as ctx:
            await self.tokens.call(lambda sp: sp.current_user_top_tracks())

        self.assertEqual(ctx.exception.status, 401)
        self.assertEqual(len(self.spotify.api_requests), 2)
        self.assertEqual(len(self.spotify.token_requests), 2)

    async def test_other_errors_are_not_retried(self):
        self.spotify.route("PUT", "/me/player/pause", respond(404, json={"error": {"status": 404, "message": "Player command failed", "reason": "NO_ACTIVE_DEVICE"}}))

        with self.assertRaises(RemoteApiError) as ctx:
            await self.tokens.call(lambda sp: sp.pause_playback())

        self.assertEqual(ctx.exception.reason, "NO_ACTIVE_DEVICE")
        self.assertEqual(len(self.spotify.api_requests), 1)
        self.assertEqual(len(self.spotify.token_requests), 1)

    async def test_refresh_failure_raises_auth_exchange_error(self):
        self.spotify.token_failure = respond(400, json={"error": "invalid_grant", "error_description": "Invalid refresh token"})

        with self.assertRaises(AuthExchangeError) as ctx:
            await self.tokens.ensure_access_token()

        self.assertEqual(ctx.exception.payload["error"], "invalid_grant")
        self.assertIsNone(self.tokens.access_token)

    async def test_missing_refresh_token_makes_no_request(self):
        self.env_path.write_text("", encoding="utf-8")
        os.environ.pop("SPOTIFY_REFRESH_TOKEN", None)
        self.store.reload()

        with self.assertRaises(AuthExchangeError):
            await self.tokens.ensure_access_token()

        self.assertEqual(self.spotify.requests, [])

    async def test_refresh_always_mints(self):
        await self.tokens.ensure_access_token()
        token = await self.tokens.refresh()

        self.assertEqual(token, "access-2")
        self.assertEqual(len(self.spotify.token_requests), 2)

    async def test_invalidate_keeps_a_newer_token(self):
        self.tokens.set_access_token("fresh")
        self.tokens.invalidate("stale")
        self.assertEqual(self.tokens.access_token, "fresh")

        self.tokens.invalidate("fresh")
        self.assertIsNone(self.tokens.access_token)


if __name__ == "__main__":
    unittest.main(verbosity=2)

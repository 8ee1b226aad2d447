from __future__ import annotations

import logging
import sys
import threading
import webbrowser
from contextlib import asynccontextmanager
from typing import Callable

import httpx
import uvicorn
from fastapi import FastAPI

from . import __version__
from .auth import router as auth_router
from .config import REFRESH_TOKEN_KEY, Settings, configure_logging, load_settings
from .credential_store import DotenvCredentialStore
from .errors import ConfigError
from .oauth import AccountsClient
from .proxy import router as proxy_router
from .token_manager import TokenManager

logger = logging.getLogger(__name__)


def open_authorization_page(url: str, open_browser: Callable[[str], object]) -> None:
    logger.info("Opening browser for Spotify authorization...")
    try:
        open_browser(url)
    except (webbrowser.Error, OSError) as exc:
        logger.error("Could not open a browser (%s); visit %s manually", exc, url)


def launch_authorization_page(url: str, open_browser: Callable[[str], object]) -> threading.Thread:
    """Open the authorization page on a daemon thread so startup never waits on the browser."""
    thread = threading.Thread(
        target=open_authorization_page,
        args=(url, open_browser),
        name="open-browser",
        daemon=True,
    )
    thread.start()
    return thread


def create_app(
    settings: Settings,
    *,
    store: DotenvCredentialStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    open_browser: Callable[[str], object] = webbrowser.open,
) -> FastAPI:
    store = store or DotenvCredentialStore(settings.env_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(transport=transport, timeout=settings.request_timeout) as http:
            accounts = AccountsClient(settings.identity, http, scopes=settings.scopes)
            app.state.accounts = accounts
            app.state.token_manager = TokenManager(accounts, store, http)

            logger.info("Server running at %s/spotify", settings.base_url)
            if not store.get(REFRESH_TOKEN_KEY):
                launch_authorization_page(accounts.authorize_url(), open_browser)
            yield

    app = FastAPI(title="spotify-proxy", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    app.include_router(auth_router)
    app.include_router(proxy_router)
    return app


def main() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        configure_logging()
        logger.error("%s", exc)
        sys.exit(1)

    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()

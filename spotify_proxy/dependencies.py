from __future__ import annotations

from fastapi import Request

from .credential_store import DotenvCredentialStore
from .oauth import AccountsClient
from .token_manager import TokenManager


def get_token_manager(request: Request) -> TokenManager:
    return request.app.state.token_manager


def get_accounts(request: Request) -> AccountsClient:
    return request.app.state.accounts


def get_store(request: Request) -> DotenvCredentialStore:
    return request.app.state.store

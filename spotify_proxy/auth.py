import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from .config import REFRESH_TOKEN_KEY
from .credential_store import DotenvCredentialStore
from .dependencies import get_accounts, get_store, get_token_manager
from .errors import AuthExchangeError, UserCanceledAuth
from .oauth import AccountsClient
from .token_manager import TokenManager

logger = logging.getLogger(__name__)

SUCCESS_PAGE = "<h2>Authorization Successful!</h2><p>Refresh token saved. You can close this tab.</p>"
CANCELED_PAGE = "<p>Authorization failed or canceled. Visit <a href=\"/login\">/login</a> to try again.</p>"
FAILURE_PAGE = "<p>Error getting tokens. Check the server log.</p>"


router = APIRouter()


def _require_code(request: Request) -> str:
    """Return the authorization code, or raise UserCanceledAuth when the user declined."""
    params = request.query_params
    if params.get("error"):
        raise UserCanceledAuth(params["error"])
    code = params.get("code")
    if not code:
        raise UserCanceledAuth("Missing authorization code")
    return code


@router.get("/login")
async def login(accounts: AccountsClient = Depends(get_accounts)) -> RedirectResponse:
    """Redirect the user to Spotify's authorization page."""
    return RedirectResponse(accounts.authorize_url())


@router.get("/callback", response_class=HTMLResponse)
async def callback(
    request: Request,
    accounts: AccountsClient = Depends(get_accounts),
    tokens: TokenManager = Depends(get_token_manager),
    store: DotenvCredentialStore = Depends(get_store),
) -> HTMLResponse:
    """Finish the authorization-code grant and persist the refresh token.

    Nothing is stored unless Spotify hands back both tokens.
    """
    try:
        code = _require_code(request)
    except UserCanceledAuth as exc:
        logger.warning("Authorization canceled: %s", exc)
        return HTMLResponse(CANCELED_PAGE, status_code=400)

    try:
        token_info = await accounts.exchange_code(code)
    except AuthExchangeError as exc:
        logger.error("Error exchanging code: %s", exc.payload or exc)
        return HTMLResponse(FAILURE_PAGE, status_code=500)

    access_token = token_info.get("access_token")
    refresh_token = token_info.get("refresh_token")
    if not access_token or not refresh_token:
        logger.error("Token response missing access_token or refresh_token: %s", token_info)
        return HTMLResponse(FAILURE_PAGE, status_code=500)

    try:
        store.set(REFRESH_TOKEN_KEY, refresh_token)
    except OSError as exc:
        logger.error("Could not save refresh token to %s: %s", store.path, exc)
        return HTMLResponse(FAILURE_PAGE, status_code=500)

    tokens.set_access_token(access_token)
    logger.info("Authorization complete; refresh token saved")
    return HTMLResponse(SUCCESS_PAGE)

"""HubSpot install endpoints.

- GET /install: start the PKCE flow and redirect to HubSpot
- GET /callback: exchange the authorization code and show the outcome

The browser session cookie (SessionMiddleware) only carries an opaque
install id; the verifier itself stays in the server-side InstallSessionStore.
"""

import html
import logging
import secrets

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from errors import AuthorizationFailedError, MissingCodeError, SessionExpiredError
from oauth.flow import AuthorizationFlow
from oauth.templates import FAILURE_PAGE, SUCCESS_PAGE

logger = logging.getLogger(__name__)

# Router for OAuth endpoints
router = APIRouter(tags=["oauth"])

SESSION_KEY = "install_id"


def _flow(request: Request) -> AuthorizationFlow:
    return request.app.state.auth_flow


def failure_page(title: str, error: str, status_code: int) -> HTMLResponse:
    return HTMLResponse(
        FAILURE_PAGE.format(title=html.escape(title), error=html.escape(error)),
        status_code=status_code,
    )


@router.get("/install")
async def install(request: Request):
    """Start the HubSpot authorization flow."""
    install_id = secrets.token_urlsafe(32)
    request.session[SESSION_KEY] = install_id
    authorize_url = _flow(request).begin_install(install_id)
    return RedirectResponse(url=authorize_url, status_code=302)


@router.get("/callback")
async def callback(request: Request, code: str = "", error: str = "", error_description: str = ""):
    """OAuth redirect target: trade the code for an access token."""
    install_id = request.session.pop(SESSION_KEY, None)

    if error:
        # HubSpot redirected back without a code (e.g. the user declined)
        failure = AuthorizationFailedError({"error": error, "error_description": error_description})
        _flow(request).sessions.pop(install_id)
        logger.info(f"[OAUTH] Authorization denied upstream: {error}")
        return failure_page("Authorization Failed", str(failure), 400)

    try:
        await _flow(request).complete_callback(code, install_id)
    except (MissingCodeError, SessionExpiredError) as e:
        return failure_page("Authorization Failed", str(e), 400)
    except AuthorizationFailedError as e:
        return failure_page("Error during authorization token exchange", str(e), 500)

    return HTMLResponse(SUCCESS_PAGE.format())

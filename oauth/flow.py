"""HubSpot OAuth 2.0 authorization code flow with PKCE.

begin_install() creates a verifier for a browser session and returns the
HubSpot authorize URL. complete_callback() trades the returned code plus that
session's verifier for an access token and stores it in the TokenStore.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from config import Config
from errors import AuthorizationFailedError, MissingCodeError, SessionExpiredError
from oauth.pkce import CODE_CHALLENGE_METHOD, code_challenge, generate_code_verifier, verify_code_challenge
from oauth.stores import InstallSessionStore, TokenStore

logger = logging.getLogger(__name__)

HUBSPOT_AUTHORIZE_URL = "https://app.hubspot.com/oauth/authorize"
HUBSPOT_MCP_AUTHORIZE_URL = "https://mcp.hubspot.com/oauth/{portal_id}/authorize/user"
HUBSPOT_TOKEN_URL = "https://api.hubapi.com/oauth/v1/token"


class AuthorizationFlow:
    """Install/callback handler bound to one app's stores and credentials."""

    def __init__(
        self,
        config: Config,
        tokens: TokenStore,
        sessions: InstallSessionStore,
        token_url: str = HUBSPOT_TOKEN_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.tokens = tokens
        self.sessions = sessions
        self.token_url = token_url
        self._transport = transport

    def build_authorize_url(self, challenge: str) -> str:
        if self.config.portal_id:
            base = HUBSPOT_MCP_AUTHORIZE_URL.format(portal_id=self.config.portal_id)
        else:
            base = HUBSPOT_AUTHORIZE_URL

        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
        }
        if self.config.scopes:
            params["scope"] = " ".join(self.config.scopes)
        params["code_challenge"] = challenge
        params["code_challenge_method"] = CODE_CHALLENGE_METHOD
        return f"{base}?{urlencode(params)}"

    def begin_install(self, session_id: str) -> str:
        """Bind a fresh verifier to the session and return the authorize URL."""
        verifier = generate_code_verifier()
        challenge = code_challenge(verifier)
        self.sessions.put(session_id, verifier, challenge)
        logger.info("[OAUTH] Install started, redirecting to HubSpot")
        return self.build_authorize_url(challenge)

    async def complete_callback(self, code: Optional[str], session_id: Optional[str]) -> str:
        """Exchange the code for an access token. Returns the new token.

        The session entry is consumed here whether or not the exchange
        succeeds; a failed attempt has to start again from /install.
        """
        if not code:
            raise MissingCodeError()

        session = self.sessions.pop(session_id)
        if session is None:
            logger.info("[OAUTH] Callback rejected: no install session")
            raise SessionExpiredError()
        if not verify_code_challenge(session.code_verifier, session.code_challenge):
            logger.warning("[OAUTH] Callback rejected: verifier does not match issued challenge")
            raise SessionExpiredError()

        form = {
            "grant_type": "authorization_code",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "redirect_uri": self.config.redirect_uri,
            "code": code,
            "code_verifier": session.code_verifier,
        }

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(self.token_url, data=form)
        except httpx.HTTPError as e:
            logger.error(f"[OAUTH] Token exchange failed: {e}")
            raise AuthorizationFailedError({"message": str(e)}) from e

        payload = _json_or_text(response)
        if response.is_error:
            logger.error(f"[OAUTH] Token exchange rejected ({response.status_code}): {payload}")
            raise AuthorizationFailedError(payload)

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            logger.error("[OAUTH] Token response did not contain an access_token")
            raise AuthorizationFailedError(payload)

        self.tokens.set(access_token)
        logger.info("[OAUTH] Authorization complete")
        return access_token


def _json_or_text(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}

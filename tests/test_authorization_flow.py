from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from config import Config
from errors import AuthorizationFailedError, MissingCodeError, SessionExpiredError
from oauth.flow import AuthorizationFlow
from oauth.pkce import code_challenge
from oauth.stores import InstallSessionStore, TokenStore
from tests.conftest import BASE_ENV, RecordingTransport, form_body


def token_ok(request):
    return httpx.Response(200, json={"access_token": "hs-token", "refresh_token": "r", "expires_in": 1800})


def make_flow(transport=None, **env):
    config = Config({**BASE_ENV, **env}).validate()
    return AuthorizationFlow(config, TokenStore(), InstallSessionStore(), transport=transport)


def query(url):
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


def test_begin_install_uses_standard_authorize_endpoint():
    flow = make_flow(HUBSPOT_SCOPES="crm.objects.contacts.read crm.objects.contacts.write")

    url = flow.begin_install("session-1")

    assert url.startswith("https://app.hubspot.com/oauth/authorize?")
    params = query(url)
    assert params["client_id"] == "client-123"
    assert params["redirect_uri"] == "http://localhost:3000/callback"
    assert params["scope"] == "crm.objects.contacts.read crm.objects.contacts.write"
    assert params["code_challenge_method"] == "S256"

    entry = flow.sessions.pop("session-1")
    assert params["code_challenge"] == code_challenge(entry.code_verifier)


def test_begin_install_uses_portal_mcp_endpoint():
    flow = make_flow(HUBSPOT_PORTAL_ID="8188132")

    url = flow.begin_install("session-1")

    assert url.startswith("https://mcp.hubspot.com/oauth/8188132/authorize/user?")
    assert "scope" not in query(url)


def test_each_install_gets_a_fresh_verifier():
    flow = make_flow()
    first = query(flow.begin_install("a"))["code_challenge"]
    second = query(flow.begin_install("b"))["code_challenge"]
    assert first != second


@pytest.mark.asyncio
async def test_callback_exchanges_code_with_matching_verifier():
    transport = RecordingTransport(token_ok)
    flow = make_flow(transport)
    challenge = query(flow.begin_install("session-1"))["code_challenge"]

    token = await flow.complete_callback("auth-code", "session-1")

    assert token == "hs-token"
    assert flow.tokens.get() == "hs-token"
    assert len(transport.requests) == 1
    request = transport.requests[0]
    assert str(request.url) == "https://api.hubapi.com/oauth/v1/token"
    form = form_body(request)
    assert form["grant_type"] == "authorization_code"
    assert form["client_id"] == "client-123"
    assert form["client_secret"] == "secret-456"
    assert form["redirect_uri"] == "http://localhost:3000/callback"
    assert form["code"] == "auth-code"
    assert code_challenge(form["code_verifier"]) == challenge
    assert "session-1" not in flow.sessions


@pytest.mark.asyncio
async def test_missing_code_is_rejected_before_any_call():
    transport = RecordingTransport(token_ok)
    flow = make_flow(transport)
    flow.begin_install("session-1")

    with pytest.raises(MissingCodeError):
        await flow.complete_callback("", "session-1")
    assert transport.requests == []


@pytest.mark.asyncio
async def test_unknown_session_is_rejected():
    transport = RecordingTransport(token_ok)
    flow = make_flow(transport)
    flow.begin_install("session-1")

    with pytest.raises(SessionExpiredError):
        await flow.complete_callback("auth-code", "other-session")
    with pytest.raises(SessionExpiredError):
        await flow.complete_callback("auth-code", None)
    assert transport.requests == []
    assert not flow.tokens.is_authorized


@pytest.mark.asyncio
async def test_challenge_mismatch_is_rejected():
    transport = RecordingTransport(token_ok)
    flow = make_flow(transport)
    flow.sessions.put("session-1", "the-verifier", code_challenge("another-verifier"))

    with pytest.raises(SessionExpiredError):
        await flow.complete_callback("auth-code", "session-1")
    assert transport.requests == []


@pytest.mark.asyncio
async def test_session_cannot_be_replayed():
    transport = RecordingTransport(token_ok)
    flow = make_flow(transport)
    flow.begin_install("session-1")
    await flow.complete_callback("auth-code", "session-1")

    with pytest.raises(SessionExpiredError):
        await flow.complete_callback("auth-code", "session-1")
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_upstream_rejection_surfaces_payload():
    upstream = {"status": "BAD_AUTH_CODE", "message": "missing or unknown auth code"}
    transport = RecordingTransport(lambda request: httpx.Response(400, json=upstream))
    flow = make_flow(transport)
    flow.begin_install("session-1")

    with pytest.raises(AuthorizationFailedError) as excinfo:
        await flow.complete_callback("bad-code", "session-1")

    assert excinfo.value.payload == upstream
    assert not flow.tokens.is_authorized
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_response_without_access_token_fails():
    transport = RecordingTransport(lambda request: httpx.Response(200, json={"token_type": "bearer"}))
    flow = make_flow(transport)
    flow.begin_install("session-1")

    with pytest.raises(AuthorizationFailedError):
        await flow.complete_callback("code", "session-1")
    assert not flow.tokens.is_authorized


@pytest.mark.asyncio
async def test_transport_error_fails_without_retry():
    def refuse(request):
        raise httpx.ConnectError("unreachable", request=request)

    transport = RecordingTransport(refuse)
    flow = make_flow(transport)
    flow.begin_install("session-1")

    with pytest.raises(AuthorizationFailedError) as excinfo:
        await flow.complete_callback("code", "session-1")
    assert "unreachable" in excinfo.value.payload["message"]
    assert len(transport.requests) == 1

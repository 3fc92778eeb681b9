import asyncio
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from fastapi.testclient import TestClient

from config import Config
from main import create_app
from oauth.pkce import code_challenge
from tests.conftest import BASE_ENV, RecordingTransport, form_body


def hubspot_responder(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/oauth/v1/token":
        return httpx.Response(200, json={"access_token": "hs-oauth-token", "expires_in": 1800})
    return httpx.Response(200, json={"id": "101"})


@pytest.fixture
def transport():
    return RecordingTransport(hubspot_responder)


def make_client(transport, **env):
    app = create_app(Config({**BASE_ENV, **env}).validate(), transport=transport)
    return TestClient(app)


def test_health_reports_unauthorized_without_token(transport):
    client = make_client(transport)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["authorized"] is False
    assert response.json()["status"] == "ok"


def test_health_reports_static_token(transport):
    client = make_client(transport, HUBSPOT_ACCESS_TOKEN="pat-static")
    assert client.get("/health").json()["authorized"] is True


def test_root_lists_tools(transport):
    client = make_client(transport, HUBSPOT_OBJECTS="contacts")
    body = client.get("/").json()
    assert body["tools"] == ["get_contact", "search_contacts", "create_contact", "update_contact", "associate_objects"]
    assert body["endpoints"]["install"] == "/install"


def test_install_redirects_with_pkce_challenge(transport):
    client = make_client(transport, HUBSPOT_PORTAL_ID="8188132")

    response = client.get("/install", follow_redirects=False)

    assert response.status_code == 302
    location = response.headers["location"]
    assert location.startswith("https://mcp.hubspot.com/oauth/8188132/authorize/user?")
    params = parse_qs(urlsplit(location).query)
    assert params["code_challenge_method"] == ["S256"]
    assert params["client_id"] == ["client-123"]
    assert "hubspot_mcp_session" in response.cookies


def test_install_and_callback_round_trip(transport):
    client = make_client(transport)

    location = client.get("/install", follow_redirects=False).headers["location"]
    challenge = parse_qs(urlsplit(location).query)["code_challenge"][0]

    response = client.get("/callback", params={"code": "auth-code"})

    assert response.status_code == 200
    assert "Authorization Successful!" in response.text
    assert len(transport.requests) == 1
    form = form_body(transport.requests[0])
    assert code_challenge(form["code_verifier"]) == challenge
    assert client.get("/health").json()["authorized"] is True


def test_callback_from_another_browser_is_rejected(transport):
    installer = make_client(transport)
    installer.get("/install", follow_redirects=False)

    stranger = TestClient(installer.app)
    response = stranger.get("/callback", params={"code": "auth-code"})

    assert response.status_code == 400
    assert "Session expired" in response.text
    assert transport.requests == []
    assert stranger.get("/health").json()["authorized"] is False


def test_callback_without_code(transport):
    client = make_client(transport)
    client.get("/install", follow_redirects=False)

    response = client.get("/callback")

    assert response.status_code == 400
    assert "No authorization code provided." in response.text
    assert transport.requests == []


def test_callback_with_upstream_error(transport):
    client = make_client(transport)
    client.get("/install", follow_redirects=False)

    response = client.get("/callback", params={"error": "access_denied", "error_description": "User denied"})

    assert response.status_code == 400
    assert "access_denied" in response.text
    assert transport.requests == []


def test_failed_exchange_renders_error_page():
    transport = RecordingTransport(lambda request: httpx.Response(400, json={"message": "<bad code>"}))
    client = make_client(transport)
    client.get("/install", follow_redirects=False)

    response = client.get("/callback", params={"code": "bad"})

    assert response.status_code == 500
    assert "&lt;bad code&gt;" in response.text
    assert client.get("/health").json()["authorized"] is False

    # The session was consumed; retrying the callback needs a new install.
    assert client.get("/callback", params={"code": "bad"}).status_code == 400
    assert len(transport.requests) == 1


def test_tools_use_token_from_completed_install(transport):
    client = make_client(transport)
    client.get("/install", follow_redirects=False)
    client.get("/callback", params={"code": "auth-code"})

    registry = client.app.state.registry
    asyncio.run(registry.invoke("get_contact", {"id": "101"}))

    api_call = transport.requests[-1]
    assert api_call.url.path == "/crm/v3/objects/contacts/101"
    assert api_call.headers["Authorization"] == "Bearer hs-oauth-token"


def test_streamable_http_endpoint_answers_initialize(transport):
    app = create_app(Config(dict(BASE_ENV)).validate(), transport=transport)
    initialize = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "initialize",
        "params": {
            "protocolVersion": "2025-03-26",
            "capabilities": {},
            "clientInfo": {"name": "pytest", "version": "0"},
        },
    }

    # The context manager runs the lifespan that starts the MCP session manager.
    with TestClient(app) as client:
        response = client.post(
            "/mcp/", json=initialize, headers={"Accept": "application/json, text/event-stream"}
        )

    assert response.status_code == 200
    assert "serverInfo" in response.text
    assert "hubspot-mcp-server" in response.text


def test_legacy_message_endpoint_is_mounted(transport):
    client = make_client(transport)

    response = client.post("/messages/", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})

    # Mounted transport answers; without a session id it rejects the post.
    assert response.status_code == 400
    assert "session_id" in response.text

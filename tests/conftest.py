import json
from urllib.parse import parse_qs

import httpx
import pytest


BASE_ENV = {
    "HUBSPOT_CLIENT_ID": "client-123",
    "HUBSPOT_CLIENT_SECRET": "secret-456",
    "SESSION_SECRET": "session-secret",
    "REDIRECT_URI": "http://localhost:3000/callback",
}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, responder=None):
        self.requests: list[httpx.Request] = []
        self.responder = responder or (lambda request: httpx.Response(200, json={}))
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


def json_body(request: httpx.Request):
    return json.loads(request.content)


def form_body(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


@pytest.fixture
def transport():
    return RecordingTransport()

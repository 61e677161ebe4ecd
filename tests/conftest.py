import json
import time

import pytest
from fastapi.testclient import TestClient

from spotify_bridge.config.settings import Settings
from spotify_bridge.main import create_app
from spotify_bridge.models.token_model import TokenState
from spotify_bridge.services.token_store import TokenStore

SHARED_SECRET = "s3cret"
AUTH = {"Authorization": f"Bearer {SHARED_SECRET}"}
API_PREFIX = "https://api.spotify.com/v1/"


class FakeResponse:
    def __init__(self, status_code=200, body=None, content_type="application/json"):
        self.status_code = status_code
        if body is None:
            self.content = b""
        elif isinstance(body, (bytes, str)):
            self.content = body.encode() if isinstance(body, str) else body
        else:
            self.content = json.dumps(body).encode()
        self.headers = {"content-type": content_type} if self.content else {}

    @property
    def text(self):
        return self.content.decode()

    def json(self):
        return json.loads(self.content)


def json_response(status_code, body):
    return FakeResponse(status_code, body)


def no_content():
    return FakeResponse(204)


class FakeSession:
    """
    Stands in for requests.Session. Spotify API responses are queued per
    (method, path); the last queued response is reused once the queue runs dry.
    Token endpoint responses are queued separately in ``token_responses``.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.token_responses = []
        self.token_calls = []

    def on(self, method, path, *responses):
        self.routes.setdefault((method.upper(), path), []).extend(responses)
        return self

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        assert url.startswith(API_PREFIX), url
        path = url[len(API_PREFIX):]
        self.calls.append({
            "method": method.upper(),
            "path": path,
            "params": params,
            "json": json,
            "headers": headers or {},
            "timeout": timeout,
        })
        queue = self.routes.get((method.upper(), path))
        if not queue:
            raise AssertionError(f"Unexpected Spotify call: {method} {path}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, data=None, auth=None, timeout=None):
        self.token_calls.append({"url": url, "data": data, "auth": auth, "timeout": timeout})
        if not self.token_responses:
            raise AssertionError("Unexpected call to the Spotify token endpoint")
        response = self.token_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def paths(self):
        return [(c["method"], c["path"]) for c in self.calls]


@pytest.fixture
def settings():
    return Settings(
        client_id="cid",
        client_secret="csecret",
        redirect_uri="http://localhost:3000/callback",
        shared_secret=SHARED_SECRET,
    )


@pytest.fixture
def fake_spotify():
    return FakeSession()


@pytest.fixture
def token_store():
    return TokenStore(TokenState(
        access_token="access-1",
        refresh_token="refresh-1",
        expires_at=time.time() + 3600,
    ))


@pytest.fixture
def app(settings, token_store, fake_spotify):
    return create_app(settings, token_store=token_store, http_session=fake_spotify)


@pytest.fixture
def client(app):
    return TestClient(app)

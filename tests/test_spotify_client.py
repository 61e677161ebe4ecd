import pytest
import requests

from conftest import FakeResponse, FakeSession, json_response, no_content
from spotify_bridge.models.token_model import TokenState
from spotify_bridge.services.errors import NotConnected, UpstreamTimeout, UpstreamUnavailable
from spotify_bridge.services.spotify_client import SpotifyClient
from spotify_bridge.services.spotify_token_service import TokenRefresher
from spotify_bridge.services.token_store import TokenStore


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def spotify(settings, session, token_store):
    refresher = TokenRefresher(token_store, settings, session)
    return SpotifyClient(refresher, session, timeout=settings.upstream_timeout)


def test_attaches_bearer_token_and_json_body(spotify, session):
    session.on("PUT", "me/player", no_content())

    spotify.call("PUT", "/me/player", body={"device_ids": ["d1"]})

    call = session.calls[0]
    assert call["headers"]["Authorization"] == "Bearer access-1"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["json"] == {"device_ids": ["d1"]}
    assert call["timeout"] == 10.0


def test_no_content_type_without_body(spotify, session):
    session.on("GET", "me/player/devices", json_response(200, {"devices": []}))

    resp = spotify.call("GET", "me/player/devices")

    assert "Content-Type" not in session.calls[0]["headers"]
    assert resp.status_code == 200
    assert resp.body == {"devices": []}


def test_204_is_normalized_to_empty_object(spotify, session):
    session.on("GET", "me/player", no_content())

    resp = spotify.call("GET", "me/player")

    assert resp.status_code == 204
    assert resp.body == {}
    assert resp.ok


def test_error_statuses_are_returned_not_raised(spotify, session):
    body = {"error": {"status": 404, "message": "Player command failed: No active device found"}}
    session.on("PUT", "me/player/pause", json_response(404, body))

    resp = spotify.call("PUT", "me/player/pause")

    assert not resp.ok
    assert resp.status_code == 404
    assert resp.body == body


def test_non_json_body_kept_raw(spotify, session):
    session.on("GET", "me", FakeResponse(502, "<html>bad gateway</html>", content_type="text/html; charset=utf-8"))

    resp = spotify.call("GET", "me")

    assert resp.body == b"<html>bad gateway</html>"
    assert resp.media_type == "text/html"


def test_timeout_raises_upstream_timeout(spotify, session):
    session.on("GET", "me/player", requests.ReadTimeout("slow"))

    with pytest.raises(UpstreamTimeout):
        spotify.call("GET", "me/player")


def test_connection_error_raises_upstream_unavailable(spotify, session):
    session.on("GET", "me/player", requests.ConnectionError("refused"))

    with pytest.raises(UpstreamUnavailable):
        spotify.call("GET", "me/player")


def test_not_connected_makes_no_call(settings, session):
    refresher = TokenRefresher(TokenStore(TokenState()), settings, session)
    spotify = SpotifyClient(refresher, session)

    with pytest.raises(NotConnected):
        spotify.call("GET", "me/player")
    assert session.calls == []

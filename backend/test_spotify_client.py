import pytest
import requests
from unittest.mock import MagicMock
from urllib.parse import urlparse, parse_qs

from backend.errors import UpstreamError
from backend.spotify_client import SpotifyClient


def mock_response(status=200, payload=None):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload or {}
    if status >= 400:
        error = requests.HTTPError(f"{status} error")
        error.response = response
        response.raise_for_status.side_effect = error
    return response


@pytest.fixture
def client():
    client = SpotifyClient("id", "secret", "http://localhost:1116/callback")
    client.session = MagicMock()
    return client


def test_authorize_url(client):
    url = urlparse(client.authorize_url("abc123"))
    params = parse_qs(url.query)

    assert url.path == "/authorize"
    assert params["state"] == ["abc123"]
    assert params["scope"] == ["user-top-read"]
    assert params["response_type"] == ["code"]
    assert params["redirect_uri"] == ["http://localhost:1116/callback"]


def test_exchange_code(client):
    client.session.post.return_value = mock_response(payload={"access_token": "user-token"})

    assert client.exchange_code("the-code") == "user-token"
    kwargs = client.session.post.call_args.kwargs
    assert kwargs["data"]["grant_type"] == "authorization_code"
    assert kwargs["auth"] == ("id", "secret")


def test_exchange_code_non_200(client):
    client.session.post.return_value = mock_response(status=400)

    with pytest.raises(UpstreamError) as excinfo:
        client.exchange_code("bad")
    assert excinfo.value.status == 400


def test_client_token_network_failure(client):
    client.session.post.side_effect = requests.ConnectionError("down")

    with pytest.raises(UpstreamError):
        client.request_client_token()


def test_get_top_tracks(client):
    client.session.get.return_value = mock_response(payload={"items": [
        {
            "id": "t1", "name": "Song", "popularity": 33,
            "artists": [{"id": "a1", "name": "Band"}],
            "album": {"images": [{"url": "big"}, {"url": "small"}]}
        },
        {"id": "t2", "name": "Other", "popularity": 10, "artists": [], "album": {"images": []}}
    ]})

    tracks = client.get_top_tracks("user-token")

    assert [t.rank for t in tracks] == [0, 1]
    assert tracks[0].artists[0].id == "a1"
    assert tracks[0].artists[0].genres is None
    assert tracks[0].album_images == ("big", "small")
    params = client.session.get.call_args.kwargs["params"]
    assert params == {"limit": 50, "time_range": "long_term"}


def test_get_top_artists(client):
    client.session.get.return_value = mock_response(payload={"items": [
        {"id": "a1", "name": "Band", "popularity": 70, "genres": ["pop"], "images": [{"url": "img"}]}
    ]})

    artists = client.get_top_artists("user-token")

    assert artists[0].genres == ("pop",)
    assert artists[0].images == ("img",)
    assert artists[0].rank == 0


def test_get_artists_skips_unknown_ids(client):
    client.session.get.return_value = mock_response(payload={"artists": [
        {"id": "x1", "name": "Solo", "popularity": 5, "genres": ["jazz"], "images": []},
        None
    ]})

    artists = client.get_artists(["x1", "bogus"], "client-token")

    assert [a.id for a in artists] == ["x1"]
    kwargs = client.session.get.call_args.kwargs
    assert kwargs["params"] == {"ids": "x1,bogus"}
    assert kwargs["headers"]["Authorization"] == "Bearer client-token"


def test_get_artists_http_error(client):
    client.session.get.return_value = mock_response(status=401)

    with pytest.raises(UpstreamError) as excinfo:
        client.get_artists(["x1"], None)
    assert excinfo.value.status == 401


def test_get_artists_rejects_oversized_batch(client):
    with pytest.raises(ValueError):
        client.get_artists([f"x{i}" for i in range(51)], "client-token")


def test_exchange_code_without_access_token(client):
    client.session.post.return_value = mock_response(payload={"error": "weird"})

    with pytest.raises(UpstreamError) as excinfo:
        client.exchange_code("the-code")
    assert excinfo.value.operation == "exchange_code"


def test_client_token_unparseable_body(client):
    response = mock_response()
    response.json.side_effect = requests.JSONDecodeError("Expecting value", "<html>", 0)
    client.session.post.return_value = response

    with pytest.raises(UpstreamError):
        client.request_client_token()


def test_null_popularity_reads_as_zero(client):
    client.session.get.return_value = mock_response(payload={"items": [
        {"id": "a1", "name": "Band", "popularity": None, "genres": ["pop"], "images": []}
    ]})

    artists = client.get_top_artists("user-token")

    assert artists[0].popularity == 0

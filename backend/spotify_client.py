import logging
from urllib.parse import urlencode

import requests

from backend import config
from backend.errors import UpstreamError
from backend.models import Artist, Track

logger = logging.getLogger(__name__)


class SpotifyClient:
    def __init__(self, client_id, client_secret, redirect_uri):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.accounts_url = config.ACCOUNTS_URL
        self.base_url = config.API_URL
        self.session = requests.Session()

    def authorize_url(self, state):
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "scope": config.SCOPE,
            "redirect_uri": self.redirect_uri,
            "state": state
        }
        return f"{self.accounts_url}/authorize?{urlencode(params)}"

    def _post_token(self, operation, data):
        try:
            response = self.session.post(
                f"{self.accounts_url}/api/token",
                data=data,
                auth=(self.client_id or "", self.client_secret or "")
            )
        except requests.RequestException as e:
            raise UpstreamError(operation, message=str(e)) from e
        if response.status_code != 200:
            raise UpstreamError(operation, status=response.status_code)
        try:
            return response.json()['access_token']
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamError(operation, message=f"malformed token response: {e!r}") from e

    def exchange_code(self, code):
        """Swaps an authorization code for the user's access token."""
        return self._post_token("exchange_code", {
            "code": code,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code"
        })

    def request_client_token(self):
        """Gets an app-level token, used to look up artists outside the user's top list."""
        return self._post_token("client_credentials", {"grant_type": "client_credentials"})

    def _get(self, operation, path, token, params=None):
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "application/json"
        }
        try:
            response = self.session.get(f"{self.base_url}{path}", params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            raise UpstreamError(operation, status=e.response.status_code) from e
        except (requests.RequestException, ValueError) as e:
            raise UpstreamError(operation, message=str(e)) from e

    def get_top_tracks(self, access_token, limit=config.TOP_LIMIT):
        params = {"limit": limit, "time_range": config.TOP_TIME_RANGE}
        data = self._get("top_tracks", "/me/top/tracks", access_token, params)
        return [Track.from_api(item, rank=i) for i, item in enumerate(data.get('items', []))]

    def get_top_artists(self, access_token, limit=config.TOP_LIMIT):
        params = {"limit": limit, "time_range": config.TOP_TIME_RANGE}
        data = self._get("top_artists", "/me/top/artists", access_token, params)
        return [Artist.from_api(item, rank=i) for i, item in enumerate(data.get('items', []))]

    def get_artists(self, artist_ids, client_token):
        """Fetches full artist objects (with genres) for up to ARTIST_BATCH_SIZE ids."""
        if len(artist_ids) > config.ARTIST_BATCH_SIZE:
            raise ValueError(f"At most {config.ARTIST_BATCH_SIZE} artist ids per lookup, got {len(artist_ids)}")
        data = self._get("artists", "/artists", client_token, {"ids": ",".join(artist_ids)})
        # Unknown ids come back as null entries
        return [Artist.from_api(a) for a in data.get('artists', []) if a]

from flask import Flask, jsonify, request, redirect, after_this_request
from flask_cors import CORS
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import urlencode
import logging
import secrets
import string

from backend import config
from backend.client_token import ClientTokenCell
from backend.errors import EmptyInputError, UpstreamError
from backend.genre_table import GenreAntonymTable
from backend.spotify_client import SpotifyClient
from backend.taste_engine import analyze_taste

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = config.SECRET_KEY
CORS(app, supports_credentials=True)

# Loaded once; a missing or broken table stops the server from starting
genre_table = GenreAntonymTable.load(config.GENRE_TABLE_PATH)
spotify = SpotifyClient(config.CLIENT_ID, config.CLIENT_SECRET, config.REDIRECT_URI)
client_token = ClientTokenCell(spotify.request_client_token, config.TOKEN_REFRESH_SECONDS)

CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    f"img-src 'self' {config.IMAGE_HOST} {config.PLACEHOLDER_IMAGE}",
    f"media-src 'self' {config.PREVIEW_URL_PREFIX}",
])


def generate_random_string(length):
    """Random alphanumeric string for the OAuth state cookie."""
    possible = string.ascii_letters + string.digits
    return ''.join(secrets.choice(possible) for _ in range(length))


def fetch_top_data(access_token):
    """Gets the user's top tracks and top artists in parallel."""
    with ThreadPoolExecutor(max_workers=2) as executor:
        tracks = executor.submit(spotify.get_top_tracks, access_token)
        artists = executor.submit(spotify.get_top_artists, access_token)
        return tracks.result(), artists.result()


def fetch_artist_batch(artist_ids):
    # Reads whatever token is current; never waits for a refresh
    return spotify.get_artists(artist_ids, client_token.value)


@app.after_request
def set_security_headers(response):
    response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    return response


@app.errorhandler(UpstreamError)
def handle_upstream_error(e):
    app.logger.error("Upstream failure: %s", e, exc_info=e)
    return jsonify({"status": "error", "error": "Something went wrong talking to Spotify. Please try again."}), 502


@app.route('/')
def index():
    return jsonify({"message": "Antithesis is running. Visit /login to find the music you were never meant to hear."})


@app.route('/login')
def login():
    state = generate_random_string(16)
    response = redirect(spotify.authorize_url(state))
    response.set_cookie(config.STATE_KEY, state)
    return response


@app.route('/callback')
def callback():
    code = request.args.get('code')
    state = request.args.get('state')
    stored_state = request.cookies.get(config.STATE_KEY)

    if state is None or state != stored_state:
        return redirect('/#' + urlencode({'error': 'state_mismatch'}))

    @after_this_request
    def clear_state_cookie(response):
        response.delete_cookie(config.STATE_KEY)
        return response

    access_token = spotify.exchange_code(code)
    tracks, artists = fetch_top_data(access_token)

    try:
        report = analyze_taste(artists, tracks, fetch_artist_batch, genre_table)
    except EmptyInputError:
        return jsonify({"status": "no_data"})

    result = report.to_dict()
    result["status"] = "ok"
    return jsonify(result)


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    client_token.start()
    logger.info("Server listening on port %d", config.PORT)
    app.run(port=config.PORT)


if __name__ == '__main__':
    main()

import os
from dotenv import load_dotenv

load_dotenv() # Load variables from .env

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

PORT = int(os.getenv("PORT", 1116))
CLIENT_ID = os.getenv("CLIENT_ID")
CLIENT_SECRET = os.getenv("CLIENT_SECRET")
REDIRECT_URI = os.getenv("REDIRECT_URI") or f"http://localhost:{PORT}/callback"
SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "antithesis-dev-secret") # Change this in production

GENRE_TABLE_PATH = os.getenv("GENRE_TABLE_PATH") or os.path.join(BASE_DIR, "data", "genres.csv")
TOKEN_REFRESH_SECONDS = int(os.getenv("TOKEN_REFRESH_SECONDS", 3600))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Spotify Web API
ACCOUNTS_URL = "https://accounts.spotify.com"
API_URL = "https://api.spotify.com/v1"
SCOPE = "user-top-read"
STATE_KEY = "spotify_auth_state"
TOP_LIMIT = 50
TOP_TIME_RANGE = "long_term"
ARTIST_BATCH_SIZE = 50 # Max ids per /artists call

# Media
PLACEHOLDER_IMAGE = "https://daneeee.blob.core.windows.net/images/noimage.jpg"
PREVIEW_URL_PREFIX = "https://p.scdn.co/mp3-preview/"
IMAGE_HOST = "https://i.scdn.co/image/"
TOP_RESULTS = 6

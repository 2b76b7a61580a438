import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "music-edge")

# Primary upstream (GDStudio style: types=search/url/pic/lyric)
API_BASE_URL = os.getenv("API_BASE_URL") or "https://music-api.gdstudio.xyz/api.php"
# Secondary upstream (TuneHub style: type=search/url/pic/lrc)
API_BASE_URL_2 = os.getenv("API_BASE_URL_2") or "https://music-dl.sayqz.com/api/"

PROXY_TIMEOUT = float(os.getenv("PROXY_TIMEOUT") or "30")
PROXY_FOLLOW_REDIRECTS = (
    os.getenv("PROXY_FOLLOW_REDIRECTS", "true").lower() == "true"
)

HOST = os.environ.get("HOSTNAME") or "0.0.0.0"
PORT = int(os.environ.get("PORT") or "8000")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")

import os

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/heartconnect")

JWT_SECRET = os.getenv("JWT_SECRET", "")
ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "60"))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "hc_session")

DAILY_SWIPE_LIMIT = int(os.getenv("DAILY_SWIPE_LIMIT", "10"))
# Calendar day used for the daily swipe counter.
SWIPE_TIMEZONE = os.getenv("SWIPE_TIMEZONE", "UTC")

DISCOVER_DEFAULT_LIMIT = int(os.getenv("DISCOVER_DEFAULT_LIMIT", "50"))
DISCOVER_MAX_LIMIT = int(os.getenv("DISCOVER_MAX_LIMIT", "100"))

MESSAGE_MAX_LENGTH = int(os.getenv("MESSAGE_MAX_LENGTH", "1000"))
REPORT_DETAILS_MAX_LENGTH = 500

RL_SWIPES_LIMIT = int(os.getenv("RL_SWIPES_LIMIT", "60"))
RL_MESSAGES_LIMIT = int(os.getenv("RL_MESSAGES_LIMIT", "60"))
RL_WINDOW_SECONDS = int(os.getenv("RL_WINDOW_SECONDS", "60"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

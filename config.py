import os
from dotenv import load_dotenv

# Only load .env in development mode (Optional)
if os.getenv("FLASK_ENV") == "development":
    load_dotenv()


class Config:
    # --------------------------------------
    # Flask / SQLAlchemy Settings
    # --------------------------------------
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "SQLALCHEMY_DATABASE_URI", "sqlite:///movienight.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 'pool_pre_ping' tests the connection with a SELECT 1 before use,
    # 'pool_recycle' recycles connections after N seconds.
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,  # 5 minutes
    }

    # --------------------------------------
    # Redis config (TMDb response cache, optional)
    # --------------------------------------
    REDIS_HOST = os.getenv("REDIS_HOST")
    REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB = int(os.getenv("REDIS_DB", 0))
    REDIS_DECODE_RESPONSES = (
        os.getenv("REDIS_DECODE_RESPONSES", "True") == "True"
    )

    # --------------------------------------
    # TMDb
    # --------------------------------------
    TMDB_API_TOKEN = os.getenv("TMDB_API_TOKEN", "")
    TMDB_BASE_URL = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")
    TMDB_IMAGE_BASE = os.getenv(
        "TMDB_IMAGE_BASE", "https://image.tmdb.org/t/p/w500"
    )
    TMDB_TIMEOUT = float(os.getenv("TMDB_TIMEOUT", 5))
    TMDB_CACHE_TTL = int(os.getenv("TMDB_CACHE_TTL", 3600))

    # --------------------------------------
    # Groups / voting
    # --------------------------------------
    POOL_CONTRIBUTION_CAP = int(os.getenv("POOL_CONTRIBUTION_CAP", 2))
    # Seconds between phase timer checks, 0 disables the checker thread
    PHASE_CHECK_INTERVAL = int(os.getenv("PHASE_CHECK_INTERVAL", 5))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --------------------------------------
    # Flask Secret Key
    # (Make sure to set this as an environment variable in production)
    # --------------------------------------
    SECRET_KEY = os.getenv("SECRET_KEY", "default_secret_key")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_FLASK_DB_URL", "sqlite://")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    REDIS_HOST = None
    TMDB_API_TOKEN = ""
    PHASE_CHECK_INTERVAL = 0
    LOG_LEVEL = "WARNING"

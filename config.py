import os
import re
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ConfigError(Exception):
    """Raised when the environment does not describe a usable configuration."""


def sanitize_mongo_uri(raw: Optional[str]) -> str:
    """Strip whitespace and one layer of surrounding quotes from a connection string.

    Values pasted into .env files or hosting dashboards often arrive as
    `"mongodb+srv://..."` including the quotes.
    """
    if raw is None:
        return ""
    uri = re.sub(r"^\s*[\"']?", "", raw)
    uri = re.sub(r"[\"']?\s*$", "", uri)
    return uri.strip()


def mask_uri(uri: str = "") -> str:
    # Hide credentials before the uri reaches any log line
    return re.sub(r"//.*@", "//<hidden>@", uri or "")


def validate_mongo_uri(uri: str) -> str:
    if not uri:
        raise ConfigError("MONGODB_URI is empty. Add it to your .env or hosting environment variables.")
    if not (uri.startswith("mongodb://") or uri.startswith("mongodb+srv://")):
        raise ConfigError('MONGODB_URI must start with "mongodb://" or "mongodb+srv://".')
    return uri


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


# Server
PORT = int(os.getenv("PORT", "4000"))
APP_ENV = os.getenv("APP_ENV", "development")
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
STATIC_DIR = os.getenv("STATIC_DIR", str(Path(__file__).parent / "public"))

# MongoDB
MONGODB_URI = sanitize_mongo_uri(os.getenv("MONGODB_URI") or os.getenv("MONGO_URI") or "")
DATABASE_NAME = os.getenv("DATABASE_NAME", "team-service-request")
DEBUG_MONGO_TLS = _env_flag("DEBUG_MONGO_TLS")

# SPOC access
SPOC_PIN = os.getenv("SPOC_PIN", "innovex25")
TEST_TOKEN = os.getenv("TEST_TOKEN", "changeme_test_token")
SPOC_TOKEN_TTL_SECONDS = int(os.getenv("SPOC_TOKEN_TTL_SECONDS", str(60 * 15)))


def is_allowed_origin(origin: Optional[str]) -> bool:
    # Requests without an Origin header come from curl or other servers
    if not origin:
        return True
    if FRONTEND_ORIGIN == "*" or origin == FRONTEND_ORIGIN:
        return True
    return origin.startswith("http://localhost")

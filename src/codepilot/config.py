"""Configuration loaded from environment variables."""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    val = os.getenv(name)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {val!r}") from None


# API keys
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")

# Models
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Server
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = _int_env("PORT", 8000)
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:9002").split(",")
    if o.strip()
]

# Uploads: cap on total uncompressed size of kept files (0 disables)
MAX_UPLOAD_BYTES: int = _int_env("MAX_UPLOAD_BYTES", 50 * 1024 * 1024)

# Deepest kept archive path, in segments; the serialized tree nests this far
MAX_PATH_DEPTH: int = _int_env("MAX_PATH_DEPTH", 100)

# Sessions: idle sessions are dropped after this many seconds, and the
# least recently used one is dropped when MAX_SESSIONS is reached
SESSION_TTL_SECONDS: int = _int_env("SESSION_TTL_SECONDS", 3600)
MAX_SESSIONS: int = _int_env("MAX_SESSIONS", 100)

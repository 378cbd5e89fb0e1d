"""Global configuration values."""

import os
from pathlib import Path

# Local data directory (Render persistent disk in production)
DATA_DIR = Path(os.environ.get("DATA_DIR", "./data"))

# JSON file backing the store; empty string keeps everything in memory
STORE_FILE = os.environ.get("VIBEMATCH_STORE_FILE", str(DATA_DIR / "vibematch.json"))

# Which LLM backs match suggestions: "openai" or "gemini"
LLM_PROVIDER = os.environ.get("LLM_PROVIDER", "openai").lower()

# Default model for match suggestions (OpenAI)
MATCH_MODEL = os.environ.get("OPENAI_MATCH_MODEL", "gpt-4o-mini")

# Default Gemini model (can be overridden via env)
DEFAULT_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")

MATCH_TEMPERATURE = float(os.environ.get("MATCH_TEMPERATURE", "0.7"))

# "development", "test" or "production"
APP_ENV = os.environ.get("APP_ENV", "production").lower()

# "session" (verified login) or "header" (X-User-Id test harness, never in production)
AUTH_MODE = os.environ.get("AUTH_MODE", "session").lower()

SECRET_KEY = os.environ.get("SECRET_KEY", "vibematch-dev-secret-key")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

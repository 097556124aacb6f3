"""
Configuration constants for the application.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).resolve().parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def is_production() -> bool:
    return bool(
        os.getenv("RAILWAY_ENVIRONMENT") or
        os.getenv("ENVIRONMENT", "").lower() == "production"
    )


# Generation service keys
# IMPORTANT: Do NOT hardcode keys in code or commit them to git.
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY", "").strip()

# When set, a missing OPENAI_API_KEY aborts startup instead of degrading
# every AI endpoint to its fallback message.
AI_REQUIRED = _flag("AI_REQUIRED")

# Store call budgets
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "10"))

ENABLE_DEBUG_ROUTES = _flag("ENABLE_DEBUG_ROUTES")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Quest economy
DAILY_QUEST_CAP = 9
GLOBAL_XP_SHARE = 0.7
MISSED_QUEST_XP_PENALTY = 20
PENALTY_QUEST_XP = 5

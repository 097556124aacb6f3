"""
Shared OpenAI client.

Everything that talks to the generation service goes through here:
    from mindmuse.ai.openai_client import get_client, key_present, key_fingerprint

- The API key is read ONCE (from config) and stripped of whitespace.
- A single client instance is reused, with a 12s request timeout.
- The last failure is remembered for the debug routes.
"""
import logging

import openai

from mindmuse.core.config import OPENAI_API_KEY

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 12

_KEY: str = OPENAI_API_KEY

# Track last error for diagnostics
_last_error: str | None = None

# Lazily-created singleton
_client = None


def key_present() -> bool:
    return bool(_KEY)


def key_fingerprint() -> str:
    """Return masked key for safe logging: sk-xxxx...1234"""
    if not _KEY:
        return "(not set)"
    if len(_KEY) <= 10:
        return _KEY[:2] + "***"
    return _KEY[:6] + "..." + _KEY[-4:]


def get_client():
    """Return the shared OpenAI client, or None if no key is configured."""
    global _client
    if not _KEY:
        return None
    if _client is None:
        _client = openai.OpenAI(api_key=_KEY, timeout=REQUEST_TIMEOUT)
    return _client


def set_last_error(msg: str):
    global _last_error
    _last_error = msg


def get_last_error() -> str | None:
    return _last_error


def log_startup():
    """One-time startup diagnostics."""
    logger.info("[AI] OPENAI_API_KEY present: %s", key_present())
    logger.info("[AI] key fingerprint: %s", key_fingerprint())
    logger.info("[AI] openai library: %s", getattr(openai, "__version__", "unknown"))

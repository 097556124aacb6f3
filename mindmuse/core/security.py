from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import os

from jose import jwt, JWTError

from mindmuse.core.config import is_production

logger = logging.getLogger(__name__)

# ======================
# JWT
# ======================
# Session tokens are issued by the auth provider and signed with the shared
# project secret. We only verify them; create_access_token exists for
# scripts, local development and tests.

SECRET_KEY = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY", ""))
if not SECRET_KEY:
    # In production, require a secret; for local dev, use a default (UNSAFE for prod)
    if is_production():
        raise RuntimeError("SECRET_KEY or JWT_SECRET_KEY env var is required in production")
    SECRET_KEY = "dev-secret-key-CHANGE-IN-PRODUCTION-12345678901234567890"
    logger.warning("[AUTH] Using default SECRET_KEY for development. DO NOT USE IN PRODUCTION!")
else:
    logger.info("[AUTH] SECRET_KEY present: True (length=%d)", len(SECRET_KEY))

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        # Provider tokens carry an audience claim we do not pin.
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM],
                          options={"verify_aud": False})
    except jwt.ExpiredSignatureError:
        logger.info("[AUTH] Token expired")
        return None
    except JWTError as e:
        logger.info("[AUTH] JWT decode error: %s", type(e).__name__)
        return None

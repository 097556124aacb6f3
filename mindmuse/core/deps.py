import logging

from fastapi import Request, Depends
from sqlalchemy.orm import Session

from mindmuse.db.session import commit_or_raise, get_db
from mindmuse.auth.models import User
from mindmuse.core.errors import UnauthorizedError
from mindmuse.core.security import decode_access_token

logger = logging.getLogger(__name__)


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization")
    token = auth_header or request.cookies.get("access_token")
    if not token:
        return None

    # Support both "Bearer <token>" and raw token values.
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    token = _extract_token(request)
    if not token:
        logger.debug("[AUTH] reject reason=missing_token path=%s", request.url.path)
        raise UnauthorizedError()

    payload = decode_access_token(token)
    if not payload:
        logger.debug("[AUTH] reject reason=invalid_token path=%s", request.url.path)
        raise UnauthorizedError()

    user_id = payload.get("sub")
    if not user_id:
        logger.debug("[AUTH] reject reason=no_sub_in_token path=%s", request.url.path)
        raise UnauthorizedError()

    user = db.get(User, str(user_id))
    if not user:
        # First request after sign-up: mirror the provider's user locally.
        email = payload.get("email")
        if not email:
            logger.debug("[AUTH] reject reason=unknown_user path=%s", request.url.path)
            raise UnauthorizedError()
        user = User(id=str(user_id), email=email,
                    full_name=(payload.get("user_metadata") or {}).get("full_name"))
        db.add(user)
        commit_or_raise(db, "user profile")
        db.refresh(user)
        logger.info("[AUTH] mirrored new user id=%s", user.id)

    return user

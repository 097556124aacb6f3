from pathlib import Path

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mindmuse.ai.openai_client import get_last_error, key_fingerprint, key_present
from mindmuse.auth.models import User
from mindmuse.db.base import engine
from mindmuse.db.session import get_db
from mindmuse.progress.models import UserGlobalProgress

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/users")
def debug_users(db: Session = Depends(get_db)):
    rows = (
        db.query(User, UserGlobalProgress)
        .outerjoin(UserGlobalProgress, UserGlobalProgress.user_id == User.id)
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )
    return [
        {
            "id": u.id,
            "email": u.email,
            "name": u.name,
            "global_level": p.global_level if p else None,
            "global_xp": p.global_xp if p else None,
            "league": p.league if p else None,
            "created_at": str(u.created_at or ""),
        }
        for u, p in rows
    ]


@router.get("/diagnostics/db")
def db_diagnostics():
    """
    Lightweight DB diagnostics for debugging deployments.

    Only mounted when ENABLE_DEBUG_ROUTES=1; never returns the password.
    """
    url = engine.url
    backend = url.get_backend_name()
    info = {
        "backend": backend,
        "url": url.render_as_string(hide_password=True),
    }

    if backend == "sqlite":
        db_path = Path(url.database or "").resolve()
        exists = db_path.exists()
        info.update(
            {
                "sqlite_path": str(db_path),
                "sqlite_exists": exists,
                "sqlite_size_bytes": db_path.stat().st_size if exists else 0,
            }
        )
    else:
        info.update(
            {
                "database": url.database,
                "host": url.host,
                "port": url.port,
                "drivername": url.drivername,
            }
        )

    return info


@router.get("/diagnostics/ai")
def ai_diagnostics():
    return {
        "openai_key_present": key_present(),
        "openai_key_fingerprint": key_fingerprint(),
        "last_error": get_last_error(),
    }

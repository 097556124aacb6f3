import logging
import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from mindmuse.core.config import DB_POOL_TIMEOUT, DB_STATEMENT_TIMEOUT_MS

logger = logging.getLogger(__name__)

# Absolute path to project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _build_database_url() -> str:
    """
    Determine the database URL.

    - Prefer DATABASE_URL from the environment (hosted Postgres in production).
    - Fallback to a local SQLite file for development.
    - Normalize legacy postgres:// URLs to SQLAlchemy's postgresql+psycopg2://.
    """
    url = os.getenv("DATABASE_URL", "sqlite:///./local.db").strip()

    if url.startswith("postgres://"):
        # SQLAlchemy 2.x expects a driver-qualified URL
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)

    return url


def _engine_kwargs(url: str) -> dict:
    """Per-backend bounds so no store call can hang a request indefinitely."""
    if url.startswith("sqlite"):
        # check_same_thread: FastAPI runs sync routes in a threadpool
        return {"connect_args": {"check_same_thread": False, "timeout": DB_POOL_TIMEOUT}}
    return {
        "pool_pre_ping": True,
        "pool_timeout": DB_POOL_TIMEOUT,
        "connect_args": {
            "connect_timeout": DB_POOL_TIMEOUT,
            "options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}",
        },
    }


DATABASE_URL = _build_database_url()

engine = create_engine(DATABASE_URL, future=True, **_engine_kwargs(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Helpful DB diagnostics logged once at startup
try:
    url_safe = engine.url.render_as_string(hide_password=True)
    backend = engine.url.get_backend_name()
    logger.info("[DB] Using database backend=%s url=%s", backend, url_safe)

    if backend == "sqlite":
        db_path = Path(engine.url.database or "").resolve()
        exists = db_path.exists()
        size = db_path.stat().st_size if exists else 0
        logger.info("[DB] SQLite path=%s exists=%s size_bytes=%s", db_path, exists, size)
except Exception as exc:
    # Never crash app on logging
    logger.warning("[DB] Failed to log DB diagnostics: %r", exc)

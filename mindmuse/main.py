import logging

from fastapi import FastAPI

from mindmuse.core.config import AI_REQUIRED, ENABLE_DEBUG_ROUTES
from mindmuse.core.errors import register_error_handlers
from mindmuse.core.logging_config import configure_logging

configure_logging()

from mindmuse.db.base import Base, engine  # noqa: E402
from mindmuse.ai import openai_client  # noqa: E402

# Import every model so create_all picks it up
from mindmuse.auth.models import User  # noqa: E402,F401
from mindmuse.ai.models import WritingFeedback  # noqa: E402,F401
from mindmuse.learn.models import Field, Module, QuestTemplate, SubModule  # noqa: E402,F401
from mindmuse.progress.models import UserFieldProgress, UserGlobalProgress  # noqa: E402,F401
from mindmuse.quests.models import Quest  # noqa: E402,F401
from mindmuse.todos.models import Todo  # noqa: E402,F401

from mindmuse.ai.routes import router as ai_router  # noqa: E402
from mindmuse.api.routes import router as api_router  # noqa: E402
from mindmuse.learn.routes import router as learn_router  # noqa: E402
from mindmuse.league.routes import router as league_router  # noqa: E402
from mindmuse.onboarding.routes import router as onboarding_router  # noqa: E402
from mindmuse.quests.routes import router as quests_router  # noqa: E402
from mindmuse.todos.routes import router as todos_router  # noqa: E402
from mindmuse.web.debug_routes import router as debug_router  # noqa: E402

logger = logging.getLogger(__name__)

if AI_REQUIRED and not openai_client.key_present():
    raise RuntimeError("AI_REQUIRED=1 but OPENAI_API_KEY is not set")

app = FastAPI(title="MindMuse", version="0.1.0")
register_error_handlers(app)

# Only expose debug routes (including diagnostics) when explicitly enabled.
if ENABLE_DEBUG_ROUTES:
    app.include_router(debug_router)

# Create database tables (still useful in dev; in production prefer Alembic)
Base.metadata.create_all(bind=engine)

openai_client.log_startup()

# Include routers
app.include_router(api_router)
app.include_router(todos_router)
app.include_router(quests_router)
app.include_router(learn_router)
app.include_router(league_router)
app.include_router(onboarding_router)
app.include_router(ai_router)


@app.get("/health")
def health():
    return {"status": "ok"}

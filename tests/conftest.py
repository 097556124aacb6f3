import os
import tempfile
import uuid

# The engine is built at import time, so the test database and keys must be
# in the environment before anything from mindmuse is imported.
_DB_DIR = tempfile.mkdtemp(prefix="mindmuse-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["OPENAI_API_KEY"] = ""
os.environ["HUGGINGFACE_API_KEY"] = ""
os.environ["AI_REQUIRED"] = "0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from mindmuse.main import app  # noqa: E402
from mindmuse.auth.models import User  # noqa: E402
from mindmuse.core.security import create_access_token  # noqa: E402
from mindmuse.db.base import Base, SessionLocal, engine  # noqa: E402
from mindmuse.learn.models import Field, Module, QuestTemplate, SubModule  # noqa: E402
from mindmuse.progress.models import UserFieldProgress, UserGlobalProgress, UserLevel  # noqa: E402
from mindmuse.quests.models import Quest  # noqa: E402

DEFAULT_LEVELS = {1: 0, 2: 100, 3: 250, 4: 450}


class Factory:
    """Small row builders; every call commits."""

    def __init__(self, db):
        self.db = db

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def levels(self, thresholds=None):
        for level, xp in (thresholds or DEFAULT_LEVELS).items():
            self.db.add(UserLevel(level=level, xp_required=xp))
        self.db.commit()

    def user(self, user_id=None, email=None, full_name=None):
        user_id = user_id or str(uuid.uuid4())
        return self._save(User(id=user_id, email=email or f"{user_id}@example.com", full_name=full_name))

    def field(self, name="Creative Writing", unlock_global_level=1):
        return self._save(Field(name=name, description="", unlock_global_level=unlock_global_level))

    def module(self, field, title="Foundations", unlock_field_level=1):
        return self._save(Module(field_id=field.id, title=title, description="",
                                 unlock_field_level=unlock_field_level))

    def sub_module(self, module, title="Morning Pages", order_index=0, unlock_field_level=1):
        return self._save(SubModule(module_id=module.id, title=title, description="",
                                    order_index=order_index, unlock_field_level=unlock_field_level))

    def template(self, sub_module=None, title="Write a page", xp_reward=10, is_mandatory=True):
        return self._save(QuestTemplate(
            sub_module_id=sub_module.id if sub_module else None,
            title=title,
            description="",
            xp_reward=xp_reward,
            is_mandatory=is_mandatory,
        ))

    def field_progress(self, user, field, level=1, xp=0, unlocked=True):
        return self._save(UserFieldProgress(user_id=user.id, field_id=field.id, field_level=level,
                                            field_xp=xp, unlocked=unlocked))

    def global_progress(self, user, level=1, xp=0, league="bronze"):
        return self._save(UserGlobalProgress(user_id=user.id, global_level=level, global_xp=xp,
                                             league=league))

    def legacy_quest(self, user, **kwargs):
        values = {"title": "Face Your Fear", "description": "Write about it.", "xp_reward": 10,
                  "type": "reflection", "status": "active"}
        values.update(kwargs)
        return self._save(Quest(user_id=user.id, **values))

    @staticmethod
    def headers(user):
        token = create_access_token({"sub": user.id, "email": user.email})
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        with engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def client(db):
    return TestClient(app)

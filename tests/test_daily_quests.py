import json
from datetime import timedelta

import pytest

from mindmuse.ai import coach
from mindmuse.core.clock import as_utc, utcnow
from mindmuse.core.errors import UpstreamServiceError, ValidationError
from mindmuse.progress.models import UserGlobalProgress
from mindmuse.quests.daily import (
    difficulty_for_xp,
    generate_daily_quests,
    sweep_expired_quests,
)
from mindmuse.quests.models import Quest

GENERATED = [
    {"title": "Face Your Fear", "description": "Write about it.", "type": "reflection", "xp": 20, "deadlineHours": 24},
    {"title": "Color Walk", "description": "Find five reds.", "type": "creative", "xp": 12, "deadlineHours": 12},
    {"title": "One Line", "description": "Write one line.", "type": "poetry", "xp": 5, "deadlineHours": 24},
]


@pytest.fixture
def generated_text(monkeypatch):
    def fake_complete(messages, **kwargs):
        return "<think>planning</think>Here you go:\n" + json.dumps(GENERATED) + "\nEnjoy!"
    monkeypatch.setattr(coach, "complete", fake_complete)


@pytest.fixture
def generation_down(monkeypatch):
    def fake_complete(messages, **kwargs):
        raise UpstreamServiceError("service unavailable")
    monkeypatch.setattr(coach, "complete", fake_complete)


@pytest.mark.parametrize("xp,difficulty", [(5, "easy"), (10, "easy"), (11, "medium"), (15, "medium"), (16, "hard")])
def test_difficulty_for_xp(xp, difficulty):
    assert difficulty_for_xp(xp) == difficulty


def test_generated_quests_are_stored(db, factory, generated_text):
    user = factory.user()
    now = utcnow()

    result = generate_daily_quests(db, user.id, now)

    assert result.message is None
    assert [(q.title, q.difficulty, q.type) for q in result.quests] == [
        ("Face Your Fear", "hard", "reflection"),
        ("Color Walk", "medium", "creative"),
        ("One Line", "easy", "challenge"),
    ]
    assert as_utc(result.quests[1].deadline) == now + timedelta(hours=12)
    assert all(q.status == "active" and q.user_id == user.id for q in result.quests)


def test_generation_respects_daily_cap(db, factory, generated_text):
    user = factory.user()
    now = utcnow()
    for i in range(8):
        factory.legacy_quest(user, title=f"q{i}", created_at=now)
    factory.legacy_quest(user, title="penalty", type="penalty", created_at=now)

    result = generate_daily_quests(db, user.id, now)
    assert len(result.quests) == 1

    with pytest.raises(ValidationError):
        generate_daily_quests(db, user.id, now)


def test_generation_failure_degrades_to_message(db, factory, generation_down):
    user = factory.user()

    result = generate_daily_quests(db, user.id)

    assert result.quests == []
    assert result.message == coach.FALLBACK_MESSAGE
    assert db.query(Quest).count() == 0


def test_unparseable_generation_degrades_to_message(db, factory, monkeypatch):
    monkeypatch.setattr(coach, "complete", lambda messages, **kwargs: "no quests today, sorry")
    user = factory.user()

    result = generate_daily_quests(db, user.id)

    assert result.quests == [] and result.message == coach.FALLBACK_MESSAGE


def test_missed_quest_becomes_penalty_and_costs_xp(db, factory, generation_down):
    user = factory.user()
    factory.global_progress(user, xp=50)
    now = utcnow()
    missed = factory.legacy_quest(user, created_at=now - timedelta(days=3), deadline=now - timedelta(days=2))

    created = sweep_expired_quests(db, user.id, now)

    assert len(created) == 1
    penalty = created[0]
    db.expire_all()
    assert (penalty.type, penalty.status, penalty.difficulty, penalty.xp_reward) == ("penalty", "active", "hard", 5)
    assert penalty.penalty_for_quest_id == missed.id
    assert penalty.title == f"Penalty: {missed.title}"
    assert as_utc(penalty.deadline) == now + timedelta(hours=24)
    moved = db.get(Quest, missed.id)
    assert (moved.type, moved.status) == ("penalty", "moved-to-penalty")
    assert db.query(UserGlobalProgress).filter_by(user_id=user.id).one().global_xp == 30


def test_sweep_is_not_repeated(db, factory, generation_down):
    user = factory.user()
    factory.global_progress(user, xp=50)
    now = utcnow()
    factory.legacy_quest(user, created_at=now - timedelta(days=3), deadline=now - timedelta(days=2))

    sweep_expired_quests(db, user.id, now)
    assert sweep_expired_quests(db, user.id, now) == []

    db.expire_all()
    assert db.query(UserGlobalProgress).filter_by(user_id=user.id).one().global_xp == 30


def test_sweep_deduction_floors_at_zero(db, factory, generation_down):
    user = factory.user()
    factory.global_progress(user, xp=10)
    now = utcnow()
    factory.legacy_quest(user, created_at=now - timedelta(hours=30), deadline=now - timedelta(hours=1))

    sweep_expired_quests(db, user.id, now)

    db.expire_all()
    assert db.query(UserGlobalProgress).filter_by(user_id=user.id).one().global_xp == 0


def test_sweep_ignores_fresh_and_finished_quests(db, factory, generation_down):
    user = factory.user()
    now = utcnow()
    factory.legacy_quest(user, title="fresh", created_at=now, deadline=now + timedelta(hours=5))
    factory.legacy_quest(user, title="done", status="completed",
                         created_at=now - timedelta(days=3), deadline=now - timedelta(days=2))

    assert sweep_expired_quests(db, user.id, now) == []


def test_old_quest_is_swept_even_before_its_deadline(db, factory, generation_down):
    user = factory.user()
    now = utcnow()
    factory.legacy_quest(user, title="stale", created_at=now - timedelta(days=3), deadline=now + timedelta(days=1))

    assert len(sweep_expired_quests(db, user.id, now)) == 1


def test_penalty_text_comes_from_generation_when_available(db, factory, generated_text):
    user = factory.user()
    now = utcnow()
    factory.legacy_quest(user, created_at=now - timedelta(days=3), deadline=now - timedelta(days=2))

    penalty = sweep_expired_quests(db, user.id, now)[0]

    assert penalty.title == "Face Your Fear"
    assert penalty.xp_reward == 5

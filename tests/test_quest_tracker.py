from datetime import timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from mindmuse.core.clock import utcnow
from mindmuse.core.errors import NotFoundError, ValidationError
from mindmuse.db.base import SessionLocal
from mindmuse.progress.models import UserGlobalProgress, UserQuestProgress
from mindmuse.quests import tracker
from mindmuse.quests.tracker import (
    global_share,
    list_active_quests,
    quest_stats,
    reconcile_unawarded_xp,
    record_progress,
)
from mindmuse.quests.xp import add_global_xp


@pytest.fixture
def player(factory):
    factory.levels()
    user = factory.user()
    factory.global_progress(user)
    return user


def _global(db, user):
    db.expire_all()
    return db.query(UserGlobalProgress).filter_by(user_id=user.id).one()


@pytest.mark.parametrize("bad", [-1, 101, 250, 50.5, True, "50", None])
def test_progress_outside_range_is_rejected(db, factory, player, bad):
    side = factory.template(title="side")

    with pytest.raises(ValidationError) as exc:
        record_progress(db, player.id, side.id, bad)
    assert exc.value.field == "progress"
    assert db.query(UserQuestProgress).count() == 0


def test_full_progress_completes_and_awards_once(db, factory, player):
    side = factory.template(title="side", xp_reward=10)

    first = record_progress(db, player.id, side.id, 100)
    second = record_progress(db, player.id, side.id, 100)

    assert first.completed and first.newly_completed and first.xp_awarded
    assert first.global_xp_awarded == 7
    assert second.completed and not second.newly_completed and not second.xp_awarded
    assert _global(db, player).global_xp == 7


def test_recompleting_after_dropping_progress_pays_nothing(db, factory, player):
    side = factory.template(title="side")

    record_progress(db, player.id, side.id, 100)
    dropped = record_progress(db, player.id, side.id, 40)
    again = record_progress(db, player.id, side.id, 100)

    assert dropped.completed is False and dropped.completed_at is None
    assert again.newly_completed is True and again.xp_awarded is False
    assert _global(db, player).global_xp == 7


def test_core_template_pays_field_and_global_share(db, factory, player):
    field = factory.field()
    sm = factory.sub_module(factory.module(field))
    core = factory.template(sm, xp_reward=15)
    progress = factory.field_progress(player, field)

    result = record_progress(db, player.id, core.id, 100)

    db.refresh(progress)
    assert (result.field_xp_awarded, result.global_xp_awarded) == (15, 11)
    assert progress.field_xp == 15
    assert _global(db, player).global_xp == 11


def test_global_share_rounds_half_up():
    assert [global_share(x) for x in (5, 10, 15, 20)] == [4, 7, 11, 14]


def test_level_rises_with_xp_and_never_falls(db, factory):
    factory.levels()
    user = factory.user()
    factory.global_progress(user, level=1, xp=95)
    side = factory.template(title="side", xp_reward=10)

    record_progress(db, user.id, side.id, 100)
    row = _global(db, user)
    assert (row.global_xp, row.global_level) == (102, 2)

    add_global_xp(db, user.id, -50)
    db.commit()
    row = _global(db, user)
    assert (row.global_xp, row.global_level) == (52, 2)

    add_global_xp(db, user.id, -500)
    db.commit()
    assert _global(db, user).global_xp == 0


def test_legacy_quest_is_marked_completed(db, factory, player):
    quest = factory.legacy_quest(player, xp_reward=10)

    result = record_progress(db, player.id, quest.id, 100)

    db.refresh(quest)
    assert result.source == "legacy"
    assert (quest.status, quest.progress) == ("completed", 100)
    assert _global(db, player).global_xp == 7


def test_legacy_quest_returns_to_board_when_progress_drops(db, factory, player):
    quest = factory.legacy_quest(player, xp_reward=10)

    record_progress(db, player.id, quest.id, 100)
    record_progress(db, player.id, quest.id, 60)

    db.refresh(quest)
    assert (quest.status, quest.progress) == ("active", 60)
    assert [q.id for q in list_active_quests(db, player.id).daily_quests] == [quest.id]
    assert _global(db, player).global_xp == 7


def test_someone_elses_legacy_quest_is_not_found(db, factory, player):
    other = factory.user()
    quest = factory.legacy_quest(other)

    with pytest.raises(NotFoundError) as exc:
        record_progress(db, player.id, quest.id, 100)
    assert exc.value.redirect == "/dashboard/quests"


def test_failed_award_keeps_progress_and_reward_claimable(db, factory, player, monkeypatch):
    side = factory.template(title="side")

    def boom(*args, **kwargs):
        raise SQLAlchemyError("counter table locked")

    monkeypatch.setattr(tracker, "add_global_xp", boom)
    result = record_progress(db, player.id, side.id, 100)
    monkeypatch.undo()

    assert result.completed is True and result.xp_awarded is False
    row = db.query(UserQuestProgress).filter_by(user_id=player.id, quest_id=side.id).one()
    assert row.completed is True and row.xp_awarded is False

    assert reconcile_unawarded_xp(db) == 1
    assert reconcile_unawarded_xp(db) == 0
    assert _global(db, player).global_xp == 7


def test_active_quests_hide_completed_side_templates(db, factory, player):
    done = factory.template(title="done")
    open_side = factory.template(title="open")
    legacy = factory.legacy_quest(player)
    penalty = factory.legacy_quest(player, type="penalty", title="Penalty: x")
    factory.legacy_quest(player, status="completed", title="old")

    record_progress(db, player.id, done.id, 100)
    board = list_active_quests(db, player.id)

    assert {q.id for q in board.daily_quests} == {open_side.id, legacy.id}
    assert [q.id for q in board.penalty_quests] == [penalty.id]
    assert set(board.to_dict()) == {"dailyQuests", "penaltyQuests"}


def test_sub_module_scope_lists_core_templates(db, factory, player):
    sm = factory.sub_module(factory.module(factory.field()))
    core = factory.template(sm, "core")
    factory.template(title="side")

    board = list_active_quests(db, player.id, sub_module_id=sm.id)

    assert [(q.id, q.quest_category, q.status) for q in board.daily_quests] == [(core.id, "core", "active")]
    assert board.penalty_quests == []
    with pytest.raises(NotFoundError):
        list_active_quests(db, player.id, sub_module_id="missing")


def test_quest_stats_counts_today_only_for_daily(db, factory, player):
    now = utcnow()
    for title in ("a", "b"):
        record_progress(db, player.id, factory.template(title=title).id, 100, now=now)
    record_progress(db, player.id, factory.template(title="old").id, 100, now=now - timedelta(days=2))
    record_progress(db, player.id, factory.template(title="half").id, 50, now=now)

    assert quest_stats(db, player.id, now) == {
        "dailyCompleted": 2,
        "dailyTotal": 9,
        "totalCompleted": 3,
    }


def test_double_submit_from_two_sessions_awards_once(db, factory, player):
    side = factory.template(title="side", xp_reward=10)
    sessions = [SessionLocal(), SessionLocal()]
    try:
        row_ids = []
        for session in sessions:
            row, _ = tracker._upsert_progress(session, player.id, side.id, 100, utcnow())
            session.commit()
            row_ids.append(row.id)
        assert row_ids[0] == row_ids[1]

        sources = [tracker.resolve_quest_source(s, player.id, side.id) for s in sessions]
        awards = [
            tracker._claim_and_award(session, player.id, row_id, source)
            for session, row_id, source in zip(sessions, row_ids, sources)
        ]
    finally:
        for session in sessions:
            session.close()

    assert [a is not None for a in awards] == [True, False]
    assert _global(db, player).global_xp == 7
    assert db.query(UserQuestProgress).filter_by(user_id=player.id).one().xp_awarded is True

import pytest

from mindmuse.core.errors import NotFoundError
from mindmuse.learn.path import (
    MaxLevelReached,
    NextLevel,
    compute_field_path,
    get_sub_module_detail,
    level_progress,
)
from mindmuse.quests.tracker import record_progress


@pytest.fixture
def two_step_field(factory):
    """Field with A (unlock 2, 2 mandatory) and B (unlock 4, 3 mandatory)."""
    factory.levels()
    field = factory.field()
    module = factory.module(field)
    a = factory.sub_module(module, "A", order_index=0, unlock_field_level=2)
    b = factory.sub_module(module, "B", order_index=1, unlock_field_level=4)
    a_quests = [factory.template(a, f"A{i}") for i in range(2)]
    b_quests = [factory.template(b, f"B{i}") for i in range(3)]
    return field, a, b, a_quests, b_quests


def test_level_gate_and_mandatory_completion(db, factory, two_step_field):
    field, a, b, a_quests, _ = two_step_field
    user = factory.user()
    factory.global_progress(user)
    factory.field_progress(user, field, level=3)

    for q in a_quests:
        record_progress(db, user.id, q.id, 100)

    path = compute_field_path(db, user.id, field.id)
    sm_a, sm_b = path.sub_module(a.id), path.sub_module(b.id)

    assert (sm_a.is_unlocked, sm_a.is_completed) == (True, True)
    assert (sm_b.is_unlocked, sm_b.is_completed) == (False, False)
    assert (sm_a.mandatory_completed, sm_a.mandatory_total) == (2, 2)
    assert (sm_b.mandatory_completed, sm_b.mandatory_total) == (0, 3)


def test_unlock_does_not_depend_on_earlier_sub_modules(db, factory, two_step_field):
    field, a, b, _, _ = two_step_field
    user = factory.user()
    factory.field_progress(user, field, level=4)

    path = compute_field_path(db, user.id, field.id)

    assert path.sub_module(a.id).is_completed is False
    assert path.sub_module(b.id).is_unlocked is True


def test_last_mandatory_quest_completes_sub_module_once(db, factory, two_step_field):
    field, a, _, a_quests, _ = two_step_field
    user = factory.user()
    factory.global_progress(user)
    progress = factory.field_progress(user, field, level=3)

    record_progress(db, user.id, a_quests[0].id, 100)
    assert compute_field_path(db, user.id, field.id).sub_module(a.id).is_completed is False

    result = record_progress(db, user.id, a_quests[1].id, 100)
    assert result.xp_awarded is True
    assert compute_field_path(db, user.id, field.id).sub_module(a.id).is_completed is True

    repeat = record_progress(db, user.id, a_quests[1].id, 100)
    assert repeat.xp_awarded is False
    db.refresh(progress)
    assert progress.field_xp == 20


def test_sub_module_without_mandatory_quests_is_never_complete(db, factory):
    factory.levels()
    field = factory.field()
    sm = factory.sub_module(factory.module(field))
    optional = factory.template(sm, "optional", is_mandatory=False)
    user = factory.user()
    factory.global_progress(user)
    factory.field_progress(user, field)

    record_progress(db, user.id, optional.id, 100)
    sm_path = compute_field_path(db, user.id, field.id).sub_module(sm.id)

    assert sm_path.is_completed is False
    assert (sm_path.quest_stats.completed, sm_path.quest_stats.total) == (1, 1)


def test_modules_and_sub_modules_are_ordered(db, factory):
    factory.levels()
    field = factory.field()
    late = factory.module(field, "Late", unlock_field_level=3)
    early = factory.module(field, "Early", unlock_field_level=1)
    second = factory.sub_module(early, "second", order_index=2)
    first = factory.sub_module(early, "first", order_index=1)
    user = factory.user()
    factory.field_progress(user, field, level=1)

    path = compute_field_path(db, user.id, field.id)

    assert [m.id for m in path.modules] == [early.id, late.id]
    assert [s.id for s in path.modules[0].sub_modules] == [first.id, second.id]
    assert path.modules[1].is_unlocked is False


def test_module_stats_sum_sub_module_stats(db, factory):
    factory.levels()
    field = factory.field()
    module = factory.module(field)
    s1 = factory.sub_module(module, "s1", order_index=0)
    s2 = factory.sub_module(module, "s2", order_index=1)
    t1 = factory.template(s1, "t1")
    factory.template(s1, "t2", is_mandatory=False)
    factory.template(s2, "t3")
    user = factory.user()
    factory.global_progress(user)
    factory.field_progress(user, field)

    record_progress(db, user.id, t1.id, 100)
    stats = compute_field_path(db, user.id, field.id).modules[0].module_stats

    assert (stats.completed, stats.total) == (1, 3)


def test_level_progress_reports_max_level(db, factory):
    factory.levels()

    assert level_progress(db, 3, 300) == NextLevel(level=3, xp=300, next_xp=450)
    top = level_progress(db, 4, 999)
    assert isinstance(top, MaxLevelReached)
    assert top.next_xp is None and top.max_level_reached is True


def test_field_path_at_max_level(db, factory):
    factory.levels()
    field = factory.field()
    user = factory.user()
    factory.field_progress(user, field, level=4, xp=500)

    path = compute_field_path(db, user.id, field.id)

    assert path.max_level_reached is True
    assert path.next_xp is None


def test_missing_field_or_progress_is_not_found(db, factory):
    field = factory.field()
    user = factory.user()

    with pytest.raises(NotFoundError):
        compute_field_path(db, user.id, "no-such-field")
    with pytest.raises(NotFoundError) as exc:
        compute_field_path(db, user.id, field.id)
    assert exc.value.redirect == "/learn"


def test_sub_module_detail_annotates_user_status(db, factory, two_step_field):
    field, a, _, a_quests, _ = two_step_field
    user = factory.user()
    factory.global_progress(user)
    factory.field_progress(user, field, level=2)

    record_progress(db, user.id, a_quests[0].id, 40)
    record_progress(db, user.id, a_quests[1].id, 100)
    detail = get_sub_module_detail(db, user.id, a.id)

    by_title = {q["title"]: q for q in detail["quests"]}
    assert by_title["A0"]["status"] == "active" and by_title["A0"]["progress"] == 40
    assert by_title["A1"]["status"] == "completed"
    assert detail["is_unlocked"] is True
    assert detail["is_completed"] is False

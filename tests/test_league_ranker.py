from datetime import datetime, timezone

import pytest

from mindmuse.core.errors import NotFoundError, ValidationError
from mindmuse.league.ranker import League, get_leaderboard, get_rank, next_reset_at, zone_for


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def bronze_league(factory):
    """a:300, b:200, c:200, d:100 in bronze; e:1000 in silver."""
    users = {}
    for user_id, xp, league in (("user-a", 300, "bronze"), ("user-c", 200, "bronze"),
                                ("user-b", 200, "bronze"), ("user-d", 100, "bronze"),
                                ("user-e", 1000, "silver")):
        user = factory.user(user_id=user_id, full_name=user_id.upper())
        factory.global_progress(user, xp=xp, league=league)
        users[user_id] = user
    return users


def test_rank_counts_strictly_higher_xp_in_same_league(db, bronze_league):
    ranks = {uid: get_rank(db, uid).rank for uid in bronze_league}

    assert ranks == {"user-a": 1, "user-b": 2, "user-c": 2, "user-d": 4, "user-e": 1}


def test_rank_is_monotone_in_xp(db, bronze_league):
    a, d = get_rank(db, "user-a"), get_rank(db, "user-d")

    assert a.global_xp > d.global_xp
    assert a.rank < d.rank


def test_rank_without_progress_is_not_found(db, factory):
    user = factory.user()

    with pytest.raises(NotFoundError):
        get_rank(db, user.id)


def test_leaderboard_orders_by_xp_then_user_id(db, bronze_league):
    board = get_leaderboard(db, "Bronze")

    assert [(r.position, r.user_id) for r in board] == [
        (1, "user-a"), (2, "user-b"), (3, "user-c"), (4, "user-d"),
    ]
    assert [r.zone for r in board] == ["promotion", "safe", "safe", "demotion"]
    assert board[0].full_name == "USER-A"


def test_leaderboard_limit_and_anonymous_members(db, factory, bronze_league):
    ghost = factory.user(user_id="user-z")
    factory.global_progress(ghost, xp=5000)
    db.delete(ghost)
    db.commit()

    board = get_leaderboard(db, "bronze", limit=2)

    assert [r.user_id for r in board] == ["user-z", "user-a"]
    assert board[0].full_name == "Anonymous"


def test_leaderboard_rejects_unknown_league(db):
    with pytest.raises(ValidationError):
        get_leaderboard(db, "copper")
    with pytest.raises(ValidationError):
        get_leaderboard(db, "gold", limit=0)


@pytest.mark.parametrize("position,total,zone", [
    (1, 1, "promotion"),
    (2, 10, "promotion"),
    (3, 10, "safe"),
    (8, 10, "safe"),
    (9, 10, "demotion"),
    (2, 2, "demotion"),
])
def test_zone_boundaries(position, total, zone):
    assert zone_for(position, total) == zone


def test_league_order_and_neighbours():
    assert League.parse(" GOLD ") is League.GOLD
    assert League.BRONZE.previous() is None
    assert League.BRONZE.next() is League.SILVER
    assert League.DIAMOND.next() is None
    assert [lg.rank_index for lg in League] == [0, 1, 2, 3, 4]
    assert League.PLATINUM.label == "Platinum"


@pytest.mark.parametrize("now,expected", [
    (_utc(2026, 10, 19, 0, 0), _utc(2026, 10, 26)),      # Monday midnight -> next week
    (_utc(2026, 10, 21, 15, 30), _utc(2026, 10, 26)),    # Wednesday
    (_utc(2026, 10, 25, 23, 59), _utc(2026, 10, 26)),    # Sunday night
])
def test_next_reset_is_next_monday_midnight(now, expected):
    assert next_reset_at(now) == expected


def test_zones_do_not_depend_on_requested_limit(db, factory):
    for i in range(10):
        factory.global_progress(factory.user(user_id=f"user-{i:02d}"), xp=1000 - i * 10)

    full = {r.user_id: r.zone for r in get_leaderboard(db, "bronze")}
    top_two = get_leaderboard(db, "bronze", limit=2)

    assert [(r.user_id, r.zone) for r in top_two] == [("user-00", "promotion"), ("user-01", "promotion")]
    assert all(full[r.user_id] == r.zone for r in top_two)
    assert full["user-09"] == "demotion"

from __future__ import annotations

from hunter_system.progression import (
    effective_tuning,
    gold_for_xp,
    mini_quest_xp,
    next_rank_threshold,
    quest_xp_for_rank,
    rank_of,
    required_xp_for_level,
    stat_reward_for_rank,
    workout_rewards,
)


def test_rank_boundaries() -> None:
    assert rank_of(0) == "E"
    assert rank_of(999) == "E"
    assert rank_of(1000) == "D"
    assert rank_of(2999) == "D"
    assert rank_of(3000) == "C"
    assert rank_of(10_000) == "B"
    assert rank_of(25_000) == "A"
    assert rank_of(49_999) == "A"
    assert rank_of(50_000) == "S"
    assert rank_of(-5) == "E"


def test_rank_is_monotonic() -> None:
    order = "EDCBAS"
    previous = 0
    for xp in range(0, 60_000, 250):
        current = order.index(rank_of(xp))
        assert current >= previous
        previous = current


def test_next_rank_threshold() -> None:
    assert next_rank_threshold(0) == 1000
    assert next_rank_threshold(3000) == 10_000
    assert next_rank_threshold(60_000) is None


def test_required_xp_and_gold() -> None:
    assert required_xp_for_level(1) == 500
    assert required_xp_for_level(7) == 3500
    assert gold_for_xp(550) == 275
    assert gold_for_xp(3) == 1


def test_rank_tables() -> None:
    assert [quest_xp_for_rank(r) for r in "EDCBAS"] == [10, 25, 50, 100, 200, 500]
    assert [stat_reward_for_rank(r) for r in "EDCBAS"] == [1, 2, 5, 10, 20, 50]
    assert mini_quest_xp(25) == 2


def test_workout_rewards_partial_session() -> None:
    rewards = workout_rewards(2, 4, cardio=False, streak=1)
    assert rewards == {"xp": 150, "strength": 1, "willpower": 0, "focus": 0, "overdrive": 0}


def test_tuning_overrides_merge_over_defaults() -> None:
    tuning = effective_tuning({"daily_quest_xp": 300})
    assert tuning["daily_quest_xp"] == 300
    assert tuning["rollover_penalty_xp"] == 100

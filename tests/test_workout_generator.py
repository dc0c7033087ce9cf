from __future__ import annotations

import random
from datetime import date

import pytest

from hunter_system.errors import InvalidInputError
from hunter_system.models import CatalogExercise, HealthProfile
from hunter_system.workout_generator import (
    TIME_UNITS,
    estimated_calories,
    generate_plan,
    is_equipment_allowed,
    muscle_recovery_status,
    rest_seconds,
    target_exercise_count,
)

MONDAY = date(2024, 1, 1)


def _plan(**profile_kwargs):
    budget_mode = profile_kwargs.pop("budget_mode", "time_units")
    days = profile_kwargs.pop("days", 7)
    return generate_plan(
        HealthProfile(**profile_kwargs),
        days=days,
        start=MONDAY,
        rng=random.Random(7),
        budget_mode=budget_mode,
    )


@pytest.mark.parametrize("goal", ["BUILD_MUSCLE", "LOSE_WEIGHT", "ENDURANCE"])
@pytest.mark.parametrize("budget_mode", ["time_units", "set_budget"])
def test_bodyweight_users_only_get_bodyweight(goal: str, budget_mode: str) -> None:
    plan = _plan(goal=goal, equipment="BODYWEIGHT", budget_mode=budget_mode)
    for day in plan:
        for exercise in day.exercises:
            assert exercise.equipment_needed == "Bodyweight"


def test_dumbbell_users_never_get_gym_equipment() -> None:
    plan = _plan(goal="BUILD_MUSCLE", equipment="HOME_DUMBBELLS", session_duration=90)
    for day in plan:
        for exercise in day.exercises:
            assert exercise.equipment_needed in {"Bodyweight", "Dumbbell"}


@pytest.mark.parametrize("budget_mode", ["time_units", "set_budget"])
def test_thirty_minute_sessions_stay_within_budget(budget_mode: str) -> None:
    for goal in ("BUILD_MUSCLE", "LOSE_WEIGHT", "ENDURANCE"):
        plan = _plan(goal=goal, equipment="GYM", session_duration=30, budget_mode=budget_mode)
        for day in plan:
            if day.is_recovery:
                continue
            total = sum(ex.duration for ex in day.exercises)
            assert total <= 30 + TIME_UNITS["ACCESSORY"]
            assert day.total_duration == total


def test_weekly_structure_follows_split() -> None:
    plan = _plan(goal="BUILD_MUSCLE")
    assert [d.day for d in plan] == ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]
    assert [d.focus for d in plan] == ["Push", "Pull", "Legs", "Rest", "Upper", "Lower", "Rest"]

    rest = plan[3]
    assert rest.is_recovery is True
    assert rest.total_duration == 30
    assert [ex.name for ex in rest.exercises] == ["Active Recovery"]

    push = plan[0]
    assert push.exercises[0].name == "Dynamic Warmup Protocol"
    assert push.exercises[0].type == "STRETCH"
    names = [ex.name for ex in push.exercises]
    assert len(names) == len(set(names))


def test_labels_follow_start_day() -> None:
    plan = generate_plan(HealthProfile(), start=date(2024, 1, 4), rng=random.Random(1))
    assert plan[0].day == "THU"
    assert plan[0].focus == "Rest"
    assert plan[1].focus == "Upper"


def test_twenty_eight_day_plan() -> None:
    plan = _plan(goal="ENDURANCE", days=28)
    assert len(plan) == 28
    assert plan[0].day == "W1 MON"
    assert plan[7].day == "W2 MON"
    assert plan[-1].day == "W4 SUN"
    assert all(d.is_recovery for d in plan if d.day.endswith("SUN"))


def test_seeded_generation_is_reproducible() -> None:
    assert _plan(goal="LOSE_WEIGHT") == _plan(goal="LOSE_WEIGHT")


def test_sets_and_reps_scale_with_goal_and_duration() -> None:
    long_plan = _plan(goal="BUILD_MUSCLE", equipment="GYM", session_duration=90)
    for day in long_plan:
        for exercise in day.exercises:
            if exercise.type == "COMPOUND":
                assert exercise.sets == 5
                assert exercise.reps == "8-12"
            elif exercise.type == "ACCESSORY":
                assert exercise.sets == 4
                assert exercise.reps == "8-12"

    short_plan = _plan(goal="LOSE_WEIGHT", equipment="GYM", session_duration=45)
    for day in short_plan:
        for exercise in day.exercises:
            if exercise.type == "COMPOUND":
                assert exercise.sets == 4
                assert exercise.reps == "12-15"
            elif exercise.type == "ACCESSORY":
                assert exercise.sets == 3
            elif exercise.type == "CARDIO":
                assert exercise.sets == 1
                assert exercise.reps.endswith("min")


def test_exercise_count_never_exceeds_target() -> None:
    for minutes in (20, 45, 60, 120):
        plan = _plan(goal="BUILD_MUSCLE", equipment="GYM", session_duration=minutes)
        for day in plan:
            if not day.is_recovery:
                assert len(day.exercises) - 1 <= target_exercise_count(minutes)


def test_fallback_when_catalog_has_no_match() -> None:
    catalog = [CatalogExercise(id="x1", name="Leg Press", muscle_group="Legs", equipment_needed="Machine")]
    plan = generate_plan(
        HealthProfile(equipment="BODYWEIGHT"),
        catalog=catalog,
        start=MONDAY,
        rng=random.Random(3),
    )
    push = plan[0]
    assert [ex.name for ex in push.exercises] == ["Dynamic Warmup Protocol", "Standard Pushups (Fallback)"]


def test_untagged_rows_inferred_from_environment() -> None:
    home = CatalogExercise(id="h", name="Wall Sit", muscle_group="Legs", environment="Home")
    bare = CatalogExercise(id="g", name="Hack Squat", muscle_group="Legs")
    assert is_equipment_allowed(home, "BODYWEIGHT") is True
    assert is_equipment_allowed(bare, "BODYWEIGHT") is False
    assert is_equipment_allowed(bare, "HOME_DUMBBELLS") is False
    assert is_equipment_allowed(bare, "GYM") is True


def test_invalid_plan_arguments() -> None:
    with pytest.raises(InvalidInputError):
        generate_plan(HealthProfile(), days=10)
    with pytest.raises(InvalidInputError):
        generate_plan(HealthProfile(), budget_mode="vibes")
    with pytest.raises(InvalidInputError):
        generate_plan(HealthProfile(equipment="KETTLEBELL"))
    with pytest.raises(InvalidInputError):
        generate_plan(HealthProfile(goal="build_muscle"))


def test_muscle_recovery_status() -> None:
    plan = _plan(goal="BUILD_MUSCLE")
    status = muscle_recovery_status(plan, today=date(2024, 1, 4))
    assert status == {"UPPER": 85, "LOWER": 55, "CORE": 100, "CARDIO": 100}


def test_rest_and_calorie_helpers() -> None:
    assert rest_seconds(0) == 60
    assert rest_seconds(50) == 50
    assert rest_seconds(400) == 30
    assert estimated_calories(30) == 195

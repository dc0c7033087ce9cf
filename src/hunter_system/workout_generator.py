from __future__ import annotations

import logging
import math
import random
from datetime import date, timedelta

from hunter_system.biometrics import validate_profile
from hunter_system.constants import (
    DEFAULT_EXERCISE_CATALOG,
    DIFFICULTY_BY_INTENSITY,
    ENVIRONMENT_EQUIPMENT,
    EQUIPMENT_ALLOWED,
)
from hunter_system.errors import InvalidInputError
from hunter_system.models import CatalogExercise, Exercise, HealthProfile, WorkoutDay
from hunter_system.time_utils import DAY_NAMES, date_range, day_label, now_local

logger = logging.getLogger(__name__)

REST = "Rest"
BUDGET_MODES = ("time_units", "set_budget")
PLAN_LENGTHS = (7, 28)

# Focus per weekday, Monday first.
SPLITS: dict[str, tuple[str, ...]] = {
    "BUILD_MUSCLE": ("Push", "Pull", "Legs", REST, "Upper", "Lower", REST),
    "LOSE_WEIGHT": ("Full Body Circuit", "Cardio", "Full Body Circuit", "Cardio", "Full Body Circuit", "Cardio", REST),
    "ENDURANCE": ("Run", "Core", "Run", "Core", "Run", "Core", REST),
}

FOCUS_MUSCLE_GROUPS: dict[str, tuple[str, ...]] = {
    "Push": ("Chest", "Shoulders", "Triceps"),
    "Pull": ("Back", "Biceps"),
    "Legs": ("Legs",),
    "Upper": ("Chest", "Back", "Shoulders", "Triceps", "Biceps"),
    "Lower": ("Legs", "Core"),
    "Full Body Circuit": ("Chest", "Back", "Legs", "Core"),
    "Cardio": ("Cardio",),
    "Run": ("Cardio",),
    "Core": ("Core",),
}

TIME_UNITS = {"WARMUP": 5, "COMPOUND": 12, "ACCESSORY": 7, "CARDIO": 10}
MINUTES_PER_SET = 2
LONG_SESSION_MINUTES = 75
FALLBACK_MINUTES = 10
RECOVERY_MINUTES = 30
DEFAULT_SESSION_MINUTES = 60

RECOVERY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "UPPER": ("CHEST", "BACK", "ARMS", "SHOULDERS", "UPPER", "PUSH", "PULL", "FULL BODY"),
    "LOWER": ("LEGS", "LOWER", "SQUAT", "FULL BODY"),
    "CORE": ("ABS", "CORE"),
    "CARDIO": ("CARDIO", "HIIT", "RUN"),
}


def catalog_equipment(exercise: CatalogExercise) -> str | None:
    """Equipment a catalog row needs; None means gym-only."""
    if exercise.equipment_needed:
        return exercise.equipment_needed
    if exercise.environment:
        return ENVIRONMENT_EQUIPMENT.get(exercise.environment)
    return None


def is_equipment_allowed(exercise: CatalogExercise, tier: str) -> bool:
    allowed = EQUIPMENT_ALLOWED.get(tier, EQUIPMENT_ALLOWED["BODYWEIGHT"])
    if allowed is None:
        return True
    return catalog_equipment(exercise) in allowed


def filter_catalog(
    catalog: tuple[CatalogExercise, ...] | list[CatalogExercise],
    tier: str,
    muscle_groups: tuple[str, ...],
) -> list[CatalogExercise]:
    groups = {g.lower() for g in muscle_groups}
    return [ex for ex in catalog if ex.muscle_group.lower() in groups and is_equipment_allowed(ex, tier)]


def target_exercise_count(session_minutes: int) -> int:
    return max(3, min(6, session_minutes // 10))


def _is_cardio(exercise: CatalogExercise) -> bool:
    return exercise.exercise_type == "CARDIO" or exercise.muscle_group.lower() == "cardio"


def _sets_for(exercise: CatalogExercise, session_minutes: int) -> int:
    if _is_cardio(exercise):
        return 1
    long_session = session_minutes >= LONG_SESSION_MINUTES
    if exercise.exercise_type == "COMPOUND":
        return 5 if long_session else 4
    return 4 if long_session else 3


def _minutes_for(exercise: CatalogExercise, session_minutes: int, budget_mode: str) -> int:
    if budget_mode == "set_budget":
        if _is_cardio(exercise):
            return TIME_UNITS["CARDIO"]
        return _sets_for(exercise, session_minutes) * MINUTES_PER_SET
    if _is_cardio(exercise):
        return TIME_UNITS["CARDIO"]
    return TIME_UNITS["COMPOUND"] if exercise.exercise_type == "COMPOUND" else TIME_UNITS["ACCESSORY"]


def _prescribe(exercise: CatalogExercise, profile: HealthProfile, session_minutes: int, minutes: int) -> Exercise:
    if _is_cardio(exercise):
        reps = f"{minutes} min"
        ex_type = "CARDIO"
    else:
        reps = "8-12" if profile.goal == "BUILD_MUSCLE" else "12-15"
        ex_type = "COMPOUND" if exercise.exercise_type == "COMPOUND" else "ACCESSORY"
    target = exercise.muscle_group if not exercise.sub_target else f"{exercise.muscle_group} ({exercise.sub_target})"
    return Exercise(
        name=exercise.name,
        sets=_sets_for(exercise, session_minutes),
        reps=reps,
        duration=minutes,
        type=ex_type,
        equipment_needed=catalog_equipment(exercise) or "Gym",
        notes=f"Target: {target}",
        video_url=exercise.video_url or None,
        image_url=exercise.image_url or None,
    )


def warmup_exercise() -> Exercise:
    return Exercise(
        name="Dynamic Warmup Protocol",
        sets=1,
        reps=f"{TIME_UNITS['WARMUP']} min",
        duration=TIME_UNITS["WARMUP"],
        type="STRETCH",
        notes="Increase heart rate. Mobilize joints.",
    )


def fallback_exercise() -> Exercise:
    return Exercise(
        name="Standard Pushups (Fallback)",
        sets=3,
        reps="10",
        duration=FALLBACK_MINUTES,
        type="COMPOUND",
        notes="No matching exercises found for your equipment.",
    )


def recovery_day(label: str) -> WorkoutDay:
    activity = Exercise(
        name="Active Recovery",
        sets=1,
        reps=f"{RECOVERY_MINUTES} min",
        duration=RECOVERY_MINUTES,
        type="STRETCH",
    )
    return WorkoutDay(day=label, focus=REST, exercises=(activity,), is_recovery=True, total_duration=RECOVERY_MINUTES)


def _session_minutes(profile: HealthProfile) -> int:
    minutes = profile.session_duration
    if not minutes or minutes <= 0:
        return DEFAULT_SESSION_MINUTES
    return int(minutes)


def _budget_minutes(session_minutes: int, budget_mode: str) -> int:
    if budget_mode == "set_budget":
        return (session_minutes // MINUTES_PER_SET) * MINUTES_PER_SET
    return session_minutes


def select_exercises(
    profile: HealthProfile,
    pool: list[CatalogExercise],
    rng: random.Random,
    budget_mode: str = "time_units",
) -> list[Exercise]:
    """Pick one exercise per sub-target, then gap-fill the remaining budget."""
    session_minutes = _session_minutes(profile)
    budget = _budget_minutes(session_minutes, budget_mode)
    target_count = target_exercise_count(session_minutes)
    preferred = DIFFICULTY_BY_INTENSITY.get(profile.intensity, "Intermediate")

    shuffled = rng.sample(pool, len(pool))
    # stable sort keeps the shuffled order inside each difficulty bucket
    shuffled.sort(key=lambda ex: ex.difficulty != preferred)

    current = TIME_UNITS["WARMUP"]
    chosen: list[Exercise] = []
    used: set[str] = set()
    seen_targets: set[tuple[str, str]] = set()

    def try_add(candidate: CatalogExercise) -> bool:
        nonlocal current
        if len(chosen) >= target_count or candidate.id in used:
            return False
        minutes = _minutes_for(candidate, session_minutes, budget_mode)
        if current + minutes > budget:
            return False
        chosen.append(_prescribe(candidate, profile, session_minutes, minutes))
        used.add(candidate.id)
        current += minutes
        return True

    for candidate in shuffled:
        if not candidate.sub_target:
            continue
        key = (candidate.muscle_group.lower(), candidate.sub_target.lower())
        if key in seen_targets:
            continue
        if try_add(candidate):
            seen_targets.add(key)

    for candidate in shuffled:
        if len(chosen) >= target_count:
            break
        try_add(candidate)

    return chosen


def build_day(
    label: str,
    focus: str,
    profile: HealthProfile,
    catalog: tuple[CatalogExercise, ...] | list[CatalogExercise],
    rng: random.Random,
    budget_mode: str = "time_units",
) -> WorkoutDay:
    if focus == REST:
        return recovery_day(label)

    pool = filter_catalog(catalog, profile.equipment, FOCUS_MUSCLE_GROUPS.get(focus, ()))
    main = select_exercises(profile, pool, rng, budget_mode=budget_mode)
    if not main:
        logger.warning("no catalog match focus=%s equipment=%s", focus, profile.equipment)
        main = [fallback_exercise()]

    exercises = (warmup_exercise(), *main)
    return WorkoutDay(
        day=label,
        focus=focus,
        exercises=exercises,
        is_recovery=False,
        total_duration=sum(ex.duration for ex in exercises),
    )


def generate_plan(
    profile: HealthProfile,
    catalog: tuple[CatalogExercise, ...] | list[CatalogExercise] | None = None,
    days: int = 7,
    start: date | None = None,
    rng: random.Random | None = None,
    budget_mode: str = "time_units",
) -> tuple[WorkoutDay, ...]:
    if days not in PLAN_LENGTHS:
        raise InvalidInputError(f"Plan length must be one of {PLAN_LENGTHS}")
    if budget_mode not in BUDGET_MODES:
        raise InvalidInputError(f"Unknown budget mode: {budget_mode}")
    validate_profile(profile)

    catalog = DEFAULT_EXERCISE_CATALOG if catalog is None else catalog
    start = start or now_local().date()
    rng = rng or random.Random()
    split = SPLITS.get(profile.goal, SPLITS["BUILD_MUSCLE"])

    plan: list[WorkoutDay] = []
    for index, day in enumerate(date_range(start, days)):
        label = day_label(day) if days == 7 else f"W{index // 7 + 1} {day_label(day)}"
        plan.append(build_day(label, split[day.weekday()], profile, catalog, rng, budget_mode=budget_mode))
    return tuple(plan)


def _plan_day_for(plan: tuple[WorkoutDay, ...] | list[WorkoutDay], day: date) -> WorkoutDay | None:
    name = DAY_NAMES[day.weekday()]
    for entry in plan:
        if entry.day == name or entry.day.endswith(f" {name}"):
            return entry
    return None


def muscle_recovery_status(
    plan: tuple[WorkoutDay, ...] | list[WorkoutDay],
    today: date | None = None,
) -> dict[str, int]:
    today = today or now_local().date()
    yesterday = _plan_day_for(plan, today - timedelta(days=1))
    two_days_ago = _plan_day_for(plan, today - timedelta(days=2))

    def trained(entry: WorkoutDay | None, keywords: tuple[str, ...]) -> bool:
        if entry is None or entry.is_recovery:
            return False
        focus = entry.focus.upper()
        return any(k in focus for k in keywords)

    status: dict[str, int] = {}
    for region, keywords in RECOVERY_KEYWORDS.items():
        if trained(yesterday, keywords):
            status[region] = 55
        elif trained(two_days_ago, keywords):
            status[region] = 85
        else:
            status[region] = 100
    return status


def rest_seconds(willpower: int) -> int:
    return max(30, 60 - willpower // 5)


def estimated_calories(minutes: float) -> int:
    return math.floor(minutes * 6.5)

from __future__ import annotations

from typing import Any

from hunter_system.models import CatalogExercise, ShopItem

XP_PER_LEVEL = 500
LOG_CAP = 20
HISTORY_CAP = 30

RANK_THRESHOLDS: tuple[tuple[str, int], ...] = (
    ("E", 0),
    ("D", 1000),
    ("C", 3000),
    ("B", 10000),
    ("A", 25000),
    ("S", 50000),
)

QUEST_XP_BY_RANK = {"E": 10, "D": 25, "C": 50, "B": 100, "A": 200, "S": 500}
STAT_REWARD_BY_RANK = {"E": 1, "D": 2, "C": 5, "B": 10, "A": 20, "S": 50}

DEFAULT_ENGINE_TUNING: dict[str, int] = {
    "daily_quest_xp": 200,
    "rollover_penalty_xp": 100,
    "penalty_window_hours": 4,
    "stat_decay_hours": 48,
    "streak_gold_per_day": 20,
    "fail_quest_xp": 50,
    "fail_quest_gold": 25,
    "fail_workout_xp": 100,
    "fail_workout_gold": 50,
    "workout_base_xp": 300,
    "overdrive_streak_days": 5,
}

MP_EXPANSION_BY_INTENSITY = {"HIGH": 10, "MODERATE": 5, "LIGHT": 2}
CARDIO_MP_BONUS = 5

DEFAULT_SHOP_ITEMS: tuple[ShopItem, ...] = (
    ShopItem("default_1", "1 Hour Gaming", "Uninterrupted gaming session.", 100, "gamepad"),
    ShopItem("default_2", "Cheat Meal", "One guilt-free meal of choice.", 300, "pizza"),
    ShopItem("default_3", "Streaming Binge", "2 hours of movies or series.", 150, "tv"),
    ShopItem("default_4", "Social Night", "Night out with friends.", 200, "users"),
    ShopItem("default_5", "Rest Day", "Complete recovery day. No quests.", 500, "moon"),
    ShopItem("default_6", "New Equipment", "Purchase gym gear or tech.", 1000, "shopping-bag"),
)

ACTIVITY_MULTIPLIERS = {
    "SEDENTARY": 1.2,
    "LIGHT": 1.375,
    "MODERATE": 1.55,
    "VERY_ACTIVE": 1.725,
}

# Onboarding form defaults, used when a profile carries unusable numbers.
PROFILE_FALLBACKS: dict[str, Any] = {
    "age": 25,
    "height": 175.0,
    "weight": 70.0,
}

BODY_FAT_DEFAULTS = {"MALE": 18.0, "FEMALE": 25.0}

GENDERS = ("MALE", "FEMALE")
ACTIVITY_LEVELS = tuple(ACTIVITY_MULTIPLIERS)
GOALS = ("LOSE_WEIGHT", "BUILD_MUSCLE", "ENDURANCE")
EQUIPMENT_TIERS = ("BODYWEIGHT", "HOME_DUMBBELLS", "GYM")
INTENSITIES = ("LIGHT", "MODERATE", "HIGH")

EQUIPMENT_ALLOWED: dict[str, frozenset[str] | None] = {
    "BODYWEIGHT": frozenset({"Bodyweight"}),
    "HOME_DUMBBELLS": frozenset({"Bodyweight", "Dumbbell"}),
    "GYM": None,
}

ENVIRONMENT_EQUIPMENT = {
    "Home": "Bodyweight",
    "Dumbbells": "Dumbbell",
}

DIFFICULTY_BY_INTENSITY = {
    "LIGHT": "Beginner",
    "MODERATE": "Intermediate",
    "HIGH": "Advanced",
}


def _ex(
    ex_id: str,
    name: str,
    muscle_group: str,
    sub_target: str | None,
    equipment: str,
    difficulty: str,
    exercise_type: str = "ACCESSORY",
    calories: int = 6,
) -> CatalogExercise:
    environment = {"Bodyweight": "Home", "Dumbbell": "Dumbbells"}.get(equipment, "Gym")
    return CatalogExercise(
        id=ex_id,
        name=name,
        muscle_group=muscle_group,
        sub_target=sub_target,
        equipment_needed=equipment,
        environment=environment,
        difficulty=difficulty,
        exercise_type=exercise_type,
        calories_burn=calories,
    )


DEFAULT_EXERCISE_CATALOG: tuple[CatalogExercise, ...] = (
    # Chest
    _ex("c1", "Barbell Bench Press", "Chest", "Middle", "Barbell", "Intermediate", "COMPOUND", 10),
    _ex("c2", "Incline Dumbbell Press", "Chest", "Upper", "Dumbbell", "Intermediate", "COMPOUND", 8),
    _ex("c3", "Cable Flys", "Chest", "Middle", "Cable", "Beginner", calories=6),
    _ex("c4", "Push-Ups", "Chest", "Middle", "Bodyweight", "Beginner", "COMPOUND", 5),
    _ex("c5", "Decline Push-Ups", "Chest", "Upper", "Bodyweight", "Intermediate", calories=6),
    _ex("c6", "Chest Dips", "Chest", "Lower", "Bodyweight", "Advanced", "COMPOUND", 8),
    _ex("c7", "Dumbbell Floor Press", "Chest", "Middle", "Dumbbell", "Beginner", calories=6),
    _ex("c8", "Decline Dumbbell Fly", "Chest", "Lower", "Dumbbell", "Intermediate", calories=6),
    # Back
    _ex("b1", "Deadlift", "Back", "Lower", "Barbell", "Advanced", "COMPOUND", 15),
    _ex("b2", "Pull-Ups", "Back", "Lats", "Bodyweight", "Intermediate", "COMPOUND", 10),
    _ex("b3", "Dumbbell Rows", "Back", "Thickness", "Dumbbell", "Beginner", "COMPOUND", 8),
    _ex("b4", "Lat Pulldown", "Back", "Lats", "Machine", "Beginner", calories=7),
    _ex("b5", "Inverted Rows", "Back", "Thickness", "Bodyweight", "Beginner", calories=6),
    _ex("b6", "Superman Hold", "Back", "Lower", "Bodyweight", "Beginner", calories=4),
    _ex("b7", "Seated Cable Row", "Back", "Thickness", "Cable", "Intermediate", calories=7),
    _ex("b8", "Dumbbell Pullover", "Back", "Lats", "Dumbbell", "Intermediate", calories=6),
    # Shoulders
    _ex("s1", "Overhead Press", "Shoulders", "Front", "Barbell", "Intermediate", "COMPOUND", 9),
    _ex("s2", "Dumbbell Lateral Raise", "Shoulders", "Side", "Dumbbell", "Beginner", calories=5),
    _ex("s3", "Face Pulls", "Shoulders", "Rear", "Cable", "Beginner", calories=6),
    _ex("s4", "Pike Push-Ups", "Shoulders", "Front", "Bodyweight", "Intermediate", "COMPOUND", 6),
    _ex("s5", "Prone Y Raise", "Shoulders", "Rear", "Bodyweight", "Beginner", calories=4),
    _ex("s6", "Plank Shoulder Taps", "Shoulders", "Side", "Bodyweight", "Beginner", calories=5),
    _ex("s7", "Dumbbell Shoulder Press", "Shoulders", "Front", "Dumbbell", "Intermediate", "COMPOUND", 8),
    _ex("s8", "Reverse Dumbbell Fly", "Shoulders", "Rear", "Dumbbell", "Beginner", calories=5),
    # Arms
    _ex("t1", "Tricep Rope Pushdown", "Triceps", None, "Cable", "Beginner", calories=5),
    _ex("t2", "Skullcrushers", "Triceps", None, "Barbell", "Intermediate", calories=7),
    _ex("t3", "Bench Dips", "Triceps", None, "Bodyweight", "Beginner", calories=5),
    _ex("t4", "Dumbbell Overhead Extension", "Triceps", None, "Dumbbell", "Beginner", calories=5),
    _ex("a1", "Barbell Curl", "Biceps", None, "Barbell", "Intermediate", calories=6),
    _ex("a2", "Hammer Curl", "Biceps", None, "Dumbbell", "Beginner", calories=5),
    _ex("a3", "Chin-Ups", "Biceps", None, "Bodyweight", "Intermediate", "COMPOUND", 9),
    _ex("a4", "Towel Curl Isometric", "Biceps", None, "Bodyweight", "Beginner", calories=3),
    # Legs
    _ex("l1", "Barbell Squat", "Legs", "Quads", "Barbell", "Advanced", "COMPOUND", 12),
    _ex("l2", "Leg Extensions", "Legs", "Quads", "Machine", "Beginner", calories=6),
    _ex("l3", "Bodyweight Squat", "Legs", "Quads", "Bodyweight", "Beginner", "COMPOUND", 7),
    _ex("l4", "Walking Lunges", "Legs", "Glutes", "Bodyweight", "Beginner", "COMPOUND", 8),
    _ex("l5", "Romanian Deadlift", "Legs", "Hamstrings", "Barbell", "Intermediate", "COMPOUND", 10),
    _ex("l6", "Goblet Squat", "Legs", "Quads", "Dumbbell", "Beginner", "COMPOUND", 9),
    _ex("l7", "Single-Leg Glute Bridge", "Legs", "Glutes", "Bodyweight", "Beginner", calories=5),
    _ex("l8", "Nordic Curl", "Legs", "Hamstrings", "Bodyweight", "Advanced", calories=6),
    _ex("l9", "Standing Calf Raise", "Legs", "Calves", "Bodyweight", "Beginner", calories=4),
    _ex("l10", "Dumbbell Romanian Deadlift", "Legs", "Hamstrings", "Dumbbell", "Intermediate", "COMPOUND", 9),
    # Core
    _ex("k1", "Plank", "Core", "Stability", "Bodyweight", "Beginner", calories=4),
    _ex("k2", "Hanging Leg Raise", "Core", "Lower Abs", "Bodyweight", "Advanced", calories=6),
    _ex("k3", "Crunches", "Core", "Upper Abs", "Bodyweight", "Beginner", calories=4),
    _ex("k4", "Russian Twists", "Core", "Obliques", "Bodyweight", "Beginner", calories=5),
    _ex("k5", "Cable Woodchop", "Core", "Obliques", "Cable", "Intermediate", calories=6),
    _ex("k6", "Dumbbell Side Bend", "Core", "Obliques", "Dumbbell", "Beginner", calories=4),
    _ex("k7", "Reverse Crunch", "Core", "Lower Abs", "Bodyweight", "Intermediate", calories=5),
    # Cardio
    _ex("r1", "Steady-State Run", "Cardio", "Aerobic", "Bodyweight", "Beginner", "CARDIO", 12),
    _ex("r2", "Burpees", "Cardio", "Anaerobic", "Bodyweight", "Intermediate", "CARDIO", 12),
    _ex("r3", "Jumping Jacks", "Cardio", "Aerobic", "Bodyweight", "Beginner", "CARDIO", 8),
    _ex("r4", "Mountain Climbers", "Cardio", "Anaerobic", "Bodyweight", "Beginner", "CARDIO", 10),
    _ex("r5", "Rowing Machine Intervals", "Cardio", "Anaerobic", "Machine", "Intermediate", "CARDIO", 13),
    _ex("r6", "Treadmill Incline Walk", "Cardio", "Aerobic", "Machine", "Beginner", "CARDIO", 9),
    _ex("r7", "Dumbbell Thrusters", "Cardio", "Anaerobic", "Dumbbell", "Intermediate", "CARDIO", 12),
    _ex("r8", "High Knees", "Cardio", "Anaerobic", "Bodyweight", "Beginner", "CARDIO", 10),
)

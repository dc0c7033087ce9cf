from __future__ import annotations

from typing import Any

from hunter_system.models import (
    STAT_KEYS,
    ActivityLog,
    AwakeningData,
    Biometrics,
    CatalogExercise,
    CoreStats,
    Exercise,
    HealthProfile,
    HistoryEntry,
    Macros,
    Player,
    Quest,
    ShopItem,
    StatTimestamps,
    WorkoutDay,
    clamp_stat,
)
from hunter_system.progression import rank_of, required_xp_for_level


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _get(data: dict[str, Any], key: str, default: Any = None) -> Any:
    """Read ``key`` in snake_case, falling back to its camelCase spelling."""
    if key in data and data[key] is not None:
        return data[key]
    camel = _camel(key)
    if camel in data and data[camel] is not None:
        return data[camel]
    return default


def _int(data: dict[str, Any], key: str, default: int = 0) -> int:
    value = _get(data, key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float_or_none(data: dict[str, Any], key: str) -> float | None:
    value = _get(data, key)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# --- to rows -----------------------------------------------------------------


def stats_to_row(stats: CoreStats) -> dict[str, int]:
    return stats.as_dict()


def quest_to_row(quest: Quest) -> dict[str, Any]:
    return {
        "id": quest.id,
        "title": quest.title,
        "description": quest.description,
        "rank": quest.rank,
        "category": quest.category,
        "xp_reward": quest.xp_reward,
        "is_completed": quest.is_completed,
        "created_at": quest.created_at,
        "is_daily": quest.is_daily,
        "trigger": quest.trigger,
        "mini_quest": quest.mini_quest,
        "completed_as_mini": quest.completed_as_mini,
    }


def shop_item_to_row(item: ShopItem) -> dict[str, Any]:
    return {"id": item.id, "title": item.title, "description": item.description, "cost": item.cost, "icon": item.icon}


def exercise_to_row(exercise: Exercise) -> dict[str, Any]:
    return {
        "name": exercise.name,
        "sets": exercise.sets,
        "reps": exercise.reps,
        "duration": exercise.duration,
        "type": exercise.type,
        "completed": exercise.completed,
        "equipment_needed": exercise.equipment_needed,
        "notes": exercise.notes,
        "video_url": exercise.video_url,
        "image_url": exercise.image_url,
    }


def workout_day_to_row(day: WorkoutDay) -> dict[str, Any]:
    return {
        "day": day.day,
        "focus": day.focus,
        "exercises": [exercise_to_row(ex) for ex in day.exercises],
        "is_recovery": day.is_recovery,
        "total_duration": day.total_duration,
    }


def biometrics_to_row(bio: Biometrics) -> dict[str, Any]:
    return {
        "bmi": bio.bmi,
        "bmr": bio.bmr,
        "tdee": bio.tdee,
        "body_fat": bio.body_fat,
        "body_fat_estimated": bio.body_fat_estimated,
        "category": bio.category,
        "macros": {
            "calories": bio.macros.calories,
            "protein": bio.macros.protein,
            "carbs": bio.macros.carbs,
            "fats": bio.macros.fats,
        },
    }


def health_profile_to_row(profile: HealthProfile) -> dict[str, Any]:
    return {
        "gender": profile.gender,
        "age": profile.age,
        "height": profile.height,
        "weight": profile.weight,
        "activity_level": profile.activity_level,
        "goal": profile.goal,
        "equipment": profile.equipment,
        "session_duration": profile.session_duration,
        "intensity": profile.intensity,
        "injuries": list(profile.injuries),
        "starting_weight": profile.starting_weight,
        "target_weight": profile.target_weight,
        "neck": profile.neck,
        "waist": profile.waist,
        "hip": profile.hip,
        "biometrics": biometrics_to_row(profile.biometrics) if profile.biometrics else None,
        "workout_plan": [workout_day_to_row(day) for day in profile.workout_plan],
        "last_workout_date": profile.last_workout_date,
    }


def player_to_row(player: Player) -> dict[str, Any]:
    return {
        "user_id": player.user_id,
        "name": player.name,
        "username": player.username,
        "identity": player.identity,
        "job": player.job,
        "title": player.title,
        "is_configured": player.is_configured,
        "level": player.level,
        "current_xp": player.current_xp,
        "required_xp": player.required_xp,
        "total_xp": player.total_xp,
        "daily_xp": player.daily_xp,
        "rank": player.rank,
        "gold": player.gold,
        "streak": player.streak,
        "stats": stats_to_row(player.stats),
        "last_stat_update": player.last_stat_update.as_dict(),
        "history": [
            {"date": h.date, "stats": stats_to_row(h.stats), "total_xp": h.total_xp, "daily_xp": h.daily_xp}
            for h in player.history
        ],
        "hp": player.hp,
        "max_hp": player.max_hp,
        "mp": player.mp,
        "max_mp": player.max_mp,
        "fatigue": player.fatigue,
        "last_login_date": player.last_login_date,
        "daily_quest_complete": player.daily_quest_complete,
        "is_penalty_active": player.is_penalty_active,
        "penalty_end_time": player.penalty_end_time,
        "logs": [{"id": e.id, "message": e.message, "timestamp": e.timestamp, "type": e.type} for e in player.logs],
        "quests": [quest_to_row(q) for q in player.quests],
        "shop_items": [shop_item_to_row(i) for i in player.shop_items],
        "awakening": {"vision": list(player.awakening.vision), "anti_vision": list(player.awakening.anti_vision)},
        "personal_bests": dict(player.personal_bests),
        "health_profile": health_profile_to_row(player.health_profile) if player.health_profile else None,
    }


# --- from rows ---------------------------------------------------------------


def row_to_stats(data: dict[str, Any] | None) -> CoreStats:
    data = data or {}
    return CoreStats(**{key: clamp_stat(_int(data, key, 10)) for key in STAT_KEYS})


def row_to_timestamps(data: dict[str, Any] | None, default: int) -> StatTimestamps:
    data = data or {}
    return StatTimestamps(**{key: _int(data, key, default) for key in STAT_KEYS})


def row_to_quest(data: dict[str, Any]) -> Quest:
    return Quest(
        id=str(_get(data, "id", "")),
        title=str(_get(data, "title", "")),
        description=str(_get(data, "description", "")),
        rank=str(_get(data, "rank", "E")),
        category=str(_get(data, "category", "strength")),
        xp_reward=_int(data, "xp_reward"),
        is_completed=bool(_get(data, "is_completed", False)),
        created_at=_int(data, "created_at"),
        is_daily=bool(_get(data, "is_daily", False)),
        trigger=_get(data, "trigger"),
        mini_quest=_get(data, "mini_quest"),
        completed_as_mini=bool(_get(data, "completed_as_mini", False)),
    )


def row_to_shop_item(data: dict[str, Any]) -> ShopItem:
    return ShopItem(
        id=str(_get(data, "id", "")),
        title=str(_get(data, "title", "")),
        description=str(_get(data, "description", "")),
        cost=_int(data, "cost"),
        icon=str(_get(data, "icon", "gift")),
    )


def row_to_exercise(data: dict[str, Any]) -> Exercise:
    return Exercise(
        name=str(_get(data, "name", "")),
        sets=_int(data, "sets", 1),
        reps=str(_get(data, "reps", "")),
        duration=_int(data, "duration"),
        type=str(_get(data, "type", "ACCESSORY")),
        completed=bool(_get(data, "completed", False)),
        equipment_needed=str(_get(data, "equipment_needed", "Bodyweight")),
        notes=_get(data, "notes"),
        video_url=_get(data, "video_url"),
        image_url=_get(data, "image_url"),
    )


def row_to_workout_day(data: dict[str, Any]) -> WorkoutDay:
    return WorkoutDay(
        day=str(_get(data, "day", "")),
        focus=str(_get(data, "focus", "")),
        exercises=tuple(row_to_exercise(ex) for ex in _get(data, "exercises", [])),
        is_recovery=bool(_get(data, "is_recovery", False)),
        total_duration=_int(data, "total_duration"),
    )


def row_to_biometrics(data: dict[str, Any] | None) -> Biometrics | None:
    if not data or _get(data, "bmi") is None:
        return None
    macros = _get(data, "macros", {}) or {}
    return Biometrics(
        bmi=float(_get(data, "bmi", 0.0)),
        bmr=float(_get(data, "bmr", 0.0)),
        tdee=float(_get(data, "tdee", 0.0)),
        body_fat=float(_get(data, "body_fat", 0.0)),
        body_fat_estimated=bool(_get(data, "body_fat_estimated", True)),
        category=str(_get(data, "category", "")),
        macros=Macros(
            calories=_int(macros, "calories"),
            protein=_int(macros, "protein"),
            carbs=_int(macros, "carbs"),
            fats=_int(macros, "fats"),
        ),
    )


def row_to_health_profile(data: dict[str, Any] | None) -> HealthProfile | None:
    if not data:
        return None
    defaults = HealthProfile()
    # older snapshots keep bmi/bmr/macros on the profile itself
    bio_raw = _get(data, "biometrics") or (data if _get(data, "bmi") is not None else None)
    return HealthProfile(
        gender=str(_get(data, "gender", defaults.gender)),
        age=_int(data, "age", defaults.age),
        height=_float_or_none(data, "height") or defaults.height,
        weight=_float_or_none(data, "weight") or defaults.weight,
        activity_level=str(_get(data, "activity_level", defaults.activity_level)),
        goal=str(_get(data, "goal", defaults.goal)),
        equipment=str(_get(data, "equipment", defaults.equipment)),
        session_duration=_int(data, "session_duration", defaults.session_duration),
        intensity=str(_get(data, "intensity", defaults.intensity)),
        injuries=tuple(str(i) for i in _get(data, "injuries", [])),
        starting_weight=_float_or_none(data, "starting_weight"),
        target_weight=_float_or_none(data, "target_weight"),
        neck=_float_or_none(data, "neck"),
        waist=_float_or_none(data, "waist"),
        hip=_float_or_none(data, "hip"),
        biometrics=row_to_biometrics(bio_raw),
        workout_plan=tuple(row_to_workout_day(d) for d in _get(data, "workout_plan", [])),
        last_workout_date=_get(data, "last_workout_date"),
    )


def row_to_catalog_exercise(data: dict[str, Any]) -> CatalogExercise:
    return CatalogExercise(
        id=str(_get(data, "id", "")),
        name=str(_get(data, "name", "")),
        muscle_group=str(_get(data, "muscle_group", "")),
        difficulty=str(_get(data, "difficulty", "Beginner")),
        sub_target=_get(data, "sub_target"),
        equipment_needed=_get(data, "equipment_needed"),
        environment=_get(data, "environment"),
        exercise_type=str(_get(data, "exercise_type", "ACCESSORY")),
        image_url=str(_get(data, "image_url", "")),
        video_url=str(_get(data, "video_url", "")),
        calories_burn=_int(data, "calories_burn", 5),
    )


def catalog_exercise_to_row(exercise: CatalogExercise) -> dict[str, Any]:
    return {
        "id": exercise.id,
        "name": exercise.name,
        "muscle_group": exercise.muscle_group,
        "difficulty": exercise.difficulty,
        "sub_target": exercise.sub_target,
        "equipment_needed": exercise.equipment_needed,
        "environment": exercise.environment,
        "exercise_type": exercise.exercise_type,
        "image_url": exercise.image_url,
        "video_url": exercise.video_url,
        "calories_burn": exercise.calories_burn,
    }


def row_to_player(data: dict[str, Any], now_ms: int = 0) -> Player:
    """Build a Player from a stored or client snapshot, repairing derived fields.

    Missing stat timestamps default to ``now_ms`` so a fresh snapshot does not
    decay on its first load.
    """
    level = max(1, _int(data, "level", 1))
    required_xp = required_xp_for_level(level)
    current_xp = max(0, min(_int(data, "current_xp"), required_xp - 1))
    total_xp = max(0, _int(data, "total_xp"))

    is_penalty_active = bool(_get(data, "is_penalty_active", False))
    penalty_end = _get(data, "penalty_end_time")
    penalty_end_time = int(penalty_end) if penalty_end else None
    if not is_penalty_active or penalty_end_time is None:
        is_penalty_active = False
        penalty_end_time = None

    awakening = _get(data, "awakening", {}) or {}
    history = tuple(
        HistoryEntry(
            date=str(_get(h, "date", "")),
            stats=row_to_stats(_get(h, "stats")),
            total_xp=_int(h, "total_xp"),
            daily_xp=_int(h, "daily_xp"),
        )
        for h in _get(data, "history", [])
    )
    logs = tuple(
        ActivityLog(
            id=str(_get(entry, "id", "")),
            message=str(_get(entry, "message", "")),
            timestamp=_int(entry, "timestamp"),
            type=str(_get(entry, "type", "SYSTEM")),
        )
        for entry in _get(data, "logs", [])
    )

    return Player(
        user_id=_get(data, "user_id"),
        name=str(_get(data, "name", "")),
        username=str(_get(data, "username", "")),
        identity=str(_get(data, "identity", "")),
        job=str(_get(data, "job", "NONE")),
        title=str(_get(data, "title", "WOLF SLAYER")),
        is_configured=bool(_get(data, "is_configured", False)),
        level=level,
        current_xp=current_xp,
        required_xp=required_xp,
        total_xp=total_xp,
        daily_xp=max(0, _int(data, "daily_xp")),
        rank=rank_of(total_xp),
        gold=max(0, _int(data, "gold")),
        streak=max(0, _int(data, "streak")),
        stats=row_to_stats(_get(data, "stats")),
        last_stat_update=row_to_timestamps(_get(data, "last_stat_update"), now_ms),
        history=history,
        hp=_int(data, "hp", 100),
        max_hp=_int(data, "max_hp", 100),
        mp=_int(data, "mp", 0),
        max_mp=_int(data, "max_mp", 10),
        fatigue=_int(data, "fatigue", 0),
        last_login_date=str(_get(data, "last_login_date", "")),
        daily_quest_complete=bool(_get(data, "daily_quest_complete", False)),
        is_penalty_active=is_penalty_active,
        penalty_end_time=penalty_end_time,
        logs=logs,
        quests=tuple(row_to_quest(q) for q in _get(data, "quests", [])),
        shop_items=tuple(row_to_shop_item(i) for i in _get(data, "shop_items", [])),
        awakening=AwakeningData(
            vision=tuple(_get(awakening, "vision", [])),
            anti_vision=tuple(_get(awakening, "anti_vision", [])),
        ),
        personal_bests={str(k): int(v) for k, v in (_get(data, "personal_bests", {}) or {}).items()},
        health_profile=row_to_health_profile(_get(data, "health_profile")),
    )

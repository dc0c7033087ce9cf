from __future__ import annotations

import math

from hunter_system.constants import (
    DEFAULT_ENGINE_TUNING,
    QUEST_XP_BY_RANK,
    RANK_THRESHOLDS,
    STAT_REWARD_BY_RANK,
    XP_PER_LEVEL,
)


def effective_tuning(tuning: dict[str, int] | None = None) -> dict[str, int]:
    if not tuning:
        return dict(DEFAULT_ENGINE_TUNING)
    merged = dict(DEFAULT_ENGINE_TUNING)
    merged.update(tuning)
    return merged


def required_xp_for_level(level: int) -> int:
    return max(1, level) * XP_PER_LEVEL


def rank_of(total_xp: int) -> str:
    xp = max(0, total_xp)
    rank = RANK_THRESHOLDS[0][0]
    for name, lower_bound in RANK_THRESHOLDS:
        if xp >= lower_bound:
            rank = name
    return rank


def next_rank_threshold(total_xp: int) -> int | None:
    for _, lower_bound in RANK_THRESHOLDS:
        if lower_bound > total_xp:
            return lower_bound
    return None


def gold_for_xp(amount: int) -> int:
    return max(0, math.floor(amount * 0.5))


def quest_xp_for_rank(rank: str) -> int:
    return QUEST_XP_BY_RANK.get(rank, QUEST_XP_BY_RANK["E"])


def stat_reward_for_rank(rank: str) -> int:
    return STAT_REWARD_BY_RANK.get(rank, 1)


def mini_quest_xp(xp_reward: int) -> int:
    return math.floor(xp_reward * 0.1)


def workout_rewards(
    completed: int,
    total: int,
    cardio: bool,
    streak: int,
    tuning: dict[str, int] | None = None,
) -> dict[str, int]:
    cfg = effective_tuning(tuning)
    rate = (completed / total) if total > 0 else 0.0
    rate = max(0.0, min(1.0, rate))

    xp = math.floor(int(cfg["workout_base_xp"]) * rate)
    strength = math.floor(2 * rate)
    willpower = math.floor(1 * rate)
    focus = math.floor(1 * rate)

    if cardio:
        xp = math.floor(xp * 1.3)
        willpower += 1

    multiplier = 2 if streak >= int(cfg["overdrive_streak_days"]) else 1
    return {
        "xp": xp * multiplier,
        "strength": strength * multiplier,
        "willpower": willpower * multiplier,
        "focus": focus * multiplier,
        "overdrive": int(multiplier > 1),
    }

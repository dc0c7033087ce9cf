from __future__ import annotations

import re
from dataclasses import replace
from datetime import datetime

from hunter_system.engine import EngineResult, NOT_FOUND, make_log, new_id, with_logs
from hunter_system.errors import InvalidInputError
from hunter_system.models import RANKS, STAT_KEYS, Notification, Player, Quest
from hunter_system.progression import quest_xp_for_rank
from hunter_system.time_utils import now_local, to_epoch_ms

FILTER_MODES = ("ACTIVE", "COMPLETED", "ALL")

CATEGORY_KEYWORDS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("strength", re.compile(r"run|walk|gym|lift|push|squat|muscle|train")),
    ("intelligence", re.compile(r"read|study|learn|code|write|solve|math")),
    ("focus", re.compile(r"meditate|focus|plan|organize|schedule")),
    ("social", re.compile(r"call|meet|date|talk|party|social")),
    ("willpower", re.compile(r"resist|fast|cold|endure|discipline|wait")),
)

RANK_KEYWORDS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("S", re.compile(r"impossible|god|marathon|project")),
    ("A", re.compile(r"hard|long|intense|heavy|exam")),
    ("C", re.compile(r"medium|hour|class")),
    ("E", re.compile(r"easy|quick|small|chat")),
)


def add_quest(
    player: Player,
    title: str,
    rank: str,
    category: str,
    description: str = "",
    is_daily: bool = False,
    trigger: str | None = None,
    mini_quest: str | None = None,
    now: datetime | None = None,
) -> EngineResult:
    clean_title = (title or "").strip()
    if not clean_title:
        raise InvalidInputError("Quest title is required")
    if rank not in RANKS:
        raise InvalidInputError(f"Unknown quest rank: {rank}")
    if category not in STAT_KEYS:
        raise InvalidInputError(f"Unknown quest category: {category}")

    ts = to_epoch_ms(now if now is not None else now_local())
    quest = Quest(
        id=new_id(),
        title=clean_title,
        description=(description or "").strip(),
        rank=rank,
        category=category,
        xp_reward=quest_xp_for_rank(rank),
        is_completed=False,
        created_at=ts,
        is_daily=is_daily,
        trigger=(trigger or "").strip() or None,
        mini_quest=(mini_quest or "").strip() or None,
    )
    updated = with_logs(
        replace(player, quests=(quest,) + player.quests),
        make_log(f"New Quest Accepted: {quest.title}", "SYSTEM", ts),
    )
    return EngineResult(
        player=updated,
        notifications=(Notification(f"Quest Accepted: {quest.title}", "SYSTEM"),),
    )


def delete_quest(player: Player, quest_id: str) -> EngineResult:
    remaining = tuple(q for q in player.quests if q.id != quest_id)
    if len(remaining) == len(player.quests):
        return EngineResult(player=player, advisory=NOT_FOUND)
    return EngineResult(player=replace(player, quests=remaining))


def reset_quest(player: Player, quest_id: str) -> EngineResult:
    """Mark a quest incomplete again. XP already awarded is kept."""
    if player.find_quest(quest_id) is None:
        return EngineResult(player=player, advisory=NOT_FOUND)
    quests = tuple(
        replace(q, is_completed=False, completed_as_mini=False) if q.id == quest_id else q
        for q in player.quests
    )
    return EngineResult(player=replace(player, quests=quests))


def filter_quests(quests: tuple[Quest, ...] | list[Quest], mode: str = "ACTIVE") -> list[Quest]:
    mode = mode.upper()
    if mode not in FILTER_MODES:
        raise InvalidInputError(f"Unknown quest filter: {mode}")
    if mode == "ACTIVE":
        selected = [q for q in quests if not q.is_completed]
    elif mode == "COMPLETED":
        selected = [q for q in quests if q.is_completed]
    else:
        selected = list(quests)
    return sorted(selected, key=lambda q: q.created_at, reverse=True)


def auto_rank(title: str, description: str = "") -> tuple[str, str]:
    """Guess (category, rank) for a quest from keywords in its text."""
    text = f"{title} {description}".lower()

    category = "strength"
    for name, pattern in CATEGORY_KEYWORDS:
        if pattern.search(text):
            category = name
            break

    rank = "D"
    for name, pattern in RANK_KEYWORDS:
        if pattern.search(text):
            rank = name
            break
    return category, rank

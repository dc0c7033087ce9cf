from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass, replace
from datetime import datetime

from hunter_system.constants import (
    CARDIO_MP_BONUS,
    DEFAULT_SHOP_ITEMS,
    HISTORY_CAP,
    LOG_CAP,
    MP_EXPANSION_BY_INTENSITY,
)
from hunter_system.models import (
    STAT_KEYS,
    ActivityLog,
    AwakeningData,
    HealthProfile,
    HistoryEntry,
    Notification,
    Player,
    StatTimestamps,
)
from hunter_system.progression import (
    effective_tuning,
    gold_for_xp,
    mini_quest_xp,
    rank_of,
    required_xp_for_level,
    stat_reward_for_rank,
    workout_rewards,
)
from hunter_system.time_utils import days_between, hours_to_ms, local_date_key, now_local, to_epoch_ms

logger = logging.getLogger(__name__)

PENALTY_BLOCKED = "penalty_blocked"
INSUFFICIENT_FUNDS = "insufficient_funds"
INVALID_INPUT = "invalid_input"
ALREADY_COMPLETED = "already_completed"
NOT_FOUND = "not_found"


@dataclass(frozen=True)
class EngineResult:
    player: Player
    notifications: tuple[Notification, ...] = ()
    level_ups: tuple[int, ...] = ()
    advisory: str | None = None

    @property
    def ok(self) -> bool:
        return self.advisory is None


def new_id() -> str:
    return secrets.token_urlsafe(8)


def make_log(message: str, log_type: str, timestamp: int) -> ActivityLog:
    return ActivityLog(id=new_id(), message=message, timestamp=timestamp, type=log_type)


def with_logs(player: Player, *entries: ActivityLog) -> Player:
    """Prepend ``entries`` (given oldest first) and truncate to the log cap."""
    if not entries:
        return player
    logs = tuple(reversed(entries)) + player.logs
    return replace(player, logs=logs[:LOG_CAP])


def _merge(first: EngineResult, second: EngineResult) -> EngineResult:
    return EngineResult(
        player=second.player,
        notifications=first.notifications + second.notifications,
        level_ups=first.level_ups + second.level_ups,
        advisory=second.advisory or first.advisory,
    )


def _blocked(player: Player) -> EngineResult:
    return EngineResult(
        player=player,
        notifications=(Notification("Penalty Zone active. Action blocked.", "DANGER"),),
        advisory=PENALTY_BLOCKED,
    )


def _invalid(player: Player, message: str) -> EngineResult:
    return EngineResult(player=player, notifications=(Notification(message, "WARNING"),), advisory=INVALID_INPUT)


def _resolve_now(now: datetime | None) -> datetime:
    return now if now is not None else now_local()


def normalize_username(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def new_player(name: str, user_id: str | None = None, now: datetime | None = None) -> Player:
    now = _resolve_now(now)
    ts = to_epoch_ms(now)
    return Player(
        user_id=user_id,
        name=name,
        username=normalize_username(name),
        is_configured=True,
        streak=1,
        last_stat_update=StatTimestamps.uniform(ts),
        last_login_date=local_date_key(now),
        shop_items=DEFAULT_SHOP_ITEMS,
        logs=(make_log(f"System Initialized. Welcome, {name}.", "SYSTEM", ts),),
    )


def grant_xp(
    player: Player,
    amount: int,
    now: datetime | None = None,
) -> EngineResult:
    if player.is_penalty_active:
        return _blocked(player)
    if amount <= 0:
        return _invalid(player, "XP amount must be positive.")

    ts = to_epoch_ms(_resolve_now(now))
    level = player.level
    required = required_xp_for_level(level)
    current = player.current_xp + amount
    hp = player.hp
    mp = player.mp

    entries = [make_log(f"Gained +{amount} XP", "XP", ts)]
    notifications: list[Notification] = []
    level_ups: list[int] = []

    while current >= required:
        current -= required
        level += 1
        required = required_xp_for_level(level)
        hp = player.max_hp
        mp = player.max_mp
        level_ups.append(level)
        entries.append(make_log(f"LEVEL UP! You represent Level {level}", "LEVEL_UP", ts))
        notifications.append(Notification(f"LIMIT BREAK! You have reached Level {level}", "LEVEL_UP"))

    total_xp = player.total_xp + amount
    updated = replace(
        player,
        level=level,
        current_xp=current,
        required_xp=required,
        total_xp=total_xp,
        daily_xp=player.daily_xp + amount,
        rank=rank_of(total_xp),
        gold=player.gold + gold_for_xp(amount),
        hp=hp,
        mp=mp,
    )
    if level_ups:
        logger.info("level up user=%s level=%s", player.user_id, level)
    return EngineResult(
        player=with_logs(updated, *entries),
        notifications=tuple(notifications),
        level_ups=tuple(level_ups),
    )


def complete_daily_quest(
    player: Player,
    now: datetime | None = None,
    tuning: dict[str, int] | None = None,
) -> EngineResult:
    if player.is_penalty_active:
        return _blocked(player)
    if player.daily_quest_complete:
        return EngineResult(player=player, advisory=ALREADY_COMPLETED)

    now = _resolve_now(now)
    cfg = effective_tuning(tuning)
    reward = int(cfg["daily_quest_xp"])
    marked = with_logs(
        replace(player, daily_quest_complete=True),
        make_log("Daily Quest Complete", "SYSTEM", to_epoch_ms(now)),
    )
    granted = grant_xp(marked, reward, now=now)
    return _merge(
        EngineResult(
            player=marked,
            notifications=(Notification(f"Daily Quest Complete. +{reward} XP Rewards Distributed.", "SUCCESS"),),
        ),
        granted,
    )


def apply_daily_rollover(
    player: Player,
    now: datetime | None = None,
    tuning: dict[str, int] | None = None,
) -> EngineResult:
    now = _resolve_now(now)
    today = local_date_key(now)
    last = player.last_login_date
    if last == today:
        return EngineResult(player=player)
    if not last:
        return EngineResult(player=replace(player, last_login_date=today))

    cfg = effective_tuning(tuning)
    ts = to_epoch_ms(now)
    entries: list[ActivityLog] = []
    notifications: list[Notification] = []

    snapshot = HistoryEntry(
        date=last,
        stats=player.stats,
        total_xp=player.total_xp,
        daily_xp=player.daily_xp,
    )
    history = ((snapshot,) + player.history)[:HISTORY_CAP]

    reset_count = sum(1 for q in player.quests if q.is_daily and q.is_completed)
    quests = tuple(
        replace(q, is_completed=False, completed_as_mini=False) if q.is_daily and q.is_completed else q
        for q in player.quests
    )
    if reset_count > 0:
        entries.append(make_log(f"Daily Reset: {reset_count} Quests Refreshed", "SYSTEM", ts))

    updated = replace(player, history=history, daily_xp=0, quests=quests)

    if not player.daily_quest_complete:
        deduction = int(cfg["rollover_penalty_xp"])
        total_xp = max(0, player.total_xp - deduction)
        current_xp = max(0, player.current_xp - deduction)
        lost = player.total_xp - total_xp
        penalty_end = ts + hours_to_ms(int(cfg["penalty_window_hours"]))
        updated = replace(
            updated,
            total_xp=total_xp,
            current_xp=min(current_xp, max(0, updated.required_xp - 1)),
            rank=rank_of(total_xp),
            is_penalty_active=True,
            penalty_end_time=penalty_end,
        )
        entries.append(make_log(f"Daily Quests Incomplete. -{lost} XP. Penalty Zone activated.", "PENALTY", ts))
        notifications.append(Notification(f"Daily Failure. -{lost} XP. Penalty Zone activated.", "DANGER"))
        logger.info("penalty activated user=%s until=%s", player.user_id, penalty_end)
    else:
        updated = replace(updated, daily_quest_complete=False)
        entries.append(make_log("Daily Cycle Reset. New Quests Available.", "SYSTEM", ts))

    gap = days_between(last, today)
    if gap == 1:
        streak = updated.streak + 1
        streak_gold = streak * int(cfg["streak_gold_per_day"])
        updated = replace(updated, streak=streak, gold=updated.gold + streak_gold)
        entries.append(make_log(f"Streak Active: {streak} Days. +{streak_gold} Gold.", "STREAK", ts))
        notifications.append(Notification(f"Daily Streak! +{streak_gold} Gold", "SUCCESS"))
    elif gap is None or gap > 1:
        if updated.streak > 1:
            entries.append(make_log("Streak Broken. Reset to 1.", "PENALTY", ts))
            notifications.append(Notification("Streak Broken. Stats Recalibrating...", "WARNING"))
        updated = replace(updated, streak=1)

    updated = replace(updated, last_login_date=today)
    logger.info("daily rollover user=%s from=%s to=%s", player.user_id, last, today)
    return EngineResult(player=with_logs(updated, *entries), notifications=tuple(notifications))


def apply_stat_decay(
    player: Player,
    now: datetime | None = None,
    tuning: dict[str, int] | None = None,
) -> EngineResult:
    cfg = effective_tuning(tuning)
    ts = to_epoch_ms(_resolve_now(now))
    threshold = hours_to_ms(int(cfg["stat_decay_hours"]))

    stats = player.stats
    stamps = player.last_stat_update
    entries: list[ActivityLog] = []
    notifications: list[Notification] = []
    for key in STAT_KEYS:
        if ts - stamps.get(key) > threshold and stats.get(key) > 1:
            stats = stats.with_value(key, stats.get(key) - 1)
            stamps = stamps.with_value(key, ts)
            entries.append(make_log(f"Stat Decay: -1 {key.upper()}", "SYSTEM", ts))
            notifications.append(Notification(f"Stat Decay Detected: {key.upper()} -1", "WARNING"))

    if not entries:
        return EngineResult(player=player)
    logger.info("stat decay user=%s stats=%s", player.user_id, len(entries))
    updated = replace(player, stats=stats, last_stat_update=stamps)
    return EngineResult(player=with_logs(updated, *entries), notifications=tuple(notifications))


def _clear_penalty(player: Player, message: str, ts: int) -> Player:
    cleared = replace(player, is_penalty_active=False, penalty_end_time=None)
    return with_logs(cleared, make_log(message, "SYSTEM", ts))


def tick_penalty_expiry(player: Player, now: datetime | None = None) -> EngineResult:
    ts = to_epoch_ms(_resolve_now(now))
    if not (player.is_penalty_active and player.penalty_end_time and ts > player.penalty_end_time):
        return EngineResult(player=player)
    logger.info("penalty expired user=%s", player.user_id)
    return EngineResult(
        player=_clear_penalty(player, "Penalty Zone survived. System access restored.", ts),
        notifications=(Notification("Penalty Zone cleared. System access restored.", "SUCCESS"),),
    )


def reduce_penalty(player: Player, ms: int, now: datetime | None = None) -> EngineResult:
    if not player.is_penalty_active or player.penalty_end_time is None:
        return EngineResult(player=player)
    if ms <= 0:
        return _invalid(player, "Penalty reduction must be positive.")

    ts = to_epoch_ms(_resolve_now(now))
    new_end = player.penalty_end_time - ms
    if new_end <= ts:
        logger.info("penalty served early user=%s", player.user_id)
        return EngineResult(
            player=_clear_penalty(player, "Penalty Zone survived. System access restored.", ts),
            notifications=(Notification("Penalty Zone cleared. System access restored.", "SUCCESS"),),
        )
    return EngineResult(player=replace(player, penalty_end_time=new_end))


def clear_penalty_override(player: Player, now: datetime | None = None) -> EngineResult:
    ts = to_epoch_ms(_resolve_now(now))
    if not player.is_penalty_active and player.penalty_end_time is None:
        return EngineResult(player=player)
    logger.info("penalty override user=%s", player.user_id)
    return EngineResult(
        player=_clear_penalty(player, "Penalty override. Restrictions lifted.", ts),
        notifications=(Notification("Penalty override applied.", "SYSTEM"),),
    )


def update_stat_value(player: Player, stat: str, amount: int, now: datetime | None = None) -> Player:
    if stat not in STAT_KEYS:
        return player
    ts = to_epoch_ms(_resolve_now(now))
    return replace(
        player,
        stats=player.stats.with_value(stat, player.stats.get(stat) + amount),
        last_stat_update=player.last_stat_update.with_value(stat, ts),
    )


def complete_quest(
    player: Player,
    quest_id: str,
    now: datetime | None = None,
    as_mini: bool = False,
) -> EngineResult:
    if player.is_penalty_active:
        return _blocked(player)
    quest = player.find_quest(quest_id)
    if quest is None:
        return EngineResult(player=player, advisory=NOT_FOUND)
    if quest.is_completed:
        return EngineResult(player=player, advisory=ALREADY_COMPLETED)

    now = _resolve_now(now)
    ts = to_epoch_ms(now)
    xp_reward = mini_quest_xp(quest.xp_reward) if as_mini else quest.xp_reward
    stat_points = stat_reward_for_rank(quest.rank)

    marked = replace(
        player,
        quests=tuple(
            replace(q, is_completed=True, completed_as_mini=as_mini) if q.id == quest_id else q
            for q in player.quests
        ),
    )
    result = EngineResult(player=marked)
    if xp_reward > 0:
        result = _merge(result, grant_xp(marked, xp_reward, now=now))

    rewarded = update_stat_value(result.player, quest.category, stat_points, now=now)
    if as_mini:
        message = f"Activation Complete: {quest.title} (Mini-Quest). +{xp_reward} XP"
        note = Notification(f"Safe Mode Completion: +{xp_reward} XP. Streak Preserved.", "WARNING")
    else:
        message = f"Quest Complete: {quest.title} (+{xp_reward} XP, +{stat_points} {quest.category.upper()})"
        note = Notification(f"Quest Completed: {quest.title} (+{xp_reward} XP)", "SUCCESS")

    return EngineResult(
        player=with_logs(rewarded, make_log(message, "SYSTEM", ts)),
        notifications=result.notifications + (note,),
        level_ups=result.level_ups,
    )


def _deduct(player: Player, xp: int, gold: int) -> tuple[Player, int, int]:
    current_xp = max(0, player.current_xp - xp)
    total_xp = max(0, player.total_xp - xp)
    new_gold = max(0, player.gold - gold)
    lost_xp = player.total_xp - total_xp
    lost_gold = player.gold - new_gold
    updated = replace(player, current_xp=current_xp, total_xp=total_xp, gold=new_gold, rank=rank_of(total_xp))
    return updated, lost_xp, lost_gold


def fail_quest(
    player: Player,
    quest_id: str,
    now: datetime | None = None,
    tuning: dict[str, int] | None = None,
) -> EngineResult:
    quest = player.find_quest(quest_id)
    if quest is None:
        return EngineResult(player=player, advisory=NOT_FOUND)

    cfg = effective_tuning(tuning)
    ts = to_epoch_ms(_resolve_now(now))
    penalty_xp = int(cfg["fail_quest_xp"])
    penalty_gold = int(cfg["fail_quest_gold"])
    updated, _, _ = _deduct(player, penalty_xp, penalty_gold)
    updated = replace(updated, quests=tuple(q for q in player.quests if q.id != quest_id))
    entry = make_log(f"Quest Failed: {quest.title}. -{penalty_xp} XP, -{penalty_gold} Gold.", "PENALTY", ts)
    return EngineResult(
        player=with_logs(updated, entry),
        notifications=(Notification("Quest Failed. XP & Gold Deducted.", "DANGER"),),
    )


def fail_workout(
    player: Player,
    now: datetime | None = None,
    tuning: dict[str, int] | None = None,
) -> EngineResult:
    cfg = effective_tuning(tuning)
    ts = to_epoch_ms(_resolve_now(now))
    penalty_xp = int(cfg["fail_workout_xp"])
    penalty_gold = int(cfg["fail_workout_gold"])
    updated, _, _ = _deduct(player, penalty_xp, penalty_gold)
    updated = replace(updated, mp=0)
    entry = make_log(f"Workout Aborted. -{penalty_xp} XP, -{penalty_gold} Gold.", "PENALTY", ts)
    return EngineResult(
        player=with_logs(updated, entry),
        notifications=(Notification("Workout Failed. XP & Gold Deducted.", "DANGER"),),
    )


def complete_workout_session(
    player: Player,
    exercises_completed: int,
    total_exercises: int,
    results: dict[str, int] | None = None,
    cardio: bool = False,
    now: datetime | None = None,
    tuning: dict[str, int] | None = None,
) -> EngineResult:
    if player.is_penalty_active:
        return _blocked(player)
    if total_exercises <= 0 or exercises_completed < 0:
        return _invalid(player, "Workout totals must be positive.")

    now = _resolve_now(now)
    ts = to_epoch_ms(now)
    rewards = workout_rewards(exercises_completed, total_exercises, cardio, player.streak, tuning=tuning)
    notifications: list[Notification] = []
    if rewards["overdrive"]:
        notifications.append(Notification("SYSTEM OVERDRIVE: REWARDS DOUBLED", "LEVEL_UP"))

    updated = player
    for stat in ("strength", "willpower", "focus"):
        if rewards[stat] > 0:
            updated = update_stat_value(updated, stat, rewards[stat], now=now)

    bests = dict(updated.personal_bests)
    for exercise, reps in (results or {}).items():
        if reps > bests.get(exercise, 0):
            bests[exercise] = reps

    intensity = player.health_profile.intensity if player.health_profile else "MODERATE"
    mp_expand = MP_EXPANSION_BY_INTENSITY.get(intensity, MP_EXPANSION_BY_INTENSITY["MODERATE"])
    if cardio:
        mp_expand += CARDIO_MP_BONUS
    max_mp = updated.max_mp + mp_expand

    profile = updated.health_profile
    if profile is not None:
        profile = replace(profile, last_workout_date=local_date_key(now))

    updated = replace(updated, personal_bests=bests, max_mp=max_mp, mp=max_mp, health_profile=profile)
    updated = with_logs(updated, make_log(f"Workout Complete. +{rewards['xp']} XP", "WORKOUT", ts))
    result = EngineResult(player=updated, notifications=tuple(notifications))
    if rewards["xp"] > 0:
        result = _merge(result, grant_xp(updated, rewards["xp"], now=now))
    return EngineResult(
        player=result.player,
        notifications=result.notifications
        + (Notification("Workout Sync Complete. MP Restored & Expanded.", "SUCCESS"),),
        level_ups=result.level_ups,
    )


def update_profile(
    player: Player,
    name: str | None = None,
    job: str | None = None,
    title: str | None = None,
) -> EngineResult:
    updates = {k: v for k, v in {"name": name, "job": job, "title": title}.items() if v is not None}
    if not updates:
        return EngineResult(player=player)
    return EngineResult(
        player=replace(player, **updates),
        notifications=(Notification("Hunter Profile Updated.", "SYSTEM"),),
    )


def update_awakening(player: Player, kind: str, items: list[str]) -> EngineResult:
    cleaned = tuple(item.strip() for item in items if item and item.strip())
    if kind == "vision":
        awakening = AwakeningData(vision=cleaned, anti_vision=player.awakening.anti_vision)
    elif kind in ("anti_vision", "antiVision"):
        awakening = AwakeningData(vision=player.awakening.vision, anti_vision=cleaned)
    else:
        return _invalid(player, f"Unknown awakening field: {kind}")
    return EngineResult(player=replace(player, awakening=awakening))


def save_health_profile(player: Player, profile: HealthProfile, identity: str) -> EngineResult:
    if profile.starting_weight is None:
        profile = replace(profile, starting_weight=profile.weight)
    return EngineResult(
        player=replace(player, health_profile=profile, identity=identity),
        notifications=(Notification(f"Identity Established: {identity}", "LEVEL_UP"),),
    )


def load_player(
    player: Player,
    now: datetime | None = None,
    tuning: dict[str, int] | None = None,
) -> EngineResult:
    """Session-start reconciliation: rollover, then decay, then penalty expiry.

    Rollover and decay can both change penalty state, so the expiry check
    always runs last.
    """
    now = _resolve_now(now)
    result = apply_daily_rollover(player, now=now, tuning=tuning)
    result = _merge(result, apply_stat_decay(result.player, now=now, tuning=tuning))
    return _merge(result, tick_penalty_expiry(result.player, now=now))

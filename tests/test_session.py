from __future__ import annotations

import threading
from datetime import datetime
from zoneinfo import ZoneInfo

from hunter_system import engine
from hunter_system.models import Player
from hunter_system.session import DebouncedSaver, PlayerSession


def _dt(y: int, m: int, d: int, h: int = 10, minute: int = 0) -> datetime:
    return datetime(y, m, d, h, minute, tzinfo=ZoneInfo("Europe/Oslo"))


def test_debounced_saver_keeps_only_last_snapshot() -> None:
    saved: list[Player] = []
    saver = DebouncedSaver(saved.append, delay_seconds=60)
    first = Player(name="a")
    second = Player(name="b")
    saver.schedule(first)
    saver.schedule(second)
    assert saved == []
    assert saver.has_pending is True

    saver.close()
    assert saved == [second]
    assert saver.has_pending is False


def test_debounced_saver_fires_after_delay() -> None:
    done = threading.Event()
    saved: list[Player] = []

    def _save(player: Player) -> None:
        saved.append(player)
        done.set()

    saver = DebouncedSaver(_save, delay_seconds=0.05)
    saver.schedule(Player(name="late"))
    assert done.wait(timeout=5)
    assert [p.name for p in saved] == ["late"]


def test_saver_failures_are_logged_not_raised(caplog) -> None:
    def _boom(player: Player) -> None:
        raise OSError("disk full")

    saver = DebouncedSaver(_boom, delay_seconds=0)
    saver.schedule(Player(user_id="u1"))
    assert "failed to persist player u1" in caplog.text


def test_session_applies_reconciliation_before_actions() -> None:
    saved: list[Player] = []
    player = engine.new_player("Yoo", user_id="u1", now=_dt(2024, 1, 1))
    session = PlayerSession(player, DebouncedSaver(saved.append, delay_seconds=0))

    # next day without finishing the daily: the penalty blocks the grant
    result = session.apply(lambda p, now: engine.grant_xp(p, 100, now=now), now=_dt(2024, 1, 2))
    assert result.advisory == engine.PENALTY_BLOCKED
    assert session.player.is_penalty_active is True
    assert any(n.type == "DANGER" for n in result.notifications)
    assert saved[-1] is session.player


def test_session_start_is_idempotent_and_skips_unchanged_saves() -> None:
    saved: list[Player] = []
    player = engine.new_player("Yoo", user_id="u1", now=_dt(2024, 1, 1))
    session = PlayerSession(player, DebouncedSaver(saved.append, delay_seconds=0))

    session.start(now=_dt(2024, 1, 1, 12))
    session.start(now=_dt(2024, 1, 1, 13))
    assert saved == []

    session.apply(lambda p, now: engine.complete_daily_quest(p, now=now), now=_dt(2024, 1, 1, 14))
    assert len(saved) == 1
    assert saved[0].daily_quest_complete is True


def test_slow_timer_write_cannot_overwrite_newer_flush() -> None:
    started = threading.Event()
    release = threading.Event()
    written: list[str] = []

    def _save(player: Player) -> None:
        if player.name == "old":
            started.set()
            assert release.wait(timeout=5)
        written.append(player.name)

    saver = DebouncedSaver(_save, delay_seconds=0.01)
    saver.schedule(Player(name="old"))
    assert started.wait(timeout=5)

    saver.schedule(Player(name="new"))
    closer = threading.Thread(target=saver.close)
    closer.start()
    closer.join(timeout=0.1)
    # close waits for the in-flight write instead of racing it
    assert closer.is_alive()

    release.set()
    closer.join(timeout=5)
    assert written == ["old", "new"]

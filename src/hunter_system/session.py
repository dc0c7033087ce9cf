from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from hunter_system.engine import EngineResult, load_player
from hunter_system.models import Player
from hunter_system.time_utils import DEFAULT_TZ, now_local

logger = logging.getLogger(__name__)


class DebouncedSaver:
    """Trailing-debounce writer: only the last snapshot in a burst is saved."""

    def __init__(self, save: Callable[[Player], None], delay_seconds: float = 2.0) -> None:
        self._save = save
        self._delay = delay_seconds
        self._lock = threading.Lock()
        # held from taking a snapshot until its save returns, so writes land in order
        self._write_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._pending: Player | None = None

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, player: Player) -> None:
        if self._delay <= 0:
            with self._write_lock:
                self._write(player)
            return
        with self._lock:
            self._pending = player
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        with self._write_lock:
            with self._lock:
                player = self._pending
                self._pending = None
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
            if player is not None:
                self._write(player)

    def close(self) -> None:
        self.flush()

    def _write(self, player: Player) -> None:
        try:
            self._save(player)
        except Exception:
            logger.exception("failed to persist player %s", player.user_id)


class PlayerSession:
    """Owns the single mutable Player reference for one user.

    Every action is preceded by the load reconciliation (rollover, decay,
    penalty expiry) so a long-lived session still crosses midnight correctly.
    """

    def __init__(
        self,
        player: Player,
        saver: DebouncedSaver,
        tuning: dict[str, int] | None = None,
        tz_name: str = DEFAULT_TZ,
    ) -> None:
        self._player = player
        self._saver = saver
        self._tuning = tuning
        self._tz_name = tz_name

    @property
    def player(self) -> Player:
        return self._player

    @property
    def tuning(self) -> dict[str, int] | None:
        return self._tuning

    def now(self) -> datetime:
        return now_local(self._tz_name)

    def start(self, now: datetime | None = None) -> EngineResult:
        result = load_player(self._player, now=now or self.now(), tuning=self._tuning)
        self._commit(result.player)
        return result

    def apply(
        self,
        action: Callable[[Player, datetime], EngineResult],
        now: datetime | None = None,
    ) -> EngineResult:
        now = now or self.now()
        pre = load_player(self._player, now=now, tuning=self._tuning)
        self._commit(pre.player)
        result = action(self._player, now)
        self._commit(result.player)
        return EngineResult(
            player=result.player,
            notifications=pre.notifications + result.notifications,
            level_ups=pre.level_ups + result.level_ups,
            advisory=result.advisory,
        )

    def close(self) -> None:
        self._saver.close()

    def _commit(self, player: Player) -> None:
        if player is self._player:
            return
        self._player = player
        self._saver.schedule(player)

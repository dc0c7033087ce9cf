from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from hunter_system.constants import DEFAULT_EXERCISE_CATALOG
from hunter_system.converters import catalog_exercise_to_row, player_to_row, row_to_catalog_exercise, row_to_player
from hunter_system.models import CatalogExercise, Player

logger = logging.getLogger(__name__)

CATALOG_COLUMNS = (
    "id",
    "name",
    "muscle_group",
    "difficulty",
    "sub_target",
    "equipment_needed",
    "environment",
    "exercise_type",
    "image_url",
    "video_url",
    "calories_burn",
)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PlayerStore:
    """sqlite persistence for player snapshots and the exercise catalog."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """
            )
            current = {row["version"] for row in conn.execute("SELECT version FROM schema_migrations")}

            migrations: dict[int, str] = {
                1: """
                    CREATE TABLE players (
                        user_id TEXT PRIMARY KEY,
                        username TEXT NOT NULL DEFAULT '',
                        data TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );

                    CREATE INDEX idx_players_username ON players(username);

                    CREATE TABLE exercise_catalog (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        muscle_group TEXT NOT NULL,
                        difficulty TEXT NOT NULL DEFAULT 'Beginner',
                        sub_target TEXT,
                        equipment_needed TEXT,
                        environment TEXT,
                        exercise_type TEXT NOT NULL DEFAULT 'ACCESSORY',
                        image_url TEXT NOT NULL DEFAULT '',
                        video_url TEXT NOT NULL DEFAULT '',
                        calories_burn INTEGER NOT NULL DEFAULT 5
                    );
                """,
            }

            now = _utc_now()
            for version in sorted(migrations):
                if version in current:
                    continue
                conn.executescript(migrations[version])
                conn.execute(
                    "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
                    (version, now),
                )
                logger.debug("applied migration %s to %s", version, self.path)

    # --- players -------------------------------------------------------------

    def save_player(self, player: Player) -> None:
        if not player.user_id:
            raise ValueError("player.user_id is required to persist a snapshot")
        self.save_player_row(player_to_row(player))

    def save_player_row(self, row: dict[str, Any]) -> None:
        user_id = str(row["user_id"])
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO players(user_id, username, data, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    username = excluded.username,
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (user_id, row.get("username") or "", json.dumps(row), _utc_now()),
            )
        logger.debug("saved player %s", user_id)

    def get_player_row(self, user_id: str) -> dict[str, Any] | None:
        with self._connect() as conn:
            row = conn.execute("SELECT data FROM players WHERE user_id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return json.loads(row["data"])

    def load_player(self, user_id: str, now_ms: int = 0) -> Player | None:
        """Raw snapshot as stored; daily reconciliation is the caller's job."""
        data = self.get_player_row(user_id)
        if data is None:
            return None
        data.setdefault("user_id", user_id)
        return row_to_player(data, now_ms=now_ms)

    def find_user_id_by_username(self, username: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT user_id FROM players WHERE username = ? ORDER BY updated_at DESC LIMIT 1",
                (username,),
            ).fetchone()
        return str(row["user_id"]) if row else None

    def list_user_ids(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT user_id FROM players ORDER BY user_id ASC").fetchall()
        return [str(r["user_id"]) for r in rows]

    def delete_player(self, user_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM players WHERE user_id = ?", (user_id,))
        return cur.rowcount > 0

    # --- exercise catalog ----------------------------------------------------

    def ensure_default_catalog(self) -> None:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS c FROM exercise_catalog").fetchone()
            if row and int(row["c"]) > 0:
                return
            for exercise in DEFAULT_EXERCISE_CATALOG:
                self._upsert_catalog(conn, exercise)
        logger.info("seeded exercise catalog with %s rows", len(DEFAULT_EXERCISE_CATALOG))

    def list_catalog(self) -> list[CatalogExercise]:
        self.ensure_default_catalog()
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM exercise_catalog ORDER BY muscle_group ASC, id ASC").fetchall()
        return [row_to_catalog_exercise(dict(r)) for r in rows]

    def upsert_catalog_exercise(self, exercise: CatalogExercise) -> None:
        with self._connect() as conn:
            self._upsert_catalog(conn, exercise)

    def delete_catalog_exercise(self, exercise_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM exercise_catalog WHERE id = ?", (exercise_id,))
        return cur.rowcount > 0

    @staticmethod
    def _upsert_catalog(conn: sqlite3.Connection, exercise: CatalogExercise) -> None:
        row = catalog_exercise_to_row(exercise)
        placeholders = ", ".join("?" for _ in CATALOG_COLUMNS)
        updates = ", ".join(f"{col} = excluded.{col}" for col in CATALOG_COLUMNS if col != "id")
        conn.execute(
            f"INSERT INTO exercise_catalog({', '.join(CATALOG_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            tuple(row[col] for col in CATALOG_COLUMNS),
        )


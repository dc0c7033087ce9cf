from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from hunter_system import engine
from hunter_system.constants import DEFAULT_EXERCISE_CATALOG
from hunter_system.converters import player_to_row, row_to_player
from hunter_system.models import CatalogExercise, HealthProfile
from hunter_system.store import PlayerStore
from hunter_system.workout_generator import generate_plan


def _dt(y: int, m: int, d: int, h: int = 10, minute: int = 0) -> datetime:
    return datetime(y, m, d, h, minute, tzinfo=ZoneInfo("Europe/Oslo"))


def test_player_snapshot_survives_store(tmp_path) -> None:
    store = PlayerStore(tmp_path / "hunter.db")
    now = _dt(2024, 5, 1)
    player = engine.new_player("Hae-In", user_id="u1", now=now)
    player = engine.grant_xp(player, 650, now=now).player
    profile = HealthProfile(goal="ENDURANCE", workout_plan=generate_plan(HealthProfile(goal="ENDURANCE"), start=now.date()))
    player = engine.save_health_profile(player, profile, "WIND WALKER").player
    store.save_player(player)

    loaded = store.load_player("u1")
    assert loaded == player
    assert store.find_user_id_by_username("haein") == "u1"
    assert store.list_user_ids() == ["u1"]


def test_missing_player_returns_none(tmp_path) -> None:
    store = PlayerStore(tmp_path / "hunter.db")
    assert store.load_player("ghost") is None
    assert store.delete_player("ghost") is False


def test_reopening_store_keeps_data(tmp_path) -> None:
    path = tmp_path / "nested" / "hunter.db"
    PlayerStore(path).save_player(engine.new_player("Jinho", user_id="u2", now=_dt(2024, 5, 1)))
    assert PlayerStore(path).load_player("u2") is not None


def test_catalog_is_seeded_and_editable(tmp_path) -> None:
    store = PlayerStore(tmp_path / "hunter.db")
    catalog = store.list_catalog()
    assert len(catalog) == len(DEFAULT_EXERCISE_CATALOG)

    custom = CatalogExercise(id="z1", name="Sled Push", muscle_group="Legs", equipment_needed="Machine")
    store.upsert_catalog_exercise(custom)
    assert any(ex.id == "z1" for ex in store.list_catalog())
    assert store.delete_catalog_exercise("z1") is True
    assert len(store.list_catalog()) == len(DEFAULT_EXERCISE_CATALOG)


def test_row_to_player_accepts_camel_case_snapshot() -> None:
    raw = {
        "name": "Jinwoo",
        "level": 3,
        "currentXp": 9999,
        "totalXp": 3100,
        "isPenaltyActive": True,
        "penaltyEndTime": 123,
        "lastLoginDate": "2024-05-01",
        "stats": {"strength": 140, "focus": 12},
        "shopItems": [{"id": "s", "title": "Nap", "description": "", "cost": 40}],
        "quests": [
            {
                "id": "q",
                "title": "Read",
                "description": "",
                "rank": "C",
                "category": "intelligence",
                "xpReward": 50,
                "isCompleted": True,
                "createdAt": 5,
                "completedAsMini": True,
            }
        ],
        "awakening": {"vision": ["Focus"], "antiVision": ["Scroll"]},
        "healthProfile": {"gender": "FEMALE", "sessionDuration": 45, "bmi": 21.0, "bmr": 1400, "category": "OPTIMAL"},
    }
    player = row_to_player(raw, now_ms=1000)
    assert player.required_xp == 1500
    assert player.current_xp == 1499
    assert player.rank == "C"
    assert player.is_penalty_active is True
    assert player.penalty_end_time == 123
    assert player.stats.strength == 100
    assert player.stats.willpower == 10
    assert player.last_stat_update.focus == 1000
    assert player.shop_items[0].cost == 40
    assert player.quests[0].completed_as_mini is True
    assert player.awakening.anti_vision == ("Scroll",)
    assert player.health_profile.session_duration == 45
    assert player.health_profile.biometrics.bmi == 21.0


def test_row_to_player_repairs_penalty_fields() -> None:
    player = row_to_player({"is_penalty_active": True, "penalty_end_time": None})
    assert player.is_penalty_active is False
    assert player.penalty_end_time is None


def test_row_round_trip_is_json_ready() -> None:
    player = engine.new_player("Cha", user_id="u3", now=_dt(2024, 5, 1))
    row = player_to_row(player)
    assert isinstance(row["logs"], list)
    assert isinstance(row["shop_items"][0], dict)

from __future__ import annotations

from fastapi.testclient import TestClient

from hunter_system.api_app import build_api_app
from hunter_system.config import Settings
from hunter_system.progression import effective_tuning
from hunter_system.store import PlayerStore


def _client(
    tmp_path,
    token: str | None = None,
    debounce: float = 0,
    max_sessions: int = 256,
) -> tuple[TestClient, PlayerStore]:
    store = PlayerStore(tmp_path / "hunter.db")
    settings = Settings(
        database_path=tmp_path / "hunter.db",
        tz="UTC",
        save_debounce_seconds=debounce,
        engine_tuning_path=tmp_path / "engine_tuning.yaml",
        engine_tuning=effective_tuning(),
        admin_panel_token=token,
        admin_host="127.0.0.1",
        admin_port=8080,
    )
    return TestClient(build_api_app(store, settings, max_sessions=max_sessions)), store


def _register(client: TestClient, user_id: str = "u1") -> dict:
    res = client.post("/api/players", json={"name": "Sung Jinwoo", "user_id": user_id})
    assert res.status_code == 200
    return res.json()["player"]


def test_register_and_fetch_player(tmp_path) -> None:
    client, store = _client(tmp_path)
    player = _register(client)
    assert player["username"] == "sungjinwoo"
    assert len(player["shop_items"]) == 6

    res = client.get("/api/players/u1")
    assert res.status_code == 200
    assert res.json()["player"]["level"] == 1
    assert store.load_player("u1") is not None

    assert client.post("/api/players", json={"name": "Again", "user_id": "u1"}).status_code == 409
    assert client.get("/api/players/ghost").status_code == 404


def test_quest_lifecycle_over_http(tmp_path) -> None:
    client, store = _client(tmp_path)
    _register(client)

    res = client.post("/api/players/u1/quests", json={"title": "Run a marathon"})
    assert res.status_code == 200
    quest = res.json()["player"]["quests"][0]
    assert quest["rank"] == "S"
    assert quest["category"] == "strength"
    assert quest["xp_reward"] == 500

    done = client.post(f"/api/players/u1/quests/{quest['id']}/complete", json={}).json()
    assert done["player"]["level"] == 2
    assert done["level_ups"] == [2]
    assert done["player"]["stats"]["strength"] == 60

    again = client.post(f"/api/players/u1/quests/{quest['id']}/complete", json={}).json()
    assert again["advisory"] == "already_completed"

    listed = client.get("/api/players/u1/quests", params={"mode": "COMPLETED"}).json()
    assert [q["id"] for q in listed["quests"]] == [quest["id"]]

    client.post(f"/api/players/u1/quests/{quest['id']}/reset")
    deleted = client.delete(f"/api/players/u1/quests/{quest['id']}").json()
    assert deleted["player"]["quests"] == []
    assert deleted["player"]["total_xp"] == 500
    assert store.load_player("u1").total_xp == 500


def test_invalid_quest_input_maps_to_422(tmp_path) -> None:
    client, _ = _client(tmp_path)
    _register(client)
    res = client.post("/api/players/u1/quests", json={"title": "Read", "rank": "E", "category": "charisma"})
    assert res.status_code == 422


def test_business_conditions_return_advisories(tmp_path) -> None:
    client, _ = _client(tmp_path)
    _register(client)

    broke = client.post("/api/players/u1/shop/purchase", json={"item_id": "default_1"}).json()
    assert broke["advisory"] == "insufficient_funds"
    assert broke["notifications"][0]["message"] == "Insufficient Funds."

    zero = client.post("/api/players/u1/xp", json={"amount": 0}).json()
    assert zero["advisory"] == "invalid_input"

    client.post("/api/players/u1/xp", json={"amount": 400})
    bought = client.post("/api/players/u1/shop/purchase", json={"item_id": "default_1"}).json()
    assert bought["advisory"] is None
    assert bought["player"]["gold"] == 100

    no_penalty = client.post("/api/players/u1/penalty/reduce", json={"ms": 60000}).json()
    assert no_penalty["player"]["is_penalty_active"] is False


def test_shop_item_management(tmp_path) -> None:
    client, _ = _client(tmp_path)
    _register(client)
    added = client.post("/api/players/u1/shop/items", json={"title": "Concert", "cost": 800}).json()
    item = added["player"]["shop_items"][-1]
    assert item["title"] == "Concert"

    removed = client.delete(f"/api/players/u1/shop/items/{item['id']}").json()
    assert all(i["id"] != item["id"] for i in removed["player"]["shop_items"])
    assert client.post("/api/players/u1/shop/items", json={"title": "Free", "cost": 0}).status_code == 422


def test_health_and_workout_endpoints(tmp_path) -> None:
    client, _ = _client(tmp_path)
    _register(client)

    saved = client.post(
        "/api/players/u1/health",
        json={"goal": "LOSE_WEIGHT", "equipment": "BODYWEIGHT", "identity": "WIND WALKER", "seed": 4},
    ).json()
    profile = saved["player"]["health_profile"]
    assert saved["player"]["identity"] == "WIND WALKER"
    assert len(profile["workout_plan"]) == 7
    assert profile["biometrics"]["category"] == "OPTIMAL"
    for day in profile["workout_plan"]:
        assert all(ex["equipment_needed"] == "Bodyweight" for ex in day["exercises"])

    workout = client.post("/api/players/u1/workouts/complete", json={"completed": 3, "total": 3}).json()
    assert workout["player"]["total_xp"] == 300
    assert workout["player"]["max_mp"] == 15

    failed = client.post("/api/players/u1/workouts/fail").json()
    assert failed["player"]["mp"] == 0
    assert failed["player"]["total_xp"] == 200

    recovery = client.get("/api/players/u1/recovery").json()
    assert set(recovery["muscles"]) == {"UPPER", "LOWER", "CORE", "CARDIO"}
    assert recovery["rest_seconds"] == 58


def test_profile_and_awakening_updates(tmp_path) -> None:
    client, _ = _client(tmp_path)
    _register(client)
    updated = client.post("/api/players/u1/profile", json={"title": "SHADOW MONARCH"}).json()
    assert updated["player"]["title"] == "SHADOW MONARCH"

    awakened = client.post("/api/players/u1/awakening", json={"kind": "anti_vision", "items": ["Doomscrolling"]}).json()
    assert awakened["player"]["awakening"]["anti_vision"] == ["Doomscrolling"]


def test_stateless_calculators(tmp_path) -> None:
    client, _ = _client(tmp_path)
    bio = client.post("/api/biometrics", json={"height": 180, "weight": 100}).json()
    assert bio["biometrics"]["category"] == "OBESE"

    plan = client.post("/api/plan", json={"profile": {"goal": "ENDURANCE"}, "days": 28, "seed": 1}).json()
    assert len(plan["plan"]) == 28
    assert plan["plan"][0]["day"].startswith("W1 ")
    assert len(plan["estimated_calories"]) == 28

    catalog = client.get("/api/catalog").json()
    assert catalog["exercises"]

    assert client.post("/api/plan", json={"days": 3}).status_code == 422


def test_token_auth(tmp_path) -> None:
    client, _ = _client(tmp_path, token="secret")
    assert client.get("/api/catalog").status_code == 401
    assert client.get("/api/catalog", headers={"x-admin-token": "secret"}).status_code == 200
    assert client.get("/api/catalog", params={"token": "secret"}).status_code == 200


def test_health_profile_choices_are_validated(tmp_path) -> None:
    client, _ = _client(tmp_path)
    _register(client)

    assert client.post("/api/biometrics", json={"gender": "male"}).status_code == 422
    assert client.post("/api/biometrics", json={"activity_level": "ATHLETE"}).status_code == 422
    assert client.post("/api/plan", json={"profile": {"equipment": "KETTLEBELL"}}).status_code == 422
    assert client.post("/api/players/u1/health", json={"intensity": "EXTREME"}).status_code == 422

    ok = client.post("/api/biometrics", json={"gender": "FEMALE", "neck": 34, "waist": 75, "hip": 95})
    assert ok.status_code == 200


def test_session_cache_evicts_and_flushes_least_recent(tmp_path) -> None:
    client, store = _client(tmp_path, debounce=60, max_sessions=1)
    _register(client, "u1")
    res = client.post("/api/players/u1/xp", json={"amount": 100})
    assert res.json()["player"]["total_xp"] == 100
    assert store.load_player("u1").total_xp == 0

    # opening a second session pushes u1 out and writes its pending snapshot
    _register(client, "u2")
    assert store.load_player("u1").total_xp == 100

    again = client.get("/api/players/u1").json()
    assert again["player"]["total_xp"] == 100

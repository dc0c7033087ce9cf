from __future__ import annotations

import logging
import random
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any, AsyncIterator, Literal

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from hunter_system import engine, quests, shop
from hunter_system.biometrics import calculate_biometrics
from hunter_system.config import Settings, load_settings
from hunter_system.converters import (
    biometrics_to_row,
    catalog_exercise_to_row,
    player_to_row,
    quest_to_row,
    workout_day_to_row,
)
from hunter_system.engine import EngineResult
from hunter_system.errors import InvalidInputError
from hunter_system.logging_setup import setup_logging
from hunter_system.models import HealthProfile, Player
from hunter_system.session import DebouncedSaver, PlayerSession
from hunter_system.store import PlayerStore
from hunter_system.time_utils import now_local, to_epoch_ms
from hunter_system.workout_generator import estimated_calories, generate_plan, muscle_recovery_status, rest_seconds

logger = logging.getLogger(__name__)

MAX_CACHED_SESSIONS = 256


def _require_auth(request: Request, token: str | None) -> None:
    if not token:
        return
    header = request.headers.get("x-admin-token")
    query = request.query_params.get("token")
    if header == token or query == token:
        return
    raise HTTPException(status_code=401, detail="Unauthorized")


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    user_id: str | None = None


class XpRequest(BaseModel):
    amount: int


class QuestCreateRequest(BaseModel):
    title: str
    description: str = ""
    rank: str | None = None
    category: str | None = None
    is_daily: bool = False
    trigger: str | None = None
    mini_quest: str | None = None


class QuestCompleteRequest(BaseModel):
    as_mini: bool = False


class PurchaseRequest(BaseModel):
    item_id: str


class ShopItemRequest(BaseModel):
    title: str
    cost: int
    description: str = ""
    icon: str = "gift"


class PenaltyReduceRequest(BaseModel):
    ms: int = 60_000


class WorkoutCompleteRequest(BaseModel):
    completed: int = Field(ge=0)
    total: int = Field(gt=0)
    results: dict[str, int] = Field(default_factory=dict)
    cardio: bool = False


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    job: str | None = None
    title: str | None = None


class AwakeningRequest(BaseModel):
    kind: str
    items: list[str] = Field(default_factory=list)


class HealthProfileRequest(BaseModel):
    gender: Literal["MALE", "FEMALE"] = "MALE"
    age: int = 25
    height: float = 175.0
    weight: float = 70.0
    activity_level: Literal["SEDENTARY", "LIGHT", "MODERATE", "VERY_ACTIVE"] = "MODERATE"
    goal: Literal["LOSE_WEIGHT", "BUILD_MUSCLE", "ENDURANCE"] = "BUILD_MUSCLE"
    equipment: Literal["BODYWEIGHT", "HOME_DUMBBELLS", "GYM"] = "GYM"
    session_duration: int = 60
    intensity: Literal["LIGHT", "MODERATE", "HIGH"] = "MODERATE"
    injuries: list[str] = Field(default_factory=list)
    target_weight: float | None = None
    neck: float | None = None
    waist: float | None = None
    hip: float | None = None

    def to_profile(self) -> HealthProfile:
        return HealthProfile(
            gender=self.gender,
            age=self.age,
            height=self.height,
            weight=self.weight,
            activity_level=self.activity_level,
            goal=self.goal,
            equipment=self.equipment,
            session_duration=self.session_duration,
            intensity=self.intensity,
            injuries=tuple(self.injuries),
            target_weight=self.target_weight,
            neck=self.neck,
            waist=self.waist,
            hip=self.hip,
        )


class HealthSaveRequest(HealthProfileRequest):
    identity: str = "Shadow Hunter"
    seed: int | None = None


class PlanRequest(BaseModel):
    profile: HealthProfileRequest = Field(default_factory=HealthProfileRequest)
    days: int = 7
    seed: int | None = None
    budget_mode: str = "time_units"


def _respond(result: EngineResult) -> dict[str, Any]:
    return {
        "player": player_to_row(result.player),
        "notifications": [{"message": n.message, "type": n.type} for n in result.notifications],
        "level_ups": list(result.level_ups),
        "advisory": result.advisory,
    }


def build_api_app(store: PlayerStore, settings: Settings, max_sessions: int = MAX_CACHED_SESSIONS) -> FastAPI:
    # least recently used first; evicted sessions flush their pending save
    sessions: OrderedDict[str, PlayerSession] = OrderedDict()
    tuning = settings.engine_tuning
    token = settings.admin_panel_token

    def close_sessions() -> None:
        for session in sessions.values():
            session.close()
        sessions.clear()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        close_sessions()

    app = FastAPI(title="Hunter System", version="0.1.0", lifespan=lifespan)
    app.state.close_sessions = close_sessions

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(_: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    def _open_session(player: Player) -> PlayerSession:
        saver = DebouncedSaver(store.save_player, delay_seconds=settings.save_debounce_seconds)
        session = PlayerSession(player, saver, tuning=tuning, tz_name=settings.tz)
        sessions[str(player.user_id)] = session
        while len(sessions) > max(1, max_sessions):
            evicted_id, evicted = sessions.popitem(last=False)
            evicted.close()
            logger.debug("evicted session %s", evicted_id)
        return session

    def _session(user_id: str) -> PlayerSession:
        session = sessions.get(user_id)
        if session is not None:
            sessions.move_to_end(user_id)
            return session
        player = store.load_player(user_id, now_ms=to_epoch_ms(now_local(settings.tz)))
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return _open_session(player)

    @app.post("/api/players")
    async def api_register(request: Request, payload: RegisterRequest) -> dict[str, Any]:
        _require_auth(request, token)
        user_id = payload.user_id or engine.new_id()
        if user_id in sessions or store.get_player_row(user_id) is not None:
            raise HTTPException(status_code=409, detail="Player already exists")
        player = engine.new_player(payload.name.strip(), user_id=user_id, now=now_local(settings.tz))
        store.save_player(player)
        logger.info("registered player %s", user_id)
        session = _open_session(player)
        return _respond(EngineResult(player=session.player))

    @app.get("/api/players/{user_id}")
    async def api_player(user_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        return _respond(_session(user_id).start())

    @app.post("/api/players/{user_id}/xp")
    async def api_grant_xp(user_id: str, request: Request, payload: XpRequest) -> dict[str, Any]:
        _require_auth(request, token)
        result = _session(user_id).apply(lambda p, now: engine.grant_xp(p, payload.amount, now=now))
        return _respond(result)

    @app.post("/api/players/{user_id}/daily")
    async def api_daily(user_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        result = _session(user_id).apply(lambda p, now: engine.complete_daily_quest(p, now=now, tuning=tuning))
        return _respond(result)

    @app.get("/api/players/{user_id}/quests")
    async def api_list_quests(user_id: str, request: Request, mode: str = "ACTIVE") -> dict[str, Any]:
        _require_auth(request, token)
        player = _session(user_id).player
        return {"quests": [quest_to_row(q) for q in quests.filter_quests(player.quests, mode)]}

    @app.post("/api/players/{user_id}/quests")
    async def api_add_quest(user_id: str, request: Request, payload: QuestCreateRequest) -> dict[str, Any]:
        _require_auth(request, token)
        category, rank = payload.category, payload.rank
        if category is None or rank is None:
            guessed_category, guessed_rank = quests.auto_rank(payload.title, payload.description)
            category = category or guessed_category
            rank = rank or guessed_rank
        result = _session(user_id).apply(
            lambda p, now: quests.add_quest(
                p,
                payload.title,
                rank,
                category,
                description=payload.description,
                is_daily=payload.is_daily,
                trigger=payload.trigger,
                mini_quest=payload.mini_quest,
                now=now,
            )
        )
        return _respond(result)

    @app.post("/api/players/{user_id}/quests/{quest_id}/complete")
    async def api_complete_quest(
        user_id: str,
        quest_id: str,
        request: Request,
        payload: QuestCompleteRequest | None = None,
    ) -> dict[str, Any]:
        _require_auth(request, token)
        as_mini = payload.as_mini if payload else False
        result = _session(user_id).apply(
            lambda p, now: engine.complete_quest(p, quest_id, now=now, as_mini=as_mini)
        )
        return _respond(result)

    @app.post("/api/players/{user_id}/quests/{quest_id}/reset")
    async def api_reset_quest(user_id: str, quest_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        return _respond(_session(user_id).apply(lambda p, now: quests.reset_quest(p, quest_id)))

    @app.post("/api/players/{user_id}/quests/{quest_id}/fail")
    async def api_fail_quest(user_id: str, quest_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        result = _session(user_id).apply(lambda p, now: engine.fail_quest(p, quest_id, now=now, tuning=tuning))
        return _respond(result)

    @app.delete("/api/players/{user_id}/quests/{quest_id}")
    async def api_delete_quest(user_id: str, quest_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        return _respond(_session(user_id).apply(lambda p, now: quests.delete_quest(p, quest_id)))

    @app.post("/api/players/{user_id}/shop/purchase")
    async def api_purchase(user_id: str, request: Request, payload: PurchaseRequest) -> dict[str, Any]:
        _require_auth(request, token)
        return _respond(_session(user_id).apply(lambda p, now: shop.purchase_by_id(p, payload.item_id, now=now)))

    @app.post("/api/players/{user_id}/shop/items")
    async def api_add_shop_item(user_id: str, request: Request, payload: ShopItemRequest) -> dict[str, Any]:
        _require_auth(request, token)
        result = _session(user_id).apply(
            lambda p, now: shop.add_shop_item(p, payload.title, payload.cost, payload.description, payload.icon)
        )
        return _respond(result)

    @app.delete("/api/players/{user_id}/shop/items/{item_id}")
    async def api_remove_shop_item(user_id: str, item_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        return _respond(_session(user_id).apply(lambda p, now: shop.remove_shop_item(p, item_id)))

    @app.post("/api/players/{user_id}/penalty/reduce")
    async def api_reduce_penalty(
        user_id: str,
        request: Request,
        payload: PenaltyReduceRequest | None = None,
    ) -> dict[str, Any]:
        _require_auth(request, token)
        ms = payload.ms if payload else PenaltyReduceRequest().ms
        return _respond(_session(user_id).apply(lambda p, now: engine.reduce_penalty(p, ms, now=now)))

    @app.post("/api/players/{user_id}/penalty/clear")
    async def api_clear_penalty(user_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        return _respond(_session(user_id).apply(lambda p, now: engine.clear_penalty_override(p, now=now)))

    @app.post("/api/players/{user_id}/workouts/complete")
    async def api_complete_workout(
        user_id: str,
        request: Request,
        payload: WorkoutCompleteRequest,
    ) -> dict[str, Any]:
        _require_auth(request, token)
        result = _session(user_id).apply(
            lambda p, now: engine.complete_workout_session(
                p,
                payload.completed,
                payload.total,
                results=payload.results,
                cardio=payload.cardio,
                now=now,
                tuning=tuning,
            )
        )
        return _respond(result)

    @app.post("/api/players/{user_id}/workouts/fail")
    async def api_fail_workout(user_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        return _respond(_session(user_id).apply(lambda p, now: engine.fail_workout(p, now=now, tuning=tuning)))

    @app.post("/api/players/{user_id}/profile")
    async def api_update_profile(user_id: str, request: Request, payload: ProfileUpdateRequest) -> dict[str, Any]:
        _require_auth(request, token)
        result = _session(user_id).apply(
            lambda p, now: engine.update_profile(p, name=payload.name, job=payload.job, title=payload.title)
        )
        return _respond(result)

    @app.post("/api/players/{user_id}/awakening")
    async def api_awakening(user_id: str, request: Request, payload: AwakeningRequest) -> dict[str, Any]:
        _require_auth(request, token)
        return _respond(_session(user_id).apply(lambda p, now: engine.update_awakening(p, payload.kind, payload.items)))

    @app.post("/api/players/{user_id}/health")
    async def api_save_health(user_id: str, request: Request, payload: HealthSaveRequest) -> dict[str, Any]:
        _require_auth(request, token)
        catalog = store.list_catalog()
        rng = random.Random(payload.seed) if payload.seed is not None else None

        def _save(player: Player, now: datetime) -> EngineResult:
            profile = payload.to_profile()
            plan = generate_plan(profile, catalog, days=7, start=now.date(), rng=rng)
            profile = replace(profile, biometrics=calculate_biometrics(profile), workout_plan=plan)
            return engine.save_health_profile(player, profile, payload.identity)

        return _respond(_session(user_id).apply(_save))

    @app.get("/api/players/{user_id}/recovery")
    async def api_recovery(user_id: str, request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        session = _session(user_id)
        player = session.player
        plan = player.health_profile.workout_plan if player.health_profile else ()
        return {
            "muscles": muscle_recovery_status(plan, session.now().date()),
            "rest_seconds": rest_seconds(player.stats.willpower),
        }

    @app.get("/api/catalog")
    async def api_catalog(request: Request) -> dict[str, Any]:
        _require_auth(request, token)
        return {"exercises": [catalog_exercise_to_row(ex) for ex in store.list_catalog()]}

    @app.post("/api/biometrics")
    async def api_biometrics(request: Request, payload: HealthProfileRequest) -> dict[str, Any]:
        _require_auth(request, token)
        return {"biometrics": biometrics_to_row(calculate_biometrics(payload.to_profile()))}

    @app.post("/api/plan")
    async def api_plan(request: Request, payload: PlanRequest) -> dict[str, Any]:
        _require_auth(request, token)
        rng = random.Random(payload.seed) if payload.seed is not None else None
        plan = generate_plan(
            payload.profile.to_profile(),
            store.list_catalog(),
            days=payload.days,
            rng=rng,
            budget_mode=payload.budget_mode,
        )
        return {
            "plan": [workout_day_to_row(day) for day in plan],
            "estimated_calories": [estimated_calories(day.total_duration) for day in plan],
        }

    return app


def run_api() -> None:
    setup_logging()
    settings = load_settings()
    store = PlayerStore(settings.database_path)
    app = build_api_app(store, settings)
    uvicorn.run(app, host=settings.admin_host, port=settings.admin_port)

from __future__ import annotations

from dataclasses import dataclass, field, replace

STAT_KEYS = ("strength", "intelligence", "focus", "social", "willpower")
RANKS = ("E", "D", "C", "B", "A", "S")

STAT_MIN = 0
STAT_MAX = 100


def clamp_stat(value: int) -> int:
    return max(STAT_MIN, min(STAT_MAX, int(value)))


@dataclass(frozen=True)
class CoreStats:
    strength: int = 10
    intelligence: int = 10
    focus: int = 10
    social: int = 10
    willpower: int = 10

    def get(self, key: str) -> int:
        return int(getattr(self, key))

    def with_value(self, key: str, value: int) -> CoreStats:
        if key not in STAT_KEYS:
            raise KeyError(key)
        return replace(self, **{key: clamp_stat(value)})

    def as_dict(self) -> dict[str, int]:
        return {key: self.get(key) for key in STAT_KEYS}


@dataclass(frozen=True)
class StatTimestamps:
    """Epoch milliseconds of the last increase or decay, per stat."""

    strength: int = 0
    intelligence: int = 0
    focus: int = 0
    social: int = 0
    willpower: int = 0

    def get(self, key: str) -> int:
        return int(getattr(self, key))

    def with_value(self, key: str, value: int) -> StatTimestamps:
        if key not in STAT_KEYS:
            raise KeyError(key)
        return replace(self, **{key: int(value)})

    def as_dict(self) -> dict[str, int]:
        return {key: self.get(key) for key in STAT_KEYS}

    @classmethod
    def uniform(cls, value: int) -> StatTimestamps:
        return cls(**{key: int(value) for key in STAT_KEYS})


@dataclass(frozen=True)
class ActivityLog:
    id: str
    message: str
    timestamp: int
    type: str


@dataclass(frozen=True)
class Notification:
    message: str
    type: str


@dataclass(frozen=True)
class Quest:
    id: str
    title: str
    description: str
    rank: str
    category: str
    xp_reward: int
    is_completed: bool
    created_at: int
    is_daily: bool = False
    trigger: str | None = None
    mini_quest: str | None = None
    completed_as_mini: bool = False


@dataclass(frozen=True)
class ShopItem:
    id: str
    title: str
    description: str
    cost: int
    icon: str = "gift"


@dataclass(frozen=True)
class HistoryEntry:
    date: str
    stats: CoreStats
    total_xp: int
    daily_xp: int


@dataclass(frozen=True)
class AwakeningData:
    vision: tuple[str, ...] = ()
    anti_vision: tuple[str, ...] = ()


@dataclass(frozen=True)
class CatalogExercise:
    id: str
    name: str
    muscle_group: str
    difficulty: str = "Beginner"
    sub_target: str | None = None
    equipment_needed: str | None = None
    environment: str | None = None
    exercise_type: str = "ACCESSORY"
    image_url: str = ""
    video_url: str = ""
    calories_burn: int = 5


@dataclass(frozen=True)
class Exercise:
    name: str
    sets: int
    reps: str
    duration: int
    type: str
    completed: bool = False
    equipment_needed: str = "Bodyweight"
    notes: str | None = None
    video_url: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class WorkoutDay:
    day: str
    focus: str
    exercises: tuple[Exercise, ...]
    is_recovery: bool
    total_duration: int


@dataclass(frozen=True)
class Macros:
    calories: int
    protein: int
    carbs: int
    fats: int


@dataclass(frozen=True)
class Biometrics:
    bmi: float
    bmr: float
    tdee: float
    body_fat: float
    body_fat_estimated: bool
    category: str
    macros: Macros


@dataclass(frozen=True)
class HealthProfile:
    gender: str = "MALE"
    age: int = 25
    height: float = 175.0
    weight: float = 70.0
    activity_level: str = "MODERATE"
    goal: str = "BUILD_MUSCLE"
    equipment: str = "GYM"
    session_duration: int = 60
    intensity: str = "MODERATE"
    injuries: tuple[str, ...] = ()
    starting_weight: float | None = None
    target_weight: float | None = None
    neck: float | None = None
    waist: float | None = None
    hip: float | None = None
    biometrics: Biometrics | None = None
    workout_plan: tuple[WorkoutDay, ...] = ()
    last_workout_date: str | None = None


@dataclass(frozen=True)
class Player:
    user_id: str | None = None
    name: str = ""
    username: str = ""
    identity: str = ""
    job: str = "NONE"
    title: str = "WOLF SLAYER"
    is_configured: bool = False

    level: int = 1
    current_xp: int = 0
    required_xp: int = 500
    total_xp: int = 0
    daily_xp: int = 0
    rank: str = "E"
    gold: int = 0
    streak: int = 0

    stats: CoreStats = field(default_factory=CoreStats)
    last_stat_update: StatTimestamps = field(default_factory=StatTimestamps)
    history: tuple[HistoryEntry, ...] = ()

    hp: int = 100
    max_hp: int = 100
    mp: int = 0
    max_mp: int = 10
    fatigue: int = 0

    last_login_date: str = ""
    daily_quest_complete: bool = False
    is_penalty_active: bool = False
    penalty_end_time: int | None = None

    logs: tuple[ActivityLog, ...] = ()
    quests: tuple[Quest, ...] = ()
    shop_items: tuple[ShopItem, ...] = ()
    awakening: AwakeningData = field(default_factory=AwakeningData)
    personal_bests: dict[str, int] = field(default_factory=dict)
    health_profile: HealthProfile | None = None

    def find_quest(self, quest_id: str) -> Quest | None:
        for quest in self.quests:
            if quest.id == quest_id:
                return quest
        return None

    def find_shop_item(self, item_id: str) -> ShopItem | None:
        for item in self.shop_items:
            if item.id == item_id:
                return item
        return None

from __future__ import annotations

import logging
import math

from hunter_system.constants import (
    ACTIVITY_LEVELS,
    ACTIVITY_MULTIPLIERS,
    BODY_FAT_DEFAULTS,
    EQUIPMENT_TIERS,
    GENDERS,
    GOALS,
    INTENSITIES,
    PROFILE_FALLBACKS,
)
from hunter_system.errors import InvalidInputError
from hunter_system.models import Biometrics, HealthProfile, Macros

logger = logging.getLogger(__name__)

CM_PER_INCH = 2.54

BMI_CATEGORIES: tuple[tuple[float, str], ...] = (
    (18.5, "UNDERWEIGHT"),
    (25.0, "OPTIMAL"),
    (30.0, "OVERWEIGHT"),
)

PROFILE_CHOICES: dict[str, tuple[str, ...]] = {
    "gender": GENDERS,
    "activity_level": ACTIVITY_LEVELS,
    "goal": GOALS,
    "equipment": EQUIPMENT_TIERS,
    "intensity": INTENSITIES,
}


def validate_profile(profile: HealthProfile) -> None:
    for name, choices in PROFILE_CHOICES.items():
        value = getattr(profile, name)
        if value not in choices:
            raise InvalidInputError(f"Unknown {name}: {value!r} (expected one of {', '.join(choices)})")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _positive(value: float | None, fallback: float, name: str) -> float:
    if value is None or not math.isfinite(value) or value <= 0:
        logger.warning("biometrics: unusable %s=%r, using %s", name, value, fallback)
        return float(fallback)
    return float(value)


def bmi(weight_kg: float, height_cm: float) -> float:
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def bmr(weight_kg: float, height_cm: float, age: float, gender: str) -> float:
    """Mifflin-St Jeor basal metabolic rate in kcal/day."""
    offset = 5 if gender == "MALE" else -161
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + offset


def tdee(bmr_value: float, activity_level: str) -> float:
    return bmr_value * ACTIVITY_MULTIPLIERS[activity_level]


def bmi_category(bmi_value: float) -> str:
    for upper_bound, label in BMI_CATEGORIES:
        if bmi_value < upper_bound:
            return label
    return "OBESE"


def navy_body_fat(
    gender: str,
    height_cm: float,
    neck_cm: float | None,
    waist_cm: float | None,
    hip_cm: float | None = None,
) -> float | None:
    """US Navy estimate. Returns None when measurements cannot produce a value."""
    if neck_cm is None or waist_cm is None or height_cm <= 0:
        return None
    height = height_cm / CM_PER_INCH
    neck = neck_cm / CM_PER_INCH
    waist = waist_cm / CM_PER_INCH

    if gender == "FEMALE":
        if hip_cm is None:
            return None
        span = waist + hip_cm / CM_PER_INCH - neck
        if span <= 0:
            return None
        value = 163.205 * math.log10(span) - 97.684 * math.log10(height) - 78.387
    else:
        span = waist - neck
        if span <= 0:
            return None
        value = 86.010 * math.log10(span) - 70.041 * math.log10(height) + 36.76

    if not math.isfinite(value) or value <= 0:
        return None
    return value


def macros_for(tdee_value: float, weight_kg: float) -> Macros:
    calories = _round_half_up(tdee_value)
    return Macros(
        calories=calories,
        protein=_round_half_up(weight_kg * 2.2),
        carbs=_round_half_up(0.4 * calories / 4),
        fats=_round_half_up(0.25 * calories / 9),
    )


def calculate_biometrics(profile: HealthProfile) -> Biometrics:
    validate_profile(profile)
    weight = _positive(profile.weight, PROFILE_FALLBACKS["weight"], "weight")
    height = _positive(profile.height, PROFILE_FALLBACKS["height"], "height")
    age = _positive(profile.age, PROFILE_FALLBACKS["age"], "age")

    bmi_value = bmi(weight, height)
    bmr_value = bmr(weight, height, age, profile.gender)
    tdee_value = tdee(bmr_value, profile.activity_level)

    body_fat = navy_body_fat(profile.gender, height, profile.neck, profile.waist, profile.hip)
    estimated = body_fat is None
    if body_fat is None:
        body_fat = BODY_FAT_DEFAULTS[profile.gender]

    return Biometrics(
        bmi=round(bmi_value, 1),
        bmr=round(bmr_value, 1),
        tdee=round(tdee_value, 1),
        body_fat=round(body_fat, 1),
        body_fat_estimated=estimated,
        category=bmi_category(bmi_value),
        macros=macros_for(tdee_value, weight),
    )

from __future__ import annotations

import pytest

from hunter_system.biometrics import bmi_category, bmr, calculate_biometrics, macros_for, navy_body_fat
from hunter_system.errors import InvalidInputError
from hunter_system.models import HealthProfile


def test_reference_male_profile() -> None:
    bio = calculate_biometrics(HealthProfile(gender="MALE", age=25, height=175, weight=70, activity_level="MODERATE"))
    assert bio.bmi == pytest.approx(22.9, abs=0.05)
    assert bio.bmr == pytest.approx(1673.75, abs=0.1)
    assert bio.tdee == pytest.approx(2594.3, abs=0.1)
    assert bio.category == "OPTIMAL"
    assert bio.macros.calories == 2594
    assert bio.macros.protein == 154
    assert bio.macros.carbs == 259
    assert bio.macros.fats == 72


def test_female_bmr_offset() -> None:
    assert bmr(60, 165, 30, "FEMALE") == pytest.approx(1320.25)


def test_bmi_category_boundaries() -> None:
    assert bmi_category(18.4) == "UNDERWEIGHT"
    assert bmi_category(18.5) == "OPTIMAL"
    assert bmi_category(24.99) == "OPTIMAL"
    assert bmi_category(25.0) == "OVERWEIGHT"
    assert bmi_category(30.0) == "OBESE"


def test_navy_body_fat_male() -> None:
    value = navy_body_fat("MALE", 175, neck_cm=38, waist_cm=85)
    assert value == pytest.approx(17.0, abs=0.5)

    bio = calculate_biometrics(HealthProfile(height=175, neck=38, waist=85))
    assert bio.body_fat_estimated is False
    assert bio.body_fat == pytest.approx(17.0, abs=0.5)


def test_body_fat_falls_back_when_waist_not_above_neck() -> None:
    assert navy_body_fat("MALE", 175, neck_cm=40, waist_cm=40) is None
    bio = calculate_biometrics(HealthProfile(neck=40, waist=38))
    assert bio.body_fat_estimated is True
    assert bio.body_fat == 18.0


def test_female_body_fat_needs_hip() -> None:
    bio = calculate_biometrics(HealthProfile(gender="FEMALE", neck=32, waist=70))
    assert bio.body_fat_estimated is True
    assert bio.body_fat == 25.0

    measured = calculate_biometrics(HealthProfile(gender="FEMALE", height=165, neck=32, waist=70, hip=95))
    assert measured.body_fat_estimated is False
    assert 10 < measured.body_fat < 45


def test_invalid_profile_numbers_use_defaults() -> None:
    broken = calculate_biometrics(HealthProfile(height=0, weight=-3, age=0))
    reference = calculate_biometrics(HealthProfile(height=175, weight=70, age=25))
    assert broken == reference


@pytest.mark.parametrize(
    "field, value",
    [
        ("gender", "male"),
        ("activity_level", "ATHLETE"),
        ("goal", "GET_STRONG"),
        ("equipment", "KETTLEBELL"),
        ("intensity", "EXTREME"),
    ],
)
def test_unknown_profile_choices_are_rejected(field: str, value: str) -> None:
    profile = HealthProfile(**{field: value, "neck": 38, "waist": 85})
    with pytest.raises(InvalidInputError, match=field):
        calculate_biometrics(profile)


def test_macros_round_halves_up() -> None:
    macros = macros_for(2005.0, 70)
    assert macros.calories == 2005
    # 0.4 * 2005 / 4 == 200.5
    assert macros.carbs == 201
    assert macros.fats == 56
    assert macros_for(2000.5, 70).calories == 2001

"""Nutrition statistics models."""

from datetime import date

from pydantic import Field, field_validator

from nutrition_companion.domain.base import (
    BackendModel,
    date_part_or_none,
    empty_if_missing,
    text_if_missing,
    zero_if_missing,
)


class Achievement(BackendModel):
    """Achievement unlocked by the user."""

    title: str = ""
    description: str = ""

    texts_default_to_empty = field_validator(
        "title", "description", mode="before"
    )(text_if_missing)


class DailyBreakdown(BackendModel):
    """Per-day nutrition totals."""

    day: date | None = Field(default=None, alias="date")
    calories: float = 0
    protein_g: float = 0
    water_cups: float = 0

    numbers_default_to_zero = field_validator(
        "calories", "protein_g", "water_cups", mode="before"
    )(zero_if_missing)
    day_from_timestamp = field_validator("day", mode="before")(date_part_or_none)


class StatisticsSnapshot(BackendModel):
    """Aggregated statistics for a time range, computed by the backend."""

    average_calories: float = Field(default=0, alias="averageCalories")
    average_protein: float = Field(default=0, alias="averageProtein")
    average_carbs: float = Field(default=0, alias="averageCarbs")
    average_fats: float = Field(default=0, alias="averageFats")
    average_fiber: float = Field(default=0, alias="averageFiber")
    average_sodium_mg: float = Field(default=0, alias="averageSodium")
    current_streak: int = Field(default=0, alias="currentStreak")
    total_days: int = Field(default=0, alias="totalDays")
    achievements: list[Achievement] = Field(default_factory=list)
    daily_breakdown: list[DailyBreakdown] = Field(
        default_factory=list, alias="dailyBreakdown"
    )

    numbers_default_to_zero = field_validator(
        "average_calories",
        "average_protein",
        "average_carbs",
        "average_fats",
        "average_fiber",
        "average_sodium_mg",
        "current_streak",
        "total_days",
        mode="before",
    )(zero_if_missing)
    lists_default_to_empty = field_validator(
        "achievements", "daily_breakdown", mode="before"
    )(empty_if_missing)

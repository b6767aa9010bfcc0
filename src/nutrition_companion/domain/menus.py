"""Recommended menu models."""

from datetime import datetime

from pydantic import Field, field_validator

from nutrition_companion.domain.base import (
    BackendModel,
    empty_if_missing,
    zero_if_missing,
)


class RecommendedMenu(BackendModel):
    """Menu generated by the backend for the user."""

    menu_id: str
    title: str
    description: str | None = None
    total_calories: float = 0
    total_protein: float = 0
    total_carbs: float = 0
    total_fat: float = 0
    days_count: int = 0
    estimated_cost: float | None = None
    meals: list[dict[str, object]] = Field(default_factory=list)
    created_at: datetime | None = None

    numbers_default_to_zero = field_validator(
        "total_calories",
        "total_protein",
        "total_carbs",
        "total_fat",
        "days_count",
        mode="before",
    )(zero_if_missing)
    lists_default_to_empty = field_validator("meals", mode="before")(empty_if_missing)

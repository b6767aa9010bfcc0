"""Meal analysis models."""

from pydantic import Field, field_validator

from nutrition_companion.domain.base import (
    BackendModel,
    empty_if_missing,
    zero_if_missing,
)


class Ingredient(BackendModel):
    """Single ingredient of an analyzed meal, editable before resubmission."""

    name: str = ""
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float | None = None
    sugar: float | None = None

    numbers_default_to_zero = field_validator(
        "calories", "protein", "carbs", "fat", mode="before"
    )(zero_if_missing)


class MealAnalysis(BackendModel):
    """AI analysis of a meal photo as returned by the backend."""

    meal_name: str | None = None
    description: str | None = None
    calories: float = 0
    protein_g: float = 0
    carbs_g: float = 0
    fats_g: float = 0
    fiber_g: float = 0
    sugar_g: float = 0
    sodium_mg: float = 0
    confidence: float | None = None
    ingredients: list[Ingredient] = Field(default_factory=list)

    numbers_default_to_zero = field_validator(
        "calories",
        "protein_g",
        "carbs_g",
        "fats_g",
        "fiber_g",
        "sugar_g",
        "sodium_mg",
        mode="before",
    )(zero_if_missing)
    lists_default_to_empty = field_validator("ingredients", mode="before")(
        empty_if_missing
    )


class PendingMeal(BackendModel):
    """Client-held draft of an analysis that has not been saved yet."""

    image_base_64: str
    analysis: MealAnalysis
    meal_id: str | None = None

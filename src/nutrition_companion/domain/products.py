"""Scanned product models."""

from datetime import datetime

from pydantic import Field, field_validator

from nutrition_companion.domain.base import (
    BackendModel,
    empty_if_missing,
    zero_if_missing,
)


class NutritionPer100g(BackendModel):
    """Nutrition values per 100 g of a product."""

    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None

    numbers_default_to_zero = field_validator(
        "calories", "protein", "carbs", "fat", mode="before"
    )(zero_if_missing)


class ProductData(BackendModel):
    """Product identified by a barcode or image scan."""

    name: str
    brand: str | None = None
    category: str = ""
    nutrition_per_100g: NutritionPer100g = Field(default_factory=NutritionPer100g)
    ingredients: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    health_score: float | None = None
    barcode: str | None = None

    lists_default_to_empty = field_validator(
        "ingredients", "allergens", "labels", mode="before"
    )(empty_if_missing)

    @field_validator("category", mode="before")
    @classmethod
    def category_or_empty(cls, value: object) -> object:
        return "" if value is None else value


class ScanHistoryItem(BackendModel):
    """Previously scanned product, displayed read-only."""

    product_name: str | None = None
    name: str | None = None
    category: str | None = None
    barcode: str | None = None
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        """Return the best available product name."""
        return self.product_name or self.name or "Unknown product"

"""Meal capture screen: photo analysis and ingredient editing."""

import logging
import re
from dataclasses import dataclass, field

from pydantic import ValidationError

from nutrition_companion.adapters.backend_client import BackendClient, unwrap_envelope
from nutrition_companion.domain.meals import Ingredient, MealAnalysis, PendingMeal
from nutrition_companion.errors import BackendError, FormError
from nutrition_companion.services.alerts import (
    Alert,
    error_alert,
    failure_alert,
    success_alert,
)
from nutrition_companion.services.images import prepare_image, strip_data_url

_logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "calories", "protein", "carbs", "fat", "fiber", "sugar")
_LEADING_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def custom_ingredient(name: str) -> Ingredient:
    """Build a user-added ingredient with placeholder nutrition values."""
    return Ingredient(
        name=name, calories=100, protein=5, carbs=15, fat=3, fiber=2, sugar=5
    )


@dataclass
class CameraState:
    """View state of the meal capture screen."""

    captured_image: str | None = None
    user_comment: str = ""
    editable_ingredients: list[Ingredient] = field(default_factory=list)
    custom_ingredient_name: str = ""
    show_comment_modal: bool = False
    show_ingredients_editor: bool = False
    pending_meal: PendingMeal | None = None
    is_analyzing: bool = False
    is_posting: bool = False

    def reset(self) -> None:
        """Clear the captured photo, the draft analysis and the form."""
        self.captured_image = None
        self.user_comment = ""
        self.editable_ingredients = []
        self.custom_ingredient_name = ""
        self.show_comment_modal = False
        self.show_ingredients_editor = False
        self.pending_meal = None


@dataclass
class MealCaptureService:
    """Remote-call wrappers for the meal capture screen."""

    client: BackendClient
    language: str = "en"
    debug: bool = False

    def capture(self, state: CameraState, image: bytes | str) -> Alert | None:
        """Store a captured photo and open the comment modal."""
        try:
            if isinstance(image, str):
                encoded = strip_data_url(image)
            else:
                encoded = prepare_image(image)
        except FormError as exc:
            _logger.exception("Failed to prepare captured image")
            return error_alert("Error", str(exc))
        if not encoded:
            return error_alert("Error", "Failed to process image")
        state.captured_image = encoded
        state.show_comment_modal = True
        return None

    async def analyze(self, state: CameraState) -> Alert | None:
        """Send the captured photo for analysis."""
        if not state.captured_image:
            return None
        comment = state.user_comment.strip() or None
        state.is_analyzing = True
        try:
            payload = await self.client.analyze_meal(
                image_base64=state.captured_image,
                language=self.language,
                update_text=comment,
            )
            analysis = _analysis_from(unwrap_envelope(payload))
        except BackendError as exc:
            _logger.exception("Meal analysis failed")
            return failure_alert(
                "Analysis failed", exc, "Failed to analyze image", debug=self.debug
            )
        finally:
            state.is_analyzing = False

        state.pending_meal = PendingMeal(
            image_base_64=state.captured_image, analysis=analysis
        )
        state.editable_ingredients = [
            ingredient.model_copy() for ingredient in analysis.ingredients
        ]
        state.show_comment_modal = False
        return None

    def open_ingredients_editor(self, state: CameraState) -> None:
        """Open the editor seeded with the pending meal's ingredients."""
        if state.pending_meal is None:
            return
        state.editable_ingredients = [
            ingredient.model_copy()
            for ingredient in state.pending_meal.analysis.ingredients
        ]
        state.show_ingredients_editor = True

    async def reanalyze_with_ingredients(self, state: CameraState) -> Alert | None:
        """Re-run the analysis with the user's edited ingredient list."""
        if state.pending_meal is None or not state.pending_meal.image_base_64:
            return None
        update_text = build_reanalysis_text(
            state.editable_ingredients, state.user_comment
        )
        state.is_analyzing = True
        try:
            payload = await self.client.analyze_meal(
                image_base64=state.pending_meal.image_base_64,
                language=self.language,
                update_text=update_text,
                edited_ingredients=[
                    ingredient.model_dump(exclude_none=True)
                    for ingredient in state.editable_ingredients
                ],
            )
            analysis = _analysis_from(unwrap_envelope(payload))
        except BackendError as exc:
            _logger.exception("Meal re-analysis failed")
            return failure_alert(
                "Re-analysis failed", exc, "Failed to re-analyze", debug=self.debug
            )
        finally:
            state.is_analyzing = False

        state.pending_meal = state.pending_meal.model_copy(
            update={"analysis": analysis}
        )
        state.show_ingredients_editor = False
        return None

    def add_custom_ingredient(
        self, state: CameraState, name: str | None = None
    ) -> None:
        """Append a custom ingredient with placeholder nutrition values."""
        raw = state.custom_ingredient_name if name is None else name
        cleaned = raw.strip()
        if not cleaned:
            return
        state.editable_ingredients = [
            *state.editable_ingredients,
            custom_ingredient(cleaned),
        ]
        state.custom_ingredient_name = ""

    def remove_ingredient(self, state: CameraState, index: int) -> None:
        """Remove the ingredient at a position, keeping the others in order."""
        state.editable_ingredients = [
            ingredient
            for position, ingredient in enumerate(state.editable_ingredients)
            if position != index
        ]

    def update_ingredient(
        self, state: CameraState, index: int, field_name: str, value: str
    ) -> None:
        """Set one field of an ingredient from raw form input."""
        if field_name not in EDITABLE_FIELDS:
            raise FormError(f"Unknown ingredient field: {field_name}")
        if not 0 <= index < len(state.editable_ingredients):
            raise FormError(f"No ingredient at position {index + 1}")
        updated = list(state.editable_ingredients)
        parsed: str | float = value if field_name == "name" else parse_number(value)
        updated[index] = updated[index].model_copy(update={field_name: parsed})
        state.editable_ingredients = updated

    async def save_meal(self, state: CameraState) -> Alert | None:
        """Persist the pending meal and reset the screen."""
        if state.pending_meal is None:
            return error_alert("Save failed", "There is no analyzed meal to save")
        state.is_posting = True
        try:
            payload = await self.client.save_meal(_meal_payload(state.pending_meal))
            unwrap_envelope(payload)
        except BackendError as exc:
            _logger.exception("Saving meal failed")
            return failure_alert(
                "Save failed", exc, "Failed to save meal", debug=self.debug
            )
        finally:
            state.is_posting = False
        state.reset()
        return success_alert("Meal saved", "Meal saved successfully")

    async def update_saved_meal(
        self, state: CameraState, meal_id: str, update_text: str
    ) -> Alert | None:
        """Send a correction for a meal that was already saved."""
        cleaned = update_text.strip()
        if not cleaned:
            return error_alert("Update failed", "Please describe what to change")
        state.is_posting = True
        try:
            payload = await self.client.update_meal(meal_id, cleaned, self.language)
            unwrap_envelope(payload)
        except BackendError as exc:
            _logger.exception("Updating meal failed", extra={"meal_id": meal_id})
            return failure_alert(
                "Update failed", exc, "Failed to update meal", debug=self.debug
            )
        finally:
            state.is_posting = False
        return success_alert("Meal updated", "Meal updated successfully")

    def discard(self, state: CameraState) -> None:
        """Drop the current analysis."""
        state.reset()

    def retake(self, state: CameraState) -> None:
        """Drop the current photo so a new one can be taken."""
        state.reset()


def parse_number(value: str) -> float:
    """Parse the leading number of user input, falling back to 0."""
    # Only decimal digits count, so "Infinity" and "NaN" read as 0.
    match = _LEADING_NUMBER.match(value)
    if match is None:
        return 0.0
    return float(match.group(0))


def describe_ingredients(ingredients: list[Ingredient]) -> str:
    """Describe ingredients as text for the analysis prompt."""
    return "; ".join(
        f"{ingredient.name}: {_number(ingredient.calories)} calories, "
        f"{_number(ingredient.protein)}g protein, "
        f"{_number(ingredient.carbs)}g carbs, "
        f"{_number(ingredient.fat)}g fat"
        for ingredient in ingredients
    )


def build_reanalysis_text(ingredients: list[Ingredient], comment: str) -> str:
    """Build the correction text sent with edited ingredients."""
    return f"Custom ingredients: {describe_ingredients(ingredients)}. {comment}".strip()


def _number(value: float) -> str:
    """Format a number without a trailing `.0` for whole values."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _analysis_from(data: object) -> MealAnalysis:
    if not isinstance(data, dict) or not isinstance(data.get("analysis"), dict):
        raise BackendError("Analysis response did not include an analysis")
    try:
        return MealAnalysis.model_validate(data["analysis"])
    except ValidationError as exc:
        raise BackendError("Analysis response could not be parsed") from exc


def _meal_payload(meal: PendingMeal) -> dict[str, object]:
    payload: dict[str, object] = {
        "imageBase64": meal.image_base_64,
        "mealData": meal.analysis.model_dump(),
    }
    if meal.meal_id:
        payload["mealId"] = meal.meal_id
    return payload

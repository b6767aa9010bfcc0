"""Statistics dashboard screen."""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum

from pydantic import ValidationError

from nutrition_companion.adapters.backend_client import BackendClient, unwrap_envelope
from nutrition_companion.domain.statistics import DailyBreakdown, StatisticsSnapshot
from nutrition_companion.errors import BackendError, FormError
from nutrition_companion.services.alerts import Alert, error_alert, failure_alert

_logger = logging.getLogger(__name__)

PROTEIN_TARGET_G = 120
DAILY_CALORIE_TARGET = 1800


class TimeRange(Enum):
    """Time ranges offered by the statistics screen."""

    TODAY = ("today", "Today")
    WEEK = ("week", "This Week")
    MONTH = ("month", "This Month")
    CUSTOM = ("custom", "Custom")

    def __init__(self, key: str, label: str) -> None:
        self.key = key
        self.label = label

    @classmethod
    def from_key(cls, key: str) -> "TimeRange":
        """Return the range for a key such as `week`."""
        for entry in cls:
            if entry.key == key.strip().lower():
                return entry
        raise FormError(f"Unknown time range: {key}")


@dataclass(frozen=True)
class NutritionBar:
    """Progress of one nutrient against its daily target."""

    label: str
    current: float
    target: float
    unit: str = "g"

    @property
    def percentage(self) -> float:
        """Return the progress percentage."""
        return progress_percentage(self.current, self.target)


@dataclass
class StatisticsState:
    """View state of the statistics screen."""

    selected_range: TimeRange = TimeRange.WEEK
    show_time_range_picker: bool = False
    custom_start_date: str = ""
    custom_end_date: str = ""
    snapshot: StatisticsSnapshot | None = None
    is_loading: bool = False


@dataclass
class StatisticsService:
    """Remote-call wrappers for the statistics screen."""

    client: BackendClient
    debug: bool = False

    def select_time_range(self, state: StatisticsState, time_range: TimeRange) -> None:
        """Select a range; non-custom ranges clear the custom dates."""
        state.selected_range = time_range
        state.show_time_range_picker = False
        if time_range is not TimeRange.CUSTOM:
            state.custom_start_date = ""
            state.custom_end_date = ""

    def set_custom_dates(self, state: StatisticsState, start: str, end: str) -> None:
        """Select a custom range between two ISO dates."""
        start_day = _parse_date(start)
        end_day = _parse_date(end)
        if start_day > end_day:
            raise FormError("Start date must not be after end date")
        state.selected_range = TimeRange.CUSTOM
        state.custom_start_date = start_day.isoformat()
        state.custom_end_date = end_day.isoformat()

    async def load(self, state: StatisticsState) -> Alert | None:
        """Fetch statistics for the selected range."""
        if state.selected_range is TimeRange.CUSTOM and not (
            state.custom_start_date and state.custom_end_date
        ):
            return error_alert(
                "Statistics", "Choose a start and end date for the custom range"
            )
        state.is_loading = True
        try:
            payload = await self.client.get_statistics(
                state.selected_range.key,
                start_date=state.custom_start_date or None,
                end_date=state.custom_end_date or None,
            )
            data = unwrap_envelope(payload)
            state.snapshot = StatisticsSnapshot.model_validate(
                data if isinstance(data, dict) else {}
            )
        except (BackendError, ValidationError) as exc:
            _logger.exception(
                "Failed to load statistics",
                extra={"period": state.selected_range.key},
            )
            return failure_alert(
                "Error", exc, "Failed to load statistics", debug=self.debug
            )
        finally:
            state.is_loading = False
        return None


def progress_percentage(current: float, target: float) -> float:
    """Return `current / target` as a percentage clamped to [0, 100]."""
    if target <= 0:
        return 0.0
    return min(max(current / target * 100, 0.0), 100.0)


def protein_goal_percentage(snapshot: StatisticsSnapshot) -> float:
    """Return average protein as a percentage of the daily target."""
    return snapshot.average_protein / PROTEIN_TARGET_G * 100


def nutrition_bars(snapshot: StatisticsSnapshot) -> list[NutritionBar]:
    """Return the nutrient progress bars for a snapshot."""
    return [
        NutritionBar("Protein", snapshot.average_protein, PROTEIN_TARGET_G),
        NutritionBar("Carbs", snapshot.average_carbs, 250),
        NutritionBar("Fats", snapshot.average_fats, 67),
        NutritionBar("Fiber", snapshot.average_fiber, 25),
        NutritionBar("Sodium", snapshot.average_sodium_mg / 1000, 2.3),
    ]


def meets_daily_target(day: DailyBreakdown) -> bool:
    """Return true when a day reached the calorie target."""
    return day.calories >= DAILY_CALORIE_TARGET


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise FormError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc

"""Recommended menus screen."""

import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from nutrition_companion.adapters.backend_client import BackendClient, unwrap_envelope
from nutrition_companion.domain.menus import RecommendedMenu
from nutrition_companion.errors import BackendError, FormError
from nutrition_companion.services.alerts import (
    Alert,
    error_alert,
    failure_alert,
    success_alert,
)

_logger = logging.getLogger(__name__)

DAY_OPTIONS = (3, 7, 14)
BUDGET_OPTIONS = (100, 200, 300)


@dataclass
class MenusState:
    """View state of the recommended menus screen."""

    menus: list[RecommendedMenu] = field(default_factory=list)
    is_loading: bool = True
    is_generating: bool = False
    refreshing: bool = False
    show_custom_modal: bool = False
    custom_request: str = ""
    selected_days: int = 7
    selected_budget: int = 200

    @property
    def can_submit_custom(self) -> bool:
        """Return true when the custom request form may be submitted."""
        return bool(self.custom_request.strip()) and not self.is_generating

    def find_menu(self, menu_id: str) -> RecommendedMenu | None:
        """Return a loaded menu by id."""
        return next((menu for menu in self.menus if menu.menu_id == menu_id), None)


@dataclass
class RecommendedMenusService:
    """Remote-call wrappers for the recommended menus screen."""

    client: BackendClient
    debug: bool = False

    async def load_menus(self, state: MenusState) -> None:
        """Load the menu list; failures are only logged."""
        try:
            payload = await self.client.list_recommended_menus()
            if payload.get("success"):
                data = payload.get("data")
                state.menus = [
                    RecommendedMenu.model_validate(item)
                    for item in (data if isinstance(data, list) else [])
                    if isinstance(item, dict)
                ]
                _logger.info("Loaded %s menus", len(state.menus))
        except (BackendError, ValidationError):
            _logger.exception("Failed to load recommended menus")
        finally:
            state.is_loading = False

    async def refresh(self, state: MenusState) -> None:
        """Reload the menu list as a pull-to-refresh."""
        state.refreshing = True
        try:
            await self.load_menus(state)
        finally:
            state.refreshing = False

    async def generate_menu(self, state: MenusState) -> Alert | None:
        """Generate a menu with default preferences."""
        if state.is_generating:
            return None
        state.is_generating = True
        try:
            payload = await self.client.generate_menu()
            unwrap_envelope(payload)
        except BackendError as exc:
            _logger.exception("Menu generation failed")
            return failure_alert(
                "Error", exc, "Failed to generate menu", debug=self.debug
            )
        finally:
            state.is_generating = False
        await self.load_menus(state)
        return success_alert("Success", "New menu generated successfully!")

    def open_custom_form(self, state: MenusState) -> None:
        """Show the custom menu form."""
        state.show_custom_modal = True

    def close_custom_form(self, state: MenusState) -> None:
        """Hide the custom menu form, keeping its inputs."""
        state.show_custom_modal = False

    def select_days(self, state: MenusState, days: int) -> None:
        """Choose how many days the custom menu covers."""
        if days not in DAY_OPTIONS:
            raise FormError(f"Days must be one of {_options(DAY_OPTIONS)}")
        state.selected_days = days

    def select_budget(self, state: MenusState, budget: int) -> None:
        """Choose the custom menu budget."""
        if budget not in BUDGET_OPTIONS:
            raise FormError(f"Budget must be one of {_options(BUDGET_OPTIONS)}")
        state.selected_budget = budget

    async def generate_custom_menu(self, state: MenusState) -> Alert | None:
        """Generate a menu from the free-text request in the form."""
        request = state.custom_request.strip()
        if not request:
            return error_alert("Error", "Please describe what kind of menu you want")
        if state.is_generating:
            return None
        state.is_generating = True
        try:
            payload = await self.client.generate_custom_menu(
                custom_request=request,
                days=state.selected_days,
                budget=state.selected_budget,
            )
            unwrap_envelope(payload)
        except BackendError as exc:
            _logger.exception("Custom menu generation failed")
            return failure_alert(
                "Error", exc, "Failed to generate custom menu", debug=self.debug
            )
        finally:
            state.is_generating = False

        state.show_custom_modal = False
        state.custom_request = ""
        await self.load_menus(state)
        return success_alert("Success", "Custom menu generated successfully!")

    async def start_menu_today(self, menu_id: str) -> Alert | None:
        """Start following a menu from today."""
        try:
            payload = await self.client.start_menu_today(menu_id)
            unwrap_envelope(payload)
        except BackendError as exc:
            _logger.exception("Starting menu failed", extra={"menu_id": menu_id})
            return failure_alert(
                "Error", exc, "Failed to start menu", debug=self.debug
            )
        return success_alert("Success", "Menu started for today!")


def _options(values: tuple[int, ...]) -> str:
    return ", ".join(str(value) for value in values)

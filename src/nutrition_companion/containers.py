"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutrition_companion.adapters.backend_client import (
    BackendClient,
    HttpxBackendClient,
)
from nutrition_companion.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramClient,
)
from nutrition_companion.config import Settings
from nutrition_companion.services.camera import MealCaptureService
from nutrition_companion.services.food_scanner import FoodScannerService
from nutrition_companion.services.menus import RecommendedMenusService
from nutrition_companion.services.screens import InMemoryScreenStore, ScreenStore
from nutrition_companion.services.statistics import StatisticsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    backend_client: BackendClient
    screen_store: ScreenStore
    meal_capture_service: MealCaptureService
    food_scanner_service: FoodScannerService
    menus_service: RecommendedMenusService
    statistics_service: StatisticsService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    debug = resolved_settings.environment == "local"
    telegram_client = HttpxTelegramClient.create(
        resolved_settings.telegram_bot_token,
        api_url=resolved_settings.telegram_api_url,
    )
    backend_client = HttpxBackendClient.create(
        base_url=resolved_settings.backend_base_url,
        api_token=resolved_settings.backend_api_token,
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await backend_client.close()

    return AppContainer(
        settings=resolved_settings,
        telegram_client=telegram_client,
        backend_client=backend_client,
        screen_store=InMemoryScreenStore(resolved_settings.screen_state_ttl_seconds),
        meal_capture_service=MealCaptureService(
            client=backend_client,
            language=resolved_settings.default_language,
            debug=debug,
        ),
        food_scanner_service=FoodScannerService(client=backend_client, debug=debug),
        menus_service=RecommendedMenusService(client=backend_client, debug=debug),
        statistics_service=StatisticsService(client=backend_client, debug=debug),
        close_resources=close_resources,
    )

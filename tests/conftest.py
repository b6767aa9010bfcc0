"""Shared test fixtures."""

import io
from dataclasses import dataclass, field

import pytest
from PIL import Image

from nutrition_companion.adapters.backend_client import BackendClient
from nutrition_companion.adapters.telegram_client import TelegramClient
from nutrition_companion.config import Settings
from nutrition_companion.containers import AppContainer
from nutrition_companion.errors import BackendError
from nutrition_companion.services.camera import MealCaptureService
from nutrition_companion.services.food_scanner import FoodScannerService
from nutrition_companion.services.menus import RecommendedMenusService
from nutrition_companion.services.screens import InMemoryScreenStore
from nutrition_companion.services.statistics import StatisticsService


def make_image_bytes(
    size: tuple[int, int] = (64, 48), mode: str = "RGB", fmt: str = "PNG"
) -> bytes:
    """Return a small encoded test image."""
    color = (200, 120, 40, 128) if mode == "RGBA" else (200, 120, 40)
    image = Image.new(mode, size, color)
    output = io.BytesIO()
    image.save(output, format=fmt)
    return output.getvalue()


def analysis_envelope(**overrides: object) -> dict[str, object]:
    """Return a successful analyze response."""
    analysis: dict[str, object] = {
        "meal_name": "Chicken salad",
        "calories": 420,
        "protein_g": 35,
        "carbs_g": 18,
        "fats_g": 22,
        "ingredients": [
            {"name": "Chicken", "calories": 250, "protein": 30, "carbs": 0, "fat": 12},
            {"name": "Lettuce", "calories": 15, "protein": 1, "carbs": 3, "fat": 0},
        ],
    }
    analysis.update(overrides)
    return {"success": True, "data": {"analysis": analysis}}


def product_envelope(**overrides: object) -> dict[str, object]:
    """Return a successful scan response."""
    product: dict[str, object] = {
        "name": "Greek Yogurt",
        "brand": "Tnuva",
        "category": "Dairy",
        "nutrition_per_100g": {"calories": 97, "protein": 9, "carbs": 4, "fat": 5},
        "ingredients": ["milk"],
        "allergens": ["milk"],
        "labels": [],
        "barcode": "7290000000001",
    }
    product.update(overrides)
    return {"success": True, "data": {"product": product}}


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records messages."""

    messages: list[tuple[int, str]] = field(default_factory=list)
    markups: list[dict | None] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None
    file_content: bytes = field(default_factory=make_image_bytes)
    downloaded: list[str] = field(default_factory=list)

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> None:
        self.messages.append((chat_id, text))
        self.markups.append(reply_markup)

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button

    async def download_file(self, file_id: str) -> bytes:
        self.downloaded.append(file_id)
        return self.file_content


@dataclass
class FakeBackendClient(BackendClient):
    """Fake backend returning canned envelopes and recording calls."""

    responses: dict[str, dict[str, object]] = field(default_factory=dict)
    errors: dict[str, BackendError] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    def calls_to(self, name: str) -> list[dict[str, object]]:
        return [kwargs for called, kwargs in self.calls if called == name]

    async def _respond(self, name: str, **kwargs: object) -> dict[str, object]:
        self.calls.append((name, kwargs))
        if name in self.errors:
            raise self.errors[name]
        return self.responses.get(name, {"success": True, "data": None})

    async def analyze_meal(
        self,
        image_base64: str,
        language: str,
        update_text: str | None = None,
        edited_ingredients: list[dict[str, object]] | None = None,
    ) -> dict[str, object]:
        return await self._respond(
            "analyze_meal",
            image_base64=image_base64,
            language=language,
            update_text=update_text,
            edited_ingredients=edited_ingredients,
        )

    async def save_meal(self, meal: dict[str, object]) -> dict[str, object]:
        return await self._respond("save_meal", meal=meal)

    async def update_meal(
        self, meal_id: str, update_text: str, language: str
    ) -> dict[str, object]:
        return await self._respond(
            "update_meal", meal_id=meal_id, update_text=update_text, language=language
        )

    async def scan_barcode(self, barcode: str) -> dict[str, object]:
        return await self._respond("scan_barcode", barcode=barcode)

    async def scan_product_image(self, image_base64: str) -> dict[str, object]:
        return await self._respond("scan_product_image", image_base64=image_base64)

    async def add_to_meal_log(
        self, product: dict[str, object], quantity: int, meal_timing: str
    ) -> dict[str, object]:
        return await self._respond(
            "add_to_meal_log",
            product=product,
            quantity=quantity,
            meal_timing=meal_timing,
        )

    async def list_scan_history(self) -> dict[str, object]:
        return await self._respond("list_scan_history")

    async def list_recommended_menus(self) -> dict[str, object]:
        return await self._respond("list_recommended_menus")

    async def generate_menu(self) -> dict[str, object]:
        return await self._respond("generate_menu")

    async def generate_custom_menu(
        self, custom_request: str, days: int, budget: int
    ) -> dict[str, object]:
        return await self._respond(
            "generate_custom_menu",
            custom_request=custom_request,
            days=days,
            budget=budget,
        )

    async def start_menu_today(self, menu_id: str) -> dict[str, object]:
        return await self._respond("start_menu_today", menu_id=menu_id)

    async def get_statistics(
        self,
        period: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, object]:
        return await self._respond(
            "get_statistics", period=period, start_date=start_date, end_date=end_date
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        backend_base_url="https://backend.test/api",
        backend_api_token="backend-token",
        environment="test",
    )


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def backend_client() -> FakeBackendClient:
    return FakeBackendClient()


@pytest.fixture
def container(
    settings: Settings,
    telegram_client: FakeTelegramClient,
    backend_client: FakeBackendClient,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        backend_client=backend_client,
        screen_store=InMemoryScreenStore(),
        meal_capture_service=MealCaptureService(client=backend_client),
        food_scanner_service=FoodScannerService(client=backend_client),
        menus_service=RecommendedMenusService(client=backend_client),
        statistics_service=StatisticsService(client=backend_client),
        close_resources=close_resources,
    )

"""Nutrition backend API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from nutrition_companion.errors import BackendError

MENU_GENERATION_DEFAULTS: dict[str, object] = {
    "mealsPerDay": "3_main",
    "mealChangeFrequency": "daily",
    "includeLeftovers": False,
    "sameMealTimes": True,
}
DEFAULT_MENU_DAYS = 7


class BackendClient(Protocol):
    """Interface for the nutrition backend endpoints."""

    async def analyze_meal(
        self,
        image_base64: str,
        language: str,
        update_text: str | None = None,
        edited_ingredients: list[dict[str, object]] | None = None,
    ) -> dict[str, object]:
        """Ask the backend to analyze a meal image."""

    async def save_meal(self, meal: dict[str, object]) -> dict[str, object]:
        """Persist a pending meal."""

    async def update_meal(
        self, meal_id: str, update_text: str, language: str
    ) -> dict[str, object]:
        """Send a correction for an already saved meal."""

    async def scan_barcode(self, barcode: str) -> dict[str, object]:
        """Look up a product by barcode."""

    async def scan_product_image(self, image_base64: str) -> dict[str, object]:
        """Identify a product from an image."""

    async def add_to_meal_log(
        self, product: dict[str, object], quantity: int, meal_timing: str
    ) -> dict[str, object]:
        """Log a scanned product as a meal."""

    async def list_scan_history(self) -> dict[str, object]:
        """Return previously scanned products."""

    async def list_recommended_menus(self) -> dict[str, object]:
        """Return the user's recommended menus."""

    async def generate_menu(self) -> dict[str, object]:
        """Generate a menu with default preferences."""

    async def generate_custom_menu(
        self, custom_request: str, days: int, budget: int
    ) -> dict[str, object]:
        """Generate a menu from a free-text request."""

    async def start_menu_today(self, menu_id: str) -> dict[str, object]:
        """Start following a menu from today."""

    async def get_statistics(
        self,
        period: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, object]:
        """Return statistics for a time range."""


@dataclass
class HttpxBackendClient(BackendClient):
    """HTTPX-backed client for the nutrition backend."""

    base_url: str
    http_client: httpx.AsyncClient
    api_token: str | None = None
    timeout_seconds: float = 30.0

    @classmethod
    def create(
        cls, base_url: str, api_token: str | None = None, timeout_seconds: float = 30.0
    ) -> "HttpxBackendClient":
        """Create a backend client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            api_token=api_token,
            timeout_seconds=timeout_seconds,
        )

    async def analyze_meal(
        self,
        image_base64: str,
        language: str,
        update_text: str | None = None,
        edited_ingredients: list[dict[str, object]] | None = None,
    ) -> dict[str, object]:
        """Analyze a meal image."""
        payload: dict[str, object] = {
            "imageBase64": image_base64,
            "language": language,
        }
        if update_text is not None:
            payload["updateText"] = update_text
        if edited_ingredients is not None:
            payload["editedIngredients"] = edited_ingredients
        return await self._request("POST", "/nutrition/analyze", json=payload)

    async def save_meal(self, meal: dict[str, object]) -> dict[str, object]:
        """Save a pending meal."""
        return await self._request("POST", "/nutrition/save", json=meal)

    async def update_meal(
        self, meal_id: str, update_text: str, language: str
    ) -> dict[str, object]:
        """Update a saved meal."""
        return await self._request(
            "PUT",
            f"/nutrition/update/{meal_id}",
            json={"updateText": update_text, "language": language},
        )

    async def scan_barcode(self, barcode: str) -> dict[str, object]:
        """Scan a barcode."""
        return await self._request(
            "POST", "/food-scanner/barcode", json={"barcode": barcode}
        )

    async def scan_product_image(self, image_base64: str) -> dict[str, object]:
        """Scan a product image."""
        return await self._request(
            "POST", "/food-scanner/image", json={"imageBase64": image_base64}
        )

    async def add_to_meal_log(
        self, product: dict[str, object], quantity: int, meal_timing: str
    ) -> dict[str, object]:
        """Add a scanned product to the meal log."""
        return await self._request(
            "POST",
            "/food-scanner/add-to-meal",
            json={
                "productData": product,
                "quantity": quantity,
                "mealTiming": meal_timing,
            },
        )

    async def list_scan_history(self) -> dict[str, object]:
        """List scanned products."""
        return await self._request("GET", "/food-scanner/history")

    async def list_recommended_menus(self) -> dict[str, object]:
        """List recommended menus."""
        return await self._request("GET", "/recommended-menus")

    async def generate_menu(self) -> dict[str, object]:
        """Generate a menu with default preferences."""
        return await self._request(
            "POST",
            "/recommended-menus/generate",
            json={"days": DEFAULT_MENU_DAYS, **MENU_GENERATION_DEFAULTS},
        )

    async def generate_custom_menu(
        self, custom_request: str, days: int, budget: int
    ) -> dict[str, object]:
        """Generate a custom menu."""
        return await self._request(
            "POST",
            "/recommended-menus/generate-custom",
            json={
                "customRequest": custom_request,
                "days": days,
                "budget": budget,
                **MENU_GENERATION_DEFAULTS,
            },
        )

    async def start_menu_today(self, menu_id: str) -> dict[str, object]:
        """Start a menu today."""
        return await self._request(
            "POST", f"/recommended-menus/{menu_id}/start-today"
        )

    async def get_statistics(
        self,
        period: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, object]:
        """Fetch statistics."""
        params = {"period": period}
        if start_date:
            params["startDate"] = start_date
        if end_date:
            params["endDate"] = end_date
        return await self._request("GET", "/statistics", params=params)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, object] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, object]:
        """Send a request and return the decoded JSON envelope."""
        headers = {}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            server_message = _server_message(response)
            raise BackendError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
                server_message=server_message,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise BackendError(f"{method} {path} returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise BackendError(f"{method} {path} returned an unexpected payload")
        return payload


def unwrap_envelope(payload: dict[str, object]) -> object:
    """Return the `data` of a successful `{success, data}` envelope."""
    if not payload.get("success"):
        message = payload.get("error") or payload.get("message")
        raise BackendError(
            "Backend reported failure",
            server_message=str(message) if message else None,
        )
    return payload.get("data")


def _server_message(response: httpx.Response) -> str | None:
    """Extract a human-readable error from an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("error") or body.get("message") or body.get("detail")
    return str(message) if message else None

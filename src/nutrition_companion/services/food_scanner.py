"""Food scanner screen: barcode and product image lookups."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from pydantic import ValidationError

from nutrition_companion.adapters.backend_client import BackendClient, unwrap_envelope
from nutrition_companion.domain.products import ProductData, ScanHistoryItem
from nutrition_companion.errors import BackendError, FormError
from nutrition_companion.services.alerts import (
    Alert,
    error_alert,
    failure_alert,
    success_alert,
)
from nutrition_companion.services.images import prepare_image

_logger = logging.getLogger(__name__)

MEAL_TIMINGS = ("BREAKFAST", "LUNCH", "DINNER", "SNACK")
BARCODE_LENGTHS = {8, 13}


class ScanMode(Enum):
    """How the scanner identifies products."""

    BARCODE = "barcode"
    IMAGE = "image"


@dataclass
class ScannerState:
    """View state of the food scanner screen."""

    scan_mode: ScanMode = ScanMode.BARCODE
    scanned_product: ProductData | None = None
    is_scanning: bool = False
    scan_history: list[ScanHistoryItem] = field(default_factory=list)
    show_add_to_meal: bool = False
    quantity: str = "100"
    meal_timing: str = "SNACK"


@dataclass
class FoodScannerService:
    """Remote-call wrappers for the food scanner screen."""

    client: BackendClient
    debug: bool = False

    async def load_history(self, state: ScannerState) -> None:
        """Reload the scan history; failures are only logged."""
        try:
            payload = await self.client.list_scan_history()
            if not payload.get("success"):
                return
            data = payload.get("data")
            if not isinstance(data, list):
                data = []
            state.scan_history = [
                ScanHistoryItem.model_validate(item)
                for item in data
                if isinstance(item, dict)
            ]
        except (BackendError, ValidationError):
            _logger.exception("Failed to load scan history")

    def set_scan_mode(self, state: ScannerState, mode: ScanMode) -> None:
        """Switch between barcode and image scanning."""
        state.scan_mode = mode

    async def scan_barcode(self, state: ScannerState, barcode: str) -> Alert | None:
        """Look up a product by barcode."""
        if state.is_scanning:
            return None
        code = barcode.strip()
        if not is_supported_barcode(code):
            return error_alert(
                "Scan Failed", "Barcodes must be EAN-8 or EAN-13 (8 or 13 digits)"
            )
        state.scan_mode = ScanMode.BARCODE
        state.is_scanning = True
        try:
            payload = await self.client.scan_barcode(code)
            product = _product_from(payload)
        except BackendError as exc:
            _logger.exception("Barcode scan failed", extra={"barcode": code})
            return failure_alert(
                "Scan Failed",
                exc,
                "Failed to scan barcode. Please try again.",
                debug=self.debug,
            )
        finally:
            state.is_scanning = False

        if product is None:
            return error_alert(
                "Product Not Found", "This product is not in our database"
            )
        state.scanned_product = product
        state.show_add_to_meal = True
        return None

    async def scan_product_image(
        self, state: ScannerState, image_bytes: bytes
    ) -> Alert | None:
        """Identify a product from a photo."""
        if state.is_scanning:
            return None
        state.scan_mode = ScanMode.IMAGE
        state.is_scanning = True
        try:
            encoded = prepare_image(image_bytes)
            payload = await self.client.scan_product_image(encoded)
            product = _product_from(payload)
        except (BackendError, FormError) as exc:
            _logger.exception("Product image scan failed")
            return failure_alert(
                "Scan Failed",
                exc,
                "Failed to scan image. Please try again.",
                debug=self.debug,
            )
        finally:
            state.is_scanning = False

        if product is None:
            return error_alert("Scan Failed", "Could not identify product from image")
        state.scanned_product = product
        state.show_add_to_meal = True
        return None

    def set_quantity(self, state: ScannerState, quantity: str) -> None:
        """Store the raw quantity input."""
        state.quantity = quantity.strip()

    def set_meal_timing(self, state: ScannerState, timing: str) -> None:
        """Select the meal the product belongs to."""
        normalized = timing.strip().upper()
        if normalized not in MEAL_TIMINGS:
            raise FormError(f"Meal timing must be one of {', '.join(MEAL_TIMINGS)}")
        state.meal_timing = normalized

    async def add_to_meal_log(self, state: ScannerState) -> Alert | None:
        """Log the scanned product and reload the history."""
        if state.scanned_product is None:
            return None
        try:
            quantity = parse_quantity(state.quantity)
        except FormError as exc:
            return error_alert("Error", str(exc))
        try:
            payload = await self.client.add_to_meal_log(
                state.scanned_product.model_dump(exclude_none=True),
                quantity,
                state.meal_timing,
            )
            unwrap_envelope(payload)
        except BackendError as exc:
            _logger.exception("Adding product to meal log failed")
            return failure_alert(
                "Error",
                exc,
                "Failed to add product to meal log",
                debug=self.debug,
            )

        state.show_add_to_meal = False
        state.scanned_product = None
        await self.load_history(state)
        return success_alert("Success", "Product added to meal log!")

    def dismiss_product(self, state: ScannerState) -> None:
        """Close the add-to-meal form without logging."""
        state.show_add_to_meal = False
        state.scanned_product = None


def is_supported_barcode(code: str) -> bool:
    """Return true for EAN-8 and EAN-13 digit strings."""
    return code.isascii() and code.isdigit() and len(code) in BARCODE_LENGTHS


def parse_quantity(raw: str) -> int:
    """Parse the quantity in grams as a positive integer."""
    cleaned = raw.strip()
    if not (cleaned.isascii() and cleaned.isdigit()) or int(cleaned) <= 0:
        raise FormError("Please enter a valid quantity in grams")
    return int(cleaned)


def _product_from(payload: dict[str, object]) -> ProductData | None:
    """Return the product from a scan envelope, or None when not found."""
    if not payload.get("success"):
        return None
    data = payload.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("product"), dict):
        return None
    try:
        return ProductData.model_validate(data["product"])
    except ValidationError as exc:
        raise BackendError("Product response could not be parsed") from exc

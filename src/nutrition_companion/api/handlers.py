"""Routing of Telegram messages and callbacks to the screens."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutrition_companion.adapters.telegram_client import TelegramClient
from nutrition_companion.api import formatting
from nutrition_companion.api.telegram_models import TelegramMessage, TelegramPhotoSize
from nutrition_companion.errors import FormError
from nutrition_companion.services.alerts import Alert
from nutrition_companion.services.camera import MealCaptureService
from nutrition_companion.services.food_scanner import FoodScannerService
from nutrition_companion.services.menus import RecommendedMenusService
from nutrition_companion.services.screens import ChatScreens, ScreenStore
from nutrition_companion.services.statistics import StatisticsService, TimeRange

_logger = logging.getLogger(__name__)

PRODUCT_CAPTION = "/product"


@dataclass(frozen=True)
class Reply:
    """Message to send back to the chat."""

    text: str
    reply_markup: dict | None = None


CommandHandler = Callable[[ChatScreens, str], Awaitable[list[Reply]]]


@dataclass
class BotHandlers:
    """Translate chat input into screen operations and rendered replies."""

    screen_store: ScreenStore
    telegram_client: TelegramClient
    camera: MealCaptureService
    scanner: FoodScannerService
    menus: RecommendedMenusService
    statistics: StatisticsService
    debug: bool = False

    def __post_init__(self) -> None:
        self._commands: dict[str, CommandHandler] = {
            "start": self._help,
            "help": self._help,
            "comment": self._comment,
            "ingredients": self._ingredients,
            "add": self._add_ingredient,
            "remove": self._remove_ingredient,
            "set": self._set_ingredient,
            "reanalyze": self._reanalyze,
            "save": self._save,
            "discard": self._discard,
            "retake": self._retake,
            "updatemeal": self._update_meal,
            "barcode": self._barcode,
            "quantity": self._quantity,
            "timing": self._timing,
            "addlog": self._add_to_log,
            "scans": self._scans,
            "menus": self._menus,
            "generate": self._generate,
            "custommenu": self._custom_menu,
            "days": self._days,
            "budget": self._budget,
            "startmenu": self._start_menu,
            "stats": self._stats,
        }

    async def handle_message(self, message: TelegramMessage) -> list[Reply]:
        """Handle a text or photo message."""
        screens = self.screen_store.get(message.chat.id)
        if message.photo:
            return await self._photo(screens, message)
        text = (message.text or "").strip()
        if not text.startswith("/"):
            return [Reply("Send a meal photo or use /help to see what I can do.")]
        command, _, args = text[1:].partition(" ")
        command = command.split("@", maxsplit=1)[0].lower()
        handler = self._commands.get(command)
        if handler is None:
            return [Reply(f"Unknown command /{command}. Use /help.")]
        try:
            return await handler(screens, args.strip())
        except FormError as exc:
            return [Reply(str(exc))]

    async def handle_callback(self, chat_id: int, data: str) -> list[Reply]:
        """Handle an inline keyboard button press."""
        screens = self.screen_store.get(chat_id)
        screen, _, rest = data.partition(":")
        action, _, payload = rest.partition(":")
        try:
            if screen == "meal":
                return await self._meal_callback(screens, action)
            if screen == "scan":
                return await self._scan_callback(screens, action, payload)
            if screen == "menu":
                return await self._menu_callback(screens, action, payload)
            if screen == "stats" and action == "range":
                return await self._stats(screens, payload)
        except FormError as exc:
            return [Reply(str(exc))]
        _logger.warning("Unknown callback data", extra={"callback_data": data})
        return []

    async def _help(self, screens: ChatScreens, args: str) -> list[Reply]:
        return [Reply(formatting.HELP_TEXT)]

    async def _photo(
        self, screens: ChatScreens, message: TelegramMessage
    ) -> list[Reply]:
        photo = _select_largest_photo(message.photo or [])
        try:
            image_bytes = await self.telegram_client.download_file(photo.file_id)
        except Exception as exc:
            _logger.exception(
                "Failed to download Telegram photo", extra={"file_id": photo.file_id}
            )
            return [Reply(self._error_text(exc, "Couldn't download that photo."))]

        caption = (message.caption or "").strip()
        if caption.lower().startswith(PRODUCT_CAPTION):
            alert = await self.scanner.scan_product_image(screens.scanner, image_bytes)
            return self._product_replies(screens, alert)

        camera_state = screens.camera
        self.camera.retake(camera_state)
        alert = self.camera.capture(camera_state, image_bytes)
        if alert:
            return [Reply(formatting.format_alert(alert))]
        camera_state.user_comment = caption
        return self._analysis_replies(
            screens, await self.camera.analyze(camera_state)
        )

    async def _comment(self, screens: ChatScreens, args: str) -> list[Reply]:
        state = screens.camera
        state.user_comment = args
        if state.captured_image and state.pending_meal is None:
            return self._analysis_replies(
                screens, await self.camera.analyze(state)
            )
        return [Reply("Comment saved. It will be sent with the next analysis.")]

    async def _ingredients(self, screens: ChatScreens, args: str) -> list[Reply]:
        state = screens.camera
        if state.pending_meal is None:
            return [Reply(formatting.format_analysis(state))]
        self.camera.open_ingredients_editor(state)
        return self._editor_replies(screens)

    async def _add_ingredient(self, screens: ChatScreens, args: str) -> list[Reply]:
        state = screens.camera
        if state.pending_meal is None:
            return [Reply(formatting.format_analysis(state))]
        if not args:
            return [Reply("Usage: /add <ingredient name>")]
        state.show_ingredients_editor = True
        self.camera.add_custom_ingredient(state, args)
        return self._editor_replies(screens)

    async def _remove_ingredient(
        self, screens: ChatScreens, args: str
    ) -> list[Reply]:
        state = screens.camera
        position = _parse_int(args)
        if position is None or not 1 <= position <= len(state.editable_ingredients):
            return [Reply("Usage: /remove <ingredient number>")]
        self.camera.remove_ingredient(state, position - 1)
        return self._editor_replies(screens)

    async def _set_ingredient(self, screens: ChatScreens, args: str) -> list[Reply]:
        parts = args.split(maxsplit=2)
        position = _parse_int(parts[0]) if parts else None
        if len(parts) != 3 or position is None:
            return [Reply("Usage: /set <ingredient number> <field> <value>")]
        _, field_name, value = parts
        self.camera.update_ingredient(
            screens.camera, position - 1, field_name.lower(), value
        )
        return self._editor_replies(screens)

    async def _reanalyze(self, screens: ChatScreens, args: str) -> list[Reply]:
        if screens.camera.pending_meal is None:
            return [Reply(formatting.format_analysis(screens.camera))]
        alert = await self.camera.reanalyze_with_ingredients(screens.camera)
        return self._analysis_replies(screens, alert)

    async def _save(self, screens: ChatScreens, args: str) -> list[Reply]:
        alert = await self.camera.save_meal(screens.camera)
        return _alert_replies(alert)

    async def _discard(self, screens: ChatScreens, args: str) -> list[Reply]:
        self.camera.discard(screens.camera)
        return [Reply("Analysis discarded.")]

    async def _retake(self, screens: ChatScreens, args: str) -> list[Reply]:
        self.camera.retake(screens.camera)
        return [Reply("Send a new photo of your meal.")]

    async def _update_meal(self, screens: ChatScreens, args: str) -> list[Reply]:
        meal_id, _, update_text = args.partition(" ")
        if not meal_id or not update_text.strip():
            return [Reply("Usage: /updatemeal <meal id> <what to change>")]
        alert = await self.camera.update_saved_meal(
            screens.camera, meal_id, update_text
        )
        return _alert_replies(alert)

    async def _barcode(self, screens: ChatScreens, args: str) -> list[Reply]:
        if not args:
            return [Reply("Usage: /barcode <EAN-8 or EAN-13 code>")]
        alert = await self.scanner.scan_barcode(screens.scanner, args)
        return self._product_replies(screens, alert)

    async def _quantity(self, screens: ChatScreens, args: str) -> list[Reply]:
        if not args:
            return [Reply("Usage: /quantity <grams>")]
        self.scanner.set_quantity(screens.scanner, args)
        return self._product_replies(screens, None)

    async def _timing(self, screens: ChatScreens, args: str) -> list[Reply]:
        self.scanner.set_meal_timing(screens.scanner, args)
        return self._product_replies(screens, None)

    async def _add_to_log(self, screens: ChatScreens, args: str) -> list[Reply]:
        if screens.scanner.scanned_product is None:
            return [Reply("Scan a product first with /barcode or a /product photo.")]
        alert = await self.scanner.add_to_meal_log(screens.scanner)
        replies = _alert_replies(alert)
        if alert and not alert.is_error:
            replies.append(
                Reply(formatting.format_scan_history(screens.scanner.scan_history))
            )
        return replies

    async def _scans(self, screens: ChatScreens, args: str) -> list[Reply]:
        await self.scanner.load_history(screens.scanner)
        return [Reply(formatting.format_scan_history(screens.scanner.scan_history))]

    async def _menus(self, screens: ChatScreens, args: str) -> list[Reply]:
        await self.menus.load_menus(screens.menus)
        return self._menu_list_replies(screens)

    async def _generate(self, screens: ChatScreens, args: str) -> list[Reply]:
        alert = await self.menus.generate_menu(screens.menus)
        replies = _alert_replies(alert)
        if alert and not alert.is_error:
            replies.extend(self._menu_list_replies(screens))
        return replies

    async def _custom_menu(self, screens: ChatScreens, args: str) -> list[Reply]:
        state = screens.menus
        if args:
            state.custom_request = args
        self.menus.open_custom_form(state)
        return self._custom_form_replies(screens)

    async def _days(self, screens: ChatScreens, args: str) -> list[Reply]:
        days = _parse_int(args)
        if days is None:
            return [Reply("Usage: /days <3|7|14>")]
        self.menus.select_days(screens.menus, days)
        return self._custom_form_replies(screens)

    async def _budget(self, screens: ChatScreens, args: str) -> list[Reply]:
        budget = _parse_int(args)
        if budget is None:
            return [Reply("Usage: /budget <100|200|300>")]
        self.menus.select_budget(screens.menus, budget)
        return self._custom_form_replies(screens)

    async def _start_menu(self, screens: ChatScreens, args: str) -> list[Reply]:
        if not args:
            return [Reply("Usage: /startmenu <menu id>")]
        return _alert_replies(await self.menus.start_menu_today(args))

    async def _stats(self, screens: ChatScreens, args: str) -> list[Reply]:
        state = screens.statistics
        parts = args.split()
        if parts:
            time_range = TimeRange.from_key(parts[0])
            if time_range is TimeRange.CUSTOM:
                if len(parts) != 3:
                    self.statistics.select_time_range(state, time_range)
                    return [
                        Reply(
                            "Send /stats custom <YYYY-MM-DD> <YYYY-MM-DD> "
                            "to pick the custom range."
                        )
                    ]
                self.statistics.set_custom_dates(state, parts[1], parts[2])
            else:
                self.statistics.select_time_range(state, time_range)
        alert = await self.statistics.load(state)
        if alert:
            return [Reply(formatting.format_alert(alert))]
        return [
            Reply(
                formatting.format_statistics(state),
                reply_markup=formatting.statistics_keyboard(state.selected_range),
            )
        ]

    async def _meal_callback(self, screens: ChatScreens, action: str) -> list[Reply]:
        if action == "save":
            return await self._save(screens, "")
        if action == "discard":
            return await self._discard(screens, "")
        if action == "edit":
            return await self._ingredients(screens, "")
        if action == "reanalyze":
            return await self._reanalyze(screens, "")
        return []

    async def _scan_callback(
        self, screens: ChatScreens, action: str, payload: str
    ) -> list[Reply]:
        if action == "add":
            return await self._add_to_log(screens, "")
        if action == "timing":
            return await self._timing(screens, payload)
        return []

    async def _menu_callback(
        self, screens: ChatScreens, action: str, payload: str
    ) -> list[Reply]:
        if action == "start":
            return await self._start_menu(screens, payload)
        if action == "days":
            return await self._days(screens, payload)
        if action == "budget":
            return await self._budget(screens, payload)
        if action == "custom":
            alert = await self.menus.generate_custom_menu(screens.menus)
            replies = _alert_replies(alert)
            if alert and not alert.is_error:
                replies.extend(self._menu_list_replies(screens))
            return replies
        return []

    def _analysis_replies(
        self, screens: ChatScreens, alert: Alert | None
    ) -> list[Reply]:
        if alert:
            return [Reply(formatting.format_alert(alert))]
        return [
            Reply(
                formatting.format_analysis(screens.camera),
                reply_markup=formatting.analysis_keyboard(),
            )
        ]

    def _editor_replies(self, screens: ChatScreens) -> list[Reply]:
        return [
            Reply(
                formatting.format_ingredients_editor(
                    screens.camera.editable_ingredients
                ),
                reply_markup=formatting.editor_keyboard(),
            )
        ]

    def _product_replies(
        self, screens: ChatScreens, alert: Alert | None
    ) -> list[Reply]:
        if alert:
            return [Reply(formatting.format_alert(alert))]
        state = screens.scanner
        if state.scanned_product is None or not state.show_add_to_meal:
            return [Reply(f"Quantity: {state.quantity}g, meal: {state.meal_timing}")]
        return [
            Reply(
                formatting.format_product(state.scanned_product, state),
                reply_markup=formatting.product_keyboard(state.meal_timing),
            )
        ]

    def _menu_list_replies(self, screens: ChatScreens) -> list[Reply]:
        return [
            Reply(
                formatting.format_menus(screens.menus),
                reply_markup=formatting.menus_keyboard(screens.menus.menus),
            )
        ]

    def _custom_form_replies(self, screens: ChatScreens) -> list[Reply]:
        return [
            Reply(
                formatting.format_custom_form(screens.menus),
                reply_markup=formatting.custom_form_keyboard(screens.menus),
            )
        ]

    def _error_text(self, exc: Exception, fallback: str) -> str:
        if self.debug:
            detail = f"{type(exc).__name__}: {exc}".strip()
            return f"{fallback} (debug: {detail})"
        return fallback


def _alert_replies(alert: Alert | None) -> list[Reply]:
    if alert is None:
        return []
    return [Reply(formatting.format_alert(alert))]


def _select_largest_photo(photos: list[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))


def _parse_int(raw: str) -> int | None:
    cleaned = raw.strip()
    if not (cleaned.isascii() and cleaned.isdigit()):
        return None
    return int(cleaned)

"""Telegram bot command configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "Welcome and quick guide")
    HELP = TelegramCommand("help", "List everything the bot can do")
    INGREDIENTS = TelegramCommand("ingredients", "Edit ingredients of the analysis")
    SAVE = TelegramCommand("save", "Save the analyzed meal")
    DISCARD = TelegramCommand("discard", "Discard the analyzed meal")
    BARCODE = TelegramCommand("barcode", "Scan a product by barcode")
    SCANS = TelegramCommand("scans", "Recently scanned products")
    MENUS = TelegramCommand("menus", "Recommended menus")
    GENERATE = TelegramCommand("generate", "Generate a new weekly menu")
    CUSTOMMENU = TelegramCommand("custommenu", "Describe a custom menu")
    STATS = TelegramCommand("stats", "Nutrition statistics")


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}

"""Per-chat screen state storage."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from nutrition_companion.services.camera import CameraState
from nutrition_companion.services.food_scanner import ScannerState
from nutrition_companion.services.menus import MenusState
from nutrition_companion.services.statistics import StatisticsState


@dataclass
class ChatScreens:
    """View state of every screen for one chat."""

    camera: CameraState = field(default_factory=CameraState)
    scanner: ScannerState = field(default_factory=ScannerState)
    menus: MenusState = field(default_factory=MenusState)
    statistics: StatisticsState = field(default_factory=StatisticsState)


class ScreenStore(Protocol):
    """Storage interface for per-chat screen state."""

    def get(self, chat_id: int) -> ChatScreens:
        """Return the screens for a chat, creating them if needed."""

    def clear(self, chat_id: int) -> None:
        """Forget the screens of a chat."""


@dataclass
class _StoreEntry:
    screens: ChatScreens
    expires_at: datetime


@dataclass
class InMemoryScreenStore(ScreenStore):
    """In-memory screen store that drops chats idle longer than the TTL."""

    ttl_seconds: int
    _entries: dict[int, _StoreEntry]

    def __init__(self, ttl_seconds: int = 6 * 60 * 60) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries = {}

    def get(self, chat_id: int) -> ChatScreens:
        """Return live screens for the chat and extend their lifetime."""
        now = datetime.now(tz=UTC)
        self._evict_expired(now)
        entry = self._entries.get(chat_id)
        if entry is None:
            entry = _StoreEntry(screens=ChatScreens(), expires_at=now)
            self._entries[chat_id] = entry
        entry.expires_at = now + timedelta(seconds=self.ttl_seconds)
        return entry.screens

    def clear(self, chat_id: int) -> None:
        """Drop the chat's screens."""
        self._entries.pop(chat_id, None)

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_expired(self, now: datetime) -> None:
        expired = [
            chat_id
            for chat_id, entry in self._entries.items()
            if now >= entry.expires_at
        ]
        for chat_id in expired:
            del self._entries[chat_id]

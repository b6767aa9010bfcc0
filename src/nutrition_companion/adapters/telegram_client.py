"""Telegram Bot API client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class TelegramClient(Protocol):
    """Interface for Telegram API interactions."""

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> None:
        """Send a text message to a Telegram chat."""

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        """Answer a Telegram callback query."""

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        """Set the bot command list."""

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        """Set the chat menu button."""

    async def download_file(self, file_id: str) -> bytes:
        """Download a file sent to the bot and return its bytes."""


@dataclass
class HttpxTelegramClient(TelegramClient):
    """Telegram client implemented with httpx."""

    bot_token: str
    http_client: httpx.AsyncClient
    api_url: str = "https://api.telegram.org"

    @classmethod
    def create(
        cls, bot_token: str, api_url: str = "https://api.telegram.org"
    ) -> "HttpxTelegramClient":
        """Create a Telegram client with a managed httpx session."""
        return cls(
            bot_token=bot_token,
            http_client=httpx.AsyncClient(),
            api_url=api_url.rstrip("/"),
        )

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> None:
        """Send a message using Telegram's sendMessage API."""
        payload: dict[str, object] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        await self._call("sendMessage", payload)

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        """Answer a callback query using Telegram's API."""
        payload: dict[str, object] = {"callback_query_id": callback_query_id}
        if text is not None:
            payload["text"] = text
        await self._call("answerCallbackQuery", payload)

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        """Set the bot command list."""
        await self._call("setMyCommands", {"commands": commands})

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        """Set the chat menu button."""
        await self._call(
            "setChatMenuButton", {"menu_button": menu_button or {"type": "commands"}}
        )

    async def download_file(self, file_id: str) -> bytes:
        """Resolve a file path via getFile and download the file."""
        response = await self.http_client.get(
            f"{self.api_url}/bot{self.bot_token}/getFile",
            params={"file_id": file_id},
            timeout=10,
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("ok"):
            raise RuntimeError("Telegram getFile failed")
        file_path = payload["result"]["file_path"]
        file_response = await self.http_client.get(
            f"{self.api_url}/file/bot{self.bot_token}/{file_path}", timeout=20
        )
        file_response.raise_for_status()
        return file_response.content

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _call(self, method: str, payload: dict[str, object]) -> None:
        response = await self.http_client.post(
            f"{self.api_url}/bot{self.bot_token}/{method}", json=payload, timeout=10
        )
        response.raise_for_status()

"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from nutrition_companion.api.handlers import BotHandlers, Reply
from nutrition_companion.api.telegram_models import TelegramUpdate
from nutrition_companion.app_logging import configure_logging
from nutrition_companion.config import parse_allowed_user_ids
from nutrition_companion.containers import AppContainer
from nutrition_companion.telegram_commands import CHAT_MENU_BUTTON, telegram_commands


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    allowed_user_ids = parse_allowed_user_ids(
        container.settings.telegram_allowed_user_ids
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.telegram_client.set_my_commands(
                telegram_commands()
            )
            await app.state.container.telegram_client.set_chat_menu_button(
                CHAT_MENU_BUTTON
            )
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.state.handlers = BotHandlers(
        screen_store=container.screen_store,
        telegram_client=container.telegram_client,
        camera=container.meal_capture_service,
        scanner=container.food_scanner_service,
        menus=container.menus_service,
        statistics=container.statistics_service,
        debug=container.settings.environment == "local",
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        handlers: BotHandlers = request.app.state.handlers
        telegram_client = state_container.telegram_client
        user_id = _extract_user_id(update)
        if user_id is not None and not _is_user_allowed(user_id, allowed_user_ids):
            if update.callback_query:
                await telegram_client.answer_callback_query(
                    update.callback_query.id, text="Not authorized."
                )
            elif update.message:
                await telegram_client.send_message(
                    chat_id=update.message.chat.id, text="This bot is private."
                )
            return {"status": "ok"}

        if update.callback_query:
            callback = update.callback_query
            await telegram_client.answer_callback_query(callback.id)
            if callback.data and callback.message:
                chat_id = callback.message.chat.id
                replies = await handlers.handle_callback(chat_id, callback.data)
                await _send_replies(state_container, chat_id, replies)
            return {"status": "ok"}

        if update.message:
            chat_id = update.message.chat.id
            replies = await handlers.handle_message(update.message)
            await _send_replies(state_container, chat_id, replies)
        return {"status": "ok"}

    return app


async def _send_replies(
    container: AppContainer, chat_id: int, replies: list[Reply]
) -> None:
    for reply in replies:
        await container.telegram_client.send_message(
            chat_id=chat_id, text=reply.text, reply_markup=reply.reply_markup
        )


def _extract_user_id(update: TelegramUpdate) -> int | None:
    """Extract Telegram user id from update, if present."""
    if update.callback_query:
        return update.callback_query.from_user.id
    if update.message:
        return update.message.from_user.id
    return None


def _is_user_allowed(user_id: int, allowed: set[int] | None) -> bool:
    """Return true when the user is allowed to interact with the bot."""
    return allowed is None or user_id in allowed

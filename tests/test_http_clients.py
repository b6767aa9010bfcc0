"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from nutrition_companion.adapters.backend_client import (
    HttpxBackendClient,
    unwrap_envelope,
)
from nutrition_companion.adapters.telegram_client import HttpxTelegramClient
from nutrition_companion.errors import BackendError


def _backend(handler) -> HttpxBackendClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxBackendClient(
        base_url="https://backend.test/api",
        http_client=httpx.AsyncClient(transport=transport),
        api_token="secret",
    )


def test_backend_client_analyze_sends_payload_and_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"analysis": {}}})

    client = _backend(handler)

    result = asyncio.run(
        client.analyze_meal(
            image_base64="abc",
            language="en",
            update_text="no sauce",
            edited_ingredients=[{"name": "Rice"}],
        )
    )

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/nutrition/analyze"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content.decode()) == {
        "imageBase64": "abc",
        "language": "en",
        "updateText": "no sauce",
        "editedIngredients": [{"name": "Rice"}],
    }
    assert result["success"] is True


def test_backend_client_analyze_omits_optional_fields() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content.decode()))
        return httpx.Response(200, json={"success": True, "data": None})

    asyncio.run(_backend(handler).analyze_meal(image_base64="abc", language="he"))

    assert bodies == [{"imageBase64": "abc", "language": "he"}]


def test_backend_client_menu_generation_defaults() -> None:
    bodies: dict[str, dict[str, object]] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        bodies[request.url.path] = json.loads(request.content.decode())
        return httpx.Response(200, json={"success": True, "data": {}})

    client = _backend(handler)
    asyncio.run(client.generate_menu())
    asyncio.run(
        client.generate_custom_menu(custom_request="Vegan", days=3, budget=100)
    )

    assert bodies["/api/recommended-menus/generate"] == {
        "days": 7,
        "mealsPerDay": "3_main",
        "mealChangeFrequency": "daily",
        "includeLeftovers": False,
        "sameMealTimes": True,
    }
    custom = bodies["/api/recommended-menus/generate-custom"]
    assert custom["customRequest"] == "Vegan"
    assert custom["days"] == 3
    assert custom["budget"] == 100
    assert custom["mealsPerDay"] == "3_main"


def test_backend_client_routes() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json={"success": True, "data": []})

    client = _backend(handler)
    asyncio.run(client.save_meal({"imageBase64": "abc", "mealData": {}}))
    asyncio.run(client.update_meal("m-1", "less rice", "en"))
    asyncio.run(client.scan_barcode("12345678"))
    asyncio.run(client.scan_product_image("abc"))
    asyncio.run(client.add_to_meal_log({"name": "Yogurt"}, 150, "LUNCH"))
    asyncio.run(client.list_scan_history())
    asyncio.run(client.list_recommended_menus())
    asyncio.run(client.start_menu_today("menu-1"))

    assert seen == [
        ("POST", "/api/nutrition/save"),
        ("PUT", "/api/nutrition/update/m-1"),
        ("POST", "/api/food-scanner/barcode"),
        ("POST", "/api/food-scanner/image"),
        ("POST", "/api/food-scanner/add-to-meal"),
        ("GET", "/api/food-scanner/history"),
        ("GET", "/api/recommended-menus"),
        ("POST", "/api/recommended-menus/menu-1/start-today"),
    ]


def test_backend_client_statistics_params() -> None:
    params: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        params.append(dict(request.url.params))
        return httpx.Response(200, json={"success": True, "data": {}})

    client = _backend(handler)
    asyncio.run(client.get_statistics("week"))
    asyncio.run(
        client.get_statistics("custom", start_date="2024-01-01", end_date="2024-01-07")
    )

    assert params == [
        {"period": "week"},
        {"period": "custom", "startDate": "2024-01-01", "endDate": "2024-01-07"},
    ]


def test_backend_client_error_status_carries_server_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"success": False, "error": "Quota exceeded"})

    with pytest.raises(BackendError) as exc_info:
        asyncio.run(_backend(handler).list_recommended_menus())

    assert exc_info.value.status_code == 429
    assert exc_info.value.server_message == "Quota exceeded"


def test_backend_client_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(BackendError) as exc_info:
        asyncio.run(_backend(handler).list_scan_history())

    assert exc_info.value.server_message is None


def test_backend_client_rejects_invalid_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    with pytest.raises(BackendError):
        asyncio.run(_backend(handler).list_scan_history())


def test_unwrap_envelope() -> None:
    assert unwrap_envelope({"success": True, "data": {"id": 1}}) == {"id": 1}

    with pytest.raises(BackendError) as exc_info:
        unwrap_envelope({"success": False, "error": "Menu not found"})

    assert exc_info.value.server_message == "Menu not found"


def test_telegram_client_send_and_callback() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/sendMessage") or request.url.path.endswith(
            "/answerCallbackQuery"
        )
        bodies.append(json.loads(request.content.decode()))
        return httpx.Response(200, json={"ok": True, "result": {}})

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxTelegramClient(bot_token="token", http_client=async_client)

    markup = {"inline_keyboard": [[{"text": "Save", "callback_data": "meal:save"}]]}
    asyncio.run(client.send_message(chat_id=1, text="Hi", reply_markup=markup))
    asyncio.run(client.answer_callback_query(callback_query_id="cbq-1"))

    assert bodies[0] == {"chat_id": 1, "text": "Hi", "reply_markup": markup}
    assert bodies[1] == {"callback_query_id": "cbq-1"}


def test_telegram_client_commands_and_menu_button() -> None:
    seen_paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        payload = json.loads(request.content.decode())
        if request.url.path.endswith("/setMyCommands"):
            assert payload["commands"][0]["command"] == "start"
        if request.url.path.endswith("/setChatMenuButton"):
            assert payload["menu_button"]["type"] == "commands"
        return httpx.Response(200, json={"ok": True, "result": True})

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxTelegramClient(bot_token="token", http_client=async_client)

    asyncio.run(
        client.set_my_commands([{"command": "start", "description": "Quick guide"}])
    )
    asyncio.run(client.set_chat_menu_button({"type": "commands"}))

    assert any(path.endswith("/setMyCommands") for path in seen_paths)
    assert any(path.endswith("/setChatMenuButton") for path in seen_paths)


def test_telegram_client_downloads_file() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/getFile"):
            return httpx.Response(
                200,
                json={"ok": True, "result": {"file_path": "photos/file.jpg"}},
            )
        assert request.url.path == "/file/bottoken/photos/file.jpg"
        return httpx.Response(200, content=b"image-bytes")

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxTelegramClient(bot_token="token", http_client=async_client)

    data = asyncio.run(client.download_file("file-id"))

    assert data == b"image-bytes"

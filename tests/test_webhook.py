"""Tests for Telegram webhook handling."""

from fastapi.testclient import TestClient

from nutrition_companion.api.app import create_app
from tests.conftest import (
    FakeBackendClient,
    FakeTelegramClient,
    analysis_envelope,
    product_envelope,
)


def _message(text: str | None = None, **extra: object) -> dict[str, object]:
    message: dict[str, object] = {
        "message_id": 10,
        "date": 1700000000,
        "chat": {"id": 99, "type": "private"},
        "from": {"id": 123, "is_bot": False, "first_name": "Test"},
    }
    if text is not None:
        message["text"] = text
    message.update(extra)
    return {"update_id": 1, "message": message}


def _callback(data: str) -> dict[str, object]:
    return {
        "update_id": 2,
        "callback_query": {
            "id": "cbq-1",
            "from": {"id": 123, "is_bot": False, "first_name": "Test"},
            "message": {
                "message_id": 11,
                "date": 1700000001,
                "chat": {"id": 99, "type": "private"},
                "from": {"id": 999, "is_bot": True, "first_name": "Bot"},
                "text": "menu",
            },
            "data": data,
        },
    }


def _photo_message(caption: str | None = None) -> dict[str, object]:
    photos = [
        {"file_id": "small", "file_unique_id": "s", "width": 64, "height": 64},
        {"file_id": "large", "file_unique_id": "l", "width": 256, "height": 256},
    ]
    if caption is None:
        return _message(photo=photos)
    return _message(photo=photos, caption=caption)


def test_health(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/health").json() == {"status": "ok"}


def test_webhook_help(container, telegram_client: FakeTelegramClient) -> None:
    client = TestClient(create_app(container))

    response = client.post("/telegram/webhook", json=_message("/start"))

    assert response.status_code == 200
    chat_id, text = telegram_client.messages[0]
    assert chat_id == 99
    assert "/barcode" in text


def test_webhook_unknown_command(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/fly"))
    client.post("/telegram/webhook", json=_message("hello"))

    assert telegram_client.messages[0][1] == "Unknown command /fly. Use /help."
    assert "/help" in telegram_client.messages[1][1]


def test_webhook_rejects_unlisted_user(
    container, telegram_client: FakeTelegramClient
) -> None:
    container.settings.telegram_allowed_user_ids = "456"
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/menus"))
    client.post("/telegram/webhook", json=_callback("menu:start:menu-1"))

    assert telegram_client.messages == [(99, "This bot is private.")]
    assert telegram_client.callbacks == [("cbq-1", "Not authorized.")]


def test_webhook_photo_analyzes_meal(
    container,
    telegram_client: FakeTelegramClient,
    backend_client: FakeBackendClient,
) -> None:
    backend_client.responses["analyze_meal"] = analysis_envelope()
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_photo_message("extra olive oil"))

    assert telegram_client.downloaded == ["large"]
    call = backend_client.calls_to("analyze_meal")[0]
    assert call["update_text"] == "extra olive oil"
    assert call["image_base64"]
    assert telegram_client.messages[-1][1].startswith("Chicken salad")
    assert telegram_client.markups[-1] is not None


def test_webhook_edit_and_save_meal(
    container,
    telegram_client: FakeTelegramClient,
    backend_client: FakeBackendClient,
) -> None:
    backend_client.responses["analyze_meal"] = analysis_envelope()
    client = TestClient(create_app(container))
    client.post("/telegram/webhook", json=_photo_message())

    client.post("/telegram/webhook", json=_message("/add Croutons"))
    client.post("/telegram/webhook", json=_message("/set 1 calories 300"))
    client.post("/telegram/webhook", json=_message("/remove 2"))
    editor_text = telegram_client.messages[-1][1]
    client.post("/telegram/webhook", json=_callback("meal:reanalyze"))
    client.post("/telegram/webhook", json=_callback("meal:save"))

    assert "1. Chicken: 300 kcal" in editor_text
    assert "2. Croutons: 100 kcal" in editor_text
    edited = backend_client.calls_to("analyze_meal")[-1]["edited_ingredients"]
    assert [item["name"] for item in edited] == ["Chicken", "Croutons"]
    assert len(backend_client.calls_to("save_meal")) == 1
    assert telegram_client.messages[-1][1] == "Meal saved\nMeal saved successfully"
    assert telegram_client.callbacks[-1] == ("cbq-1", None)


def test_webhook_set_rejects_unknown_field(
    container,
    telegram_client: FakeTelegramClient,
    backend_client: FakeBackendClient,
) -> None:
    backend_client.responses["analyze_meal"] = analysis_envelope()
    client = TestClient(create_app(container))
    client.post("/telegram/webhook", json=_photo_message())

    client.post("/telegram/webhook", json=_message("/set 1 sodium 5"))

    assert telegram_client.messages[-1][1] == "Unknown ingredient field: sodium"


def test_webhook_barcode_and_add_to_log(
    container,
    telegram_client: FakeTelegramClient,
    backend_client: FakeBackendClient,
) -> None:
    backend_client.responses["scan_barcode"] = product_envelope()
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/barcode 7290000000001"))
    product_text = telegram_client.messages[-1][1]
    client.post("/telegram/webhook", json=_message("/quantity 200"))
    client.post("/telegram/webhook", json=_callback("scan:timing:DINNER"))
    client.post("/telegram/webhook", json=_callback("scan:add"))

    assert product_text.startswith("Greek Yogurt (Tnuva)")
    call = backend_client.calls_to("add_to_meal_log")[0]
    assert call["quantity"] == 200
    assert call["meal_timing"] == "DINNER"
    texts = [text for _, text in telegram_client.messages]
    assert "Success\nProduct added to meal log!" in texts


def test_webhook_product_photo_uses_scanner(
    container,
    telegram_client: FakeTelegramClient,
    backend_client: FakeBackendClient,
) -> None:
    backend_client.responses["scan_product_image"] = product_envelope(name="Hummus")
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_photo_message("/product"))

    assert backend_client.calls_to("analyze_meal") == []
    assert telegram_client.messages[-1][1].startswith("Hummus")


def test_webhook_menus_flow(
    container,
    telegram_client: FakeTelegramClient,
    backend_client: FakeBackendClient,
) -> None:
    backend_client.responses["list_recommended_menus"] = {
        "success": True,
        "data": [{"menu_id": "menu-1", "title": "Week", "days_count": 7}],
    }
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/menus"))
    menus_markup = telegram_client.markups[-1]
    client.post("/telegram/webhook", json=_message("/custommenu Vegan, no nuts"))
    client.post("/telegram/webhook", json=_callback("menu:days:3"))
    client.post("/telegram/webhook", json=_callback("menu:custom"))
    client.post("/telegram/webhook", json=_callback("menu:start:menu-1"))

    assert menus_markup is not None
    assert backend_client.calls_to("generate_custom_menu") == [
        {"custom_request": "Vegan, no nuts", "days": 3, "budget": 200}
    ]
    assert backend_client.calls_to("start_menu_today") == [{"menu_id": "menu-1"}]
    assert telegram_client.messages[-1][1] == "Success\nMenu started for today!"


def test_webhook_days_rejects_unknown_option(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/days 5"))

    assert telegram_client.messages[-1][1] == "Days must be one of 3, 7, 14"


def test_webhook_stats_ranges(
    container,
    telegram_client: FakeTelegramClient,
    backend_client: FakeBackendClient,
) -> None:
    backend_client.responses["get_statistics"] = {
        "success": True,
        "data": {"averageCalories": 1800, "averageProtein": 60},
    }
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/stats"))
    client.post("/telegram/webhook", json=_callback("stats:range:month"))
    client.post(
        "/telegram/webhook", json=_message("/stats custom 2024-01-01 2024-01-07")
    )

    periods = [call["period"] for call in backend_client.calls_to("get_statistics")]
    assert periods == ["week", "month", "custom"]
    assert backend_client.calls_to("get_statistics")[-1]["end_date"] == "2024-01-07"
    assert telegram_client.messages[0][1].startswith("This Week")
    assert telegram_client.messages[1][1].startswith("This Month")


def test_webhook_unknown_callback_is_ignored(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    response = client.post("/telegram/webhook", json=_callback("weird:data"))

    assert response.status_code == 200
    assert telegram_client.messages == []
    assert telegram_client.callbacks == [("cbq-1", None)]


def test_lifespan_syncs_commands(
    container, telegram_client: FakeTelegramClient
) -> None:
    with TestClient(create_app(container)):
        pass

    assert telegram_client.commands is not None
    assert telegram_client.commands[0]["command"] == "start"
    assert telegram_client.menu_button == {"type": "commands"}

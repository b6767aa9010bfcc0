"""Text and keyboard rendering for the bot screens."""

from nutrition_companion.domain.meals import Ingredient
from nutrition_companion.domain.menus import RecommendedMenu
from nutrition_companion.domain.products import ProductData, ScanHistoryItem
from nutrition_companion.domain.statistics import DailyBreakdown
from nutrition_companion.services.alerts import Alert
from nutrition_companion.services.camera import CameraState
from nutrition_companion.services.food_scanner import MEAL_TIMINGS, ScannerState
from nutrition_companion.services.menus import BUDGET_OPTIONS, DAY_OPTIONS, MenusState
from nutrition_companion.services.statistics import (
    NutritionBar,
    StatisticsState,
    TimeRange,
    meets_daily_target,
    nutrition_bars,
    protein_goal_percentage,
)

HISTORY_LIMIT = 5
ACHIEVEMENTS_LIMIT = 5
DAILY_BREAKDOWN_LIMIT = 7
MENUS_LIMIT = 10

HELP_TEXT = "\n".join(
    [
        "Nutrition Companion",
        "",
        "Meals: send a photo (the caption is used as a comment).",
        "/ingredients, /add <name>, /remove <n>, /set <n> <field> <value>,",
        "/reanalyze, /save, /discard, /comment <text>",
        "/updatemeal <meal id> <correction>",
        "",
        "Products: /barcode <code>, or a photo captioned /product.",
        "/quantity <grams>, /timing <breakfast|lunch|dinner|snack>, /addlog, /scans",
        "",
        "Menus: /menus, /generate, /custommenu <request>, /days <n>, /budget <n>,",
        "/startmenu <menu id>",
        "",
        "Statistics: /stats [today|week|month], /stats custom <start> <end>",
    ]
)


def format_alert(alert: Alert) -> str:
    """Format an alert as a chat message."""
    return f"{alert.title}\n{alert.message}"


def format_analysis(state: CameraState) -> str:
    """Format the pending meal analysis."""
    if state.pending_meal is None:
        return "No meal analyzed yet. Send a photo of your meal."
    analysis = state.pending_meal.analysis
    lines = [
        analysis.meal_name or "Meal analyzed successfully",
        f"Calories: {round(analysis.calories)}",
        f"Protein: {round(analysis.protein_g)}g",
        f"Carbs: {round(analysis.carbs_g)}g",
        f"Fats: {round(analysis.fats_g)}g",
    ]
    if analysis.ingredients:
        lines.append("Ingredients:")
        lines.extend(f"- {ingredient.name}" for ingredient in analysis.ingredients)
    return "\n".join(lines)


def analysis_keyboard() -> dict:
    return {
        "inline_keyboard": [
            [
                {"text": "Save", "callback_data": "meal:save"},
                {"text": "Edit ingredients", "callback_data": "meal:edit"},
            ],
            [{"text": "Discard", "callback_data": "meal:discard"}],
        ]
    }


def format_ingredients_editor(ingredients: list[Ingredient]) -> str:
    """Format the editable ingredient list with 1-based positions."""
    if not ingredients:
        lines = ["No ingredients yet."]
    else:
        lines = ["Ingredients:"]
        lines.extend(
            f"{position}. {_ingredient_line(ingredient)}"
            for position, ingredient in enumerate(ingredients, start=1)
        )
    lines.extend(
        [
            "",
            "/add <name> adds an ingredient, /remove <n> removes one,",
            "/set <n> <name|calories|protein|carbs|fat|fiber|sugar> <value> edits one.",
            "/reanalyze sends the list back for analysis.",
        ]
    )
    return "\n".join(lines)


def editor_keyboard() -> dict:
    return {
        "inline_keyboard": [
            [
                {"text": "Re-analyze", "callback_data": "meal:reanalyze"},
                {"text": "Save", "callback_data": "meal:save"},
            ]
        ]
    }


def format_product(product: ProductData, state: ScannerState) -> str:
    """Format a scanned product with the add-to-meal form."""
    title = f"{product.name} ({product.brand})" if product.brand else product.name
    nutrition = product.nutrition_per_100g
    lines = [title]
    if product.category:
        lines.append(f"Category: {product.category}")
    lines.extend(
        [
            "Per 100g:",
            f"Calories: {nutrition.calories:g}",
            f"Protein: {nutrition.protein:g}g",
            f"Carbs: {nutrition.carbs:g}g",
            f"Fat: {nutrition.fat:g}g",
        ]
    )
    if product.health_score is not None:
        lines.append(f"Health score: {product.health_score:g}")
    if product.allergens:
        lines.append(f"Allergens: {', '.join(product.allergens)}")
    if product.labels:
        lines.append(f"Labels: {', '.join(product.labels)}")
    lines.extend(
        [
            "",
            f"Quantity: {state.quantity}g (change with /quantity <grams>)",
            f"Meal: {state.meal_timing}",
        ]
    )
    return "\n".join(lines)


def product_keyboard(selected_timing: str) -> dict:
    timing_row = [
        {
            "text": _selected(timing.title(), timing == selected_timing),
            "callback_data": f"scan:timing:{timing}",
        }
        for timing in MEAL_TIMINGS
    ]
    return {
        "inline_keyboard": [
            timing_row,
            [{"text": "Add to meal log", "callback_data": "scan:add"}],
        ]
    }


def format_scan_history(history: list[ScanHistoryItem]) -> str:
    """Format the most recent scans."""
    if not history:
        return "No products scanned yet."
    lines = ["Recent Scans:"]
    for item in history[:HISTORY_LIMIT]:
        line = f"- {item.display_name}"
        if item.created_at is not None:
            line += f" ({item.created_at.date()})"
        if item.category:
            line += f" · {item.category}"
        lines.append(line)
    return "\n".join(lines)


def format_menus(state: MenusState) -> str:
    """Format the recommended menu list."""
    if state.is_loading:
        return "Loading menus..."
    if not state.menus:
        return "No menus yet. Use /generate or /custommenu to create one."
    lines = ["Recommended menus:"]
    for menu in state.menus[:MENUS_LIMIT]:
        lines.append(_menu_line(menu))
    if len(state.menus) > MENUS_LIMIT:
        lines.append(f"Showing the first {MENUS_LIMIT} of {len(state.menus)} menus.")
    return "\n".join(lines)


def menus_keyboard(menus: list[RecommendedMenu]) -> dict | None:
    if not menus:
        return None
    return {
        "inline_keyboard": [
            [
                {
                    "text": f"Start today: {menu.title}",
                    "callback_data": f"menu:start:{menu.menu_id}",
                }
            ]
            for menu in menus[:MENUS_LIMIT]
        ]
    }


def format_custom_form(state: MenusState) -> str:
    """Format the custom menu form."""
    request = state.custom_request.strip() or "(not set, use /custommenu <request>)"
    return "\n".join(
        [
            "Custom menu",
            f"Request: {request}",
            f"Days: {state.selected_days}",
            f"Budget: ₪{state.selected_budget}",
        ]
    )


def custom_form_keyboard(state: MenusState) -> dict:
    rows = [
        [
            {
                "text": _selected(f"{days} days", days == state.selected_days),
                "callback_data": f"menu:days:{days}",
            }
            for days in DAY_OPTIONS
        ],
        [
            {
                "text": _selected(f"₪{budget}", budget == state.selected_budget),
                "callback_data": f"menu:budget:{budget}",
            }
            for budget in BUDGET_OPTIONS
        ],
    ]
    if state.can_submit_custom:
        rows.append([{"text": "Generate", "callback_data": "menu:custom"}])
    return {"inline_keyboard": rows}


def format_statistics(state: StatisticsState) -> str:
    """Format the statistics dashboard."""
    if state.is_loading:
        return "Loading statistics..."
    label = state.selected_range.label
    if state.selected_range is TimeRange.CUSTOM and state.custom_start_date:
        label = f"{state.custom_start_date} to {state.custom_end_date}"
    snapshot = state.snapshot
    if snapshot is None:
        return f"{label}\nNo statistics loaded."

    lines = [
        label,
        "",
        "Overview:",
        f"Average Calories: {snapshot.average_calories:g}",
        f"Protein Goal: {protein_goal_percentage(snapshot):.0f}%",
        f"Current Streak: {snapshot.current_streak} days",
        f"Total Days: {snapshot.total_days}",
        "",
        "Nutrition Breakdown:",
    ]
    lines.extend(_bar_line(bar) for bar in nutrition_bars(snapshot))

    if snapshot.achievements:
        lines.extend(["", "Recent Achievements:"])
        for achievement in snapshot.achievements[:ACHIEVEMENTS_LIMIT]:
            lines.append(f"- {achievement.title}: {achievement.description}")

    if snapshot.daily_breakdown:
        lines.extend(["", "Daily Breakdown:"])
        for day in snapshot.daily_breakdown[:DAILY_BREAKDOWN_LIMIT]:
            status = "✓" if meets_daily_target(day) else "!"
            lines.append(
                f"{status} {_day_label(day)}: "
                f"{round(day.calories)} kcal, {round(day.protein_g)}g protein, "
                f"{day.water_cups:g} cups water"
            )
    return "\n".join(lines)


def statistics_keyboard(selected: TimeRange) -> dict:
    return {
        "inline_keyboard": [
            [
                {
                    "text": _selected(time_range.label, time_range is selected),
                    "callback_data": f"stats:range:{time_range.key}",
                }
                for time_range in TimeRange
            ]
        ]
    }


def _ingredient_line(ingredient: Ingredient) -> str:
    return (
        f"{ingredient.name}: {ingredient.calories:g} kcal, "
        f"{ingredient.protein:g}g protein, {ingredient.carbs:g}g carbs, "
        f"{ingredient.fat:g}g fat"
    )


def _menu_line(menu: RecommendedMenu) -> str:
    line = (
        f"- {menu.title} [{menu.menu_id}]: {menu.days_count} days, "
        f"{round(menu.total_calories)} kcal"
    )
    if menu.estimated_cost is not None:
        line += f", ~₪{menu.estimated_cost:g}"
    return line


def _bar_line(bar: NutritionBar) -> str:
    return (
        f"{bar.label}: {bar.current:.1f}{bar.unit} / {bar.target:g}{bar.unit} "
        f"({bar.percentage:.0f}%)"
    )


def _selected(text: str, selected: bool) -> str:
    return f"• {text}" if selected else text


def _day_label(day: DailyBreakdown) -> str:
    if day.day is None:
        return "Unknown day"
    return f"{day.day.strftime('%b')} {day.day.day}"

from ahorrai.core.icons import FALLBACK_ICON, is_category_icon, resolve_icon
from ahorrai.core.navigation import bottom_tabs, chrome


def test_unknown_icons_fall_back():
    assert resolve_icon("Car") == "Car"
    assert resolve_icon("NoExiste") == FALLBACK_ICON
    assert resolve_icon(None) == FALLBACK_ICON
    assert is_category_icon("Car")
    assert not is_category_icon("Settings")


def test_bottom_tabs_mark_current_route():
    tabs = bottom_tabs("/price-compare")
    assert [t["label"] for t in tabs] == ["Dashboard", "Escanear", "Agregar", "Comparar", "Config"]
    assert [t["active"] for t in tabs] == [False, False, False, True, False]


def test_unknown_route_has_no_active_tab():
    assert not any(t["active"] for t in bottom_tabs("/expense-details-edit"))


def test_chrome_header():
    page = chrome("/financial-dashboard", "AhorrAI", actions=[{"icon": "Rocket", "label": "x"}])
    assert page["header"] == {
        "title": "AhorrAI",
        "show_back": False,
        "actions": [{"icon": FALLBACK_ICON, "label": "x"}],
    }
    assert page["tabs"][0]["active"] is True

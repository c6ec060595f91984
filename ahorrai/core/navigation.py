from typing import List, Optional

from .icons import resolve_icon


DASHBOARD_ROUTE = "/financial-dashboard"
LOGIN_ROUTE = "/login"

BOTTOM_TABS = (
    {"path": DASHBOARD_ROUTE, "icon": "BarChart3", "label": "Dashboard"},
    {"path": "/scan-expense-ai-receipt-processing", "icon": "ScanLine", "label": "Escanear"},
    {"path": "/manual-expense-register", "icon": "Plus", "label": "Agregar"},
    {"path": "/price-compare", "icon": "Search", "label": "Comparar"},
    {"path": "/categories-budget-management", "icon": "Settings", "label": "Config"},
)


def bottom_tabs(current_route: str) -> List[dict]:
    return [
        {**tab, "icon": resolve_icon(tab["icon"]), "active": tab["path"] == current_route}
        for tab in BOTTOM_TABS
    ]


def header(title: str, show_back: bool = False, actions: Optional[List[dict]] = None) -> dict:
    return {
        "title": title,
        "show_back": show_back,
        "actions": [
            {**action, "icon": resolve_icon(action.get("icon"))} for action in (actions or [])
        ],
    }


def chrome(current_route: str, title: str, show_back: bool = False, actions: Optional[List[dict]] = None) -> dict:
    """Header bar plus route-aware bottom navigation for a page payload."""
    return {
        "header": header(title, show_back=show_back, actions=actions),
        "tabs": bottom_tabs(current_route),
    }

"""Supported icon keys.

Categories, tabs and transactions reference icons by name. Only the names
listed here are accepted; anything else renders as ``FALLBACK_ICON``.
"""

FALLBACK_ICON = "HelpCircle"

CATEGORY_ICONS = (
    "UtensilsCrossed", "Car", "Film", "ShoppingBag", "Heart", "Zap",
    "Home", "Gamepad2", "GraduationCap", "Plane", "Coffee", "Shirt",
    "Dumbbell", "Book", "Music", "Camera", "Gift", "Briefcase",
    "Package", "Receipt", "Tag",
)

UI_ICONS = (
    "BarChart3", "ScanLine", "Plus", "Search", "Settings", "Bell",
    "CreditCard", "DollarSign", "Banknote", "Smartphone", "Laptop",
    "ShoppingCart", "Fuel", "Pencil", "Edit", "Copy", "Share2", "Trash2", "X",
    FALLBACK_ICON,
)

SUPPORTED_ICONS = frozenset(CATEGORY_ICONS + UI_ICONS)


def resolve_icon(name):
    if name in SUPPORTED_ICONS:
        return name
    return FALLBACK_ICON


def is_category_icon(name) -> bool:
    return name in CATEGORY_ICONS

"""Product price comparison across retailers (static catalog)."""
from typing import Iterable, List, Optional

from ..core.errors import ValidationFailed


PRODUCTS = [
    {
        "id": 1,
        "name": "iPhone 15 Pro",
        "brand": "Apple",
        "category": "Electrónicos",
        "current_price": 999.99,
        "original_price": 1199.99,
        "discount": 17,
        "rating": 4.8,
        "reviews": 1247,
        "image": "https://via.placeholder.com/200x200?text=iPhone",
        "stores": [
            {"name": "Apple Store", "price": 999.99, "in_stock": True},
            {"name": "Amazon", "price": 989.99, "in_stock": True},
            {"name": "Best Buy", "price": 1049.99, "in_stock": False},
            {"name": "Walmart", "price": 979.99, "in_stock": True},
        ],
        "price_history": [
            {"date": "2025-01-01", "price": 1199.99},
            {"date": "2025-01-07", "price": 1099.99},
            {"date": "2025-01-14", "price": 999.99},
            {"date": "2025-01-21", "price": 999.99},
        ],
    },
    {
        "id": 2,
        "name": "Samsung Galaxy S24",
        "brand": "Samsung",
        "category": "Electrónicos",
        "current_price": 799.99,
        "original_price": 899.99,
        "discount": 11,
        "rating": 4.6,
        "reviews": 892,
        "image": "https://via.placeholder.com/200x200?text=Galaxy",
        "stores": [
            {"name": "Samsung Store", "price": 799.99, "in_stock": True},
            {"name": "Amazon", "price": 789.99, "in_stock": True},
            {"name": "Best Buy", "price": 799.99, "in_stock": True},
            {"name": "Target", "price": 809.99, "in_stock": False},
        ],
        "price_history": [
            {"date": "2025-01-01", "price": 899.99},
            {"date": "2025-01-07", "price": 849.99},
            {"date": "2025-01-14", "price": 799.99},
            {"date": "2025-01-21", "price": 799.99},
        ],
    },
    {
        "id": 3,
        "name": "MacBook Air M2",
        "brand": "Apple",
        "category": "Computadoras",
        "current_price": 1099.99,
        "original_price": 1299.99,
        "discount": 15,
        "rating": 4.9,
        "reviews": 2156,
        "image": "https://via.placeholder.com/200x200?text=MacBook",
        "stores": [
            {"name": "Apple Store", "price": 1099.99, "in_stock": True},
            {"name": "Amazon", "price": 1089.99, "in_stock": True},
            {"name": "Best Buy", "price": 1099.99, "in_stock": True},
            {"name": "Costco", "price": 1079.99, "in_stock": False},
        ],
        "price_history": [
            {"date": "2025-01-01", "price": 1299.99},
            {"date": "2025-01-07", "price": 1199.99},
            {"date": "2025-01-14", "price": 1099.99},
            {"date": "2025-01-21", "price": 1099.99},
        ],
    },
]

FILTERS = (
    {"id": "electronics", "label": "Electrónicos", "icon": "Smartphone"},
    {"id": "computers", "label": "Computadoras", "icon": "Laptop"},
    {"id": "clothing", "label": "Ropa", "icon": "Shirt"},
    {"id": "home", "label": "Hogar", "icon": "Home"},
    {"id": "sports", "label": "Deportes", "icon": "Dumbbell"},
)
_FILTER_LABELS = {f["id"]: f["label"] for f in FILTERS}

SORT_OPTIONS = (
    {"value": "price", "label": "Precio: Menor a Mayor"},
    {"value": "price-desc", "label": "Precio: Mayor a Menor"},
    {"value": "rating", "label": "Mejor Calificación"},
    {"value": "discount", "label": "Mayor Descuento"},
    {"value": "reviews", "label": "Más Reseñas"},
)
_SORT_KEYS = {
    "price": (lambda p: p["current_price"], False),
    "price-desc": (lambda p: p["current_price"], True),
    "rating": (lambda p: p["rating"], True),
    "discount": (lambda p: p["discount"], True),
    "reviews": (lambda p: p["reviews"], True),
}

NOTIFICATION_TYPES = ("email", "push", "both")


def best_offer(product: dict) -> Optional[dict]:
    """Cheapest store that has the product in stock."""
    in_stock = [s for s in product["stores"] if s["in_stock"]]
    if not in_stock:
        return None
    return min(in_stock, key=lambda s: s["price"])


def lowest_price(product: dict) -> float:
    return min(s["price"] for s in product["stores"])


def search_products(
    query: Optional[str] = None,
    filters: Iterable[str] = (),
    sort: str = "price",
    products: Optional[List[dict]] = None,
) -> List[dict]:
    items = list(PRODUCTS if products is None else products)

    if query:
        q = query.strip().lower()
        items = [
            p for p in items
            if q in p["name"].lower() or q in p["brand"].lower() or q in p["category"].lower()
        ]

    labels = {_FILTER_LABELS[f] for f in filters if f in _FILTER_LABELS}
    if labels:
        items = [p for p in items if p["category"] in labels]

    key, reverse = _SORT_KEYS.get(sort, _SORT_KEYS["price"])
    items.sort(key=key, reverse=reverse)

    return [
        {**p, "lowest_price": lowest_price(p), "best_offer": best_offer(p)}
        for p in items
    ]


def get_product(product_id: int) -> Optional[dict]:
    return next((p for p in PRODUCTS if p["id"] == product_id), None)


def validate_price_alert(payload: dict) -> None:
    errors = {}
    target = payload.get("target_price")
    if target is None or target <= 0:
        errors["target_price"] = "El precio objetivo debe ser mayor a 0"
    notification = payload.get("notification_type") or "email"
    if notification not in NOTIFICATION_TYPES:
        errors["notification_type"] = "Tipo de notificación no válido"
    elif notification in ("email", "both") and not payload.get("email"):
        errors["email"] = "El correo es requerido para notificaciones por email"
    if errors:
        raise ValidationFailed(errors)

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import EmailStr
from sqlmodel import SQLModel

from ..core.navigation import chrome
from ..core.security import get_current_user
from ..models.profile import Profile
from ..services.price_compare import (
    FILTERS,
    NOTIFICATION_TYPES,
    SORT_OPTIONS,
    get_product,
    search_products,
    validate_price_alert,
)

ROUTE = "/price-compare"

router = APIRouter(
    prefix=ROUTE,
    tags=["price-compare"],
)


class PriceAlertIn(SQLModel):
    product_id: int
    target_price: Optional[float] = None
    notification_type: str = "email"
    email: Optional[EmailStr] = None


@router.get("")
def price_compare(
    q: Optional[str] = None,
    filters: Optional[str] = None,
    sort: str = "price",
    current_user: Profile = Depends(get_current_user),
):
    """Busca en el catálogo de ejemplo. ``filters`` es una lista separada por comas."""
    selected = [f.strip() for f in (filters or "").split(",") if f.strip()]
    products = search_products(q, selected, sort)
    return {
        **chrome(ROUTE, "Comparar precios"),
        "query": q or "",
        "filters": [{**f, "active": f["id"] in selected} for f in FILTERS],
        "sort": sort,
        "sort_options": list(SORT_OPTIONS),
        "products": products,
        "price_history": products[0]["price_history"] if products else [],
        "notification_types": list(NOTIFICATION_TYPES),
    }


@router.post("/alerts", status_code=status.HTTP_201_CREATED)
def create_price_alert(payload: PriceAlertIn, current_user: Profile = Depends(get_current_user)):
    """Validates a price alert and acknowledges it. Alerts are not stored."""
    product = get_product(payload.product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    validate_price_alert(payload.model_dump())
    return {
        "product_id": product["id"],
        "product": product["name"],
        "target_price": payload.target_price,
        "notification_type": payload.notification_type,
        "email": payload.email,
        "message": f"Te avisaremos cuando {product['name']} baje de ${payload.target_price:.2f}",
    }

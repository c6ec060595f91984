"""Validation and helpers shared by the manual entry, receipt review and
expense edit forms."""
import math
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..core.errors import ValidationFailed
from ..models.expense import EXPENSE_STATUSES


AMOUNT_ERROR = "El monto es requerido y debe ser mayor a 0"
CATEGORY_ERROR = "Selecciona una categoría"
MERCHANT_ERROR = "El comercio es requerido"
PAYMENT_METHOD_ERROR = "Método de pago no válido"
STATUS_ERROR = "Estado no válido"
DATE_ERROR = "La fecha no es válida"
FUTURE_DATE_ERROR = "La fecha no puede estar en el futuro"

PAYMENT_METHODS = (
    {"key": "credit_card", "name": "Tarjeta de Crédito", "icon": "CreditCard", "type": "card"},
    {"key": "debit_card", "name": "Tarjeta de Débito", "icon": "CreditCard", "type": "card"},
    {"key": "cash", "name": "Efectivo", "icon": "DollarSign", "type": "cash"},
    {"key": "transfer", "name": "Transferencia", "icon": "Banknote", "type": "transfer"},
    {"key": "paypal", "name": "PayPal", "icon": "CreditCard", "type": "digital"},
    {"key": "apple_pay", "name": "Apple Pay", "icon": "Smartphone", "type": "digital"},
)
PAYMENT_METHOD_KEYS = frozenset(m["key"] for m in PAYMENT_METHODS)

MERCHANT_SUGGESTIONS = (
    "Starbucks", "McDonald's", "Target", "Walmart", "Amazon",
    "Shell", "Exxon", "Uber", "Lyft", "Netflix",
)


def _as_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # inf and nan are not amounts
    return number if math.isfinite(number) else None


def _as_date(value) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def validate_expense_form(form: dict, today: Optional[date] = None, partial: bool = False) -> Dict[str, str]:
    """Returns ``{field: message}`` for every invalid field.

    With ``partial`` only the fields present in ``form`` are checked, which
    is what the edit form needs.
    """
    today = today or date.today()
    errors: Dict[str, str] = {}

    if not partial or "amount" in form:
        amount = _as_float(form.get("amount"))
        if amount is None or amount <= 0:
            errors["amount"] = AMOUNT_ERROR

    if not partial or "category_id" in form:
        if not form.get("category_id"):
            errors["category_id"] = CATEGORY_ERROR

    if not partial or "merchant" in form:
        if not str(form.get("merchant") or "").strip():
            errors["merchant"] = MERCHANT_ERROR

    method = form.get("payment_method")
    if method and method not in PAYMENT_METHOD_KEYS:
        errors["payment_method"] = PAYMENT_METHOD_ERROR

    if "status" in form and form["status"] not in EXPENSE_STATUSES:
        errors["status"] = STATUS_ERROR

    if form.get("expense_date") not in (None, ""):
        parsed = _as_date(form["expense_date"])
        if parsed is None:
            errors["expense_date"] = DATE_ERROR
        elif parsed > today:
            errors["expense_date"] = FUTURE_DATE_ERROR

    return errors


def ensure_valid_expense_form(form: dict, today: Optional[date] = None, partial: bool = False) -> None:
    errors = validate_expense_form(form, today=today, partial=partial)
    if errors:
        raise ValidationFailed(errors)


def validate_batch_forms(forms: List[dict], today: Optional[date] = None) -> Dict[str, str]:
    """Errors for every form of a batch, keyed like ``receipts[1].amount``."""
    errors: Dict[str, str] = {}
    for i, form in enumerate(forms):
        for field, message in validate_expense_form(form, today=today).items():
            errors[f"receipts[{i}].{field}"] = message
    return errors


def suggest_merchants(query: Optional[str], extra: Iterable[str] = ()) -> List[str]:
    """Known merchants containing ``query`` (case-insensitive)."""
    names = list(dict.fromkeys(list(MERCHANT_SUGGESTIONS) + [m for m in extra if m]))
    if not query:
        return names
    q = query.lower()
    return [name for name in names if q in name.lower()]


def duplicate_draft(expense, today: Optional[date] = None) -> dict:
    """Pre-filled manual entry form copying an existing expense."""
    today = today or date.today()
    description = expense.description or ""
    return {
        "amount": expense.amount,
        "category_id": str(expense.category_id),
        "merchant": expense.merchant,
        "expense_date": today.isoformat(),
        "payment_method": expense.payment_method,
        "description": f"{description} (copia)".strip(),
        "tags": list(expense.tags or []),
    }


def split_expense(total: float, method: str, splits: List[dict]) -> List[dict]:
    """Splits ``total`` across categories.

    ``method`` is ``percentage`` (each split carries ``percentage``) or
    ``amount`` (each split carries ``amount``). The parts must add up to
    100 % or to ``total`` within a cent.
    """
    if method not in ("percentage", "amount"):
        raise ValidationFailed({"method": "Método de división no válido"})
    if not splits:
        raise ValidationFailed({"splits": "Agrega al menos una división"})
    if total <= 0:
        raise ValidationFailed({"amount": AMOUNT_ERROR})

    out = []
    for split in splits:
        if not split.get("category_id"):
            raise ValidationFailed({"category_id": CATEGORY_ERROR})
        value = _as_float(split.get(method))
        if value is None or value < 0:
            raise ValidationFailed({method: "Valor de división no válido"})
        if method == "percentage":
            amount, percentage = total * value / 100, value
        else:
            amount, percentage = value, value / total * 100
        out.append({
            "category_id": str(split["category_id"]),
            "amount": round(amount, 2),
            "percentage": round(percentage, 2),
        })

    if method == "percentage":
        if abs(sum(s["percentage"] for s in out) - 100) > 0.01:
            raise ValidationFailed({"splits": "Los porcentajes deben sumar 100%"})
    elif abs(sum(s["amount"] for s in out) - total) > 0.01:
        raise ValidationFailed({"splits": "Los montos deben sumar el total del gasto"})
    return out

"""Plain-text summaries of an expense for the share sheet."""
from datetime import date
from urllib.parse import quote

from .expense_forms import PAYMENT_METHODS

SHARE_FORMATS = ("summary", "detailed", "receipt")

MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

_PAYMENT_NAMES = {m["key"]: m["name"] for m in PAYMENT_METHODS}


def format_money(amount: float, currency: str = "USD") -> str:
    # 1234.5 -> "1.234,50 USD"
    text = f"{amount:,.2f}".replace(",", " ").replace(".", ",").replace(" ", ".")
    return f"{text} {currency}"


def format_long_date(value: date) -> str:
    return f"{value.day} de {MONTHS_ES[value.month - 1]} de {value.year}"


def share_text(expense: dict, fmt: str = "summary") -> str:
    """Builds the text for ``expense`` as returned by ``expense_detail``.

    ``detailed`` appends the optional fields that are filled in,
    ``receipt`` appends the receipt link when there is one. Unknown
    formats fall back to the summary.
    """
    when = expense["expense_date"]
    if isinstance(when, str):
        when = date.fromisoformat(when)
    category = (expense.get("category") or {}).get("name") or "Sin categoría"

    lines = [
        f"💰 Gasto: {format_money(expense['amount'], expense.get('currency') or 'USD')}",
        f"🏪 Comercio: {expense['merchant']}",
        f"📅 Fecha: {format_long_date(when)}",
        f"🏷️ Categoría: {category}",
    ]

    if fmt == "detailed":
        if expense.get("description"):
            lines.append(f"📝 Descripción: {expense['description']}")
        method = expense.get("payment_method")
        if method:
            lines.append(f"💳 Pago: {_PAYMENT_NAMES.get(method, method)}")
        if expense.get("tags"):
            lines.append(f"🏷️ Etiquetas: {', '.join(expense['tags'])}")
        if expense.get("notes"):
            lines.append(f"📋 Notas: {expense['notes']}")
    elif fmt == "receipt" and expense.get("receipt_url"):
        lines.append(f"🧾 Recibo: {expense['receipt_url']}")

    return "\n".join(lines)


def share_links(text: str, subject: str) -> dict:
    return {
        "email": f"mailto:?subject={quote(subject)}&body={quote(text)}",
        "sms": f"sms:?body={quote(text)}",
    }


def share_payload(expense: dict, fmt: str = "summary") -> dict:
    if fmt not in SHARE_FORMATS:
        fmt = "summary"
    text = share_text(expense, fmt)
    subject = f"Gasto: {expense['merchant']} - {format_money(expense['amount'], expense.get('currency') or 'USD')}"
    return {
        "format": fmt,
        "formats": list(SHARE_FORMATS),
        "text": text,
        "subject": subject,
        "links": share_links(text, subject),
    }

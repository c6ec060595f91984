import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlmodel import Session, SQLModel

from ..core.dates import get_today
from ..core.errors import ValidationFailed
from ..core.icons import resolve_icon
from ..core.navigation import DASHBOARD_ROUTE, chrome
from ..core.security import get_current_user
from ..data import categories as categories_data
from ..database import get_session
from ..models.profile import Profile
from ..services.expense_forms import PAYMENT_METHODS, validate_batch_forms
from ..services.receipts import (
    MAX_BATCH_RECEIPTS,
    batch_navigation,
    get_receipt_extractor,
    match_category,
    read_receipt_upload,
)
from .categories import require_owned_category
from .expenses import ExpenseForm, ExpenseRead, create_expense_from_form

logger = logging.getLogger(__name__)

ROUTE = "/scan-expense-ai-receipt-processing"

router = APIRouter(
    prefix=ROUTE,
    tags=["receipts"],
)

WIZARD_STEPS = ("capture", "processing", "review", "submit")


class BatchConfirmIn(SQLModel):
    receipts: List[ExpenseForm] = []


def _steps(current: str) -> list:
    reached = WIZARD_STEPS.index(current)
    return [
        {"key": key, "active": i == reached, "completed": i < reached}
        for i, key in enumerate(WIZARD_STEPS)
    ]


def _category_options(categories) -> list:
    return [
        {"id": str(c.id), "name": c.name, "icon": resolve_icon(c.icon), "color": c.color}
        for c in categories
    ]


def _extract_draft(file: UploadFile, categories, current_user: Profile, today: date) -> dict:
    data, content_type = read_receipt_upload(file)
    extractor = get_receipt_extractor()
    logger.info("Processing receipt user=%s bytes=%d extractor=%s", current_user.id, len(data), extractor.name)
    result = extractor.extract(data, content_type, [c.name for c in categories])
    return {
        "draft": {
            "amount": result.amount,
            "category_id": match_category(result.category, categories),
            "merchant": result.merchant or "",
            "expense_date": (result.expense_date or today).isoformat(),
            "payment_method": None,
            "description": "",
            "tags": [],
        },
        "extraction": result.model_dump(mode="json"),
    }


@router.get("")
def scan_page(current_user: Profile = Depends(get_current_user)):
    return {
        **chrome(ROUTE, "Escanear recibo", show_back=True),
        "step": "capture",
        "steps": _steps("capture"),
        "accept": ["image/jpeg", "image/png"],
        "max_batch": MAX_BATCH_RECEIPTS,
    }


@router.post("")
def process_receipt(
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Runs the extractor over the uploaded image and returns the review
    draft. Nothing is stored until the draft is confirmed."""
    categories = categories_data.fetch_categories(session, current_user.id)
    return {
        **chrome(ROUTE, "Revisar recibo", show_back=True),
        "step": "review",
        "steps": _steps("review"),
        **_extract_draft(file, categories, current_user, today),
        "categories": _category_options(categories),
        "payment_methods": list(PAYMENT_METHODS),
    }


@router.post("/confirm", status_code=status.HTTP_201_CREATED)
def confirm_receipt(
    form: ExpenseForm,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Guarda el gasto revisado con las mismas reglas del registro manual."""
    expense = create_expense_from_form(session, current_user, form, today)
    return {
        "step": "submit",
        "steps": _steps("submit"),
        "expense": ExpenseRead.model_validate(expense, from_attributes=True).model_dump(mode="json"),
        "redirect": DASHBOARD_ROUTE,
    }


@router.post("/batch")
def process_receipt_batch(
    files: List[UploadFile] = File(...),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Procesamiento en lote: un borrador por recibo, revisados uno a uno."""
    if len(files) > MAX_BATCH_RECEIPTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Máximo {MAX_BATCH_RECEIPTS} recibos por lote",
        )
    categories = categories_data.fetch_categories(session, current_user.id)
    receipts = []
    for index, file in enumerate(files):
        receipts.append({
            **_extract_draft(file, categories, current_user, today),
            "navigation": batch_navigation(index, len(files)),
        })
    return {
        **chrome(ROUTE, "Procesamiento en Lote", show_back=True),
        "step": "review",
        "steps": _steps("review"),
        "receipts": receipts,
        "categories": _category_options(categories),
        "payment_methods": list(PAYMENT_METHODS),
    }


@router.post("/batch/confirm", status_code=status.HTTP_201_CREATED)
def confirm_receipt_batch(
    payload: BatchConfirmIn,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
    today: date = Depends(get_today),
):
    """Stores every reviewed receipt, or none of them when any form is
    invalid or points at a category the user does not own."""
    if not payload.receipts:
        raise ValidationFailed({"receipts": "Agrega al menos un recibo"})
    if len(payload.receipts) > MAX_BATCH_RECEIPTS:
        raise ValidationFailed({"receipts": f"Máximo {MAX_BATCH_RECEIPTS} recibos por lote"})

    errors = validate_batch_forms([form.model_dump() for form in payload.receipts], today=today)
    if errors:
        raise ValidationFailed(errors)
    for category_id in {form.category_id for form in payload.receipts}:
        require_owned_category(session, category_id, current_user)

    expenses = [create_expense_from_form(session, current_user, form, today) for form in payload.receipts]
    logger.info("Stored receipt batch user=%s count=%d", current_user.id, len(expenses))
    return {
        "step": "submit",
        "steps": _steps("submit"),
        "expenses": [
            ExpenseRead.model_validate(e, from_attributes=True).model_dump(mode="json") for e in expenses
        ],
        "redirect": DASHBOARD_ROUTE,
    }

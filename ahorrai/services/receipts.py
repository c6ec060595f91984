"""Receipt extraction backends for the scan wizard.

The wizard only talks to ``ReceiptExtractor``. ``MockReceiptExtractor``
returns a fixed result after a short delay; ``OcrReceiptExtractor`` runs
Tesseract over the image and, when an OpenAI key is configured, asks the
model which of the user's categories fits best.
"""
import json
import logging
import re
import time
from datetime import date
from io import BytesIO
from typing import Dict, List, Optional, Sequence, Tuple

from fastapi import HTTPException, status
from sqlmodel import Field, SQLModel

from ..config import settings

logger = logging.getLogger(__name__)


MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png"}


class ExtractedItem(SQLModel):
    name: str
    quantity: int = 1
    price: float


class ExtractionResult(SQLModel):
    merchant: Optional[str] = None
    amount: Optional[float] = None
    expense_date: Optional[date] = None
    category: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0, le=1)
    field_confidence: Dict[str, float] = Field(default_factory=dict)
    items: List[ExtractedItem] = Field(default_factory=list)


class ReceiptExtractor:
    name = "base"

    def extract(self, data: bytes, content_type: str, category_names: Sequence[str]) -> ExtractionResult:
        raise NotImplementedError


class MockReceiptExtractor(ReceiptExtractor):
    name = "mock"

    def __init__(self, delay: float = 2.0):
        self.delay = delay

    def extract(self, data: bytes, content_type: str, category_names: Sequence[str]) -> ExtractionResult:
        if self.delay > 0:
            time.sleep(self.delay)
        field_confidence = {"amount": 0.92, "merchant": 0.88, "date": 0.95, "category": 0.80}
        return ExtractionResult(
            merchant="Target Store",
            amount=23.45,
            expense_date=None,  # the wizard fills in the request date
            category="Compras",
            confidence=round(sum(field_confidence.values()) / len(field_confidence), 2),
            field_confidence=field_confidence,
            items=[
                ExtractedItem(name="Detergente", quantity=1, price=12.99),
                ExtractedItem(name="Toallas de papel", quantity=2, price=5.23),
            ],
        )


_AMOUNT_RE = re.compile(r"(\d{1,6})[\.,](\d{2})\b")
_TOTAL_RE = re.compile(r"\btotal\b", re.IGNORECASE)
_ISO_DATE_RE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
_DMY_DATE_RE = re.compile(r"\b(\d{2})/(\d{2})/(\d{4})\b")
_ITEM_RE = re.compile(r"^\s*(\d+)\s+([A-Za-zÁÉÍÓÚÑáéíóúñ0-9\-_ ]{3,}?)\s+(\d{1,4})[\.,](\d{2})\s*$")


def _amounts(line: str) -> List[float]:
    return [float(f"{int(a)}.{b}") for a, b in _AMOUNT_RE.findall(line)]


def _parse_date(text: str) -> Optional[date]:
    m = _ISO_DATE_RE.search(text)
    try:
        if m:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        m = _DMY_DATE_RE.search(text)
        if m:
            return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
    except ValueError:
        return None
    return None


def parse_receipt_text(text: str) -> Tuple[Optional[str], Optional[float], Optional[date], List[ExtractedItem]]:
    """Pulls merchant, total, date and line items out of OCR text.

    The merchant is the first line containing letters. The total is the
    amount on the last line mentioning "total", or the largest amount seen.
    """
    lines = [ln.strip() for ln in text.replace("\u00a0", " ").splitlines() if ln.strip()]

    merchant = next((ln for ln in lines if re.search(r"[A-Za-z]{2,}", ln)), None)

    total = None
    for ln in lines:
        if _TOTAL_RE.search(ln) and _amounts(ln):
            total = _amounts(ln)[-1]
    if total is None:
        every = [a for ln in lines for a in _amounts(ln)]
        total = max(every) if every else None

    items = []
    for ln in lines:
        m = _ITEM_RE.match(ln)
        if not m or _TOTAL_RE.search(ln):
            continue
        qty, name, whole, cents = m.groups()
        items.append(ExtractedItem(name=" ".join(name.split()), quantity=int(qty), price=float(f"{int(whole)}.{cents}")))

    return merchant, total, _parse_date(text), items


def classify_category(merchant: str, category_names: Sequence[str]) -> Optional[str]:
    """Asks the LLM which category fits a merchant; None when not configured."""
    if not settings.openai_api_key or not category_names or not merchant:
        return None

    try:
        from langchain_openai import ChatOpenAI
        from langchain_core.prompts import ChatPromptTemplate
    except ImportError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="LLM dependencies missing. Install 'langchain-openai'.",
        )

    prompt = ChatPromptTemplate.from_messages(
        [
            (
                "system",
                "You classify a purchase into exactly one of the user's expense categories. "
                "Return only valid JSON. Do not include markdown.",
            ),
            (
                "human",
                "Merchant: {merchant}\nCategories: {categories_json}\n"
                'Output ONLY a JSON object like {{"category": "<one of the categories>"}}.',
            ),
        ]
    )
    llm = ChatOpenAI(model=settings.openai_model, temperature=0, api_key=settings.openai_api_key)

    try:
        result = llm.invoke(
            prompt.format_messages(
                merchant=merchant,
                categories_json=json.dumps(list(category_names), ensure_ascii=False),
            )
        )
        data = json.loads(result.content)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"LLM call failed: {e}")

    category = data.get("category") if isinstance(data, dict) else None
    return category if category in category_names else None


class OcrReceiptExtractor(ReceiptExtractor):
    name = "ocr"

    def _ocr(self, data: bytes) -> str:
        try:
            from PIL import Image
            import pytesseract
        except ImportError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"OCR dependencies missing: {e}. Install 'pillow' and 'pytesseract', and Tesseract OCR runtime.",
            )

        if settings.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = settings.tesseract_cmd

        config = "--oem 3 --psm 6"
        try:
            with Image.open(BytesIO(data)) as img:
                gray = img.convert("L")
                try:
                    return pytesseract.image_to_string(gray, lang="spa+eng", config=config)
                except pytesseract.TesseractError:
                    return pytesseract.image_to_string(gray, lang="eng", config=config)
        except Exception as e:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"OCR failed: {e}")

    def extract(self, data: bytes, content_type: str, category_names: Sequence[str]) -> ExtractionResult:
        text = self._ocr(data)
        logger.debug("OCR text (%d chars): %s", len(text), text[:600])

        merchant, total, when, items = parse_receipt_text(text)
        category = classify_category(merchant, category_names)

        field_confidence = {
            "merchant": 0.7 if merchant else 0.0,
            "amount": 0.8 if total is not None else 0.0,
            "date": 0.8 if when else 0.0,
            "category": 0.7 if category else 0.0,
        }
        return ExtractionResult(
            merchant=merchant,
            amount=total,
            expense_date=when,
            category=category,
            confidence=round(sum(field_confidence.values()) / len(field_confidence), 2),
            field_confidence=field_confidence,
            items=items,
        )


def get_receipt_extractor() -> ReceiptExtractor:
    if settings.receipt_extractor == "ocr":
        return OcrReceiptExtractor()
    return MockReceiptExtractor(delay=settings.receipt_mock_delay)


def read_receipt_upload(file) -> Tuple[bytes, str]:
    """Reads an uploaded receipt image enforcing type and size limits."""
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tipo de archivo no permitido")

    data = file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) == 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Archivo vacío")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Archivo demasiado grande (max 10MB)")
    return data, content_type


def match_category(name: Optional[str], categories) -> Optional[str]:
    """Id of the user's category whose name matches ``name``."""
    if not name:
        return None
    wanted = name.strip().lower()
    for c in categories:
        if c.name.strip().lower() == wanted:
            return str(c.id)
    return None


MAX_BATCH_RECEIPTS = 10


def batch_navigation(index: int, total: int) -> dict:
    """Position of receipt ``index`` within a batch of ``total``."""
    return {
        "index": index,
        "position": index + 1,
        "total": total,
        "progress": round((index + 1) / total * 100, 2),
        "has_previous": index > 0,
        "has_next": index < total - 1,
        "dots": [
            "current" if i == index else ("done" if i < index else "pending")
            for i in range(total)
        ],
    }

from __future__ import annotations

import os
from io import BytesIO

from pypdf import PdfReader


class UnreadableReceipt(ValueError):
    pass


def _clean(text: str) -> str:
    return text.replace("\u202f", " ").replace("\xa0", " ")


def extract_pdf_text(body: bytes) -> str:
    """Text of every page; scanned pages fall back to OCR when pytesseract is installed."""
    if not body.startswith(b"%PDF"):
        raise UnreadableReceipt("File does not start with the %PDF header")
    try:
        reader = PdfReader(BytesIO(body))
        pages = list(reader.pages)
    except Exception as e:  # noqa: BLE001
        raise UnreadableReceipt(f"Could not read PDF: {e}") from e

    texts: list[str] = []
    for page in pages:
        text = _clean(page.extract_text() or "")
        if not text.strip():
            text = _clean(_ocr_pdf_page(page)) or text
        texts.append(text)
    return "\n\n".join(t for t in texts if t.strip())


def _ocr_pdf_page(page) -> str:
    try:
        import pytesseract
    except Exception:
        return ""

    try:
        page_images = list(page.images)
    except Exception:
        return ""

    best_image = None
    best_area = 0
    for image_file in page_images:
        try:
            image = image_file.image
            width = image.width
            height = image.height
        except Exception:
            continue
        area = width * height
        if area > best_area:
            best_area = area
            best_image = image

    if best_image is None:
        return ""

    tesseract_lang = os.getenv("TESSERACT_LANG", "eng")
    try:
        if best_image.mode not in {"RGB", "L"}:
            best_image = best_image.convert("RGB")
        return pytesseract.image_to_string(best_image, lang=tesseract_lang) or ""
    except Exception:
        return ""

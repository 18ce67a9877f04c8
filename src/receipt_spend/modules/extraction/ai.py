from __future__ import annotations

import json
import re
from typing import Any

import httpx

from receipt_spend.core.config import settings
from receipt_spend.core.logging import get_logger, log_event
from receipt_spend.modules.ledger import catalog

logger = get_logger(__name__)

_CODE_HINTS: dict[str, str] = {
    catalog.OFFICE_GENERAL: "office supplies, hardware, equipment, general purchases",
    catalog.MEMBERSHIP: "professional memberships, association dues",
    catalog.SUBSCRIPTIONS: "software licenses, cloud services, digital subscriptions",
    catalog.EDUCATION: "training courses, certifications, workshops, conferences",
    catalog.MILEAGE: "vehicle mileage, toll fees, parking, public transit",
    catalog.FOOD_ENTERTAINMENT: "business meals, client lunches, coffee meetings, catering",
    catalog.SOCIAL: "team building, company celebrations, employee events",
    catalog.TRAVEL: "airfare, hotels, taxis and ride share, car rentals, baggage fees",
}

_RECEIPT_KEYS = ("date", "merchant", "amount", "tax", "description", "gl_code", "location")


def receipt_ai_available() -> bool:
    return bool(settings.receipt_ai_enabled and settings.openai_api_key)


def _gl_code_rules() -> str:
    lines = []
    for code in catalog.selectable_codes():
        hint = _CODE_HINTS.get(code.code, "")
        lines.append(f"- {code.code} ({code.category_name}): {hint}")
    return "\n".join(lines)


def extract_receipt_fields(text: str) -> dict[str, Any] | None:
    """
    Best-effort AI extraction of expense fields from receipt text.

    Returns a loose field bag (date, merchant, amount, tax, description, gl_code,
    location) for the validator, or None when AI is off or the call fails.
    """
    if not receipt_ai_available():
        return None

    cleaned = _truncate_text(text, max_chars=int(settings.receipt_ai_max_chars or 0) or 12000)
    if not cleaned:
        return None

    payload = {
        "model": settings.openai_model,
        "temperature": 0.1,
        "max_tokens": 500,
        "response_format": {"type": "json_object"},
        "messages": [
            {
                "role": "system",
                "content": (
                    "You extract expense details from receipts and invoices.\n"
                    "Only use information present in the text. Omit fields you are unsure of.\n"
                    "Assign exactly one G/L code from this list:\n"
                    + _gl_code_rules()
                    + "\n\n"
                    "Rules:\n"
                    "- For Canadian receipts identify HST/GST/PST as tax.\n"
                    "- Clean up the merchant name.\n"
                    "- Keep the description to one short line (8-10 words).\n"
                    "- For mileage claims put the distance in kilometers in amount.\n"
                    "Return JSON only with keys: date (YYYY-MM-DD), merchant, amount (number), "
                    "tax (number), description, gl_code, location."
                ),
            },
            {
                "role": "user",
                "content": "Extract the expense from this receipt:\n\n" + cleaned,
            },
        ],
    }

    headers = {
        "Authorization": f"Bearer {settings.openai_api_key}",
        "Content-Type": "application/json",
    }

    url = settings.openai_base_url.rstrip("/") + "/chat/completions"
    try:
        resp = httpx.post(
            url,
            headers=headers,
            json=payload,
            timeout=float(settings.receipt_ai_timeout_seconds or 20.0),
            follow_redirects=True,
        )
        resp.raise_for_status()
    except Exception as e:  # noqa: BLE001
        log_event(logger, "extraction.ai.request_failed", error_type=type(e).__name__)
        return None

    try:
        raw = resp.json()
        content = str(raw["choices"][0]["message"]["content"])
    except Exception:
        return None

    obj = _parse_json_object(content)
    if not isinstance(obj, dict):
        return None

    return _sanitize_receipt_fields(obj)


def _sanitize_receipt_fields(obj: dict[str, Any]) -> dict[str, Any] | None:
    out: dict[str, Any] = {}
    for key in _RECEIPT_KEYS:
        val = obj.get(key)
        if isinstance(val, str):
            val = val.strip()
            if not val and key != "description":
                continue
        elif not isinstance(val, (int, float)) or isinstance(val, bool):
            continue
        out[key] = val
    return out or None


def _truncate_text(text: str, *, max_chars: int) -> str:
    t = (text or "").replace("\u202f", " ").replace("\xa0", " ").strip()
    if not t:
        return ""
    if max_chars <= 0:
        return t
    if len(t) <= max_chars:
        return t
    return t[: max_chars - 20].rstrip() + "\n\n[TRUNCATED]"


def _parse_json_object(content: str) -> Any:
    c = (content or "").strip()
    if not c:
        return None
    try:
        return json.loads(c)
    except Exception:
        pass

    # Fallback: extract the first {...} block.
    m = re.search(r"\{.*\}", c, re.S)
    if not m:
        return None
    try:
        return json.loads(m.group(0))
    except Exception:
        return None

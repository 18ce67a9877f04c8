from __future__ import annotations

import re

from receipt_spend.modules.ledger import catalog
from receipt_spend.modules.ledger.catalog import AccountingCode

# First match wins.
_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        catalog.SUBSCRIPTIONS,
        (
            "subscription",
            "subscriptions",
            "license",
            "licence",
            "software",
            "cloud",
            "saas",
            "starlink",
            "zoho",
            "microsoft",
            "adobe",
            "office 365",
            "zoom",
        ),
    ),
    (
        catalog.EDUCATION,
        ("training", "course", "education", "certification", "workshop", "seminar", "conference"),
    ),
    (
        catalog.FOOD_ENTERTAINMENT,
        ("restaurant", "cafe", "café", "coffee", "lunch", "dinner", "breakfast", "catering"),
    ),
    (catalog.TRAVEL, ("hotel", "flight", "airfare", "airline", "taxi", "uber", "lyft")),
    (catalog.MILEAGE, ("mileage", "toll", "etr", "highway", "km")),
    (catalog.MEMBERSHIP, ("membership", "dues", "association", "professional fee")),
    (
        catalog.OFFICE_GENERAL,
        ("hardware", "equipment", "dell", "computer", "laptop", "office"),
    ),
)


def _compile(keywords: tuple[str, ...]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)")


_COMPILED: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (code, _compile(keywords)) for code, keywords in _RULES
)


def classify(merchant: str | None, description: str | None) -> AccountingCode:
    """
    Guess a G/L code from free text when extraction did not supply one.

    Never fails: anything unmatched is Office & General.
    """
    text = f"{merchant or ''} {description or ''}".casefold()
    text = re.sub(r"\s+", " ", text)
    for code, pattern in _COMPILED:
        if pattern.search(text):
            return catalog.report_column_for(code)
    return catalog.report_column_for(catalog.DEFAULT_CODE)

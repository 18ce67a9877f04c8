from __future__ import annotations

import pytest

from receipt_spend.modules.ledger.classify import classify


@pytest.mark.parametrize(
    ("merchant", "description", "expected"),
    [
        ("Starbucks", "Coffee with client", "6010-000"),
        ("Hilton", "Hotel stay, 2 nights", "6012-000"),
        ("Zoom Video", "Monthly subscription", "6404-000"),
        ("Udemy", "Python course", "7335-000"),
        ("407 ETR", "Highway toll", "6026-000"),
        ("CPA Ontario", "Annual membership dues", "6402-000"),
        ("Dell", "Laptop dock", "6408-000"),
    ],
)
def test_keyword_rules(merchant, description, expected):
    assert classify(merchant, description).code == expected


def test_first_matching_rule_wins():
    # "conference" (education) is checked before "hotel" (travel).
    assert classify("Marriott", "Conference hotel package").code == "7335-000"
    # "software" (subscriptions) is checked before "laptop" (office).
    assert classify("Best Buy", "Laptop with software bundle").code == "6404-000"


def test_keywords_match_whole_words_only():
    # "etr" inside "Metro" must not trigger mileage.
    assert classify("Metro Grocery", "Snacks").code == "6408-000"


def test_matching_ignores_case():
    assert classify("THE KEG RESTAURANT", "").code == "6010-000"


def test_unmatched_text_falls_back_to_default():
    assert classify("Acme Corp", "Misc purchase").code == "6408-000"
    assert classify(None, None).code == "6408-000"

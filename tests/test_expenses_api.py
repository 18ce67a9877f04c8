from __future__ import annotations

import io
from decimal import Decimal

from fastapi.testclient import TestClient
from openpyxl import load_workbook

from receipt_spend.main import app


def _client() -> TestClient:
    return TestClient(app)


def _create_session(client: TestClient) -> str:
    res = client.post("/api/sessions", json={"name": "Ada Lovelace", "department": "Sales"})
    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "OPEN"
    return body["id"]


def _create_hotel(client: TestClient, session_id: str) -> dict:
    res = client.post(
        f"/api/sessions/{session_id}/expenses",
        json={
            "date": "2024-03-01",
            "merchant": "Hilton",
            "amount": "300.00",
            "tax": "39.00",
            "description": "Hotel stay",
            "gl_code": "6012-000",
        },
    )
    assert res.status_code == 201
    return res.json()


def test_healthz_and_catalog():
    client = _client()

    assert client.get("/healthz").json() == {"status": "ok"}

    catalog = client.get("/api/catalog").json()
    assert len(catalog) == 8
    assert {"code": "6012-000", "category_name": "Travel", "section": "PROMOTION"} in catalog


def test_create_expense_defaults_name_and_department_from_session():
    client = _client()
    session_id = _create_session(client)

    expense = _create_hotel(client, session_id)

    assert expense["name"] == "Ada Lovelace"
    assert expense["department"] == "Sales"
    assert expense["category_name"] == "Travel"
    assert expense["section"] == "PROMOTION"
    assert Decimal(expense["primary_allocation"]) == Decimal("300.00")


def test_create_expense_rejects_invalid_fields():
    client = _client()
    session_id = _create_session(client)

    res = client.post(
        f"/api/sessions/{session_id}/expenses",
        json={"date": "03/01/2024", "merchant": "Hilton", "amount": "10", "description": ""},
    )

    assert res.status_code == 422
    assert res.json()["detail"] == [
        {
            "kind": "InvalidDate",
            "field": "date",
            "message": "date must be YYYY-MM-DD (got '03/01/2024')",
        }
    ]


def test_mileage_expense_derives_amount_from_kilometers():
    client = _client()
    session_id = _create_session(client)

    res = client.post(
        f"/api/sessions/{session_id}/expenses",
        json={
            "date": "2024-03-02",
            "merchant": "Client visit",
            "description": "Drive to client",
            "gl_code": "6026-000",
            "kilometers": 100,
            "fromLocation": "Toronto",
            "toLocation": "Hamilton",
            "tripPurpose": "site visit",
        },
    )

    assert res.status_code == 201
    body = res.json()
    assert Decimal(body["amount"]) == Decimal("72.00")
    assert Decimal(body["kilometers"]) == Decimal("100")
    assert body["trip_purpose"] == "SITE_VISIT"


def test_update_with_title_replaces_merchant():
    client = _client()
    session_id = _create_session(client)
    expense_id = _create_hotel(client, session_id)["id"]

    res = client.put(
        f"/api/sessions/{session_id}/expenses/{expense_id}", json={"title": "Marriott"}
    )

    assert res.status_code == 200
    body = res.json()
    assert body["merchant"] == "Marriott"
    assert Decimal(body["amount"]) == Decimal("300.00")


def test_oversized_amount_is_a_field_error():
    client = _client()
    session_id = _create_session(client)
    expense_id = _create_hotel(client, session_id)["id"]

    res = client.put(
        f"/api/sessions/{session_id}/expenses/{expense_id}", json={"amount": "1" * 30}
    )

    assert res.status_code == 422
    assert [e["kind"] for e in res.json()["detail"]] == ["InvalidAmount"]


def test_split_replace_and_conflicts():
    client = _client()
    session_id = _create_session(client)
    expense_id = _create_hotel(client, session_id)["id"]
    url = f"/api/sessions/{session_id}/expenses/{expense_id}"

    res = client.put(f"{url}/splits", json={"splits": [{"code": "6010-000", "amount": "50"}]})
    assert res.status_code == 200
    body = res.json()
    assert [(s["gl_code"], Decimal(s["amount"])) for s in body["splits"]] == [
        ("6010-000", Decimal("50.00"))
    ]
    assert Decimal(body["primary_allocation"]) == Decimal("250.00")

    res = client.put(f"{url}/splits", json={"splits": [{"code": "6010-000", "amount": "301"}]})
    assert res.status_code == 409
    assert res.json()["detail"][0]["kind"] == "SplitExceedsTotal"

    # Shrinking the amount below the allocated splits is refused and nothing changes.
    res = client.put(url, json={"amount": "40"})
    assert res.status_code == 409
    stored = client.get(f"/api/sessions/{session_id}/expenses").json()[0]
    assert Decimal(stored["amount"]) == Decimal("300.00")
    assert len(stored["splits"]) == 1

    res = client.put(url, json={"amount": "400"})
    assert res.status_code == 200
    split = res.json()["splits"][0]
    assert Decimal(split["amount"]) == Decimal("50.00")
    assert Decimal(split["percentage"]) == Decimal("12.5")


def test_report_layout_and_xlsx_download():
    client = _client()
    session_id = _create_session(client)
    expense_id = _create_hotel(client, session_id)["id"]
    client.put(
        f"/api/sessions/{session_id}/expenses/{expense_id}/splits",
        json={"splits": [{"code": "6404-000", "percentage": 10}]},
    )

    layout = client.get(f"/api/sessions/{session_id}/report/layout").json()
    assert layout["name"] == "Ada Lovelace"
    assert Decimal(layout["grand_total"]) == Decimal("300.00")
    promotion, other = layout["sections"]
    assert Decimal(promotion["section_total"]) == Decimal("270.00")
    assert Decimal(other["section_total"]) == Decimal("30.00")
    assert other["rows"][0]["split_fragment"] is True

    res = client.get(f"/api/sessions/{session_id}/report.xlsx")
    assert res.status_code == 200
    assert "attachment" in res.headers["content-disposition"]
    ws = load_workbook(io.BytesIO(res.content)).active
    assert ws["B1"].value == "Ada Lovelace"
    assert ws["B2"].value == "Sales"


def test_delete_expense_then_missing():
    client = _client()
    session_id = _create_session(client)
    expense_id = _create_hotel(client, session_id)["id"]
    url = f"/api/sessions/{session_id}/expenses/{expense_id}"

    assert client.delete(url).status_code == 204
    assert client.delete(url).status_code == 404
    assert client.get(f"/api/sessions/{session_id}/expenses").json() == []


def test_unknown_session_is_404():
    client = _client()
    missing = "00000000-0000-0000-0000-000000000000"

    assert client.get(f"/api/sessions/{missing}/expenses").status_code == 404
    assert client.get(f"/api/sessions/{missing}/report/layout").status_code == 404
    assert client.delete(f"/api/sessions/{missing}").status_code == 404

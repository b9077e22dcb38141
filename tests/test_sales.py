"""Tests for the sales log endpoints."""
from __future__ import annotations

from datetime import datetime
from unittest.mock import patch

import pytest

from salon_admin.models import Sale

TODAY = datetime(2024, 3, 6, 12, 0)


@pytest.fixture
def day_of_sales(client) -> None:
    entries = [
        {"customer_name": "Aisyah", "service": "Haircut", "amount_cents": 3000, "staff": "Mei"},
        {"customer_name": "Ben", "service": "Haircut, Manicure", "amount_cents": 7500, "staff": "Raj"},
        {"customer_name": "Chloe", "service": "Manicure", "amount_cents": 4500},
    ]
    with patch("salon_admin.routes.local_now", return_value=TODAY):
        for entry in entries:
            assert client.post("/sales", json=entry).status_code == 201
    client.post("/sales", json={"customer_name": "Dan", "service": "Facial",
                                "amount_cents": 8000, "date": "2024-03-05"})


def test_create_manual_sale(client) -> None:
    response = client.post("/sales", json={
        "customer_name": "Walk-in", "service": "Haircut", "amount_cents": 3000, "date": "2024-03-01",
    })
    sale = response.get_json()["sale"]

    assert response.status_code == 201
    assert sale["amount"] == 30.0
    assert sale["staff"] is None
    assert sale["appointment_id"] is None


def test_create_sale_missing_fields_400(client) -> None:
    response = client.post("/sales", json={"customer_name": "Walk-in", "amount_cents": 3000})

    assert response.status_code == 400
    assert Sale.query.count() == 0


def test_create_sale_non_numeric_amount_400(client) -> None:
    response = client.post("/sales", json={"customer_name": "Walk-in", "service": "Haircut", "amount_cents": "RM30"})

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_list_sales_defaults_to_today(client, day_of_sales) -> None:
    with patch("salon_admin.routes.local_now", return_value=TODAY):
        response = client.get("/sales")
    data = response.get_json()

    assert response.status_code == 200
    assert data["date"] == "2024-03-06"
    assert len(data["sales"]) == 3
    assert data["summary"] == {"count": 3, "total_cents": 15000, "average_cents": 5000}
    assert data["staff_options"] == ["Mei", "Raj"]


def test_list_sales_for_selected_date(client, day_of_sales) -> None:
    data = client.get("/sales?date=2024-03-05").get_json()

    assert [s["customer_name"] for s in data["sales"]] == ["Dan"]


def test_list_sales_search_and_staff_filter(client, day_of_sales) -> None:
    searched = client.get("/sales?date=2024-03-06&search=manicure").get_json()
    by_staff = client.get("/sales?date=2024-03-06&staff=Mei").get_json()

    assert sorted(s["customer_name"] for s in searched["sales"]) == ["Ben", "Chloe"]
    assert [s["customer_name"] for s in by_staff["sales"]] == ["Aisyah"]
    assert by_staff["summary"]["total_cents"] == 3000


def test_list_sales_invalid_date_400(client) -> None:
    response = client.get("/sales?date=06-03-2024")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_parameters"


@pytest.mark.parametrize("amount", [75.9, True, "75.5", [3000]])
def test_create_sale_rejects_non_integer_amount_400(client, amount) -> None:
    response = client.post("/sales", json={"customer_name": "Walk-in", "service": "Haircut", "amount_cents": amount})

    assert response.status_code == 400
    assert Sale.query.count() == 0


def test_create_sale_accepts_whole_number_forms(client) -> None:
    for amount in (3000, 3000.0, "3000"):
        response = client.post("/sales", json={"customer_name": "Walk-in", "service": "Haircut", "amount_cents": amount})
        assert response.status_code == 201
        assert response.get_json()["sale"]["amount_cents"] == 3000


@pytest.mark.parametrize("body", ["2024-03-01", [1], 42])
def test_create_sale_non_object_body_400(client, body) -> None:
    response = client.post("/sales", json=body)

    assert response.status_code == 400
    assert response.get_json()["message"] == "request body must be a JSON object"

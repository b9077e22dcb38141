"""Tests for the service catalog endpoints."""
from __future__ import annotations

from salon_admin.extensions import db
from salon_admin.models import Service


def test_create_service_success_201(client) -> None:
    response = client.post("/services", json={"name": "Haircut", "price_cents": 3000, "duration_minutes": 30})
    data = response.get_json()

    assert response.status_code == 201
    assert data["message"] == "Service created successfully"
    assert data["service"]["price"] == 30.0
    assert db.session.query(Service).filter_by(name="Haircut").one().duration_minutes == 30


def test_create_service_missing_required_field_400(client) -> None:
    response = client.post("/services", json={"price_cents": 1000, "duration_minutes": 60})

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_create_service_rejects_non_numeric_price_400(client) -> None:
    response = client.post("/services", json={"name": "Facial", "price_cents": "abc", "duration_minutes": 60})

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_create_service_rejects_zero_duration_400(client) -> None:
    response = client.post("/services", json={"name": "Facial", "price_cents": 500, "duration_minutes": 0})

    assert response.status_code == 400
    assert db.session.query(Service).count() == 0


def test_create_service_duplicate_name_409(client, catalog) -> None:
    response = client.post("/services", json={"name": "Haircut", "price_cents": 100, "duration_minutes": 10})

    assert response.status_code == 409
    assert response.get_json()["error"] == "duplicate_service"


def test_list_services_ordered_by_name(client, catalog) -> None:
    client.post("/services", json={"name": "Facial", "price_cents": 8000, "duration_minutes": 60})

    response = client.get("/services")

    assert response.status_code == 200
    assert [s["name"] for s in response.get_json()["services"]] == ["Facial", "Haircut", "Manicure"]


def test_update_service(client, catalog) -> None:
    response = client.put(f"/services/{catalog['Haircut']}", json={"price_cents": 3500})

    assert response.status_code == 200
    assert response.get_json()["service"]["price_cents"] == 3500


def test_update_service_invalid_duration_400(client, catalog) -> None:
    response = client.put(f"/services/{catalog['Haircut']}", json={"duration_minutes": -5})

    assert response.status_code == 400
    assert db.session.get(Service, catalog["Haircut"]).duration_minutes == 30


def test_update_service_not_found_404(client) -> None:
    response = client.put("/services/999", json={"price_cents": 100})

    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_delete_service(client, catalog) -> None:
    response = client.delete(f"/services/{catalog['Manicure']}")

    assert response.status_code == 200
    assert db.session.get(Service, catalog["Manicure"]) is None
    assert client.delete(f"/services/{catalog['Manicure']}").status_code == 404


def test_create_service_rejects_fractional_cents_400(client) -> None:
    response = client.post("/services", json={"name": "Facial", "price_cents": 4999.5, "duration_minutes": 60})

    assert response.status_code == 400
    assert db.session.query(Service).count() == 0


def test_create_service_rejects_boolean_duration_400(client) -> None:
    response = client.post("/services", json={"name": "Facial", "price_cents": 5000, "duration_minutes": True})

    assert response.status_code == 400
    assert db.session.query(Service).count() == 0


def test_update_service_rejects_fractional_price_400(client, catalog) -> None:
    response = client.put(f"/services/{catalog['Haircut']}", json={"price_cents": 3500.25})

    assert response.status_code == 400
    assert db.session.get(Service, catalog["Haircut"]).price_cents == 3000


def test_update_service_non_object_body_400(client, catalog) -> None:
    response = client.put(f"/services/{catalog['Haircut']}", json=["price_cents", 3500])

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"

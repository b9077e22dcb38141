"""Tests for the dashboard, analytics, reports and export endpoints."""
from __future__ import annotations

import csv
import io
from datetime import date, datetime, time
from unittest.mock import patch

import pandas as pd
import pytest

from salon_admin.extensions import db
from salon_admin.models import Sale

NOW = datetime(2024, 3, 6, 15, 30)


@pytest.fixture
def pinned_clock():
    with patch("salon_admin.routes_analytics.local_now", return_value=NOW), \
            patch("salon_admin.routes.local_now", return_value=NOW):
        yield NOW


@pytest.fixture
def ledger(app) -> None:
    db.session.add_all([
        Sale(customer_name="Aisyah", service="Haircut", amount_cents=3000, date=date(2024, 3, 6), staff="Mei"),
        Sale(customer_name="Ben", service="Haircut", amount_cents=2000, date=date(2024, 3, 6)),
        Sale(customer_name="Chloe", service="Manicure", amount_cents=4500, date=date(2024, 3, 4)),
        Sale(customer_name="Dan", service="Facial", amount_cents=8000, date=date(2024, 3, 1)),
        Sale(customer_name="Eve", service="Facial", amount_cents=9000, date=date(2024, 2, 20)),
    ])
    db.session.commit()


def test_dashboard_today_and_selected_day(client, catalog, make_appointment, ledger, pinned_clock) -> None:
    make_appointment("Haircut", customer_name="Today", day=date(2024, 3, 6), at=time(9, 0))
    make_appointment("Manicure", customer_name="Next week", day=date(2024, 3, 12))
    make_appointment("Haircut", customer_name="Far", day=date(2024, 4, 20))

    data = client.get("/dashboard?date=2024-04-20").get_json()

    assert data["date"] == "2024-03-06"
    assert data["today_revenue"] == {"cents": 5000, "amount": 50.0}
    assert data["today_sales_count"] == 2
    assert [a["customer_name"] for a in data["todays_appointments"]] == ["Today"]
    assert [a["customer_name"] for a in data["upcoming_appointments"]] == ["Today", "Next week"]
    assert [a["customer_name"] for a in data["selected_appointments"]] == ["Far"]


def test_dashboard_invalid_date_400(client, pinned_clock) -> None:
    assert client.get("/dashboard?date=someday").status_code == 400


def test_analytics_figures(client, catalog, make_appointment, ledger, pinned_clock) -> None:
    make_appointment("Haircut", "Manicure")
    make_appointment("Haircut")

    data = client.get("/analytics?days=7&top=1").get_json()

    assert data["total_revenue"]["cents"] == 26500
    assert data["period_revenue"]["daily"]["cents"] == 5000
    assert data["period_revenue"]["weekly"]["cents"] == 9500
    assert data["period_revenue"]["monthly"]["cents"] == 17500
    assert data["revenue_by_service"][0] == {"service": "Facial", "cents": 17000, "amount": 170.0}
    assert [row["date"] for row in data["daily_trend"]] == [
        "Feb 29", "Mar 01", "Mar 02", "Mar 03", "Mar 04", "Mar 05", "Mar 06",
    ]
    assert data["daily_trend"][-1]["cents"] == 5000
    assert data["top_services"] == [{"service": "Haircut", "count": 2}]
    assert data["completed_today"] == 2


def test_analytics_reflects_completion_immediately(client, catalog, make_appointment, pinned_clock) -> None:
    appointment = make_appointment("Haircut", "Manicure")

    before = client.get("/analytics").get_json()
    client.post(f"/appointments/{appointment.appointment_id}/complete")
    after = client.get("/analytics").get_json()

    assert before["period_revenue"]["daily"]["cents"] == 0
    assert after["period_revenue"]["daily"]["cents"] == 7500
    assert after["revenue_by_service"] == [{"service": "Haircut, Manicure", "cents": 7500, "amount": 75.0}]


@pytest.mark.parametrize("query", ["days=0", "days=abc", "top=500"])
def test_analytics_invalid_parameters_400(client, query) -> None:
    response = client.get(f"/analytics?{query}")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_parameters"


def test_reports_summary(client, catalog, make_appointment, ledger) -> None:
    make_appointment("Haircut")

    data = client.get("/reports").get_json()

    assert data["summary"] == {
        "total_sales": {"cents": 26500, "amount": 265.0},
        "sales_count": 5,
        "appointment_count": 1,
    }
    assert len(data["recent_sales"]) == 5
    assert data["recent_sales"][-1]["customer_name"] == "Eve"


def test_export_weekly_csv(client, ledger, pinned_clock) -> None:
    response = client.get("/analytics/export?period=weekly&format=csv")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "sales-report-weekly-2024-03-06.csv" in response.headers["Content-Disposition"]
    rows = list(csv.DictReader(io.StringIO(response.data.decode("utf-8"))))
    assert sorted(row["customer_name"] for row in rows) == ["Aisyah", "Ben", "Chloe"]


def test_export_monthly_xlsx(client, ledger, pinned_clock) -> None:
    response = client.get("/analytics/export?period=monthly&format=xlsx")

    assert response.status_code == 200
    assert "sales-report-monthly-2024-03-06.xlsx" in response.headers["Content-Disposition"]
    frame = pd.read_excel(io.BytesIO(response.data), sheet_name="Sales")
    assert sorted(frame["customer_name"]) == ["Aisyah", "Ben", "Chloe", "Dan"]
    assert frame["amount"].sum() == pytest.approx(175.0)


def test_export_rejects_unknown_period(client) -> None:
    response = client.get("/analytics/export?period=yearly")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_period"


def test_export_rejects_unknown_format(client) -> None:
    response = client.get("/analytics/export?format=pdf")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_format"

"""Dashboard, analytics, reports and export routes.

Each endpoint fetches fresh rows and recomputes its figures through
``analytics``; nothing is cached between requests.
"""
from __future__ import annotations

import io
from datetime import timedelta

from flask import Blueprint, current_app, jsonify, request, send_file
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from . import analytics
from .auth import require_login
from .exports import EXPORT_FORMATS, EXPORT_PERIODS, build_sales_export
from .models import Appointment, Sale, local_now
from .routes import parse_date_arg

bp_analytics = Blueprint("analytics", __name__)
bp_analytics.before_request(require_login)

UPCOMING_DAYS = 7
RECENT_LIMIT = 5


def _money(cents: int) -> dict[str, object]:
    return {"cents": int(cents), "amount": round(cents / 100, 2)}


def _bounded_int_arg(name: str, default: int, low: int, high: int) -> int:
    value = int(request.args.get(name, default))
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}")
    return value


@bp_analytics.get("/dashboard")
def get_dashboard() -> tuple[dict[str, object], int]:
    """Today's revenue plus the appointment calendar.
    ---
    tags:
      - Dashboard
    parameters:
      - name: date
        in: query
        type: string
        description: Calendar day to list appointments for (defaults to today)
    responses:
      200:
        description: Dashboard figures
      400:
        description: Invalid date
      500:
        description: Database error
    """
    today = local_now().date()
    try:
        selected = parse_date_arg("date", today)
    except ValueError:
        return jsonify({"error": "invalid_parameters", "message": "Invalid date format, use YYYY-MM-DD"}), 400

    horizon = today + timedelta(days=UPCOMING_DAYS)
    try:
        appointments = (
            Appointment.query.filter(
                or_(
                    Appointment.date.between(today, horizon),
                    Appointment.date == selected,
                )
            )
            .order_by(Appointment.date.asc(), Appointment.time.asc())
            .all()
        )
        todays_sales = Sale.query.filter(Sale.date == today).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch dashboard data", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    upcoming = [appt for appt in appointments if today <= appt.date <= horizon]
    todays_appointments = analytics.appointments_on_date(appointments, today)

    return jsonify({
        "date": today.isoformat(),
        "selected_date": selected.isoformat(),
        "today_revenue": _money(analytics.total_revenue(todays_sales)),
        "today_sales_count": len(todays_sales),
        "todays_appointments": [appt.to_dict() for appt in todays_appointments],
        "selected_appointments": [
            appt.to_dict() for appt in analytics.appointments_on_date(appointments, selected)
        ],
        "upcoming_appointments": [appt.to_dict() for appt in upcoming],
    }), 200


@bp_analytics.get("/analytics")
def get_analytics() -> tuple[dict[str, object], int]:
    """Revenue by period and by service, the daily trend and top services.
    ---
    tags:
      - Analytics
    parameters:
      - name: days
        in: query
        type: integer
        default: 7
        maximum: 366
      - name: top
        in: query
        type: integer
        default: 5
        maximum: 50
    responses:
      200:
        description: Analytics figures
      400:
        description: Invalid parameters
      500:
        description: Database error
    """
    try:
        days = _bounded_int_arg("days", 7, 1, 366)
        top = _bounded_int_arg("top", 5, 1, 50)
    except (ValueError, TypeError) as exc:
        current_app.logger.warning(f"Invalid analytics parameters: {exc}")
        return jsonify({"error": "invalid_parameters", "message": str(exc)}), 400

    try:
        sales = Sale.query.order_by(Sale.date.desc()).all()
        appointments = Appointment.query.order_by(Appointment.date.asc(), Appointment.time.asc()).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch analytics data", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    now = local_now()
    week_start = current_app.config.get("WEEK_START_DAY", analytics.SUNDAY)
    periods = analytics.period_revenue(sales, now, week_start)
    by_service = sorted(
        analytics.revenue_by_service(sales).items(), key=lambda item: item[1], reverse=True
    )

    return jsonify({
        "reference_date": now.date().isoformat(),
        "total_revenue": _money(analytics.total_revenue(sales)),
        "period_revenue": {period: _money(cents) for period, cents in periods.items()},
        "revenue_by_service": [
            {"service": label, **_money(cents)} for label, cents in by_service
        ],
        "daily_trend": [
            {"date": label, **_money(cents)}
            for label, cents in analytics.daily_trend(sales, days, now)
        ],
        "top_services": [
            {"service": name, "count": count}
            for name, count in analytics.top_services(appointments, top)
        ],
        "completed_today": len(analytics.sales_on_date(sales, now)),
        "average_daily_revenue": _money(analytics.average_daily_revenue(sales, now)),
        "sales_growth": analytics.sales_growth(periods),
    }), 200


@bp_analytics.get("/reports")
def get_reports() -> tuple[dict[str, object], int]:
    """Overall totals with the most recent sales and appointments."""
    try:
        sales = Sale.query.order_by(Sale.date.desc(), Sale.created_at.desc()).all()
        appointments = Appointment.query.order_by(Appointment.date.desc(), Appointment.time.desc()).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch report data", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({
        "summary": {
            "total_sales": _money(analytics.total_revenue(sales)),
            "sales_count": len(sales),
            "appointment_count": len(appointments),
        },
        "recent_sales": [sale.to_dict() for sale in sales[:RECENT_LIMIT]],
        "recent_appointments": [appt.to_dict() for appt in appointments[:RECENT_LIMIT]],
    }), 200


@bp_analytics.get("/analytics/export")
def export_sales():
    """Download this week's or this month's sales as CSV or Excel.
    ---
    tags:
      - Analytics
    parameters:
      - name: period
        in: query
        type: string
        enum: [weekly, monthly]
        default: weekly
      - name: format
        in: query
        type: string
        enum: [csv, xlsx]
        default: csv
    responses:
      200:
        description: Spreadsheet attachment
      400:
        description: Invalid period or format
      500:
        description: Database error
    """
    period = request.args.get("period", "weekly").strip().lower()
    output_format = request.args.get("format", "csv").strip().lower()

    if period not in EXPORT_PERIODS:
        return jsonify({"error": "invalid_period", "valid_periods": list(EXPORT_PERIODS)}), 400
    if output_format not in EXPORT_FORMATS:
        return jsonify({"error": "invalid_format", "valid_formats": list(EXPORT_FORMATS)}), 400

    try:
        sales = Sale.query.order_by(Sale.date.desc()).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch sales for export", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    filename, content, mimetype = build_sales_export(
        sales,
        period,
        local_now(),
        output_format,
        current_app.config.get("WEEK_START_DAY", analytics.SUNDAY),
    )
    current_app.logger.info(f"Exporting {period} sales report as {filename}")

    return send_file(
        io.BytesIO(content),
        mimetype=mimetype,
        as_attachment=True,
        download_name=filename,
    )

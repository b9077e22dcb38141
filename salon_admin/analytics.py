"""Revenue and booking aggregation for the dashboard, analytics and reports views.

Every function here is pure: it takes records that were already fetched
(``Sale``/``Appointment`` models or anything exposing the same attributes),
never touches the database and never mutates its input. Amounts are integer
cents throughout.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta

MONDAY = 0
SUNDAY = 6

PERIODS = ("daily", "weekly", "monthly")


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def sale_day(sale) -> date | None:
    """Calendar day a sale counts towards: its ``date``, else its ``created_at``."""
    if getattr(sale, "date", None) is not None:
        return _as_date(sale.date)
    created_at = getattr(sale, "created_at", None)
    return created_at.date() if created_at is not None else None


def total_revenue(sales: Iterable) -> int:
    return sum(sale.amount_cents for sale in sales)


def period_start(period: str, reference: date | datetime, week_start: int = SUNDAY) -> date:
    """Return the first day of the day/week/month containing ``reference``."""
    day = _as_date(reference)
    if period == "daily":
        return day
    if period == "weekly":
        return day - timedelta(days=(day.weekday() - week_start) % 7)
    if period == "monthly":
        return day.replace(day=1)
    raise ValueError(f"unknown period: {period!r}")


def sales_since(sales: Iterable, start: date) -> list:
    """Sales whose day falls on or after ``start``."""
    result = []
    for sale in sales:
        day = sale_day(sale)
        if day is not None and day >= start:
            result.append(sale)
    return result


def filter_sales_for_period(
    sales: Iterable, period: str, reference: date | datetime, week_start: int = SUNDAY
) -> list:
    return sales_since(sales, period_start(period, reference, week_start))


def period_revenue(
    sales: Sequence, reference: date | datetime, week_start: int = SUNDAY
) -> dict[str, int]:
    """Daily, weekly and monthly totals for the periods containing ``reference``.

    The weekly bucket never starts before the first of the month, so the
    totals always satisfy ``daily <= weekly <= monthly``. The export uses the
    full calendar week through ``filter_sales_for_period`` instead.
    """
    month_start = period_start("monthly", reference, week_start)
    starts = {
        "daily": period_start("daily", reference, week_start),
        "weekly": max(period_start("weekly", reference, week_start), month_start),
        "monthly": month_start,
    }
    return {period: total_revenue(sales_since(sales, starts[period])) for period in PERIODS}


def revenue_by_service(sales: Iterable) -> dict[str, int]:
    """Sum amounts per exact service label; unlabeled sales are skipped."""
    totals: dict[str, int] = {}
    for sale in sales:
        if not sale.service:
            continue
        totals[sale.service] = totals.get(sale.service, 0) + sale.amount_cents
    return totals


def top_services(appointments: Iterable, n: int) -> list[tuple[str, int]]:
    """Most frequently booked service names across all embedded services."""
    if n <= 0:
        return []
    counts: dict[str, int] = {}
    for appointment in appointments:
        for service in appointment.services or []:
            name = service["name"]
            counts[name] = counts.get(name, 0) + 1
    # sorted() is stable, so equal counts keep first-encountered order.
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:n]


def daily_trend(
    sales: Sequence, days: int, reference: date | datetime, label_format: str = "%b %d"
) -> list[tuple[str, int]]:
    """Per-day totals for the ``days`` calendar days ending at ``reference``, oldest first."""
    end = _as_date(reference)
    totals: dict[date, int] = {}
    for sale in sales:
        day = sale_day(sale)
        if day is not None:
            totals[day] = totals.get(day, 0) + sale.amount_cents

    trend = []
    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        trend.append((day.strftime(label_format), totals.get(day, 0)))
    return trend


def appointments_on_date(appointments: Iterable, target: date | datetime) -> list:
    day = _as_date(target)
    return [appointment for appointment in appointments if appointment.date == day]


def sales_on_date(sales: Iterable, target: date | datetime) -> list:
    day = _as_date(target)
    return [sale for sale in sales if sale_day(sale) == day]


def sales_summary(sales: Sequence) -> dict[str, int]:
    total = total_revenue(sales)
    count = len(sales)
    return {
        "count": count,
        "total_cents": total,
        "average_cents": round(total / count) if count else 0,
    }


def search_sales(sales: Iterable, term: str | None = None, staff: str | None = None) -> list:
    """Case-insensitive match on customer name or service label, plus exact staff filter."""
    needle = (term or "").strip().lower()
    result = []
    for sale in sales:
        if needle and needle not in (sale.customer_name or "").lower() \
                and needle not in (sale.service or "").lower():
            continue
        if staff and sale.staff != staff:
            continue
        result.append(sale)
    return result


def average_daily_revenue(sales: Sequence, reference: date | datetime) -> int:
    """Total revenue spread over the days since the oldest sale, inclusive."""
    days = [day for day in (sale_day(sale) for sale in sales) if day is not None]
    if not days:
        return 0
    span = max(1, (_as_date(reference) - min(days)).days + 1)
    return round(total_revenue(sales) / span)


def calculate_growth_rate(previous: int, current: int) -> float:
    """Calculate growth rate percentage."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(((current - previous) / previous) * 100, 1)


def sales_growth(period_totals: dict[str, int]) -> float:
    """Growth of this week against the rest of the month so far."""
    weekly = period_totals["weekly"]
    if weekly <= 0:
        return 0.0
    return calculate_growth_rate(period_totals["monthly"] - weekly, weekly)

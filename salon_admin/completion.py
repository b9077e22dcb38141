"""Turning a finished appointment into a sale.

Completing an appointment inserts one ``Sale`` and deletes the
``Appointment`` it came from. By default both writes go through a single
transaction so either both land or neither does. With
``ATOMIC_COMPLETION`` disabled the sale is committed first and the delete
runs as a second commit; a failure between the two is reported as
``ReconciliationRequiredError`` so the caller can surface it loudly.
"""
from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import Appointment, Sale, local_now


class CompletionError(Exception):
    """Base class for completion failures."""

    code = "completion_failed"

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"error": self.code, "message": self.message}
        if self.cause is not None:
            payload["cause"] = str(self.cause)
        return payload


class InvalidAppointmentError(CompletionError):
    code = "invalid_appointment"


class SaleInsertError(CompletionError):
    code = "sale_insert_failed"


class AppointmentRemovalError(CompletionError):
    code = "appointment_removal_failed"


class ReconciliationRequiredError(CompletionError):
    code = "reconciliation_required"

    def __init__(self, sale_id: int, appointment_id: int, cause: Exception | None = None) -> None:
        super().__init__(
            "sale recorded but appointment not removed; manual reconciliation required",
            cause,
        )
        self.sale_id = sale_id
        self.appointment_id = appointment_id

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["sale_id"] = self.sale_id
        payload["appointment_id"] = self.appointment_id
        return payload


def build_sale(appointment: Appointment, completion_date: date) -> Sale:
    return Sale(
        customer_name=appointment.customer_name,
        service=", ".join(appointment.service_names()),
        amount_cents=appointment.total_price_cents,
        date=completion_date,
        staff=appointment.staff or None,
        appointment_id=appointment.appointment_id,
    )


def _insert_sale(sale: Sale) -> None:
    db.session.add(sale)
    db.session.flush()


def _delete_appointment(appointment: Appointment) -> None:
    db.session.delete(appointment)
    db.session.flush()


def complete_appointment(
    appointment: Appointment,
    completion_date: date | None = None,
    *,
    now: Callable[[], datetime] = local_now,
    atomic: bool = True,
) -> Sale:
    """Record ``appointment`` as a sale dated ``completion_date`` and remove it.

    ``completion_date`` defaults to today's local date, not the booked date,
    so a late completion is logged on the day it actually happened.
    """
    if not appointment.services:
        raise InvalidAppointmentError("appointment has no services")
    if (appointment.total_price_cents or 0) <= 0:
        raise InvalidAppointmentError("appointment total price must be positive")

    appointment_id = appointment.appointment_id
    sale = build_sale(appointment, completion_date or now().date())

    try:
        _insert_sale(sale)
        sale_id = sale.sale_id
        if not atomic:
            db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(
            "Failed to record sale for appointment %s", appointment_id, exc_info=exc
        )
        raise SaleInsertError(f"Failed to create sale: {exc}", exc) from exc

    try:
        _delete_appointment(appointment)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        if atomic:
            current_app.logger.exception(
                "Failed to remove appointment %s; sale rolled back", appointment_id, exc_info=exc
            )
            raise AppointmentRemovalError(f"Failed to delete appointment: {exc}", exc) from exc

        current_app.logger.error(
            "Sale %s recorded but appointment %s was not removed: %s",
            sale_id,
            appointment_id,
            exc,
        )
        raise ReconciliationRequiredError(sale_id, appointment_id, exc) from exc

    current_app.logger.info(
        "Appointment %s completed as sale %s", appointment_id, sale_id
    )
    return sale

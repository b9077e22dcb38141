"""HTTP routes for the salon admin backend."""
from __future__ import annotations

from datetime import date, datetime, time, timezone

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash

from .analytics import sales_summary, search_sales
from .auth import build_token, get_current_user_id, require_login
from .completion import (CompletionError, InvalidAppointmentError,
                         complete_appointment)
from .extensions import db
from .models import Appointment, Sale, Service, User, local_now

bp = Blueprint("api", __name__)
bp.before_request(require_login)


def register_routes(app) -> None:
    from .routes_analytics import bp_analytics

    app.register_blueprint(bp)
    app.register_blueprint(bp_analytics)


def _invalid(message: str, code: str = "invalid_payload"):
    return jsonify({"error": code, "message": message}), 400


def _not_found(message: str):
    return jsonify({"error": "not_found", "message": message}), 404


def _json_object() -> dict | None:
    """Request body as a dict; an empty body reads as ``{}``, any other JSON value as ``None``."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    return payload if isinstance(payload, dict) else None


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_int(value) -> int:
    """Integer from a JSON number or numeric string; booleans and fractions are rejected."""
    if isinstance(value, bool):
        raise TypeError("expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected an integer, got {value!r}")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"expected an integer, got {type(value).__name__}")


def parse_date_arg(name: str, default: date | None = None) -> date | None:
    """Read an optional ``YYYY-MM-DD`` query parameter; raises ValueError if malformed."""
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    return date.fromisoformat(raw)


def _parse_service_ids(value) -> list[int]:
    if not isinstance(value, list):
        raise TypeError("service_ids must be a list")
    return [parse_int(service_id) for service_id in value]


def _snapshot_services(service_ids: list[int], existing=()) -> tuple[list[dict], list[int]]:
    """Resolve service ids into booking snapshots.

    Services already embedded in ``existing`` keep their recorded snapshot;
    everything else is copied from the live catalog. Returns the snapshots in
    request order plus any ids that could not be resolved.
    """
    kept = {s["id"]: s for s in existing if s.get("id") is not None}
    catalog_ids = [service_id for service_id in service_ids if service_id not in kept]
    catalog = {}
    if catalog_ids:
        catalog = {
            service.service_id: service
            for service in Service.query.filter(Service.service_id.in_(catalog_ids)).all()
        }

    snapshots, missing = [], []
    for service_id in service_ids:
        if service_id in kept:
            snapshots.append(kept[service_id])
        elif service_id in catalog:
            snapshots.append(catalog[service_id].snapshot())
        else:
            missing.append(service_id)
    return snapshots, missing


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"status": "ok"}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database.
    ---
    tags:
      - Health
    responses:
      200:
        description: Database connection is ok.
      500:
        description: Database connection failed.
    """
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


# --- BEGIN: Authentication ---

@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Authenticate an admin by email/password and return an access token.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            email:
              type: string
            password:
              type: string
    responses:
      200:
        description: Login successful, returns access token
      400:
        description: Missing email or password
      401:
        description: Invalid credentials
      500:
        description: Server error
    """
    payload = _json_object()
    if payload is None:
        return _invalid("request body must be a JSON object")

    email = _text(payload.get("email")).lower()
    password = payload.get("password") or ""

    if not email or not password or not isinstance(password, str):
        return _invalid("email and password are required")

    try:
        user = User.query.filter_by(email=email).first()
        if user is None or not check_password_hash(user.password_hash, password):
            return jsonify({"error": "unauthorized", "message": "invalid email or password"}), 401

        user.last_login_at = datetime.now(timezone.utc)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update last login timestamp", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    token = build_token({"user_id": user.user_id})
    return jsonify({"token": token, "user": user.to_dict_basic()}), 200


@bp.get("/auth/me")
def current_user() -> tuple[dict[str, object], int]:
    """Return the signed-in admin, used to show the account email."""
    user_id = get_current_user_id()
    if user_id is None:
        return jsonify({"error": "unauthorized", "message": "sign in required"}), 401

    try:
        user = db.session.get(User, user_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to load current user", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    if user is None:
        return _not_found("user not found")
    return jsonify({"user": user.to_dict_basic()}), 200


@bp.post("/auth/logout")
def logout() -> tuple[dict[str, str], int]:
    # Tokens are stateless; the client drops its copy.
    return jsonify({"message": "Signed out"}), 200

# --- END: Authentication ---


# --- BEGIN: Service Catalog ---

@bp.get("/services")
def list_services() -> tuple[dict[str, list[dict[str, object]]], int]:
    """Get the service catalog ordered by name.
    ---
    tags:
      - Services
    responses:
      200:
        description: List of services
      500:
        description: Database error
    """
    try:
        services = Service.query.order_by(Service.name.asc()).all()
        return jsonify({"services": [service.to_dict() for service in services]}), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch services", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/services")
def create_service() -> tuple[dict[str, object], int]:
    """Create a catalog service.
    ---
    tags:
      - Services
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            name:
              type: string
            price_cents:
              type: integer
            duration_minutes:
              type: integer
    responses:
      201:
        description: Service created successfully
      400:
        description: Invalid input
      409:
        description: A service with this name already exists
      500:
        description: Database error
    """
    payload = _json_object()
    if payload is None:
        return _invalid("request body must be a JSON object")

    name = _text(payload.get("name"))
    price_cents = payload.get("price_cents")
    duration_minutes = payload.get("duration_minutes")

    if not name or price_cents is None or duration_minutes is None:
        return _invalid("name, price_cents, and duration_minutes are required")

    try:
        price_cents = parse_int(price_cents)
        duration_minutes = parse_int(duration_minutes)
        if price_cents < 0 or duration_minutes <= 0:
            raise ValueError("Invalid values")
    except (ValueError, TypeError):
        return _invalid("price_cents must be >= 0 and duration_minutes must be > 0")

    try:
        new_service = Service(
            name=name,
            price_cents=price_cents,
            duration_minutes=duration_minutes,
        )
        db.session.add(new_service)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "duplicate_service", "message": f"Service '{name}' already exists"}), 409
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Service created successfully", "service": new_service.to_dict()}), 201


@bp.put("/services/<int:service_id>")
def update_service(service_id: int) -> tuple[dict[str, object], int]:
    """Update a catalog service.

    Existing appointments keep the snapshot taken when they were booked.
    ---
    tags:
      - Services
    responses:
      200:
        description: Service updated successfully
      400:
        description: Invalid input
      404:
        description: Service not found
      409:
        description: A service with this name already exists
      500:
        description: Database error
    """
    payload = _json_object()
    if payload is None:
        return _invalid("request body must be a JSON object")

    try:
        service = db.session.get(Service, service_id)
        if not service:
            return _not_found("Service not found")

        if "name" in payload:
            name = _text(payload.get("name"))
            if not name:
                return _invalid("name must not be empty")
            service.name = name
        if "price_cents" in payload:
            try:
                price_cents = parse_int(payload.get("price_cents"))
                if price_cents < 0:
                    raise ValueError("price_cents must be >= 0")
            except (ValueError, TypeError):
                db.session.rollback()
                return _invalid("price_cents must be a non-negative integer")
            service.price_cents = price_cents
        if "duration_minutes" in payload:
            try:
                duration_minutes = parse_int(payload.get("duration_minutes"))
                if duration_minutes <= 0:
                    raise ValueError("duration_minutes must be > 0")
            except (ValueError, TypeError):
                db.session.rollback()
                return _invalid("duration_minutes must be a positive integer")
            service.duration_minutes = duration_minutes

        db.session.commit()
        return jsonify({"message": "Service updated successfully", "service": service.to_dict()}), 200

    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "duplicate_service", "message": "A service with this name already exists"}), 409
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.delete("/services/<int:service_id>")
def delete_service(service_id: int) -> tuple[dict[str, str], int]:
    """Delete a catalog service.
    ---
    tags:
      - Services
    responses:
      200:
        description: Success
      404:
        description: Not found
      500:
        description: Database error
    """
    try:
        service = db.session.get(Service, service_id)
        if not service:
            return _not_found("Service not found")

        db.session.delete(service)
        db.session.commit()

        return jsonify({"message": "Service deleted successfully"}), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

# --- END: Service Catalog ---


# --- BEGIN: Appointments ---

@bp.get("/appointments")
def list_appointments() -> tuple[dict[str, object], int]:
    """List appointments ordered by date and time.
    ---
    tags:
      - Appointments
    parameters:
      - name: from
        in: query
        type: string
        description: First day to include (YYYY-MM-DD)
      - name: to
        in: query
        type: string
        description: Last day to include (YYYY-MM-DD)
    responses:
      200:
        description: List of appointments
      400:
        description: Invalid date
      500:
        description: Database error
    """
    try:
        date_from = parse_date_arg("from")
        date_to = parse_date_arg("to")
    except ValueError:
        current_app.logger.warning("Rejected appointment date range: %s", dict(request.args))
        return _invalid("Invalid date format, use YYYY-MM-DD", "invalid_parameters")

    try:
        query = Appointment.query
        if date_from:
            query = query.filter(Appointment.date >= date_from)
        if date_to:
            query = query.filter(Appointment.date <= date_to)

        appointments = query.order_by(Appointment.date.asc(), Appointment.time.asc()).all()
        return jsonify({"appointments": [appt.to_dict() for appt in appointments]}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch appointments", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/appointments/<int:appointment_id>")
def get_appointment(appointment_id: int) -> tuple[dict[str, object], int]:
    try:
        appointment = db.session.get(Appointment, appointment_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch appointment", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    if not appointment:
        return _not_found("Appointment not found")
    return jsonify({"appointment": appointment.to_dict()}), 200


@bp.post("/appointments")
def create_appointment() -> tuple[dict[str, object], int]:
    """Book an appointment for one or more catalog services.
    ---
    tags:
      - Appointments
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            customer_name:
              type: string
            phone_number:
              type: string
            staff:
              type: string
            date:
              type: string
              example: "2024-03-01"
            time:
              type: string
              example: "14:30"
            service_ids:
              type: array
              items:
                type: integer
    responses:
      201:
        description: Appointment created
      400:
        description: Invalid input
      500:
        description: Database error
    """
    payload = _json_object()
    if payload is None:
        return _invalid("request body must be a JSON object")

    customer_name = _text(payload.get("customer_name"))
    phone_number = _text(payload.get("phone_number")) or None
    staff = _text(payload.get("staff")) or None

    if not customer_name or not payload.get("date") or not payload.get("time") \
            or not payload.get("service_ids"):
        return _invalid("customer_name, service_ids, date and time are required")

    try:
        appointment_date = date.fromisoformat(payload["date"])
        appointment_time = time.fromisoformat(payload["time"])
        service_ids = _parse_service_ids(payload["service_ids"])
    except (ValueError, TypeError):
        return _invalid("date must be YYYY-MM-DD, time HH:MM and service_ids a list of ids")

    try:
        snapshots, missing = _snapshot_services(service_ids)
        if missing:
            return _invalid(f"Unknown service ids: {missing}")

        appointment = Appointment(
            customer_name=customer_name,
            phone_number=phone_number,
            staff=staff,
            date=appointment_date,
            time=appointment_time,
        )
        appointment.set_services(snapshots)
        db.session.add(appointment)
        db.session.commit()

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create appointment", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Appointment created successfully", "appointment": appointment.to_dict()}), 201


@bp.put("/appointments/<int:appointment_id>")
def update_appointment(appointment_id: int) -> tuple[dict[str, object], int]:
    """Edit customer, staff, date, time or the service list of an appointment.

    Totals are always recomputed from the resulting service list.
    """
    payload = _json_object()
    if payload is None:
        return _invalid("request body must be a JSON object")

    try:
        appointment = db.session.get(Appointment, appointment_id)
        if not appointment:
            return _not_found("Appointment not found")

        if "customer_name" in payload:
            customer_name = _text(payload.get("customer_name"))
            if not customer_name:
                return _invalid("customer_name must not be empty")
            appointment.customer_name = customer_name
        if "phone_number" in payload:
            appointment.phone_number = _text(payload.get("phone_number")) or None
        if "staff" in payload:
            appointment.staff = _text(payload.get("staff")) or None

        try:
            if "date" in payload:
                appointment.date = date.fromisoformat(payload["date"])
            if "time" in payload:
                appointment.time = time.fromisoformat(payload["time"])
            service_ids = _parse_service_ids(payload["service_ids"]) if "service_ids" in payload else None
        except (ValueError, TypeError):
            db.session.rollback()
            return _invalid("date must be YYYY-MM-DD, time HH:MM and service_ids a list of ids")

        if service_ids is not None:
            if not service_ids:
                db.session.rollback()
                return _invalid("at least one service is required")
            snapshots, missing = _snapshot_services(service_ids, existing=appointment.services or [])
            if missing:
                db.session.rollback()
                return _invalid(f"Unknown service ids: {missing}")
            appointment.set_services(snapshots)

        db.session.commit()
        return jsonify({"message": "Appointment updated successfully", "appointment": appointment.to_dict()}), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update appointment", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.delete("/appointments/<int:appointment_id>")
def delete_appointment(appointment_id: int) -> tuple[dict[str, object], int]:
    """Remove an appointment without recording a sale."""
    try:
        appointment = db.session.get(Appointment, appointment_id)
        if not appointment:
            return _not_found("Appointment not found")

        db.session.delete(appointment)
        db.session.commit()
        return jsonify({"message": "Appointment deleted successfully"}), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete appointment", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/appointments/<int:appointment_id>/complete")
def complete_appointment_route(appointment_id: int) -> tuple[dict[str, object], int]:
    """Mark an appointment as done: record it as a sale and remove it.
    ---
    tags:
      - Appointments
    parameters:
      - name: body
        in: body
        schema:
          type: object
          properties:
            completion_date:
              type: string
              description: Day to log the sale on (defaults to today)
    responses:
      201:
        description: Sale recorded and appointment removed
      400:
        description: Invalid completion date or appointment without services
      404:
        description: Appointment not found
      500:
        description: Sale could not be recorded, or was recorded but the appointment remains
    """
    payload = _json_object()
    if payload is None:
        return _invalid("request body must be a JSON object")

    try:
        completion_date = date.fromisoformat(payload["completion_date"]) \
            if payload.get("completion_date") else local_now().date()
    except (ValueError, TypeError):
        return _invalid("completion_date must be YYYY-MM-DD")

    try:
        appointment = db.session.get(Appointment, appointment_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch appointment", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    if not appointment:
        return _not_found("Appointment not found")

    try:
        sale = complete_appointment(
            appointment,
            completion_date,
            atomic=current_app.config.get("ATOMIC_COMPLETION", True),
        )
    except InvalidAppointmentError as exc:
        return jsonify(exc.to_dict()), 400
    except CompletionError as exc:
        return jsonify(exc.to_dict()), 500

    return jsonify({"message": "Appointment marked as done", "sale": sale.to_dict()}), 201

# --- END: Appointments ---


# --- BEGIN: Sales ---

@bp.get("/sales")
def list_sales() -> tuple[dict[str, object], int]:
    """List one day's sales, newest first, with search and staff filters.
    ---
    tags:
      - Sales
    parameters:
      - name: date
        in: query
        type: string
        description: Day to show (YYYY-MM-DD, defaults to today)
      - name: search
        in: query
        type: string
        description: Matches customer name or service label
      - name: staff
        in: query
        type: string
    responses:
      200:
        description: Sales with count, total and average
      400:
        description: Invalid date
      500:
        description: Database error
    """
    try:
        day = parse_date_arg("date", local_now().date())
    except ValueError:
        return _invalid("Invalid date format, use YYYY-MM-DD", "invalid_parameters")

    try:
        day_sales = Sale.query.filter(Sale.date == day).order_by(Sale.created_at.desc()).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch sales", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    filtered = search_sales(day_sales, request.args.get("search"), request.args.get("staff"))

    return jsonify({
        "date": day.isoformat(),
        "sales": [sale.to_dict() for sale in filtered],
        "summary": sales_summary(filtered),
        "staff_options": sorted({sale.staff for sale in day_sales if sale.staff}),
    }), 200


@bp.post("/sales")
def create_sale() -> tuple[dict[str, object], int]:
    """Record a walk-in sale that was not booked as an appointment.
    ---
    tags:
      - Sales
    responses:
      201:
        description: Sale recorded
      400:
        description: Invalid input
      500:
        description: Database error
    """
    payload = _json_object()
    if payload is None:
        return _invalid("request body must be a JSON object")

    customer_name = _text(payload.get("customer_name"))
    service = _text(payload.get("service"))
    staff = _text(payload.get("staff")) or None
    amount_cents = payload.get("amount_cents")

    if not customer_name or not service or amount_cents is None:
        return _invalid("customer_name, service and amount_cents are required")

    try:
        amount_cents = parse_int(amount_cents)
        if amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")
        sale_date = date.fromisoformat(payload["date"]) if payload.get("date") else local_now().date()
    except (ValueError, TypeError):
        return _invalid("amount_cents must be a non-negative integer and date YYYY-MM-DD")

    try:
        sale = Sale(
            customer_name=customer_name,
            service=service,
            amount_cents=amount_cents,
            date=sale_date,
            staff=staff,
        )
        db.session.add(sale)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to record sale", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Sale recorded successfully", "sale": sale.to_dict()}), 201

# --- END: Sales ---

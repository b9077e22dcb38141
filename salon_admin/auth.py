"""Bearer-token helpers for gating dashboard endpoints."""
from __future__ import annotations

from flask import current_app, jsonify, request
from itsdangerous import BadSignature, URLSafeTimedSerializer

# Endpoints reachable without signing in.
PUBLIC_ENDPOINTS = {"api.health_check", "api.database_health", "api.login"}


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt="auth-token")


def build_token(payload: dict[str, object]) -> str:
    return _serializer().dumps(payload)


def get_current_user_id() -> int | None:
    """Extract and validate user_id from the Authorization header token.

    Returns the user_id if the token is valid, None if missing, tampered
    with or expired.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return None

    token = auth_header[7:]  # Remove "Bearer " prefix

    try:
        payload = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE"])
    except BadSignature:
        return None
    return payload.get("user_id")


def require_login():
    """``before_request`` hook rejecting anonymous calls when login is enforced."""
    if not current_app.config.get("LOGIN_REQUIRED", True):
        return None
    if request.method == "OPTIONS" or request.endpoint in PUBLIC_ENDPOINTS:
        return None
    if get_current_user_id() is None:
        return jsonify({"error": "unauthorized", "message": "sign in required"}), 401
    return None

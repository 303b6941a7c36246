"""
API: Auth Routes

Blueprint Flask du service d'authentification. Les routes protégées
s'appuient sur le contexte posé par ServiceAuthFilter.
"""

from flask import Blueprint, current_app, jsonify, request

from ..enforcement.interfaces import AUTHORIZATION_HEADER
from ..enforcement.decision import AuthorizationDecider
from ..enforcement.service_filter import current_auth
from ..session.session_service import SessionService
from .schemas import (
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    envelope,
)


EXTENSION_KEY = "tradeauth"

bp_auth = Blueprint("auth", __name__, url_prefix="/auth")
bp_health = Blueprint("actuator", __name__, url_prefix="/actuator")


def _sessions() -> SessionService:
    return current_app.extensions[EXTENSION_KEY].session_service


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


@bp_auth.post("/register")
def register():
    payload = RegisterRequest.model_validate(_json_body())
    result = _sessions().register(
        payload.email,
        payload.password,
        device_info=payload.device_info,
        ip_address=request.remote_addr,
    )
    return jsonify(envelope(result.to_dict(), "User registered successfully")), 201


@bp_auth.post("/login")
def login():
    payload = LoginRequest.model_validate(_json_body())
    result = _sessions().login(
        payload.email,
        payload.password,
        device_info=payload.device_info,
        ip_address=request.remote_addr,
    )
    message = "2FA verification required" if result.requires_2fa else "Login successful"
    return jsonify(envelope(result.to_dict(), message)), 200


@bp_auth.post("/refresh")
def refresh():
    payload = RefreshRequest.model_validate(_json_body())
    result = _sessions().refresh(payload.refresh_token)
    return jsonify(envelope(result.to_dict(), "Token refreshed successfully")), 200


@bp_auth.post("/logout")
def logout():
    current_auth()
    payload = LogoutRequest.model_validate(_json_body())
    token = AuthorizationDecider.extract_bearer(request.headers.get(AUTHORIZATION_HEADER))
    _sessions().logout(token, refresh_token=payload.refresh_token)
    return jsonify(envelope(None, "Logout successful")), 200


@bp_auth.post("/logout-all")
def logout_all():
    auth = current_auth()
    revoked = _sessions().logout_all_devices(auth.user_id)
    return jsonify(envelope({"revokedSessions": revoked}, "Logged out from all devices")), 200


@bp_auth.get("/me")
def me():
    auth = current_auth()
    info = _sessions().get_user_info(auth.user_id)
    return jsonify(envelope(info.to_dict(), "User info retrieved")), 200


@bp_health.get("/health")
def health():
    return jsonify({"status": "UP"}), 200


@bp_health.get("/info")
def info():
    container = current_app.extensions[EXTENSION_KEY]
    return jsonify({"service": container.settings.service_name}), 200

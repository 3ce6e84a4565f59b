"""Auth blueprint — /api/auth/*

Signup, login, logout and the current-user probe. A successful signup or
login issues a session: the token is set as an HttpOnly cookie and also
returned in the body for bearer-token clients.
"""

from datetime import timedelta

from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required

from taskboard.blueprints import json_body, request_token
from taskboard.extensions import db, limiter
from taskboard.services import unit_of_work
from taskboard.services.aggregate import user_dict
from taskboard.services.session_service import SessionGate
from taskboard.services.user_service import AccountService

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _gate():
    days = current_app.config["SESSION_LIFETIME_DAYS"]
    return SessionGate(db.session, lifetime=timedelta(days=days))


# ──────────────────────────────────────────────
# POST /api/auth/signup
# ──────────────────────────────────────────────

@auth_bp.route("/signup", methods=["POST"])
@limiter.limit("10 per minute")
def signup():
    data = json_body()
    with unit_of_work(db.session):
        user = AccountService(db.session).create_user(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
        )
        auth_session = _gate().issue_session(user.id)
        token, expires_at = auth_session.token, auth_session.expires_at
    return _session_response(user, token, expires_at, 201)


# ──────────────────────────────────────────────
# POST /api/auth/login
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("15 per minute")
def login():
    data = json_body()
    with unit_of_work(db.session):
        user = AccountService(db.session).verify_credentials(
            data.get("email"), data.get("password")
        )
        auth_session = _gate().issue_session(user.id)
        token, expires_at = auth_session.token, auth_session.expires_at
    return _session_response(user, token, expires_at, 200)


# ──────────────────────────────────────────────
# POST /api/auth/logout
# ──────────────────────────────────────────────

@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    with unit_of_work(db.session):
        _gate().revoke_session(request_token())
    response = current_app.response_class(status=204)
    response.delete_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        path="/",
        domain=current_app.config["AUTH_COOKIE_DOMAIN"],
    )
    return response


# ──────────────────────────────────────────────
# GET /api/auth/me
# ──────────────────────────────────────────────

@auth_bp.route("/me")
@login_required
def me():
    return jsonify(user_dict(current_user))


# ─── Helpers ─────────────────────────────────────────────────────

def _session_response(user, token, expires_at, status):
    config = current_app.config
    body = user_dict(user)
    body["session"] = {"token": token, "expires_at": expires_at.isoformat()}
    response = jsonify(body)
    response.status_code = status
    response.set_cookie(
        config["AUTH_COOKIE_NAME"],
        token,
        max_age=config["SESSION_LIFETIME_DAYS"] * 24 * 60 * 60,
        path="/",
        domain=config["AUTH_COOKIE_DOMAIN"],
        secure=config["AUTH_COOKIE_SECURE"],
        httponly=True,
        samesite="Lax",
    )
    return response

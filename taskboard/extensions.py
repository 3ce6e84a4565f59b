"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # No global limit — we apply per-route
    storage_uri="memory://",
)


@login_manager.request_loader
def load_user_from_request(request):
    """Resolve the bearer token (or session cookie) to a User.

    Runs once per request, the first time current_user is touched, so
    every request re-verifies its session. Imports lazily to avoid
    circular deps. Returns None for any unauthenticated request so
    Flask-Login falls back to an anonymous user.
    """
    from taskboard.blueprints import request_token
    from taskboard.errors import Unauthenticated
    from taskboard.services.session_service import SessionGate

    token = request_token()
    if not token:
        return None

    try:
        return SessionGate(db.session).authenticate(token)
    except Unauthenticated:
        return None


@login_manager.unauthorized_handler
def unauthorized():
    """JSON API: never redirect to a login page, raise a 401 instead."""
    from taskboard.errors import Unauthenticated

    raise Unauthenticated()

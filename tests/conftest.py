"""Shared test fixtures for the task board test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, rate limits off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- users: two independent users (alice, bob) with passwords set
- store / gate / assembler: core services bound to the test session
- auth_headers: factory returning Bearer headers for a user
"""

import pytest
from flask import g
from flask.testing import FlaskClient
from werkzeug.security import generate_password_hash

from taskboard import create_app
from taskboard.extensions import db as _db
from taskboard.models.user import User
from taskboard.services.aggregate import BoardAggregateAssembler
from taskboard.services.board_service import BoardStore
from taskboard.services.session_service import SessionGate

PASSWORD = "password123"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


class _FreshUserClient(FlaskClient):
    """Test client that re-runs authentication on every request.

    Requests share the app context pushed by db_session, so Flask-Login's
    cached user in ``g`` would otherwise leak from one request to the next.
    """

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


@pytest.fixture
def client(app):
    """Flask test client."""
    app.test_client_class = _FreshUserClient
    return app.test_client()


@pytest.fixture
def users(db_session):
    """Two users that share nothing. Returns a dict of plain ids and emails."""
    alice = User(
        email="alice@example.com",
        password_hash=generate_password_hash(PASSWORD),
        name="Alice",
    )
    bob = User(
        email="bob@example.com",
        password_hash=generate_password_hash(PASSWORD),
        name="Bob",
    )
    db_session.add_all([alice, bob])
    db_session.commit()

    # Plain ids so tests don't depend on attached instances.
    return {
        "alice_id": alice.id,
        "alice_email": alice.email,
        "bob_id": bob.id,
        "bob_email": bob.email,
    }


@pytest.fixture
def store(db_session):
    return BoardStore(db_session)


@pytest.fixture
def gate(db_session):
    return SessionGate(db_session)


@pytest.fixture
def assembler(db_session):
    return BoardAggregateAssembler(db_session)


@pytest.fixture
def auth_headers(db_session):
    """Return a function that issues a session and builds Bearer headers."""

    def _headers(user_id):
        auth_session = SessionGate(db_session).issue_session(user_id)
        token = auth_session.token
        db_session.commit()
        return {"Authorization": f"Bearer {token}"}

    return _headers

"""Tests for the session gate.

Covers:
- Token format (fixed length, hex, unique)
- Issue + authenticate round trip, 30-day expiry
- Expired, unknown, empty and revoked tokens never authenticate
- Orphaned sessions (user row gone) are Unauthenticated, not a crash
- Purging expired rows (service + CLI command)
"""

import string
from datetime import datetime, timedelta, timezone

import pytest

from taskboard.errors import Unauthenticated
from taskboard.models.session import AuthSession
from taskboard.models.user import User
from taskboard.services.session_service import SessionGate, generate_token


def _add_session(db_session, user_id, expires_in):
    auth_session = AuthSession(
        token=generate_token(),
        user_id=user_id,
        expires_at=datetime.now(timezone.utc) + expires_in,
    )
    db_session.add(auth_session)
    db_session.commit()
    return auth_session.token


class TestTokens:

    def test_token_is_64_hex_chars(self):
        token = generate_token()
        assert len(token) == 64
        assert set(token) <= set(string.hexdigits.lower())

    def test_tokens_are_unique(self):
        tokens = {generate_token() for _ in range(200)}
        assert len(tokens) == 200


class TestAuthenticate:

    def test_issue_then_authenticate(self, gate, db_session, users):
        auth_session = gate.issue_session(users["alice_id"])
        token = auth_session.token
        db_session.commit()

        user = gate.authenticate(token)
        assert user.id == users["alice_id"]

    def test_issue_sets_thirty_day_expiry(self, gate, users):
        before = datetime.now(timezone.utc)
        auth_session = gate.issue_session(users["alice_id"])
        delta = auth_session.expires_at - before
        assert timedelta(days=29, hours=23) < delta <= timedelta(days=30, seconds=5)

    def test_custom_lifetime(self, db_session, users):
        gate = SessionGate(db_session, lifetime=timedelta(hours=1))
        before = datetime.now(timezone.utc)
        auth_session = gate.issue_session(users["alice_id"])
        assert auth_session.expires_at - before <= timedelta(hours=1, seconds=5)

    def test_each_login_gets_a_new_token(self, gate, db_session, users):
        first = gate.issue_session(users["alice_id"]).token
        second = gate.issue_session(users["alice_id"]).token
        db_session.commit()
        assert first != second
        assert gate.authenticate(first).id == users["alice_id"]
        assert gate.authenticate(second).id == users["alice_id"]

    def test_expired_session_never_authenticates(self, gate, db_session, users):
        token = _add_session(db_session, users["alice_id"], timedelta(seconds=-1))
        with pytest.raises(Unauthenticated):
            gate.authenticate(token)

    def test_long_expired_session(self, gate, db_session, users):
        token = _add_session(db_session, users["alice_id"], timedelta(days=-31))
        with pytest.raises(Unauthenticated):
            gate.authenticate(token)

    def test_unknown_token(self, gate, users):
        with pytest.raises(Unauthenticated):
            gate.authenticate(generate_token())

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, gate, token):
        with pytest.raises(Unauthenticated):
            gate.authenticate(token)

    def test_orphaned_session_is_unauthenticated(self, gate, db_session, users):
        token = _add_session(db_session, users["alice_id"], timedelta(days=1))
        # Drop the user row without the ORM cascade, leaving the session behind.
        db_session.query(User).filter(User.id == users["alice_id"]).delete(
            synchronize_session=False
        )
        db_session.commit()
        assert db_session.get(AuthSession, token) is not None

        with pytest.raises(Unauthenticated):
            gate.authenticate(token)


class TestRevokeAndPurge:

    def test_revoked_session_stops_working(self, gate, db_session, users):
        token = _add_session(db_session, users["alice_id"], timedelta(days=1))
        assert gate.revoke_session(token) == 1
        db_session.commit()
        with pytest.raises(Unauthenticated):
            gate.authenticate(token)

    def test_revoke_unknown_token_is_noop(self, gate):
        assert gate.revoke_session(generate_token()) == 0
        assert gate.revoke_session(None) == 0

    def test_purge_removes_only_expired(self, gate, db_session, users):
        live = _add_session(db_session, users["alice_id"], timedelta(days=1))
        _add_session(db_session, users["alice_id"], timedelta(days=-1))
        _add_session(db_session, users["bob_id"], timedelta(hours=-2))

        assert gate.purge_expired_sessions() == 2
        db_session.commit()

        remaining = [s.token for s in AuthSession.query.all()]
        assert remaining == [live]

    def test_purge_cli_command(self, app, db_session, users):
        _add_session(db_session, users["alice_id"], timedelta(days=-1))
        runner = app.test_cli_runner()
        result = runner.invoke(args=["purge-sessions"])
        assert result.exit_code == 0
        assert "Deleted 1 expired session(s)." in result.output

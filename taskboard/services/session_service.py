"""Session gate — token issue, authentication, revocation, cleanup.

Tokens are 32 bytes from ``secrets`` encoded as 64 hex characters. A token
authenticates its user until ``expires_at`` passes or the row is deleted.

Functions flush but do NOT commit — the caller commits.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from taskboard.errors import Unauthenticated
from taskboard.models.session import AuthSession
from taskboard.models.user import User

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
DEFAULT_LIFETIME = timedelta(days=30)


def generate_token():
    """Return a fresh 64-char hex token (256 bits of entropy)."""
    return secrets.token_hex(TOKEN_BYTES)


class SessionGate:
    """Maps opaque bearer tokens to users."""

    def __init__(self, session, lifetime=None):
        self.session = session
        self.lifetime = lifetime or DEFAULT_LIFETIME

    def authenticate(self, token):
        """Resolve a token to its User.

        The expiry filter and the user join run as one query, so a session
        can't expire (or lose its user) between the check and the lookup.

        Raises:
            Unauthenticated: token missing, unknown, expired, or orphaned.
        """
        if not token:
            raise Unauthenticated()

        now = datetime.now(timezone.utc)
        user = (
            self.session.query(User)
            .join(AuthSession, AuthSession.user_id == User.id)
            .filter(AuthSession.token == token, AuthSession.expires_at > now)
            .first()
        )
        if user is None:
            raise Unauthenticated("invalid session")
        return user

    def issue_session(self, user_id):
        """Create a session row for user_id and return it."""
        now = datetime.now(timezone.utc)
        auth_session = AuthSession(
            token=generate_token(),
            user_id=user_id,
            expires_at=now + self.lifetime,
        )
        self.session.add(auth_session)
        self.session.flush()
        logger.info(f"Issued session for user {user_id}")
        return auth_session

    def revoke_session(self, token):
        """Delete the session for token. Unknown tokens are a no-op."""
        if not token:
            return 0
        deleted = (
            self.session.query(AuthSession)
            .filter(AuthSession.token == token)
            .delete(synchronize_session=False)
        )
        if deleted:
            logger.info("Revoked session")
        return deleted

    def purge_expired_sessions(self, now=None):
        """Delete every session whose expiry has passed. Returns the count."""
        now = now or datetime.now(timezone.utc)
        deleted = (
            self.session.query(AuthSession)
            .filter(AuthSession.expires_at <= now)
            .delete(synchronize_session=False)
        )
        logger.info(f"Purged {deleted} expired sessions")
        return deleted

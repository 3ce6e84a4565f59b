"""Account service — signup, credential check, OAuth account linking.

Passwords are hashed with Werkzeug. OAuth-only users have no password hash
and can never log in with a password.

Functions flush but do NOT commit — the caller commits.
"""

import logging

from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from taskboard.errors import Conflict, NotFound, Unauthenticated, ValidationFailed
from taskboard.models.user import OAuthAccount, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
SUPPORTED_OAUTH_PROVIDERS = ("google", "microsoft")


def normalize_email(email):
    return (email or "").lower().strip()


class AccountService:

    def __init__(self, session):
        self.session = session

    def get_user(self, user_id):
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFound("user")
        return user

    def get_user_by_email(self, email):
        return (
            self.session.query(User)
            .filter(User.email == normalize_email(email))
            .first()
        )

    def create_user(self, email, password, name=None):
        """Create a password-based user.

        Args:
            email: Login email; stored lower-cased.
            password: Plain text, at least MIN_PASSWORD_LENGTH characters.
            name: Display name. Defaults to the email.

        Returns:
            The new User (flushed, not committed).

        Raises:
            ValidationFailed: missing email/password or short password.
            Conflict: the email is already registered.
        """
        email = normalize_email(email)
        if not email or not password:
            raise ValidationFailed("email and password required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(
                f"password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if self.get_user_by_email(email) is not None:
            raise Conflict("email already registered")

        user = User(
            email=email,
            password_hash=generate_password_hash(password),
            name=(name or "").strip() or email,
        )
        return self._insert_user(user)

    def verify_credentials(self, email, password):
        """Return the User for a valid email/password pair.

        Unknown email, wrong password and password-less (OAuth-only)
        accounts all fail the same way.
        """
        user = self.get_user_by_email(email)
        if (
            user is None
            or not user.has_password
            or not check_password_hash(user.password_hash, password or "")
        ):
            raise Unauthenticated("invalid credentials")
        return user

    def find_or_create_oauth_user(self, provider, provider_id, email, name=None):
        """Resolve an external identity to a local User.

        Order: existing (provider, provider_id) link, then an existing user
        with the same email (linked now), then a brand-new password-less
        user with its link.
        """
        if provider not in SUPPORTED_OAUTH_PROVIDERS:
            raise ValidationFailed(f"unsupported provider: {provider}")
        email = normalize_email(email)
        if not provider_id or not email:
            raise ValidationFailed(f"no email from {provider}")

        account = (
            self.session.query(OAuthAccount)
            .filter_by(provider=provider, provider_id=str(provider_id))
            .first()
        )
        if account is not None:
            return account.user

        user = self.get_user_by_email(email)
        if user is None:
            user = self._insert_user(
                User(email=email, password_hash=None, name=name or email)
            )
            logger.info(f"Created {provider} user {user.id}")

        self.session.add(
            OAuthAccount(
                user_id=user.id, provider=provider, provider_id=str(provider_id)
            )
        )
        try:
            self.session.flush()
        except IntegrityError:
            raise Conflict("account already linked")
        logger.info(f"Linked {provider} account to user {user.id}")
        return user

    def _insert_user(self, user):
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email.
            raise Conflict("email already registered")
        return user

"""User models.

- User: credentials and profile. Flask-Login integration via UserMixin.
- OAuthAccount: links an external identity provider account to a User.
"""

import uuid

from flask_login import UserMixin

from taskboard.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(
        db.String(255), nullable=True
    )  # null for OAuth-only accounts
    name = db.Column(db.String(255), nullable=False, default="")
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    boards = db.relationship(
        "Board",
        back_populates="owner",
        cascade="all, delete-orphan",
        order_by="Board.created_at.desc()",
    )
    sessions = db.relationship(
        "AuthSession",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )
    oauth_accounts = db.relationship(
        "OAuthAccount",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    @property
    def has_password(self):
        return bool(self.password_hash)

    def __repr__(self):
        return f"<User {self.email}>"


class OAuthAccount(db.Model):
    __tablename__ = "oauth_accounts"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    provider = db.Column(db.String(50), nullable=False)  # google | microsoft
    provider_id = db.Column(db.String(255), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.UniqueConstraint(
            "provider", "provider_id", name="uq_oauth_provider_account"
        ),
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="oauth_accounts")

    def __repr__(self):
        return f"<OAuthAccount {self.provider}:{self.provider_id}>"

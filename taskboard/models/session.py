"""Auth session model.

One row per issued bearer token. Named AuthSession to keep it apart from
the SQLAlchemy session used everywhere else.
"""

from taskboard.extensions import db


class AuthSession(db.Model):
    __tablename__ = "sessions"

    token = db.Column(
        db.String(64), primary_key=True
    )  # 32 random bytes, hex encoded
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at = db.Column(
        db.DateTime(timezone=True), nullable=False, index=True
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<AuthSession token={self.token[:8]}... user={self.user_id}>"

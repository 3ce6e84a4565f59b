"""Board models.

A Board owns ordered columns; a column owns ordered cards. Positions are
zero-based and dense among siblings. They are maintained by
taskboard.services.board_service, never by the models themselves.
"""

import uuid

from taskboard.extensions import db

DEFAULT_COLUMN_NAMES = ("Todo", "Doing", "Done")


class Board(db.Model):
    __tablename__ = "boards"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    owner = db.relationship("User", back_populates="boards")
    columns = db.relationship(
        "BoardColumn",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="BoardColumn.position",
    )

    def __repr__(self):
        return f"<Board {self.name}>"


class BoardColumn(db.Model):
    __tablename__ = "board_columns"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    board_id = db.Column(
        db.String(36),
        db.ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = db.Column(db.String(255), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # No unique constraint on position: bulk shifts pass through duplicate
    # values mid-statement.
    __table_args__ = (
        db.Index("ix_board_columns_board_position", "board_id", "position"),
    )

    # --- Relationships ---
    board = db.relationship("Board", back_populates="columns")
    cards = db.relationship(
        "Card",
        back_populates="column",
        cascade="all, delete-orphan",
        order_by="Card.position",
    )

    def __repr__(self):
        return f"<BoardColumn {self.name} @{self.position}>"


class Card(db.Model):
    __tablename__ = "cards"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    column_id = db.Column(
        db.String(36),
        db.ForeignKey("board_columns.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.Index("ix_cards_column_position", "column_id", "position"),
    )

    # --- Relationships ---
    column = db.relationship("BoardColumn", back_populates="cards")

    def __repr__(self):
        return f"<Card {self.title[:40]} @{self.position}>"

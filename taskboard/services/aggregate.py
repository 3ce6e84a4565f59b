"""Board aggregate — the single read path for a full board.

Also holds the JSON-safe serializers used by every API response, so that
boards, columns and cards always have the same shape wherever they appear.
A column always carries a ``cards`` list (possibly empty), never null.
"""

from sqlalchemy.orm import selectinload

from taskboard.models.board import BoardColumn
from taskboard.services.ownership import OwnershipResolver


def _iso(value):
    return value.isoformat() if value else None


def board_dict(board):
    """Serialize a Board without its columns (list view)."""
    return {
        "id": board.id,
        "user_id": board.user_id,
        "name": board.name,
        "created_at": _iso(board.created_at),
    }


def column_dict(column):
    """Serialize a BoardColumn with its cards in position order."""
    return {
        "id": column.id,
        "board_id": column.board_id,
        "name": column.name,
        "position": column.position,
        "created_at": _iso(column.created_at),
        "cards": [card_dict(c) for c in column.cards],
    }


def card_dict(card):
    return {
        "id": card.id,
        "column_id": card.column_id,
        "title": card.title,
        "description": card.description or "",
        "position": card.position,
        "created_at": _iso(card.created_at),
    }


def user_dict(user):
    """Public view of a User. Never includes the password hash."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "created_at": _iso(user.created_at),
    }


class BoardAggregateAssembler:

    def __init__(self, session):
        self.session = session
        self.ownership = OwnershipResolver(session)

    def get_board_aggregate(self, board_id, user_id):
        """Return ``{board..., columns: [{column..., cards: [...]}]}``.

        Columns and cards are ordered by stored position, ascending.

        Raises:
            NotFound: the board is missing or not owned by user_id.
        """
        board = self.ownership.authorize_board(board_id, user_id)
        columns = (
            self.session.query(BoardColumn)
            .options(selectinload(BoardColumn.cards))
            .filter(BoardColumn.board_id == board.id)
            .order_by(BoardColumn.position, BoardColumn.created_at)
            .all()
        )
        result = board_dict(board)
        result["columns"] = [column_dict(col) for col in columns]
        return result

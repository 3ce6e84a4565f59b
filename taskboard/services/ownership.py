"""Ownership resolver.

Each check is one query joining the target down to ``boards.user_id``.
There are only two outcomes: the entity exists and is owned by the caller,
or NotFound. "Exists but not yours" is indistinguishable from "missing".

Nothing is cached; every call re-reads current state.
"""

from taskboard.errors import NotFound
from taskboard.models.board import Board, BoardColumn, Card


class OwnershipResolver:

    def __init__(self, session):
        self.session = session

    # --- Boards ---

    def authorize_board(self, board_id, user_id, lock=False):
        """Return the Board if user_id owns it. lock=True takes a row lock."""
        query = self.session.query(Board).filter(
            Board.id == board_id, Board.user_id == user_id
        )
        if lock:
            query = query.with_for_update()
        board = query.first()
        if board is None:
            raise NotFound("board")
        return board

    # --- Columns ---

    def resolve_column(self, column_id, user_id, lock=False):
        """Return the BoardColumn if its board is owned by user_id."""
        query = (
            self.session.query(BoardColumn)
            .join(Board, Board.id == BoardColumn.board_id)
            .filter(BoardColumn.id == column_id, Board.user_id == user_id)
        )
        if lock:
            query = query.with_for_update(of=BoardColumn)
        column = query.first()
        if column is None:
            raise NotFound("column")
        return column

    def authorize_column(self, column_id, user_id):
        """Return the parent board id of an owned column."""
        return self.resolve_column(column_id, user_id).board_id

    # --- Cards ---

    def resolve_card(self, card_id, user_id):
        """Return the Card if its column's board is owned by user_id."""
        card = (
            self.session.query(Card)
            .join(BoardColumn, BoardColumn.id == Card.column_id)
            .join(Board, Board.id == BoardColumn.board_id)
            .filter(Card.id == card_id, Board.user_id == user_id)
            .first()
        )
        if card is None:
            raise NotFound("card")
        return card

    def authorize_card(self, card_id, user_id):
        self.resolve_card(card_id, user_id)

"""Board store — CRUD and transactional reordering for boards, columns, cards.

Position rules:
- Create appends at ``max(position) + 1`` (or 0 for an empty parent).
- Move closes the gap at the old slot, opens one at the target, then
  writes the entity there. Both shifts are bulk conditional UPDATEs run in
  the same transaction as the final write.
- Delete closes the gap left among the remaining siblings, so positions
  stay dense (``0..n-1``) after every operation.
- The one exception is ``update_column(position=...)``: a raw overwrite
  that does not touch siblings. Prefer ``move_column``.

Concurrency: operations that read-then-shift positions lock the parent row
first (the board for columns, the column(s) for cards) with
SELECT ... FOR UPDATE. Two moves into the same column therefore serialize
instead of both reading the pre-shift state. Locks are always taken top
down (board, then columns in id order, then card rows), including before a
delete cascades, so a delete and a move can't wait on each other.

Only PostgreSQL serializes this way. SQLite ignores the lock clause and
pysqlite starts its transaction at the first write, so the reads before a
shift are unguarded there; SQLite is for tests and single-user dev only.

Every public method authorizes before it mutates and runs as its own unit
of work: commit on success, roll back on any exception. Nothing is retried
here; serialization failures surface to the caller.
"""

import logging

from taskboard.extensions import db
from taskboard.errors import NotFound
from taskboard.models.board import Board, BoardColumn, Card, DEFAULT_COLUMN_NAMES
from taskboard.services import MISSING, unit_of_work
from taskboard.services.ownership import OwnershipResolver

logger = logging.getLogger(__name__)


def _clamp(position, upper):
    return max(0, min(position, upper))


class BoardStore:

    def __init__(self, session):
        self.session = session
        self.ownership = OwnershipResolver(session)

    # ─── Boards ──────────────────────────────────────────────────

    def create_board(self, user_id, name):
        """Create a board with its default Todo/Doing/Done columns.

        The board and its three columns commit together; a board with
        fewer columns is never visible.
        """
        with unit_of_work(self.session):
            board = Board(user_id=user_id, name=name)
            for position, column_name in enumerate(DEFAULT_COLUMN_NAMES):
                board.columns.append(
                    BoardColumn(name=column_name, position=position)
                )
            self.session.add(board)
            self.session.flush()
        logger.info(f"Created board {board.id} for user {user_id}")
        return board

    def list_boards(self, user_id):
        """Return the user's boards, newest first. May be empty."""
        return (
            self.session.query(Board)
            .filter(Board.user_id == user_id)
            .order_by(Board.created_at.desc(), Board.id)
            .all()
        )

    def delete_board(self, board_id, user_id):
        """Delete a board; its columns and cards go with it."""
        with unit_of_work(self.session):
            board = self.ownership.authorize_board(board_id, user_id, lock=True)
            self._lock_columns(BoardColumn.board_id == board.id)
            self.session.delete(board)
        logger.info(f"Deleted board {board_id}")

    # ─── Columns ─────────────────────────────────────────────────

    def create_column(self, board_id, user_id, name):
        with unit_of_work(self.session):
            board = self.ownership.authorize_board(board_id, user_id, lock=True)
            max_pos = (
                self.session.query(db.func.max(BoardColumn.position))
                .filter(BoardColumn.board_id == board.id)
                .scalar()
            )
            max_pos = max_pos if max_pos is not None else -1
            column = BoardColumn(board_id=board.id, name=name, position=max_pos + 1)
            self.session.add(column)
            self.session.flush()
        return column

    def update_column(self, column_id, user_id, name=MISSING, position=MISSING):
        """PATCH a column. Omitted fields keep their stored value.

        ``position`` here is a direct overwrite: sibling columns are not
        shifted, so the caller can create duplicate positions. Use
        move_column to reorder safely.
        """
        with unit_of_work(self.session):
            column = self.ownership.resolve_column(column_id, user_id)
            if name is not MISSING:
                column.name = name
            if position is not MISSING:
                column.position = position
            self.session.flush()
        return column

    def move_column(self, column_id, user_id, position):
        """Move a column to ``position`` within its board, shifting siblings.

        The target is clamped to ``[0, n-1]``. Cross-board moves are not
        supported.
        """
        with unit_of_work(self.session):
            column = self.ownership.resolve_column(column_id, user_id)
            board_id = column.board_id
            self._lock_board(board_id)

            column = self._reload(BoardColumn, column_id, "column")
            src_pos = column.position
            siblings = (
                self.session.query(db.func.count(BoardColumn.id))
                .filter(
                    BoardColumn.board_id == board_id,
                    BoardColumn.id != column_id,
                )
                .scalar()
            )
            target = _clamp(position, siblings)

            self._shift(
                BoardColumn, BoardColumn.board_id == board_id, column_id,
                BoardColumn.position > src_pos, -1,
            )
            self._shift(
                BoardColumn, BoardColumn.board_id == board_id, column_id,
                BoardColumn.position >= target, +1,
            )
            column.position = target
            self.session.flush()
        logger.info(f"Moved column {column_id} {src_pos} -> {target}")
        return column

    def delete_column(self, column_id, user_id):
        """Delete a column and its cards, then close the gap it leaves."""
        with unit_of_work(self.session):
            column = self.ownership.resolve_column(column_id, user_id)
            board_id = column.board_id
            self._lock_board(board_id)
            self._lock_columns(BoardColumn.id == column_id)

            position = self._reload(BoardColumn, column_id, "column").position
            self.session.delete(column)
            self.session.flush()
            self._shift(
                BoardColumn, BoardColumn.board_id == board_id, column_id,
                BoardColumn.position > position, -1,
            )
        logger.info(f"Deleted column {column_id} from board {board_id}")

    # ─── Cards ───────────────────────────────────────────────────

    def create_card(self, column_id, user_id, title, description=""):
        with unit_of_work(self.session):
            column = self.ownership.resolve_column(column_id, user_id, lock=True)
            max_pos = (
                self.session.query(db.func.max(Card.position))
                .filter(Card.column_id == column.id)
                .scalar()
            )
            max_pos = max_pos if max_pos is not None else -1
            card = Card(
                column_id=column.id,
                title=title,
                description=description or "",
                position=max_pos + 1,
            )
            self.session.add(card)
            self.session.flush()
        return card

    def update_card(self, card_id, user_id, title=MISSING, description=MISSING):
        """PATCH a card's title and/or description. Position is untouched."""
        with unit_of_work(self.session):
            card = self.ownership.resolve_card(card_id, user_id)
            if title is not MISSING:
                card.title = title
            if description is not MISSING:
                card.description = description or ""
            self.session.flush()
        return card

    def move_card(self, card_id, user_id, target_column_id, target_position):
        """Move a card to ``target_position`` in ``target_column_id``.

        Steps, all in one transaction:
          1. read the card's current column and position
          2. close the gap in the source column (position > src -> -1)
          3. open a slot in the target column (position >= target -> +1)
          4. write the card's new column and position

        When source and target are the same column, step 3 runs on the
        state left by step 2, which yields the usual shift-between
        behavior in either direction. The target is clamped to
        ``[0, n]`` where n is the target column's card count without
        this card.

        Raises:
            NotFound: the card or the target column is missing or not
                owned by user_id.
        """
        with unit_of_work(self.session):
            card = self.ownership.resolve_card(card_id, user_id)
            target_column = self.ownership.resolve_column(target_column_id, user_id)

            src_column_id, src_pos = self._lock_card_columns(
                card, {target_column.id}
            )

            siblings = (
                self.session.query(db.func.count(Card.id))
                .filter(Card.column_id == target_column.id, Card.id != card_id)
                .scalar()
            )
            target = _clamp(target_position, siblings)

            self._shift(
                Card, Card.column_id == src_column_id, card_id,
                Card.position > src_pos, -1,
            )
            self._shift(
                Card, Card.column_id == target_column.id, card_id,
                Card.position >= target, +1,
            )
            card.column_id = target_column.id
            card.position = target
            self.session.flush()
        logger.info(
            f"Moved card {card_id} from {src_column_id}@{src_pos} "
            f"to {target_column_id}@{target}"
        )
        return card

    def delete_card(self, card_id, user_id):
        """Delete a card, then close the gap in its column."""
        with unit_of_work(self.session):
            card = self.ownership.resolve_card(card_id, user_id)
            column_id, position = self._lock_card_columns(card, set())
            self.session.delete(card)
            self.session.flush()
            self._shift(
                Card, Card.column_id == column_id, card_id,
                Card.position > position, -1,
            )

    # ─── Helpers ─────────────────────────────────────────────────

    def _lock_board(self, board_id):
        (
            self.session.query(Board.id)
            .filter(Board.id == board_id)
            .with_for_update()
            .first()
        )

    def _lock_card_columns(self, card, extra_column_ids):
        """Lock the card's column (plus extras) and return (column_id, position).

        Columns are locked in id order. If a concurrent move relocated the
        card before the lock was granted, lock its new column as well and
        read again. The card instance is reloaded in place so later writes
        compare against current values.
        """
        column_id = card.column_id
        while True:
            ids = sorted({column_id} | set(extra_column_ids))
            self._lock_columns(BoardColumn.id.in_(ids))
            current = self._reload(Card, card.id, "card")
            if current.column_id == column_id:
                return current.column_id, current.position
            extra_column_ids = set(ids)
            column_id = current.column_id

    def _lock_columns(self, criterion):
        """Lock the matching column rows in id order. Returns their ids."""
        rows = (
            self.session.query(BoardColumn.id)
            .filter(criterion)
            .order_by(BoardColumn.id)
            .with_for_update()
            .all()
        )
        return [row.id for row in rows]

    def _reload(self, model, entity_id, entity_name):
        """Re-read a row into the identity map, overwriting stale attributes."""
        entity = (
            self.session.query(model)
            .filter(model.id == entity_id)
            .populate_existing()
            .first()
        )
        if entity is None:
            raise NotFound(entity_name)
        return entity

    def _shift(self, model, parent_filter, exclude_id, position_filter, delta):
        """Bulk ``position += delta`` for siblings matching position_filter."""
        return (
            self.session.query(model)
            .filter(parent_filter, model.id != exclude_id, position_filter)
            .update(
                {model.position: model.position + delta},
                synchronize_session=False,
            )
        )

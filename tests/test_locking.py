"""Row-lock ordering in the board store.

SQLite never renders FOR UPDATE, so lock queries are captured at the ORM
layer and compiled for PostgreSQL, while writes are captured from the
cursor. Both land in one list in execution order.

Covers:
- Card moves and creates lock their column row(s) before touching cards
- Column moves and creates lock the board row before touching columns
- Deletes lock board, then columns in id order, before the cascade
  removes any card row
"""

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from taskboard.extensions import db as _db


@pytest.fixture
def statements(db_session):
    """Record ("lock", sql) and ("write", sql) entries in execution order."""
    events = []
    session = db_session()
    engine = _db.engine

    def on_orm_execute(state):
        if state.is_select:
            sql = str(state.statement.compile(dialect=postgresql.dialect()))
            if "FOR UPDATE" in sql:
                events.append(("lock", sql))

    def on_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().startswith(("INSERT", "UPDATE", "DELETE")):
            events.append(("write", statement))

    event.listen(session, "do_orm_execute", on_orm_execute)
    event.listen(engine, "before_cursor_execute", on_cursor_execute)
    yield events
    event.remove(session, "do_orm_execute", on_orm_execute)
    event.remove(engine, "before_cursor_execute", on_cursor_execute)


def _index(events, kind, fragment):
    for i, (k, sql) in enumerate(events):
        if k == kind and fragment in sql:
            return i
    raise AssertionError(f"no {kind} statement containing {fragment!r} in {events}")


@pytest.fixture
def board(store, users):
    b = store.create_board(users["alice_id"], "B")
    ids = {
        "id": b.id,
        "user_id": users["alice_id"],
        "todo": b.columns[0].id,
        "doing": b.columns[1].id,
    }
    ids["cards"] = [
        store.create_card(ids["todo"], ids["user_id"], t).id for t in ("a", "b", "c")
    ]
    return ids


class TestCardLocks:

    def test_move_card_locks_columns_in_id_order_before_shifting(
        self, store, board, statements
    ):
        statements.clear()
        store.move_card(board["cards"][0], board["user_id"], board["doing"], 0)

        lock = _index(statements, "lock", "FROM board_columns")
        assert "ORDER BY board_columns.id" in statements[lock][1]
        assert lock < _index(statements, "write", "UPDATE cards")

    def test_delete_card_locks_column_before_deleting(self, store, board, statements):
        statements.clear()
        store.delete_card(board["cards"][1], board["user_id"])

        lock = _index(statements, "lock", "FROM board_columns")
        assert lock < _index(statements, "write", "DELETE FROM cards")

    def test_create_card_locks_column(self, store, board, statements):
        statements.clear()
        store.create_card(board["todo"], board["user_id"], "d")

        lock = _index(statements, "lock", "FOR UPDATE OF board_columns")
        assert lock < _index(statements, "write", "INSERT INTO cards")


class TestColumnLocks:

    def test_move_column_locks_board_before_shifting(self, store, board, statements):
        statements.clear()
        store.move_column(board["todo"], board["user_id"], 2)

        lock = _index(statements, "lock", "FROM boards")
        assert lock < _index(statements, "write", "UPDATE board_columns")

    def test_create_column_locks_board(self, store, board, statements):
        statements.clear()
        store.create_column(board["id"], board["user_id"], "Review")

        lock = _index(statements, "lock", "FROM boards")
        assert lock < _index(statements, "write", "INSERT INTO board_columns")


class TestDeleteLocks:

    def test_delete_column_locks_before_cascade(self, store, board, statements):
        statements.clear()
        store.delete_column(board["todo"], board["user_id"])

        board_lock = _index(statements, "lock", "FROM boards")
        column_lock = _index(statements, "lock", "ORDER BY board_columns.id")
        card_delete = _index(statements, "write", "DELETE FROM cards")
        column_delete = _index(statements, "write", "DELETE FROM board_columns")
        assert board_lock < column_lock < card_delete < column_delete

    def test_delete_board_locks_board_then_columns_before_cascade(
        self, store, board, statements
    ):
        statements.clear()
        store.delete_board(board["id"], board["user_id"])

        board_lock = _index(statements, "lock", "FROM boards")
        column_lock = _index(statements, "lock", "WHERE board_columns.board_id")
        assert "ORDER BY board_columns.id" in statements[column_lock][1]
        assert board_lock < column_lock < _index(statements, "write", "DELETE FROM cards")

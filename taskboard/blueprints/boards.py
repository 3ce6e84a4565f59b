"""Boards blueprint — /api/*

Thin JSON layer over BoardStore and BoardAggregateAssembler. Every route
requires a session; ownership is checked by the services on each call.
Entities owned by someone else answer 404, same as missing ones.

Route Map:
  GET    /api/boards                          — List boards
  POST   /api/boards                          — Create board (+ default columns)
  GET    /api/boards/<id>                     — Full board with columns and cards
  DELETE /api/boards/<id>                     — Delete board
  POST   /api/boards/<board_id>/columns       — Create column
  PATCH  /api/columns/<id>                    — Update column (name, position)
  DELETE /api/columns/<id>                    — Delete column
  POST   /api/columns/<id>/move               — Move column
  POST   /api/columns/<column_id>/cards       — Create card
  PATCH  /api/cards/<id>                      — Update card (title, description)
  DELETE /api/cards/<id>                      — Delete card
  POST   /api/cards/<id>/move                 — Move card
"""

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from taskboard.blueprints import (
    json_body,
    optional_text,
    position_field,
    required_text,
)
from taskboard.extensions import db
from taskboard.errors import ValidationFailed
from taskboard.services.aggregate import (
    BoardAggregateAssembler,
    board_dict,
    card_dict,
    column_dict,
)
from taskboard.services.board_service import BoardStore

boards_bp = Blueprint("boards", __name__, url_prefix="/api")


@boards_bp.before_request
@login_required
def require_session():
    """Every route in this blueprint needs an authenticated user."""


def _store():
    return BoardStore(db.session)


def _no_content():
    return "", 204


# ─── Boards ──────────────────────────────────────────────────────

@boards_bp.route("/boards")
def list_boards():
    boards = _store().list_boards(current_user.id)
    return jsonify([board_dict(b) for b in boards])


@boards_bp.route("/boards", methods=["POST"])
def create_board():
    data = json_body()
    board = _store().create_board(current_user.id, required_text(data, "name"))
    return jsonify(board_dict(board)), 201


@boards_bp.route("/boards/<board_id>")
def get_board(board_id):
    aggregate = BoardAggregateAssembler(db.session).get_board_aggregate(
        board_id, current_user.id
    )
    return jsonify(aggregate)


@boards_bp.route("/boards/<board_id>", methods=["DELETE"])
def delete_board(board_id):
    _store().delete_board(board_id, current_user.id)
    return _no_content()


# ─── Columns ─────────────────────────────────────────────────────

@boards_bp.route("/boards/<board_id>/columns", methods=["POST"])
def create_column(board_id):
    data = json_body()
    column = _store().create_column(
        board_id, current_user.id, required_text(data, "name")
    )
    return jsonify(column_dict(column)), 201


@boards_bp.route("/columns/<column_id>", methods=["PATCH"])
def update_column(column_id):
    data = json_body()
    column = _store().update_column(
        column_id,
        current_user.id,
        name=optional_text(data, "name"),
        position=position_field(data, required=False),
    )
    return jsonify(column_dict(column))


@boards_bp.route("/columns/<column_id>", methods=["DELETE"])
def delete_column(column_id):
    _store().delete_column(column_id, current_user.id)
    return _no_content()


@boards_bp.route("/columns/<column_id>/move", methods=["POST"])
def move_column(column_id):
    data = json_body()
    column = _store().move_column(
        column_id, current_user.id, position_field(data)
    )
    return jsonify(column_dict(column))


# ─── Cards ───────────────────────────────────────────────────────

@boards_bp.route("/columns/<column_id>/cards", methods=["POST"])
def create_card(column_id):
    data = json_body()
    title = required_text(data, "title")
    description = optional_text(data, "description", nullable=True)
    card = _store().create_card(
        column_id, current_user.id, title, description or ""
    )
    return jsonify(card_dict(card)), 201


@boards_bp.route("/cards/<card_id>", methods=["PATCH"])
def update_card(card_id):
    data = json_body()
    card = _store().update_card(
        card_id,
        current_user.id,
        title=optional_text(data, "title"),
        description=optional_text(data, "description", nullable=True),
    )
    return jsonify(card_dict(card))


@boards_bp.route("/cards/<card_id>", methods=["DELETE"])
def delete_card(card_id):
    _store().delete_card(card_id, current_user.id)
    return _no_content()


@boards_bp.route("/cards/<card_id>/move", methods=["POST"])
def move_card(card_id):
    data = json_body()
    target_column_id = data.get("column_id")
    if not isinstance(target_column_id, str) or not target_column_id:
        raise ValidationFailed("column_id required")
    card = _store().move_card(
        card_id, current_user.id, target_column_id, position_field(data)
    )
    return jsonify(card_dict(card))

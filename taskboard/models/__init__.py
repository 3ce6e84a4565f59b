# Models package — import all models here so Alembic can discover them.

from taskboard.models.user import User, OAuthAccount  # noqa: F401
from taskboard.models.session import AuthSession  # noqa: F401
from taskboard.models.board import Board, BoardColumn, Card  # noqa: F401

"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; the app factory maps them to JSON responses.
NotFound is used both for "does not exist" and "exists but belongs to
someone else" so that callers cannot probe for other users' ids.
"""


class TaskBoardError(Exception):
    """Base class. Carries the HTTP status and a caller-safe message."""

    status_code = 500
    default_message = "internal error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.message}


class Unauthenticated(TaskBoardError):
    status_code = 401
    default_message = "not authenticated"


class NotFound(TaskBoardError):
    status_code = 404
    default_message = "not found"

    def __init__(self, entity=None):
        super().__init__(f"{entity} not found" if entity else None)


class Conflict(TaskBoardError):
    status_code = 409
    default_message = "conflict"


class ValidationFailed(TaskBoardError):
    status_code = 400
    default_message = "invalid request body"


class Internal(TaskBoardError):
    """Backing-store failure. The message never carries internal detail."""

    status_code = 500

    def __init__(self, message=None):
        super().__init__(None)

"""Core services.

Each service is a plain class constructed with an explicit SQLAlchemy
session; nothing here reaches for a global handle. The HTTP layer passes
Flask-SQLAlchemy's request-scoped ``db.session``; tests do the same inside
an app context.
"""

from contextlib import contextmanager


class _Missing:
    """Marker for "field not present" in PATCH-style updates."""

    def __bool__(self):
        return False

    def __repr__(self):
        return "MISSING"


MISSING = _Missing()


@contextmanager
def unit_of_work(session):
    """Run a block as one transaction: commit on success, roll back on any error.

    Cancellation (KeyboardInterrupt, timeouts raised by the driver) rolls
    back too, so a half-applied reorder is never committed.
    """
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise

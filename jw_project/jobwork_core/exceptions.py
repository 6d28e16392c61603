
class PreconditionViolation(ValueError):
    """Raised when a caller hands the core data the UI should never produce
    (negative counters, malformed dates or numbers). Not user-recoverable."""
    pass

class NumberingPreconditionError(PreconditionViolation):
    """Raised when a numbering state has a negative or non-integer counter."""
    pass

class PersistenceError(Exception):
    """Raised once when the store rejects a create/update/delete.
    The caller's draft is left as it was so the same submission can be retried."""

    def __init__(self, message, *, action=None, object_type=None):
        super().__init__(message)
        self.message = message
        self.action = action
        self.object_type = object_type

class RecordNotFound(PersistenceError):
    """The record an update or delete points at is gone."""
    pass

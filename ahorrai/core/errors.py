from typing import Any, Dict, Optional


GENERIC_ERROR_MESSAGE = "No se pudo completar la operación. Inténtalo de nuevo."


class DataAccessError(Exception):
    """A call to the backing store failed.

    ``payload`` keeps whatever the backend reported so callers can log it;
    it is never sent back to the client.
    """

    def __init__(self, operation: str, payload: Any = None):
        super().__init__(f"{operation} failed: {payload}")
        self.operation = operation
        self.payload = payload


class NotFoundError(DataAccessError):
    def __init__(self, table: str, record_id: Any):
        super().__init__(f"fetch {table}", f"no row with id {record_id}")
        self.table = table
        self.record_id = record_id


class ValidationFailed(Exception):
    """Field-level validation failed before any backend call."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message or "Validation failed")
        self.errors = errors

from __future__ import annotations


class StoreError(RuntimeError):
    """Raised when a store operation fails.

    Carries the failing operation, the key it was working on (ref id or org id)
    and the underlying driver exception, if any.
    """

    def __init__(self, operation: str, key: str | None, cause: BaseException | None = None, message: str | None = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        if message is None:
            message = f"{operation} failed for {key}"
            if cause is not None:
                message += f": {cause}"
        super().__init__(message)


class NotFoundError(StoreError):
    def __init__(self, operation: str, key: str | None):
        super().__init__(operation, key, message=f"{operation}: no space found for {key}")


class ConstraintError(StoreError):
    pass


class QueryError(StoreError):
    pass


class DecodeError(StoreError):
    """A stored row holds values the Space model cannot represent."""
    pass

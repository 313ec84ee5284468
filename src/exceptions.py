"""HTTP-aware error types raised by services and rendered by FastAPI."""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """A routine or one of its steps does not exist."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    """The resource exists but belongs to another user."""

    def __init__(self, detail: str = "Access denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidStateError(HTTPException):
    """The operation conflicts with the current state of the resource."""

    def __init__(self, detail: str = "Invalid state"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PersistenceError(HTTPException):
    """The backing store failed; nothing was written."""

    def __init__(self, detail: str = "Storage unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

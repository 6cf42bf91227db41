# utils/errors.py
from fastapi import HTTPException, status


# Domain errors raised by services; FastAPI renders them as {"detail": ...}
class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestError(HTTPException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


# Token failures keep their own type so callers can tell them apart
class TokenMalformedError(UnauthorizedError):
    def __init__(self):
        super().__init__("Malformed token")


class TokenExpiredError(UnauthorizedError):
    def __init__(self):
        super().__init__("Token has expired")


class TokenSignatureError(UnauthorizedError):
    def __init__(self):
        super().__init__("Invalid token signature")


class TokenTypeError(UnauthorizedError):
    def __init__(self, expected: str):
        super().__init__(f"Invalid token type, expected {expected} token")

"""Errors raised by the settlement and verification services.

Every error is terminal for the current request. Routers translate them into
JSON responses using ``status_code`` and ``message``.
"""

from fastapi import status


class LootLabError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(LootLabError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidInputError(LootLabError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid game data"


class InsufficientBalanceError(LootLabError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Insufficient balance"


class RateLimitedError(LootLabError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


class InvalidOrExpiredError(LootLabError):
    # Same message for wrong, reused and expired codes.
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired code"


class StorageError(LootLabError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to record data"


class EmailDispatchError(LootLabError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to send verification email"

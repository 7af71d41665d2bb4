"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Wallet
  9xxx: System

Wallet errors are deliberately coarse: lower-layer failures are logged where
they are detected and surface to callers only as one of the kinds below.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UserAlreadyExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username or email already exists", 400)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid username or password", 401)


class InvalidRegistrationError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 400)


# --- 2xxx: Wallet ---

class InvalidAmountOrCurrencyError(AppError):
    """Unsupported currency, or a withdrawal that would go below zero."""

    def __init__(self) -> None:
        super().__init__(2001, "invalid amount or currency", 400)


class NotEnoughFundsError(AppError):
    """Exchange source balance is smaller than the requested amount."""

    def __init__(self) -> None:
        super().__init__(2002, "insufficient funds or invalid currencies", 400)


# --- 9xxx: System ---

class SomethingWentWrongError(AppError):
    def __init__(self) -> None:
        super().__init__(9002, "something went wrong", 500)


class InvalidRequestError(AppError):
    """Well-formed body that still makes no sense, e.g. exchanging a currency for itself."""

    def __init__(self) -> None:
        super().__init__(9003, "invalid request", 400)


class UpstreamServiceError(Exception):
    """Raised by HTTP clients when an upstream service call fails.

    Not an AppError: callers convert it before it reaches the API layer.
    """

    def __init__(self, service: str, detail: str) -> None:
        self.service = service
        self.detail = detail
        super().__init__(f"{service}: {detail}")

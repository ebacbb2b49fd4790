"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Account
  5xxx: Stock price
"""

from typing import Any


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


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


# --- 2xxx: Account ---

class ValidationError(AppError):
    """A domain invariant would be violated. Raised before any side effect."""

    def __init__(self, message: str) -> None:
        super().__init__(2001, message, 422)


class AccountNotFoundError(AppError):
    # Same error for "missing" and "owned by someone else": no existence leak
    def __init__(self, account_id: str) -> None:
        super().__init__(2002, f"Account not found: {account_id}", 404)


class AccountConflictError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, detail, 409)


class AccountTypeMismatchError(AppError):
    def __init__(self, operation: str, account_type: str) -> None:
        super().__init__(
            2004,
            f"Cannot {operation} on {account_type} account",
            422,
        )


class BalancePreconditionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2005, detail, 422)


class CascadeDeleteError(AppError):
    """A cascade step failed; `progress` holds the counts completed before it."""

    def __init__(self, account_id: str, step: str, progress: Any) -> None:
        self.account_id = account_id
        self.step = step
        self.progress = progress
        super().__init__(
            2006,
            f"Cascade delete of account {account_id} failed at step '{step}'",
            500,
        )


# --- 5xxx: Stock price ---

class PriceProviderError(AppError):
    def __init__(self, symbol: str, detail: str) -> None:
        self.symbol = symbol
        super().__init__(
            5001,
            f"Failed to fetch stock price for {symbol}: {detail}",
            502,
        )

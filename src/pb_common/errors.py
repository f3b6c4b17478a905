"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: User
  2xxx: Balance
  3xxx: Market
  4xxx: Request validation
  9xxx: System

Domain errors (1xxx-4xxx) are terminal for the call. ConflictError is the
only transient kind; the caller may retry the whole operation.
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


# --- 4xxx: Validation (declared first; 1xxx/2xxx subclass it) ---

class ValidationFailedError(AppError):
    def __init__(self, detail: str, code: int = 4001) -> None:
        super().__init__(code, f"Validation failed: {detail}", 400)


# --- 1xxx: User ---

class UserNotFoundError(AppError):
    def __init__(self, user_ref: str) -> None:
        super().__init__(1001, f"User not found: {user_ref}", 404)


class InvalidNameError(ValidationFailedError):
    def __init__(self) -> None:
        super().__init__("name must not be empty", code=1002)


# --- 2xxx: Balance ---

class InsufficientFundsError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required:g}, available {available:g}",
            422,
        )


class InvalidAmountError(ValidationFailedError):
    def __init__(self, amount: float) -> None:
        super().__init__(f"amount must be positive and finite, got {amount:g}", code=2002)


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketResolvedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3002, f"Market is already resolved: {market_id}", 422)


class MarketAlreadyResolvedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"Market already resolved: {market_id}", 409)


# --- 9xxx: System ---

class ConflictError(AppError):
    def __init__(self, resource: str) -> None:
        super().__init__(9001, f"Resource busy, retry later: {resource}", 409)


class StoreUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Ledger store unavailable: {detail}", 503)

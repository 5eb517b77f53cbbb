"""Unified error codes and custom exceptions.

Every error carries a numeric code, a stable ``kind`` string and an HTTP
status. The API layer renders them verbatim; nothing is swallowed.

Error code ranges:
  1xxx: Validation
  2xxx: Account / ledger
  3xxx: Bet lifecycle
  4xxx: Order book
  5xxx: Claim
  6xxx: Permission / admin
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    kind: str = "InternalError"

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


# --- 1xxx: Validation ---

class ValidationError(AppError):
    kind = "ValidationError"

    def __init__(self, message: str, code: int = 1001) -> None:
        super().__init__(code, message, 422)


class StakeOutOfRangeError(ValidationError):
    def __init__(self, amount: object, minimum: object, maximum: object) -> None:
        super().__init__(
            f"Amount {amount} must be between {minimum} and {maximum}", code=1002
        )


class InvalidOddsError(ValidationError):
    kind = "InvalidOdds"

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid odds: {detail}", code=1003)


# --- 2xxx: Account / ledger ---

class InsufficientFundsError(AppError):
    kind = "InsufficientFunds"

    def __init__(self, user_id: str, required: object) -> None:
        super().__init__(
            2001, f"Insufficient funds for user {user_id}: required {required}", 422
        )


class AccountNotFoundError(AppError):
    kind = "NotFound"

    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


# --- 3xxx: Bet lifecycle ---

class NotFoundError(AppError):
    kind = "NotFound"

    def __init__(self, message: str, code: int = 3001) -> None:
        super().__init__(code, message, 404)


class BetNotFoundError(NotFoundError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(f"Bet not found: {bet_id}", code=3001)


class InvalidStateTransitionError(AppError):
    kind = "InvalidStateTransition"

    def __init__(self, message: str) -> None:
        super().__init__(3002, message, 409)


class DuplicateBetError(ValidationError):
    def __init__(self, match_id: str) -> None:
        super().__init__(f"A bet already exists for match {match_id}", code=3003)


# --- 4xxx: Order book ---

class OfferNotFoundError(NotFoundError):
    def __init__(self, offer_id: str) -> None:
        super().__init__(f"Offer not found: {offer_id}", code=4001)


class SelfMatchError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Cannot accept your own offer", code=4002)


# --- 5xxx: Claim ---

class NotEligibleError(AppError):
    kind = "NotEligible"

    def __init__(self, message: str) -> None:
        super().__init__(5001, message, 422)


class AlreadyClaimedError(AppError):
    kind = "AlreadyClaimed"

    def __init__(self, bet_id: str, user_id: str) -> None:
        super().__init__(5002, f"Winnings already claimed on bet {bet_id} by {user_id}", 409)


class NoWinningsError(AppError):
    kind = "NoWinnings"

    def __init__(self, bet_id: str) -> None:
        super().__init__(5003, f"No winnings to claim on bet {bet_id}", 422)


# --- 6xxx: Permission ---

class PermissionDeniedError(AppError):
    kind = "PermissionDenied"

    def __init__(self, detail: str = "Administrative capability required") -> None:
        super().__init__(6001, detail, 403)


# --- 9xxx: System ---

class ConcurrencyConflictError(AppError):
    kind = "ConcurrencyConflict"

    def __init__(self, bet_id: str) -> None:
        super().__init__(9003, f"Concurrent modification of bet {bet_id}; retry", 409)


class RateLimitError(AppError):
    kind = "RateLimited"

    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)

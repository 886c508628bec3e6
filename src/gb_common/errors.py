"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  3xxx: Bet lifecycle
  4xxx: Payment obligations
  9xxx: System
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


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired credentials", 401)


# --- 3xxx: Bet ---

class BetNotFoundError(AppError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(3001, f"Bet not found: {bet_id}", 404)


class ParticipantNotFoundError(AppError):
    def __init__(self, bet_id: str, user_id: str) -> None:
        super().__init__(3002, f"User {user_id} is not a participant of bet {bet_id}", 404)


class IllegalTransitionError(AppError):
    """Operation not permitted from the bet's current status or by this actor."""

    def __init__(
        self,
        operation: str,
        current_status: str,
        required_status: str | None = None,
        required_role: str | None = None,
    ) -> None:
        self.operation = operation
        self.current_status = current_status
        self.required_status = required_status
        self.required_role = required_role
        detail = f"Cannot {operation} bet in status {current_status}"
        if required_status:
            detail += f" (requires status {required_status})"
        if required_role:
            detail += f" (requires role {required_role})"
        super().__init__(3003, detail, 422)


class BetValidationError(AppError):
    def __init__(self, detail: str, code: int = 3004, http_status: int = 422) -> None:
        super().__init__(code, detail, http_status)


class DuplicateParticipantError(BetValidationError):
    def __init__(self, bet_id: str, user_id: str) -> None:
        super().__init__(f"User {user_id} has already joined bet {bet_id}", 3005, 409)


class UnknownSideError(BetValidationError):
    def __init__(self, side: str) -> None:
        super().__init__(f"Unknown side: {side}", 3006, 422)


class ConcurrencyConflictError(AppError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(3007, f"Concurrent update on bet {bet_id}, retry the request", 409)


# --- 4xxx: Payment obligations ---

class PaymentObligationNotFoundError(AppError):
    def __init__(self, obligation_id: str) -> None:
        super().__init__(4001, f"Payment obligation not found: {obligation_id}", 404)


class PaymentNotAllowedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, detail, 403)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class DownstreamFailureError(AppError):
    """A side effect (notification, obligation sink) failed after a committed transition."""

    def __init__(self, target: str, detail: str) -> None:
        self.target = target
        super().__init__(9003, f"{target} failed: {detail}", 502)

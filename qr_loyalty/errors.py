"""
Domain errors for QR redemption and the point ledger.

Every error carries the HTTP status it maps to and a default user-facing
message. Services raise these; main.py renders them as ``{"error": ...}``.
"""


class LoyaltyError(Exception):
    """Base class for classified loyalty failures."""
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidAmount(LoyaltyError):
    default_message = "Amount must be a positive number"


class MalformedPayload(LoyaltyError):
    default_message = "Invalid QR code format"


class IncompleteToken(LoyaltyError):
    default_message = "Incomplete QR code data"


class TokenExpired(LoyaltyError):
    default_message = "This QR code has expired"


class TokenAlreadyUsed(LoyaltyError):
    default_message = "This QR code has already been used"


class InsufficientPoints(LoyaltyError):
    default_message = "Not enough points"


class CustomerNotFound(LoyaltyError):
    status_code = 404
    default_message = "Customer not found"


class RewardNotFound(LoyaltyError):
    status_code = 404
    default_message = "Reward not found"


class StorageFailure(LoyaltyError):
    """A persistence operation failed; nothing was committed."""
    status_code = 500
    default_message = "Storage error while processing the request"


class PartialCommit(LoyaltyError):
    """
    The used-token marker is committed but the point credit is not.

    Needs manual reconciliation (see ledger_service.reconcile_redemption).
    """
    status_code = 500
    default_message = "Redemption could not be completed"

    def __init__(self, message: str | None = None, *, qr_token: str | None = None, customer_id=None, step: str | None = None):
        super().__init__(message)
        self.qr_token = qr_token
        self.customer_id = customer_id
        self.step = step


class TokenNotRedeemed(LoyaltyError):
    status_code = 404
    default_message = "This QR code was never redeemed"


class ReconciliationConflict(LoyaltyError):
    status_code = 409
    default_message = "This QR code is already credited"

"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
VALIDATION_ERROR = "VALIDATION_ERROR"
UNAUTHORIZED = "UNAUTHORIZED"
NO_TOKEN = "NO_TOKEN"
TOKEN_EXPIRED = "TOKEN_EXPIRED"
INVALID_TOKEN = "INVALID_TOKEN"
INTERNAL_ERROR = "INTERNAL_ERROR"
STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    code = INTERNAL_ERROR


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    code = NOT_FOUND


class DuplicateResourceError(DomainError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    code = DUPLICATE_RESOURCE


class DomainValidationError(DomainError):
    """Raised when business rules or input validation fail (bad email shape, weak password, bad token)."""

    code = VALIDATION_ERROR


class UnauthorizedError(DomainError):
    """Raised when credentials or the bearer token cannot be accepted."""

    code = UNAUTHORIZED


class MissingTokenError(UnauthorizedError):
    code = NO_TOKEN


class TokenExpiredError(UnauthorizedError):
    code = TOKEN_EXPIRED


class InvalidTokenError(UnauthorizedError):
    """Base for tokens that are not acceptable regardless of time."""

    code = INVALID_TOKEN


class MalformedTokenError(InvalidTokenError):
    pass


class TokenSignatureError(InvalidTokenError):
    pass


class ResetTokenError(DomainError):
    """Base for reset-token redemption failures."""

    code = VALIDATION_ERROR


class ResetTokenNotFoundError(ResetTokenError):
    pass


class ResetTokenUsedError(ResetTokenError):
    pass


class ResetTokenExpiredError(ResetTokenError):
    pass


class InternalError(DomainError):
    """Raised when the server cannot complete an operation through no fault of the caller."""

    code = INTERNAL_ERROR


class PaymentGatewayError(DomainError):
    """Raised when the payment gateway rejects or fails a request."""

    code = PAYMENT_GATEWAY_ERROR

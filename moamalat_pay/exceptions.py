"""
Moamalat Pay Exception Hierarchy

Stable error codes shared by raised exceptions and Failure results.
All codes use the npg: prefix.

Propagation:
- InvalidAmountError and SigningError are raised before anything is dispatched
  (integration bugs, not payment outcomes)
- Everything after dispatch is delivered as a TransactionFailure carrying one of
  these codes, never raised to the caller
"""
from typing import Optional, Dict, Any


INVALID_AMOUNT = "npg:amount:invalid"
SIGNING_INVALID = "npg:signing:invalid"
TRANSPORT_UNAVAILABLE = "npg:transport:unavailable"
MALFORMED_RESPONSE = "npg:response:malformed"
TRANSPORT_FAILURE = "npg:transport:failure"
GATEWAY_DECLINED = "npg:payment:declined"

# Only ever carried on Failure results
REQUEST_INVALID = "npg:request:invalid"
PAYMENT_CANCELLED = "npg:payment:cancelled"


class GatewayError(Exception):
    """
    Base exception for all gateway integration errors.

    Carries a machine-readable error code alongside the human message so the
    same taxonomy can be rendered into Failure results.
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to error response format."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class InvalidAmountError(GatewayError):
    """
    Amount conversion precondition violated.

    Examples:
    - Negative major or minor amount
    - Unparsable amount string
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(INVALID_AMOUNT, message, details)


class SigningError(GatewayError):
    """
    Signing inputs missing or malformed.

    Examples:
    - Empty merchant secret
    - Missing merchant id, terminal id or timestamp
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(SIGNING_INVALID, message, details)


class MethodUnavailableError(GatewayError):
    """
    Requested transport cannot be used and no fallback applies.

    Examples:
    - Native SDK forced on a platform that cannot host it
    - Embedded checkout reported unavailable
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(TRANSPORT_UNAVAILABLE, message, details)


class MalformedResponseError(GatewayError):
    """
    Transport returned a payload with an unexpected shape.

    Example:
    - Success payload without a parseable Amount
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(MALFORMED_RESPONSE, message, details)


class TransportFailureError(GatewayError):
    """
    Transport-level communication error.

    Examples:
    - Native channel not configured
    - Platform exception raised by the native layer
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(TRANSPORT_FAILURE, message, details)


class GatewayDeclinedError(GatewayError):
    """
    Gateway reported a business-level decline.

    Only used for its code; declines travel inside a TransactionFailure.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(GATEWAY_DECLINED, message, details)


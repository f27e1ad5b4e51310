"""
Moamalat Pay - client-side payment initiation for the Moamalat gateway

Signs transactions, negotiates between the native SDK and the hosted lightbox
checkout, and reconciles both transports into one result model.

The host application supplies the channels (native method channel, embedded
browser); this package never renders UI and never stores credentials.

Modules:
- services/amount_converter.py: dinar <-> dirham conversion and display
- services/signature_service.py: canonical string and HMAC-SHA256 SecureHash
- services/transport_selector.py: SDK vs lightbox negotiation with fallback
- services/result_normalizer.py: per-transport payload adapters
- services/transaction_service.py: PaymentOrchestrator / execute_payment
"""
from .exceptions import (
    GatewayError,
    GatewayDeclinedError,
    InvalidAmountError,
    MalformedResponseError,
    MethodUnavailableError,
    SigningError,
    TransportFailureError,
)
from .models import (
    SigningContext,
    TransactionFailure,
    TransactionRequest,
    TransactionResult,
    TransactionSuccess,
    TransportMethod,
)
from .services.amount_converter import (
    CONVERSION_RATE,
    format_major,
    format_minor,
    is_valid_major_amount,
    is_valid_minor_amount,
    to_major_units,
    to_minor_units,
)
from .services.signature_service import sign_request
from .services.transaction_service import (
    PaymentOrchestrator,
    PaymentSession,
    execute_payment,
    generate_merchant_reference,
)

__version__ = "0.1.0"
__all__ = [
    "CONVERSION_RATE",
    "GatewayDeclinedError",
    "GatewayError",
    "InvalidAmountError",
    "MalformedResponseError",
    "MethodUnavailableError",
    "PaymentOrchestrator",
    "PaymentSession",
    "SigningContext",
    "SigningError",
    "TransactionFailure",
    "TransactionRequest",
    "TransactionResult",
    "TransactionSuccess",
    "TransportFailureError",
    "TransportMethod",
    "execute_payment",
    "format_major",
    "format_minor",
    "generate_merchant_reference",
    "is_valid_major_amount",
    "is_valid_minor_amount",
    "sign_request",
    "to_major_units",
    "to_minor_units",
]

from .signatures import SigningContext
from .transactions import (
    PaidThrough,
    TransactionFailure,
    TransactionRequest,
    TransactionResult,
    TransactionSuccess,
)
from .transport import SelectorState, TransportMethod

__all__ = [
    "PaidThrough",
    "SelectorState",
    "SigningContext",
    "TransactionFailure",
    "TransactionRequest",
    "TransactionResult",
    "TransactionSuccess",
    "TransportMethod",
]

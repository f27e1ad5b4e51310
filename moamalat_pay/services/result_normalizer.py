"""
Result Normalizer

Turns raw, transport-specific payloads into exactly one TransactionResult.

Each transport has its own adapter:
- Lightbox checkout: gateway capitalization (TxnDate, SystemReference, Amount
  as a minor-unit digit string, ...), delivered as JSON text or a mapping
- Native SDK: flat map with a boolean "success" discriminant, camelCase keys
  (networkReference, authCode, type) and a major-unit amount that may be a
  string or a number

Normalization never raises. Parse failures become TransactionFailure results
with npg:response:malformed and a message naming the offending value's type.
"""
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Literal, Mapping, Optional

from ..config import settings
from ..exceptions import (
    GATEWAY_DECLINED,
    MALFORMED_RESPONSE,
    PAYMENT_CANCELLED,
    GatewayError,
    InvalidAmountError,
    MalformedResponseError,
    TransportFailureError,
)
from ..models.transactions import (
    TransactionFailure,
    TransactionResult,
    TransactionSuccess,
)
from ..models.transport import TransportMethod
from .amount_converter import parse_decimal, to_minor_units

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Payment failed"
CANCELLED_MESSAGE = "Payment cancelled by user"
SDK_DISPLAY_DATA = "Payment processed via Moamalat SDK"

Outcome = Literal["success", "error", "cancel"]


@dataclass(frozen=True)
class NormalizationContext:
    """Request-side values used to fill gaps in transport payloads."""
    amount_minor_units: str
    merchant_reference: str
    local_timestamp: str
    currency_code: str = "434"
    secure_hash: Optional[str] = None


# ============================================================================
# Shared helpers
# ============================================================================

def _decode(payload: Any, source: str) -> Dict[str, Any]:
    """Accept a mapping or JSON object text, reject everything else."""
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                f"Invalid {source} payload: not valid JSON ({e.msg})"
            )
    if isinstance(payload, Mapping):
        return dict(payload)
    raise MalformedResponseError(
        f"Invalid {source} payload: expected a map but got {type(payload).__name__}: {payload!r}"
    )


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _parse_amount(value: Any, field: str) -> Decimal:
    if value is None:
        raise MalformedResponseError(f"Malformed amount: '{field}' is missing")
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise MalformedResponseError(
            f"Malformed amount: '{field}' has unexpected type {type(value).__name__}: {value!r}"
        )
    try:
        return parse_decimal(value)
    except InvalidAmountError:
        raise MalformedResponseError(
            f"Malformed amount: '{field}' is not numeric ({type(value).__name__}: {value!r})"
        )


def _paid_through(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    channel = str(value).strip().lower()
    if channel in ("card", "wallet"):
        return channel
    return "other"


def _error_message(payload: Mapping[str, Any]) -> str:
    message = _first(payload, "error", "message")
    if message is None or str(message) == "":
        return DEFAULT_ERROR_MESSAGE
    return str(message)


def failure_from_error(
    error: Exception,
    context: NormalizationContext,
    transport: Optional[TransportMethod] = None
) -> TransactionFailure:
    """Render any exception as a Failure result, keeping taxonomy codes."""
    if isinstance(error, GatewayError):
        code, message = error.error_code, error.message
    else:
        code = MALFORMED_RESPONSE
        message = f"Unexpected payload shape ({type(error).__name__}): {error}"

    return TransactionFailure(
        message=message,
        error_code=code,
        amount_minor_units=context.amount_minor_units,
        merchant_reference=context.merchant_reference,
        local_timestamp=context.local_timestamp,
        secure_hash=context.secure_hash,
        transport=transport
    )


# ============================================================================
# Lightbox checkout adapter
# ============================================================================

def normalize_checkout_success(payload: Any, context: NormalizationContext) -> TransactionResult:
    """Parse a completeCallback payload."""
    transport = TransportMethod.EMBEDDED_CHECKOUT
    try:
        data = _decode(payload, "checkout success")

        amount = _parse_amount(data.get("Amount"), "Amount")
        if amount < 0 or amount != amount.to_integral_value():
            raise MalformedResponseError(
                f"Malformed amount: 'Amount' must be whole minor units, got {data.get('Amount')!r}"
            )

        return TransactionSuccess(
            transaction_date=_text(_first(data, "TxnDate", "TrxDateTime")),
            system_reference=_text(data.get("SystemReference")),
            network_reference=_text(data.get("NetworkReference")),
            merchant_reference=_text(data.get("MerchantReference")) or context.merchant_reference,
            amount_minor_units=int(amount),
            currency_code=_text(data.get("Currency")),
            paid_through=_paid_through(data.get("PaidThrough")),
            payer_account=_text(data.get("PayerAccount")),
            payer_name=_text(data.get("PayerName")),
            provider_scheme_name=_text(data.get("ProviderSchemeName")),
            secure_hash=_text(data.get("SecureHash")),
            display_data=_text(data.get("DisplayData")),
            token_customer_id=_text(data.get("TokenCustomerId")),
            token_card=_text(data.get("TokenCard")),
            transport=transport,
            raw_payload=data
        )
    except Exception as e:
        logger.warning(f"Checkout success payload rejected for {context.merchant_reference}: {e}")
        return failure_from_error(e, context, transport)


def normalize_checkout_error(payload: Any, context: NormalizationContext) -> TransactionFailure:
    """Parse an errorCallback payload (gateway-reported failure)."""
    transport = TransportMethod.EMBEDDED_CHECKOUT
    try:
        data = _decode(payload, "checkout error")
    except Exception as e:
        logger.warning(f"Checkout error payload rejected for {context.merchant_reference}: {e}")
        return failure_from_error(e, context, transport)

    return TransactionFailure(
        message=_error_message(data),
        error_code=GATEWAY_DECLINED,
        amount_minor_units=_text(data.get("Amount")) or context.amount_minor_units,
        merchant_reference=_text(_first(data, "MerchantReferenece", "MerchantReference")) or context.merchant_reference,
        local_timestamp=_text(data.get("DateTimeLocalTrxn")) or context.local_timestamp,
        secure_hash=_text(data.get("SecureHash")) or context.secure_hash,
        transport=transport
    )


def normalize_checkout_cancel(context: NormalizationContext) -> TransactionFailure:
    """cancelCallback carries no payload."""
    return TransactionFailure(
        message=CANCELLED_MESSAGE,
        error_code=PAYMENT_CANCELLED,
        amount_minor_units=context.amount_minor_units,
        merchant_reference=context.merchant_reference,
        local_timestamp=context.local_timestamp,
        secure_hash=context.secure_hash,
        transport=TransportMethod.EMBEDDED_CHECKOUT
    )


# ============================================================================
# Native SDK adapter
# ============================================================================

def normalize_sdk_result(raw: Any, context: NormalizationContext) -> TransactionResult:
    """
    Parse the map returned by the native startPayment call.

    The SDK reports amounts in dinar (major units); they are converted to
    dirham so both transports share one unit.
    """
    transport = TransportMethod.PRIMARY_SDK
    try:
        if not isinstance(raw, Mapping):
            raise MalformedResponseError(
                f"Invalid response format from native SDK. Expected Map but got "
                f"{type(raw).__name__}: {raw!r}"
            )
        data = dict(raw)

        if data.get("success") is not True:
            return TransactionFailure(
                message=_error_message(data),
                error_code=GATEWAY_DECLINED,
                amount_minor_units=context.amount_minor_units,
                merchant_reference=_text(data.get("merchantReference")) or context.merchant_reference,
                local_timestamp=context.local_timestamp,
                secure_hash=context.secure_hash,
                transport=transport
            )

        amount = _parse_amount(data.get("amount"), "amount")
        try:
            amount_minor = int(to_minor_units(amount))
        except InvalidAmountError as e:
            raise MalformedResponseError(f"Malformed amount: {e.message}")

        network_reference = _text(data.get("networkReference"))

        return TransactionSuccess(
            transaction_date=_text(_first(data, "txnDate", "transactionDate")) or context.local_timestamp,
            system_reference=_text(data.get("systemReference")) or network_reference,
            network_reference=network_reference,
            merchant_reference=_text(data.get("merchantReference")) or context.merchant_reference,
            amount_minor_units=amount_minor,
            currency_code=_text(_first(data, "currency", "currencyCode")) or context.currency_code,
            paid_through=_paid_through(data.get("type")),
            payer_account=_text(data.get("authCode")),
            payer_name=None,
            provider_scheme_name=settings.provider_scheme_name,
            secure_hash=None,
            display_data=SDK_DISPLAY_DATA,
            token_customer_id=None,
            token_card=None,
            transport=transport,
            raw_payload=data
        )
    except Exception as e:
        logger.warning(f"SDK result rejected for {context.merchant_reference}: {e}")
        return failure_from_error(e, context, transport)


# ============================================================================
# Transport-level failures and dispatch
# ============================================================================

def normalize_channel_failure(
    error: Exception,
    context: NormalizationContext,
    transport: Optional[TransportMethod] = None
) -> TransactionFailure:
    """Channel could not carry the request (not configured, platform error)."""
    if not isinstance(error, GatewayError):
        error = TransportFailureError(f"Unexpected error: {error}")
    return failure_from_error(error, context, transport)


def normalize(
    transport: TransportMethod,
    outcome: Outcome,
    payload: Any,
    context: NormalizationContext
) -> TransactionResult:
    """Route a raw transport outcome to its adapter."""
    if transport is TransportMethod.PRIMARY_SDK:
        return normalize_sdk_result(payload, context)
    if outcome == "success":
        return normalize_checkout_success(payload, context)
    if outcome == "cancel":
        return normalize_checkout_cancel(context)
    return normalize_checkout_error(payload, context)

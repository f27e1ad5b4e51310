"""
Native SDK Transport

Talks to the native Moamalat SDK (Android PayButton / iOS) through a platform
method channel. The channel itself is external; anything implementing
SdkChannel can be plugged in (see mocks.sdk_channel for an in-memory one).

Channel methods:
- startPayment(arguments) -> {"success": bool, ...transport fields}
- isAvailable() -> bool
- getVersion() -> {"pluginVersion", "sdkVersion", "platform"} or None

The SDK takes the merchant secret as secureKey and signs on its own side, with
the amount in dinar (major units).
"""
import logging
from typing import Any, Callable, Dict, Optional, Protocol

from ..exceptions import GatewayError, TransportFailureError
from ..models.signatures import SigningContext
from ..models.transactions import TransactionRequest
from .amount_converter import to_major_units

logger = logging.getLogger(__name__)

START_PAYMENT = "startPayment"
IS_AVAILABLE = "isAvailable"
GET_VERSION = "getVersion"

NOT_CONFIGURED_MESSAGE = (
    "Native SDK not configured. Please ensure the Moamalat SDK is properly "
    "set up in your Android project."
)

Deliver = Callable[[str, Any], bool]


class ChannelError(Exception):
    """Platform-side failure reported by the native layer."""

    def __init__(self, code: str, message: Optional[str] = None, details: Any = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message or code)


class MissingChannelError(Exception):
    """No native implementation is registered for the channel."""


class SdkChannel(Protocol):
    async def invoke_method(self, method: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        ...


def build_sdk_arguments(request: TransactionRequest) -> Dict[str, Any]:
    """Flat argument map expected by the native startPayment call."""
    return {
        "merchantId": request.merchant_id,
        "terminalId": request.terminal_id,
        "secureKey": request.merchant_secret,
        "amount": float(to_major_units(request.amount_minor_units)),
        "merchantReference": request.merchant_reference,
        "currencyCode": request.currency_code,
        "isProduction": not request.is_test_environment,
    }


class SdkTransport:
    """Primary transport backed by the native SDK channel."""

    def __init__(self, channel: SdkChannel):
        self.channel = channel

    async def is_available(self) -> bool:
        """Probe the native layer. Any channel failure means unavailable."""
        try:
            result = await self.channel.invoke_method(IS_AVAILABLE)
        except Exception as e:
            logger.debug(f"isAvailable failed: {e}")
            return False
        return result is True

    async def get_version(self) -> Optional[Dict[str, Any]]:
        """Diagnostic version info, None when the channel cannot answer."""
        try:
            result = await self.channel.invoke_method(GET_VERSION)
        except Exception as e:
            logger.debug(f"getVersion failed: {e}")
            return None
        return dict(result) if isinstance(result, dict) else None

    async def start_payment(self, arguments: Dict[str, Any]) -> Any:
        """
        Invoke startPayment and return the raw native result.

        Raises:
            TransportFailureError: Channel missing or platform error
        """
        try:
            return await self.channel.invoke_method(START_PAYMENT, arguments)
        except MissingChannelError:
            raise TransportFailureError(NOT_CONFIGURED_MESSAGE)
        except ChannelError as e:
            raise TransportFailureError(
                e.message or "Platform error occurred",
                details={"code": e.code}
            )

    async def submit(
        self,
        request: TransactionRequest,
        signing: SigningContext,
        deliver: Deliver
    ) -> None:
        """Run one payment and hand the raw outcome to deliver()."""
        arguments = build_sdk_arguments(request)
        logger.info(
            f"Starting SDK payment {request.merchant_reference} "
            f"(amount={arguments['amount']}, production={arguments['isProduction']})"
        )
        try:
            raw = await self.start_payment(arguments)
        except GatewayError as e:
            logger.error(f"SDK payment {request.merchant_reference} failed: {e.message}")
            deliver("failure", e)
            return
        except Exception as e:
            logger.error(f"SDK payment {request.merchant_reference} failed: {e}")
            deliver("failure", TransportFailureError(f"Unexpected error: {e}"))
            return

        deliver("success" if isinstance(raw, dict) and raw.get("success") is True else "error", raw)

    def close(self) -> None:
        """The native call cannot be withdrawn; late results are dropped by the latch."""

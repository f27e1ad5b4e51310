"""
Mock Native SDK Channel

Simulates the native Moamalat SDK behind the platform method channel.
Deterministic outcomes for demos and tests.

Mock Behavior:
- Merchant references listed in DECLINE_REFERENCES are declined with a fixed reason
- Everything else is approved as a card transaction (or wallet, if configured)
- available=False makes isAvailable answer False; missing=True makes every call
  raise MissingChannelError, as an unregistered plugin would
"""
import asyncio
import hashlib
from typing import Any, Dict, List, Optional, Tuple

from ..services.sdk_transport import ChannelError, MissingChannelError


# Merchant references that trigger specific declines
DECLINE_REFERENCES = {
    "REF_DECLINE": "Insufficient funds",
    "REF_DECLINE_EXPIRED": "Card expired",
    "REF_DECLINE_INVALID": "Invalid card",
}

PLUGIN_VERSION = "1.0.0"
SDK_VERSION = "mock"


class MockSdkChannel:
    """In-memory stand-in for the moamalat_payment/sdk method channel."""

    def __init__(
        self,
        available: bool = True,
        missing: bool = False,
        platform_error: Optional[str] = None,
        transaction_type: str = "card",
        delay: float = 0.0,
        result_override: Any = None
    ):
        self.available = available
        self.missing = missing
        self.platform_error = platform_error
        self.transaction_type = transaction_type
        self.delay = delay
        self.result_override = result_override
        self.calls: List[Tuple[str, Optional[Dict[str, Any]]]] = []

    async def invoke_method(self, method: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append((method, arguments))

        if self.missing:
            raise MissingChannelError(f"No implementation found for method {method}")
        if self.delay:
            await asyncio.sleep(self.delay)

        if method == "isAvailable":
            return self.available
        if method == "getVersion":
            return {
                "pluginVersion": PLUGIN_VERSION,
                "sdkVersion": SDK_VERSION,
                "platform": "mock",
            }
        if method == "startPayment":
            return self._start_payment(arguments or {})
        raise ChannelError("NOT_IMPLEMENTED", f"Unknown method {method}")

    def _start_payment(self, arguments: Dict[str, Any]) -> Any:
        if self.platform_error:
            raise ChannelError("SDK_ERROR", self.platform_error)
        if self.result_override is not None:
            return self.result_override

        reference = arguments.get("merchantReference", "")
        amount = arguments.get("amount")

        if reference in DECLINE_REFERENCES:
            return {
                "success": False,
                "error": DECLINE_REFERENCES[reference],
                "errorCode": 51,
                "merchantReference": reference,
                "amount": str(amount),
            }

        digest = hashlib.sha256(f"{reference}:{amount}".encode()).hexdigest()
        result = {
            "success": True,
            "type": self.transaction_type,
            "networkReference": digest[:12].upper(),
            "amount": amount,
            "merchantReference": reference,
        }
        if self.transaction_type == "card":
            result.update({
                "authCode": digest[12:18].upper(),
                "actionCode": "00",
                "receiptNumber": str(int(digest[18:26], 16))[:9],
            })
        return result

"""
Embedded Checkout Transport

Drives the hosted lightbox page (Lightbox.Checkout) through an embedded
browser channel. The browser surface is external: a CheckoutChannel renders
the configuration and reports callbacks back through a CheckoutEventHandler.

Gateway Contract:
- configure block keys: MID, TID, AmountTrxn, MerchantReference, TrxDateTime,
  SecureHash (quoted uppercase hex inside the script)
- completeCallback / errorCallback deliver JSON, cancelCallback delivers nothing
- In the iframe embedding the page posts {type, data} messages to its parent:
  payment_success, payment_error, payment_cancel, payment_ready
"""
import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from ..config import Settings, gateway_endpoint, settings
from ..exceptions import TransportFailureError
from ..models.signatures import SigningContext
from ..models.transactions import TransactionRequest
from .signature_service import render_signature

logger = logging.getLogger(__name__)

Deliver = Callable[[str, Any], bool]

BRIDGE_SUCCESS = "payment_success"
BRIDGE_ERROR = "payment_error"
BRIDGE_CANCEL = "payment_cancel"
BRIDGE_READY = "payment_ready"


@dataclass(frozen=True)
class CheckoutConfig:
    """Everything the lightbox page needs for one transaction."""
    merchant_id: str
    terminal_id: str
    amount: str
    merchant_reference: str
    local_timestamp: str
    secure_hash: str
    script_url: str

    def to_configure_dict(self) -> Dict[str, str]:
        """Plain mapping for embeddings that set the fields directly (unquoted hash)."""
        return {
            "MID": self.merchant_id,
            "TID": self.terminal_id,
            "AmountTrxn": self.amount,
            "MerchantReference": self.merchant_reference,
            "TrxDateTime": self.local_timestamp,
            "SecureHash": render_signature(self.secure_hash, quoted=False),
        }

    def render_configure_script(self) -> str:
        """JavaScript configure block; callbacks post bridge messages to the parent window."""
        fields = self.to_configure_dict()
        lines = [
            f"    {key}: {json.dumps(value)}," for key, value in fields.items() if key != "SecureHash"
        ]
        lines.append(f"    SecureHash: {render_signature(self.secure_hash, quoted=True)},")
        return "\n".join([
            "Lightbox.Checkout.configure = {",
            *lines,
            "    completeCallback: function (data) {",
            f"        window.parent.postMessage({{type: '{BRIDGE_SUCCESS}', data: JSON.stringify(data)}}, '*');",
            "    },",
            "    errorCallback: function (error) {",
            f"        window.parent.postMessage({{type: '{BRIDGE_ERROR}', data: JSON.stringify(error)}}, '*');",
            "    },",
            "    cancelCallback: function () {",
            f"        window.parent.postMessage({{type: '{BRIDGE_CANCEL}', data: 'Payment cancelled'}}, '*');",
            "    }",
            "};",
            "Lightbox.Checkout.showLightbox();",
        ])


class CheckoutEventHandler(Protocol):
    def on_complete(self, payload: Any) -> None: ...

    def on_error(self, payload: Any) -> None: ...

    def on_cancel(self) -> None: ...


class CheckoutChannel(Protocol):
    def open(self, config: CheckoutConfig, handler: CheckoutEventHandler) -> Any: ...

    def close(self) -> None: ...


class _DeliveringHandler:
    """Forwards lightbox callbacks to the session's deliver function."""

    def __init__(self, deliver: Deliver):
        self._deliver = deliver

    def on_complete(self, payload: Any) -> None:
        self._deliver("success", payload)

    def on_error(self, payload: Any) -> None:
        self._deliver("error", payload)

    def on_cancel(self) -> None:
        self._deliver("cancel", None)


def dispatch_bridge_message(handler: CheckoutEventHandler, message: Any) -> bool:
    """
    Route a postMessage payload from the lightbox page to the handler.

    Returns:
        True if the message was a terminal event
    """
    if not isinstance(message, Mapping) or message.get("type") is None:
        return False

    kind = message["type"]
    if kind == BRIDGE_SUCCESS:
        handler.on_complete(message.get("data"))
    elif kind == BRIDGE_ERROR:
        handler.on_error(message.get("data"))
    elif kind == BRIDGE_CANCEL:
        handler.on_cancel()
    else:
        if kind == BRIDGE_READY:
            logger.debug("Lightbox ready")
        return False
    return True


class CheckoutTransport:
    """Fallback transport backed by the hosted lightbox checkout."""

    def __init__(self, channel: CheckoutChannel, config: Optional[Settings] = None):
        self.channel = channel
        self.config = config or settings
        self._open = False

    def build_config(self, request: TransactionRequest, signing: SigningContext) -> CheckoutConfig:
        return CheckoutConfig(
            merchant_id=request.merchant_id,
            terminal_id=request.terminal_id,
            amount=request.amount_minor_units,
            merchant_reference=request.merchant_reference,
            local_timestamp=signing.local_timestamp,
            secure_hash=signing.signature,
            script_url=gateway_endpoint(request.is_test_environment, self.config)
        )

    async def submit(
        self,
        request: TransactionRequest,
        signing: SigningContext,
        deliver: Deliver
    ) -> None:
        """Open the lightbox; outcomes arrive later through the handler."""
        checkout_config = self.build_config(request, signing)
        logger.info(
            f"Opening lightbox checkout {request.merchant_reference} at {checkout_config.script_url}"
        )
        try:
            opened = self.channel.open(checkout_config, _DeliveringHandler(deliver))
            if inspect.isawaitable(opened):
                await opened
            self._open = True
        except Exception as e:
            logger.error(f"Failed to open lightbox for {request.merchant_reference}: {e}")
            deliver("failure", TransportFailureError(f"Failed to open checkout: {e}"))

    def close(self) -> None:
        """Tear down the embedded page. Safe to call more than once."""
        if not self._open:
            return
        self._open = False
        try:
            self.channel.close()
        except Exception as e:
            logger.warning(f"Error closing checkout channel: {e}")

"""
Mock Lightbox Checkout Channel

Simulates the embedded browser hosting Lightbox.Checkout. Scripted events are
replayed asynchronously after open(), the way the page calls back once the
payer finishes.

Mock Behavior:
- Events are ("complete", payload), ("error", payload) or ("cancel", None)
- Events still queued after close() are not delivered, like a disposed webview
- Duplicate terminal events can be scripted to exercise the completion latch
"""
import asyncio
import hashlib
import json
from typing import Any, List, Optional, Tuple

from ..services.checkout_transport import CheckoutConfig, CheckoutEventHandler


def approved_payload(config: CheckoutConfig, paid_through: str = "Card") -> str:
    """Gateway-shaped completeCallback JSON for a configured checkout."""
    digest = hashlib.sha256(
        f"{config.merchant_reference}:{config.amount}:{config.local_timestamp}".encode()
    ).hexdigest()
    return json.dumps({
        "TxnDate": "251019120000",
        "SystemReference": str(int(digest[:10], 16)),
        "NetworkReference": digest[10:22].upper(),
        "MerchantReference": config.merchant_reference,
        "Amount": config.amount,
        "Currency": "434",
        "PaidThrough": paid_through,
        "PayerAccount": "639499XXXXXX1234",
        "PayerName": "TEST PAYER",
        "ProviderSchemeName": "",
        "SecureHash": digest.upper(),
        "DisplayData": "",
        "TokenCustomerId": "",
        "TokenCard": "",
    })


class ScriptedCheckoutChannel:
    """Replays a fixed list of lightbox events."""

    def __init__(self, events: Optional[List[Tuple[str, Any]]] = None, delay: float = 0.0):
        self.events = events if events is not None else [("complete", None)]
        self.delay = delay
        self.config: Optional[CheckoutConfig] = None
        self.handler: Optional[CheckoutEventHandler] = None
        self.opened = False
        self.closed = False
        self._task: Optional[asyncio.Task] = None

    def open(self, config: CheckoutConfig, handler: CheckoutEventHandler) -> None:
        self.config = config
        self.handler = handler
        self.opened = True
        self._task = asyncio.get_running_loop().create_task(self._replay())

    def close(self) -> None:
        self.closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def emit(self, kind: str, payload: Any = None) -> None:
        """Fire one event immediately, regardless of the script."""
        if kind == "complete":
            self.handler.on_complete(payload if payload is not None else approved_payload(self.config))
        elif kind == "error":
            self.handler.on_error(payload)
        elif kind == "cancel":
            self.handler.on_cancel()
        else:
            raise ValueError(f"Unknown checkout event: {kind}")

    async def _replay(self) -> None:
        for kind, payload in self.events:
            await asyncio.sleep(self.delay)
            if self.closed:
                return
            self.emit(kind, payload)

"""
Transaction Service

Drives one payment attempt end to end: validate, timestamp, resolve the
transport, sign, submit, await a single terminal outcome, normalize.

Gateway Contract:
- Before dispatch, integration bugs raise (InvalidAmountError, SigningError)
- After dispatch, everything comes back as a TransactionResult, never raised
- No retries. A retry is a new attempt with a new merchant_reference; reusing
  a reference for a re-signed request is rejected by the gateway at best
"""
import asyncio
import logging
import time
import uuid
from typing import Any, Callable, Optional, Tuple

from ..config import Settings, settings
from ..exceptions import (
    PAYMENT_CANCELLED,
    REQUEST_INVALID,
    MethodUnavailableError,
)
from ..models.transactions import (
    TransactionFailure,
    TransactionRequest,
    TransactionResult,
    TransactionSuccess,
)
from ..models.transport import TransportMethod
from .checkout_transport import CheckoutChannel, CheckoutTransport
from .completion import CompletionLatch
from .result_normalizer import (
    NormalizationContext,
    failure_from_error,
    normalize,
    normalize_channel_failure,
)
from .sdk_transport import SdkChannel, SdkTransport
from .signature_service import sign_request
from .transport_selector import TransportSelector

logger = logging.getLogger(__name__)

SESSION_CANCELLED_MESSAGE = "Payment cancelled"


def generate_merchant_reference(prefix: str = "ORDER") -> str:
    """Fresh merchant reference, unique per attempt."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def validate_request(request: TransactionRequest) -> list:
    """Field-specific precondition messages, empty when the request is usable."""
    errors = []
    if not request.merchant_id.strip():
        errors.append("Merchant ID cannot be empty")
    if not request.terminal_id.strip():
        errors.append("Terminal ID cannot be empty")
    if not request.merchant_secret:
        errors.append("Secure key cannot be empty")
    if int(request.amount_minor_units) <= 0:
        errors.append("Amount must be greater than zero")
    return errors


# ============================================================================
# Payment Session (one attempt)
# ============================================================================

class PaymentSession:
    """
    A single transaction attempt.

    Await result() for the outcome; cancel() tears the transport down and
    guarantees no callback is delivered afterwards.
    """

    def __init__(
        self,
        orchestrator: "PaymentOrchestrator",
        request: TransactionRequest,
        override: Optional[TransportMethod] = None
    ):
        self.request = request
        self.override = override
        self.method: Optional[TransportMethod] = None
        self._orchestrator = orchestrator
        self._latch: Optional[CompletionLatch] = None
        self._transport = None
        self._runner: Optional[asyncio.Future] = None
        self._cancelled = False
        self._context: Optional[NormalizationContext] = None
        self._callbacks: Optional[Tuple[Callable, Callable]] = None
        self._delivered = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def result(self) -> TransactionResult:
        """Run the attempt (once) and return its result."""
        self.schedule()
        return await self._runner

    def schedule(self) -> None:
        """Start the attempt in the background without awaiting it."""
        if self._runner is None:
            self._runner = asyncio.ensure_future(self._run())

    def cancel(self) -> None:
        """Stop the attempt. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        logger.info(f"Cancelling payment {self.request.merchant_reference}")

        if self._latch is not None:
            self._latch.cancel(("cancelled", None))
        self._close_transport()

    def on_result(
        self,
        on_success: Callable[[TransactionSuccess], Any],
        on_error: Callable[[TransactionFailure], Any]
    ) -> None:
        """Register the dual callbacks used by callback-style integrations."""
        self._callbacks = (on_success, on_error)

    # ------------------------------------------------------------------------

    def _deliver_raw(self, outcome: str, payload: Any) -> bool:
        if self._latch is None:
            return False
        return self._latch.complete((outcome, payload))

    def _close_transport(self) -> None:
        if self._transport is not None:
            self._transport.close()

    def _cancelled_result(self) -> TransactionFailure:
        context = self._context
        return TransactionFailure(
            message=SESSION_CANCELLED_MESSAGE,
            error_code=PAYMENT_CANCELLED,
            amount_minor_units=self.request.amount_minor_units,
            merchant_reference=self.request.merchant_reference,
            local_timestamp=context.local_timestamp if context else "",
            transport=self.method
        )

    async def _run(self) -> TransactionResult:
        result = await self._execute()
        self._dispatch_callbacks(result)
        return result

    async def _execute(self) -> TransactionResult:
        request = self.request
        local_timestamp = str(int(self._orchestrator.clock()))
        self._context = NormalizationContext(
            amount_minor_units=request.amount_minor_units,
            merchant_reference=request.merchant_reference,
            local_timestamp=local_timestamp,
            currency_code=request.currency_code
        )

        # 1. Preconditions
        errors = validate_request(request)
        if errors:
            logger.warning(f"Payment {request.merchant_reference} rejected: {'; '.join(errors)}")
            return TransactionFailure(
                message="; ".join(errors),
                error_code=REQUEST_INVALID,
                amount_minor_units=request.amount_minor_units,
                merchant_reference=request.merchant_reference,
                local_timestamp=local_timestamp
            )
        if self._cancelled:
            return self._cancelled_result()

        # 2. Transport
        selector = self._orchestrator.build_selector(self.override)
        try:
            self.method = await selector.resolve()
        except MethodUnavailableError as e:
            logger.error(f"No transport for {request.merchant_reference}: {e.message}")
            return failure_from_error(e, self._context)
        if self._cancelled:
            return self._cancelled_result()

        # 3. Signature (raises SigningError before anything is dispatched)
        signing = sign_request(request, local_timestamp)

        # 4. Submit and await one terminal outcome
        self._latch = CompletionLatch()
        self._transport = self._orchestrator.build_transport(self.method)
        submission = asyncio.ensure_future(
            self._transport.submit(request, signing, self._deliver_raw)
        )
        submission.add_done_callback(self._on_submission_done)

        try:
            outcome, payload = await self._latch.wait()
        finally:
            if not submission.done():
                submission.cancel()
            self._close_transport()

        if outcome == "cancelled":
            return self._cancelled_result()

        # 5. Normalize
        if outcome == "failure":
            result = normalize_channel_failure(payload, self._context, self.method)
        else:
            result = normalize(self.method, outcome, payload, self._context)

        logger.info(
            f"Payment {request.merchant_reference} finished via {self.method.display_name}: "
            f"{result.status}" + ("" if result.is_success else f" ({result.error_code})")
        )
        return result

    def _on_submission_done(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Transport submission crashed for {self.request.merchant_reference}: {error}")
            self._deliver_raw("failure", error)

    def _dispatch_callbacks(self, result: TransactionResult) -> None:
        if self._callbacks is None or self._delivered or self._cancelled:
            return
        self._delivered = True

        on_success, on_error = self._callbacks
        try:
            if result.is_success:
                on_success(result)
            else:
                on_error(result)
        except Exception:
            logger.exception(f"Result handler raised for {self.request.merchant_reference}")


# ============================================================================
# Orchestrator
# ============================================================================

class PaymentOrchestrator:
    """
    Entry point for payments over the native SDK or the lightbox checkout.

    Holds only collaborators, no per-transaction state; concurrent attempts
    each get their own PaymentSession.
    """

    def __init__(
        self,
        sdk_channel: Optional[SdkChannel] = None,
        checkout_channel: Optional[CheckoutChannel] = None,
        platform_capable: Callable[[], bool] = lambda: False,
        override: Optional[TransportMethod] = None,
        clock: Callable[[], float] = time.time,
        config: Optional[Settings] = None
    ):
        """
        Args:
            sdk_channel: Native SDK method channel, None when not installed
            checkout_channel: Embedded browser channel for the lightbox
            platform_capable: Whether this platform can host the native SDK
            override: Default transport override for every attempt
            clock: Source of DateTimeLocalTrxn (unix seconds)
            config: Settings, defaults to the module-level instance
        """
        self.sdk_channel = sdk_channel
        self.checkout_channel = checkout_channel
        self.platform_capable = platform_capable
        self.override = override
        self.clock = clock
        self.config = config or settings

    def build_selector(self, override: Optional[TransportMethod] = None) -> TransportSelector:
        """Fresh selector per attempt."""
        return TransportSelector(
            platform_capable=lambda: self.sdk_channel is not None and self.platform_capable(),
            probe=self._probe_sdk,
            override=override or self.override,
            checkout_available=lambda: self.checkout_channel is not None,
            probe_timeout=self.config.probe_timeout_seconds
        )

    def build_transport(self, method: TransportMethod):
        if method is TransportMethod.PRIMARY_SDK:
            return SdkTransport(self.sdk_channel)
        return CheckoutTransport(self.checkout_channel, self.config)

    async def _probe_sdk(self) -> bool:
        if self.sdk_channel is None:
            return False
        return await SdkTransport(self.sdk_channel).is_available()

    async def sdk_version(self):
        """Native SDK version info, None when unavailable."""
        if self.sdk_channel is None:
            return None
        return await SdkTransport(self.sdk_channel).get_version()

    def open_session(
        self,
        request: TransactionRequest,
        override: Optional[TransportMethod] = None
    ) -> PaymentSession:
        return PaymentSession(self, request, override)

    async def execute(
        self,
        request: TransactionRequest,
        override: Optional[TransportMethod] = None
    ) -> TransactionResult:
        """Run one attempt and return its canonical result."""
        return await self.open_session(request, override).result()

    def start(
        self,
        request: TransactionRequest,
        on_success: Callable[[TransactionSuccess], Any],
        on_error: Callable[[TransactionFailure], Any],
        override: Optional[TransportMethod] = None
    ) -> PaymentSession:
        """
        Callback-style entry point. Schedules the attempt on the running loop
        and returns the session so the host can cancel() it on teardown.
        """
        session = self.open_session(request, override)
        session.on_result(on_success, on_error)
        session.schedule()
        return session

    async def execute_with_callbacks(
        self,
        request: TransactionRequest,
        on_success: Callable[[TransactionSuccess], Any],
        on_error: Callable[[TransactionFailure], Any],
        override: Optional[TransportMethod] = None
    ) -> TransactionResult:
        session = self.start(request, on_success, on_error, override)
        return await session.result()


async def execute_payment(
    request: TransactionRequest,
    sdk_channel: Optional[SdkChannel] = None,
    checkout_channel: Optional[CheckoutChannel] = None,
    platform_capable: Callable[[], bool] = lambda: False,
    override: Optional[TransportMethod] = None
) -> TransactionResult:
    """Convenience wrapper around PaymentOrchestrator.execute()."""
    orchestrator = PaymentOrchestrator(
        sdk_channel=sdk_channel,
        checkout_channel=checkout_channel,
        platform_capable=platform_capable,
        override=override
    )
    return await orchestrator.execute(request)

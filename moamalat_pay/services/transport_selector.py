"""
Transport Selector

Chooses between the native SDK and the embedded lightbox checkout for one
transaction attempt.

Resolution:
1. Override EMBEDDED_CHECKOUT -> EMBEDDED_CHECKOUT
2. Override PRIMARY_SDK -> MethodUnavailableError when the platform cannot host
   the SDK; otherwise probe, PRIMARY_SDK if available else EMBEDDED_CHECKOUT
3. No override -> probe on capable platforms, EMBEDDED_CHECKOUT otherwise
4. EMBEDDED_CHECKOUT itself unavailable -> UNAVAILABLE (MethodUnavailableError)

A selector resolves once. Build a new one per orchestration; platform and
SDK state can change between attempts.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import settings
from ..exceptions import MethodUnavailableError
from ..models.transport import SelectorState, TransportMethod

logger = logging.getLogger(__name__)

AvailabilityProbe = Callable[[], Awaitable[bool]]


class TransportSelector:
    """
    Per-attempt transport negotiation state machine.

    States: UNRESOLVED -> RESOLVING -> RESOLVED(method) | UNAVAILABLE
    """

    def __init__(
        self,
        platform_capable: Callable[[], bool],
        probe: AvailabilityProbe,
        override: Optional[TransportMethod] = None,
        checkout_available: Callable[[], bool] = lambda: True,
        probe_timeout: Optional[float] = None
    ):
        """
        Args:
            platform_capable: Static check, can this platform host the native SDK
            probe: Async availability check against the native layer
            override: Caller-forced transport, if any
            checkout_available: Embedded checkout capability (always true in practice)
            probe_timeout: Bounded wait for the probe, defaults to settings
        """
        self._platform_capable = platform_capable
        self._probe = probe
        self._override = override
        self._checkout_available = checkout_available
        self._probe_timeout = probe_timeout if probe_timeout is not None else settings.probe_timeout_seconds

        self.state = SelectorState.UNRESOLVED
        self.method: Optional[TransportMethod] = None

    async def resolve(self) -> TransportMethod:
        """
        Resolve the transport for this attempt.

        Raises:
            MethodUnavailableError: Forced SDK on an incapable platform, or no
                transport at all
        """
        if self.state is SelectorState.RESOLVED:
            return self.method
        if self.state is SelectorState.UNAVAILABLE:
            raise MethodUnavailableError("No payment methods available on this platform")

        self.state = SelectorState.RESOLVING
        try:
            method = await self._select()
        except MethodUnavailableError:
            self.state = SelectorState.UNAVAILABLE
            raise

        if method is TransportMethod.EMBEDDED_CHECKOUT and not self._checkout_available():
            self.state = SelectorState.UNAVAILABLE
            raise MethodUnavailableError("No payment methods available on this platform")

        self.method = method
        self.state = SelectorState.RESOLVED
        logger.info(f"Resolved transport: {method.display_name}")
        return method

    async def _select(self) -> TransportMethod:
        if self._override is TransportMethod.EMBEDDED_CHECKOUT:
            return TransportMethod.EMBEDDED_CHECKOUT

        capable = self._platform_capable()

        if self._override is TransportMethod.PRIMARY_SDK and not capable:
            raise MethodUnavailableError(
                f"Specified payment method ({TransportMethod.PRIMARY_SDK.display_name}) "
                f"is not available on this platform",
                details={"override": TransportMethod.PRIMARY_SDK.identifier}
            )

        if capable and await self.probe_sdk():
            return TransportMethod.PRIMARY_SDK

        return TransportMethod.EMBEDDED_CHECKOUT

    async def probe_sdk(self) -> bool:
        """Run the availability probe; errors and timeouts count as unavailable."""
        try:
            available = await asyncio.wait_for(self._probe(), timeout=self._probe_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"SDK availability probe timed out after {self._probe_timeout}s")
            return False
        except Exception as e:
            logger.warning(f"SDK availability probe failed: {e}")
            return False

        if not available:
            logger.info("Native SDK not available, falling back to embedded checkout")
        return bool(available)

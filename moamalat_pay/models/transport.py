"""
Transport Method Models

Identifies the two channels able to carry a signed request to the gateway.
Resolved fresh for every transaction attempt, never persisted.
"""
from enum import Enum


class TransportMethod(str, Enum):
    """
    Payment transport.

    - PRIMARY_SDK: native Moamalat SDK reached through a platform channel
    - EMBEDDED_CHECKOUT: hosted lightbox page rendered in an embedded browser
    """
    PRIMARY_SDK = "sdk"
    EMBEDDED_CHECKOUT = "webview"

    @property
    def identifier(self) -> str:
        """Technical identifier used in logs."""
        return self.value

    @property
    def display_name(self) -> str:
        if self is TransportMethod.PRIMARY_SDK:
            return "Native SDK"
        return "WebView"

    @property
    def description(self) -> str:
        if self is TransportMethod.PRIMARY_SDK:
            return "Native Moamalat SDK integration running on Android and iOS"
        return "Hosted lightbox checkout available on every platform"


class SelectorState(str, Enum):
    """Transport selector lifecycle."""
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    UNAVAILABLE = "unavailable"

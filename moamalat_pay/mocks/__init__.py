"""In-memory transport channels for demos and tests."""
from .checkout_channel import ScriptedCheckoutChannel, approved_payload
from .sdk_channel import DECLINE_REFERENCES, MockSdkChannel

__all__ = ["DECLINE_REFERENCES", "MockSdkChannel", "ScriptedCheckoutChannel", "approved_payload"]

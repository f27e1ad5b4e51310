"""
Tests for the native SDK and lightbox checkout transports.
"""

import asyncio

import pytest

from moamalat_pay.config import Settings, gateway_endpoint
from moamalat_pay.exceptions import TransportFailureError
from moamalat_pay.mocks import MockSdkChannel, ScriptedCheckoutChannel
from moamalat_pay.services.checkout_transport import (
    BRIDGE_CANCEL,
    BRIDGE_ERROR,
    BRIDGE_READY,
    BRIDGE_SUCCESS,
    CheckoutConfig,
    CheckoutTransport,
    dispatch_bridge_message,
)
from moamalat_pay.services.sdk_transport import (
    NOT_CONFIGURED_MESSAGE,
    SdkTransport,
    build_sdk_arguments,
)
from moamalat_pay.services.signature_service import sign_request
from conftest import build_request


SIGNATURE = "A" * 64


class RecordingHandler:
    def __init__(self):
        self.events = []

    def on_complete(self, payload):
        self.events.append(("complete", payload))

    def on_error(self, payload):
        self.events.append(("error", payload))

    def on_cancel(self):
        self.events.append(("cancel", None))


class FailingCheckoutChannel:
    def __init__(self):
        self.closed = 0

    def open(self, config, handler):
        raise RuntimeError("webview crashed")

    def close(self):
        self.closed += 1


class RecordingCheckoutChannel:
    def __init__(self):
        self.config = None
        self.closed = 0

    async def open(self, config, handler):
        self.config = config

    def close(self):
        self.closed += 1


def _config(**overrides):
    fields = {
        "merchant_id": "10081014649",
        "terminal_id": "99179395",
        "amount": "10500",
        "merchant_reference": "ORDER_1",
        "local_timestamp": "1700000000",
        "secure_hash": SIGNATURE,
        "script_url": "https://tnpg.moamalat.net:6006/js/lightbox.js",
    }
    fields.update(overrides)
    return CheckoutConfig(**fields)


# === Native SDK ===

def test_build_sdk_arguments():
    arguments = build_sdk_arguments(build_request())
    assert arguments == {
        "merchantId": "10081014649",
        "terminalId": "99179395",
        "secureKey": "3A488A89B3F7993476C252F017C488BB",
        "amount": 10.5,
        "merchantReference": "ORDER_1",
        "currencyCode": "434",
        "isProduction": False,
    }


def test_build_sdk_arguments_production():
    assert build_sdk_arguments(build_request(is_test_environment=False))["isProduction"] is True


@pytest.mark.asyncio
async def test_sdk_availability():
    assert await SdkTransport(MockSdkChannel()).is_available() is True
    assert await SdkTransport(MockSdkChannel(available=False)).is_available() is False
    assert await SdkTransport(MockSdkChannel(missing=True)).is_available() is False


@pytest.mark.asyncio
async def test_sdk_availability_requires_literal_true():
    channel = MockSdkChannel()
    channel.available = "yes"
    assert await SdkTransport(channel).is_available() is False


@pytest.mark.asyncio
async def test_sdk_version():
    version = await SdkTransport(MockSdkChannel()).get_version()
    assert version["platform"] == "mock"
    assert await SdkTransport(MockSdkChannel(missing=True)).get_version() is None


@pytest.mark.asyncio
async def test_sdk_start_payment_missing_channel():
    with pytest.raises(TransportFailureError) as exc_info:
        await SdkTransport(MockSdkChannel(missing=True)).start_payment({})
    assert exc_info.value.message == NOT_CONFIGURED_MESSAGE


@pytest.mark.asyncio
async def test_sdk_start_payment_platform_error():
    with pytest.raises(TransportFailureError) as exc_info:
        await SdkTransport(MockSdkChannel(platform_error="Activity not attached")).start_payment({})
    assert exc_info.value.message == "Activity not attached"
    assert exc_info.value.details == {"code": "SDK_ERROR"}


@pytest.mark.asyncio
async def test_sdk_submit_delivers_outcomes():
    request = build_request()
    signing = sign_request(request, "1700000000")
    delivered = []

    def deliver(outcome, payload):
        delivered.append((outcome, payload))
        return True

    channel = MockSdkChannel()
    await SdkTransport(channel).submit(request, signing, deliver)
    await SdkTransport(MockSdkChannel(platform_error="boom")).submit(request, signing, deliver)
    await SdkTransport(channel).submit(build_request(merchant_reference="REF_DECLINE"), signing, deliver)

    assert [outcome for outcome, _ in delivered] == ["success", "failure", "error"]
    assert delivered[0][1]["amount"] == 10.5
    assert isinstance(delivered[1][1], TransportFailureError)
    assert channel.calls[0] == ("startPayment", build_sdk_arguments(request))


# === Lightbox checkout ===

def test_configure_dict_has_unquoted_hash():
    assert _config().to_configure_dict() == {
        "MID": "10081014649",
        "TID": "99179395",
        "AmountTrxn": "10500",
        "MerchantReference": "ORDER_1",
        "TrxDateTime": "1700000000",
        "SecureHash": SIGNATURE,
    }


def test_configure_script_quotes_hash():
    script = _config().render_configure_script()
    assert f"SecureHash: '{SIGNATURE}'," in script
    assert 'MID: "10081014649",' in script
    assert 'AmountTrxn: "10500",' in script
    assert 'TrxDateTime: "1700000000",' in script
    assert BRIDGE_SUCCESS in script
    assert BRIDGE_ERROR in script
    assert BRIDGE_CANCEL in script
    assert script.endswith("Lightbox.Checkout.showLightbox();")


def test_configure_script_escapes_reference():
    script = _config(merchant_reference='A"B').render_configure_script()
    assert 'MerchantReference: "A\\"B",' in script


def test_build_config_uses_signing_timestamp():
    request = build_request()
    signing = sign_request(request, "1700000000")
    config = CheckoutTransport(RecordingCheckoutChannel()).build_config(request, signing)

    assert config.local_timestamp == signing.local_timestamp
    assert config.secure_hash == signing.signature
    assert config.amount == "10500"
    assert config.script_url == gateway_endpoint(True)


def test_build_config_production_endpoint():
    custom = Settings(production_gateway_url="https://example.test/lightbox.js")
    request = build_request(is_test_environment=False)
    config = CheckoutTransport(RecordingCheckoutChannel(), custom).build_config(
        request, sign_request(request, "1700000000")
    )
    assert config.script_url == "https://example.test/lightbox.js"


@pytest.mark.asyncio
async def test_checkout_open_failure_is_delivered():
    request = build_request()
    delivered = []
    transport = CheckoutTransport(FailingCheckoutChannel())

    await transport.submit(request, sign_request(request, "1700000000"), lambda o, p: delivered.append((o, p)))

    outcome, error = delivered[0]
    assert outcome == "failure"
    assert isinstance(error, TransportFailureError)
    assert "webview crashed" in error.message


@pytest.mark.asyncio
async def test_checkout_awaits_async_open_and_closes_once():
    request = build_request()
    channel = RecordingCheckoutChannel()
    transport = CheckoutTransport(channel)

    await transport.submit(request, sign_request(request, "1700000000"), lambda o, p: True)
    assert channel.config.merchant_reference == "ORDER_1"

    transport.close()
    transport.close()
    assert channel.closed == 1


def test_dispatch_bridge_message():
    handler = RecordingHandler()

    assert dispatch_bridge_message(handler, {"type": BRIDGE_SUCCESS, "data": "{}"}) is True
    assert dispatch_bridge_message(handler, {"type": BRIDGE_ERROR, "data": "{\"error\": \"x\"}"}) is True
    assert dispatch_bridge_message(handler, {"type": BRIDGE_CANCEL, "data": "Payment cancelled"}) is True
    assert dispatch_bridge_message(handler, {"type": BRIDGE_READY}) is False
    assert dispatch_bridge_message(handler, {"type": "resize"}) is False
    assert dispatch_bridge_message(handler, "not a message") is False

    assert handler.events == [
        ("complete", "{}"),
        ("error", "{\"error\": \"x\"}"),
        ("cancel", None),
    ]


# === Configuration ===

def test_gateway_endpoint_selection():
    assert gateway_endpoint(True) == "https://tnpg.moamalat.net:6006/js/lightbox.js"
    assert gateway_endpoint(False) == "https://npg.moamalat.net:6006/js/lightbox.js"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("MOAMALAT_PROBE_TIMEOUT_SECONDS", "0.5")
    monkeypatch.setenv("MOAMALAT_TEST_GATEWAY_URL", "https://staging.test/lightbox.js")
    custom = Settings()
    assert custom.probe_timeout_seconds == 0.5
    assert gateway_endpoint(True, custom) == "https://staging.test/lightbox.js"


# === Scripted lightbox ===

@pytest.mark.asyncio
async def test_scripted_channel_close_stops_replay():
    channel = ScriptedCheckoutChannel(delay=10.0)
    handler = RecordingHandler()

    channel.open(_config(), handler)
    await asyncio.sleep(0)
    channel.close()
    await asyncio.sleep(0.01)

    assert channel.closed
    assert channel._task.cancelled()
    assert handler.events == []

"""
Pydantic Transaction Models

Request and canonical result models shared by both transports.

Gateway Contract:
- Amounts on the wire are minor units (1 LYD = 1000 dirham) as digit strings
- A result is exactly one of TransactionSuccess or TransactionFailure, created
  once per attempt by the result normalizer and immutable afterwards
"""
from typing import Optional, Literal, Union, Dict, Any
from pydantic import BaseModel, Field

from ..config import settings
from .transport import TransportMethod


class TransactionRequest(BaseModel):
    """
    Caller-supplied transaction to sign and submit.

    Notes:
    - merchant_reference must be unique per attempt; a retry needs a new one,
      resubmitting a signed request under an old reference is unsafe
    - merchant_secret may be hex encoded or a raw passphrase (see signature_service)
    - Empty merchant_id / terminal_id / merchant_secret are accepted here and
      reported as Failure results by the orchestrator
    """
    merchant_id: str
    terminal_id: str
    merchant_reference: str = Field(min_length=1)
    amount_minor_units: str = Field(pattern="^[0-9]+$")
    merchant_secret: str = Field(repr=False)
    currency_code: str = Field(default_factory=lambda: settings.default_currency_code)
    is_test_environment: bool = False

    model_config = {
        "frozen": True,
        "extra": "forbid",
        "json_schema_extra": {
            "example": {
                "merchant_id": "10081014649",
                "terminal_id": "99179395",
                "merchant_reference": "ORDER_1700000000000",
                "amount_minor_units": "10500",
                "merchant_secret": "3a488a89b3f7993476c252f017c488bb",
                "currency_code": "434",
                "is_test_environment": True
            }
        }
    }


PaidThrough = Literal["card", "wallet", "other"]


class TransactionSuccess(BaseModel):
    """
    Canonical success record.

    Only amount_minor_units and merchant_reference are guaranteed; everything
    else depends on what the transport reports.
    """
    status: Literal["success"] = "success"
    transaction_date: Optional[str] = None
    system_reference: Optional[str] = None
    network_reference: Optional[str] = None
    merchant_reference: str
    amount_minor_units: int = Field(ge=0)
    currency_code: Optional[str] = None
    paid_through: Optional[PaidThrough] = None
    payer_account: Optional[str] = None
    payer_name: Optional[str] = None
    provider_scheme_name: Optional[str] = None
    secure_hash: Optional[str] = None
    display_data: Optional[str] = None
    token_customer_id: Optional[str] = None
    token_card: Optional[str] = None
    transport: Optional[TransportMethod] = None
    raw_payload: Dict[str, Any] = Field(default_factory=dict, repr=False)

    model_config = {
        "frozen": True,
        "extra": "forbid"
    }

    @property
    def is_success(self) -> bool:
        return True

    def to_gateway_dict(self) -> Dict[str, Any]:
        """Render with the gateway's field capitalization."""
        return {
            "TxnDate": self.transaction_date,
            "SystemReference": self.system_reference,
            "NetworkReference": self.network_reference,
            "MerchantReference": self.merchant_reference,
            "Amount": str(self.amount_minor_units),
            "Currency": self.currency_code,
            "PaidThrough": self.paid_through,
            "PayerAccount": self.payer_account,
            "PayerName": self.payer_name,
            "ProviderSchemeName": self.provider_scheme_name,
            "SecureHash": self.secure_hash,
            "DisplayData": self.display_data,
            "TokenCustomerId": self.token_customer_id,
            "TokenCard": self.token_card,
        }


class TransactionFailure(BaseModel):
    """
    Canonical failure record.

    error_code carries the taxonomy code from exceptions.py, e.g.
    npg:payment:declined for a business-level decline.
    """
    status: Literal["failure"] = "failure"
    message: str
    error_code: str
    amount_minor_units: str
    merchant_reference: str
    local_timestamp: str
    secure_hash: Optional[str] = None
    transport: Optional[TransportMethod] = None

    model_config = {
        "frozen": True,
        "extra": "forbid"
    }

    @property
    def is_success(self) -> bool:
        return False

    def to_gateway_dict(self) -> Dict[str, Any]:
        """Render as the gateway error object (including its MerchantReferenece key)."""
        return {
            "error": self.message,
            "Amount": self.amount_minor_units,
            "MerchantReferenece": self.merchant_reference,
            "DateTimeLocalTrxn": self.local_timestamp,
            "SecureHash": self.secure_hash or "",
        }


TransactionResult = Union[TransactionSuccess, TransactionFailure]

"""
Pydantic SigningContext Model

Ephemeral signing metadata derived from one TransactionRequest.
Gateway Contract: the canonical string and digest format are part of the wire
contract; any deviation produces a SecureHash the gateway rejects.
"""
from pydantic import BaseModel, Field
from typing import Literal


class SigningContext(BaseModel):
    """
    Signature material for a single transaction attempt.

    Notes:
    - local_timestamp is generated once and reused in both the canonical
      string and the transport payload
    - signature is the uppercase hex HMAC-SHA256 digest
    """

    local_timestamp: str = Field(
        description="DateTimeLocalTrxn, unix seconds",
        pattern="^[0-9]+$"
    )
    canonical_string: str = Field(
        description="Amount=..&DateTimeLocalTrxn=..&MerchantId=..&MerchantReference=..&TerminalId=.."
    )
    signature: str = Field(
        description="HMAC-SHA256 digest in uppercase hexadecimal",
        pattern="^[0-9A-F]{64}$"
    )
    key_encoding: Literal["hex", "raw"] = Field(
        description="How the merchant secret was turned into key bytes"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
        "json_schema_extra": {
            "example": {
                "local_timestamp": "1700000000",
                "canonical_string": "Amount=1000&DateTimeLocalTrxn=1700000000&MerchantId=M1&MerchantReference=R1&TerminalId=T1",
                "signature": "9C4E1B7A0D3F62E85B1A4C7D9E0F2A3B6C8D1E4F7A0B3C5D8E1F4A7B0C2D5E8F",
                "key_encoding": "hex"
            }
        }
    }

"""
Signature Service for Gateway Request Signing

Implements HMAC-SHA256 SecureHash generation and verification for the
Moamalat lightbox and SDK transports.

Gateway Contract:
- Canonical string: Amount, DateTimeLocalTrxn, MerchantId, MerchantReference,
  TerminalId as Key=Value pairs joined with "&", in exactly that order
- Digest: HMAC-SHA256 over the UTF-8 canonical string, uppercase hex
- Key: the merchant secret, hex-decoded when it looks like hex, otherwise its
  UTF-8 bytes (compatibility behavior, see derive_key)
"""
import hmac
import hashlib
import logging
import re
from typing import Tuple

from ..exceptions import SigningError
from ..logging_utils import mask
from ..models.signatures import SigningContext
from ..models.transactions import TransactionRequest

logger = logging.getLogger(__name__)

CANONICAL_FIELDS = (
    "Amount",
    "DateTimeLocalTrxn",
    "MerchantId",
    "MerchantReference",
    "TerminalId",
)

_HEX_PATTERN = re.compile(r"[0-9A-Fa-f]+")


def build_canonical_string(
    amount: str,
    local_timestamp: str,
    merchant_id: str,
    merchant_reference: str,
    terminal_id: str
) -> str:
    """
    Create the canonical string the gateway recomputes on its side.

    Raises:
        SigningError: If any field is missing
    """
    values = (amount, local_timestamp, merchant_id, merchant_reference, terminal_id)
    missing = [key for key, value in zip(CANONICAL_FIELDS, values) if value is None or str(value) == ""]
    if missing:
        raise SigningError(
            f"Missing signing fields: {', '.join(missing)}",
            details={"missing_fields": missing}
        )

    return "&".join(f"{key}={value}" for key, value in zip(CANONICAL_FIELDS, values))


def is_hex_secret(secret: str) -> bool:
    """True when the secret has even length and only hex digits."""
    return len(secret) % 2 == 0 and _HEX_PATTERN.fullmatch(secret) is not None


def derive_key(secret: str) -> Tuple[bytes, str]:
    """
    Turn the merchant secret into HMAC key bytes.

    Returns:
        (key_bytes, encoding) where encoding is "hex" or "raw"

    Compatibility note:
        The gateway issues secrets as hex, but integrations have historically
        passed plain passphrases too, so both are accepted. A passphrase that
        happens to be valid even-length hex (e.g. "cafe") is hex-decoded and
        therefore signs with different key bytes than its literal characters.

    Raises:
        SigningError: If the secret is empty
    """
    if not secret:
        raise SigningError("Merchant secret cannot be empty")

    if is_hex_secret(secret):
        return bytes.fromhex(secret), "hex"
    return secret.encode("utf-8"), "raw"


def _digest(key_bytes: bytes, canonical_string: str) -> str:
    return hmac.new(
        key_bytes,
        canonical_string.encode("utf-8"),
        hashlib.sha256
    ).hexdigest().upper()


def compute_secure_hash(canonical_string: str, secret: str) -> str:
    """HMAC-SHA256 of the canonical string as uppercase hex."""
    key_bytes, _ = derive_key(secret)
    return _digest(key_bytes, canonical_string)


def sign_request(request: TransactionRequest, local_timestamp: str) -> SigningContext:
    """
    Sign a transaction request.

    Args:
        request: Transaction to sign
        local_timestamp: DateTimeLocalTrxn (unix seconds), reused in the payload

    Returns:
        SigningContext with canonical string and uppercase hex signature

    Raises:
        SigningError: If the secret is empty or a signing field is missing
    """
    canonical_string = build_canonical_string(
        request.amount_minor_units,
        str(local_timestamp) if local_timestamp is not None else None,
        request.merchant_id,
        request.merchant_reference,
        request.terminal_id
    )

    key_bytes, key_encoding = derive_key(request.merchant_secret)
    signature = _digest(key_bytes, canonical_string)

    logger.debug(
        f"Signed {request.merchant_reference}: key={key_encoding}, "
        f"secret={mask(request.merchant_secret)}, hash={mask(signature, 8)}"
    )

    return SigningContext(
        local_timestamp=str(local_timestamp),
        canonical_string=canonical_string,
        signature=signature,
        key_encoding=key_encoding
    )


def verify_secure_hash(canonical_string: str, secret: str, secure_hash: str) -> bool:
    """
    Verify a SecureHash using constant-time comparison.

    Hex case is ignored. Returns False instead of raising on empty input.
    """
    if not secure_hash or not secret:
        return False

    expected = compute_secure_hash(canonical_string, secret)
    # Byte comparison, compare_digest rejects non-ASCII str operands
    return hmac.compare_digest(expected.encode("ascii"), secure_hash.upper().encode("utf-8"))


def render_signature(signature: str, quoted: bool = True) -> str:
    """
    Render a signature for a transport payload.

    The lightbox configure block embeds it as a quoted JS string literal; the
    alternate embedding path passes it unquoted.
    """
    return f"'{signature}'" if quoted else signature

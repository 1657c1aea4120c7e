import hashlib
import hmac
from enum import Enum
from typing import Optional


class SignatureCheck(Enum):
    VALID = "valid"
    MISSING = "missing"
    INVALID = "invalid"


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Hex-encoded HMAC-SHA256 of the raw request body."""
    if not secret:
        raise ValueError("webhook secret must not be empty")
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> SignatureCheck:
    """
    Check `signature` against the HMAC of `raw_body`.

    `raw_body` must be the bytes exactly as received; re-serializing a parsed
    body can change whitespace or key order and break a genuine signature.
    The comparison is constant-time.
    """
    if not signature:
        return SignatureCheck.MISSING

    expected = compute_signature(raw_body, secret)
    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
        return SignatureCheck.INVALID

    return SignatureCheck.VALID

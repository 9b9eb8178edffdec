# =====================================
# backend/utils/signatures.py - Payment Signature Checks
# =====================================
"""
HMAC-SHA256 helpers for the payment processor.

Both the checkout verification and the webhook are signed with a shared
secret and sent as lowercase hex digests.
"""
import hmac
import hashlib
from typing import Optional, Union


def hmac_sha256_hex(secret: str, message: Union[bytes, str]) -> str:
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signatures_match(expected: str, received: Optional[str]) -> bool:
    """Constant-time comparison; a missing signature never matches"""
    if not received:
        return False
    # Bytes on both sides: compare_digest rejects non-ASCII str
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8", "replace"))


def payment_signature(secret: str, payment_id: str, subscription_id: str) -> str:
    # Checkout signs "<payment_id>|<subscription_id>"
    return hmac_sha256_hex(secret, f"{payment_id}|{subscription_id}")


def verify_payment_signature(secret: str, payment_id: str, subscription_id: str, signature: Optional[str]) -> bool:
    return signatures_match(payment_signature(secret, payment_id, subscription_id), signature)


def verify_webhook_signature(secret: str, raw_body: bytes, signature: Optional[str]) -> bool:
    """The webhook HMAC covers the raw request bytes, before any JSON parsing"""
    return signatures_match(hmac_sha256_hex(secret, raw_body), signature)

"""Todoist webhook signature verification.

Todoist signs each delivery with HMAC-SHA256 over the raw request body,
keyed by the app's client secret, and sends it base64-encoded in the
`X-Todoist-Hmac-SHA256` header.
"""

import base64
import hashlib
import hmac
from typing import Optional

WEBHOOK_SIGNATURE_HEADER = "X-Todoist-Hmac-SHA256"


def compute_webhook_signature(payload: bytes, client_secret: str) -> str:
    """Compute the base64 HMAC-SHA256 signature of a payload."""
    mac = hmac.new(client_secret.encode("utf-8"), payload, hashlib.sha256)
    return base64.b64encode(mac.digest()).decode("ascii")


def verify_webhook_signature(payload: bytes, signature: Optional[str], client_secret: str) -> bool:
    """Check a delivery signature against the expected one (constant time)."""
    if not signature:
        return False
    expected = compute_webhook_signature(payload, client_secret)
    return hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii"))

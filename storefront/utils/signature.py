import hashlib
import hmac
import time
from typing import Mapping, Optional, Union

from storefront.config import SIGNATURE_TOLERANCE_SECONDS
from storefront.utils.logging import get_logger
from storefront.utils.types import SignedHeaderType

logger = get_logger(__name__)


def compute_signature(secret: str, timestamp: Union[int, str], message: Union[str, bytes]) -> str:
    """HMAC-SHA512 hex digest of ``<timestamp>.<message>``."""
    if isinstance(message, str):
        message = message.encode()
    payload = f"{timestamp}.".encode() + message
    return hmac.new(secret.encode(), payload, hashlib.sha512).hexdigest()


def sign_header(secret: str, message: Union[str, bytes], timestamp: Optional[int] = None, **fields: str) -> str:
    """Build a signed header value, e.g. ``email=a@b.c,signature=...,timestamp=...``."""
    if timestamp is None:
        timestamp = int(time.time())
    parts = dict(fields)
    parts["signature"] = compute_signature(secret, timestamp, message)
    parts["timestamp"] = str(timestamp)
    return ",".join(f"{key}={value}" for key, value in parts.items())


#  email=jane@example.com,signature=2ee76043a90a1d1d10f1...,timestamp=1737106896
def parse_header(header: str) -> SignedHeaderType:
    parsed_header: SignedHeaderType = SignedHeaderType()

    for part in header.split(','):
        if '=' not in part:
            continue
        # Split each part into key and value by the first '=' sign
        key, value = part.split('=', 1)
        parsed_header[key.strip()] = value.strip()

    return parsed_header


def validate_signature(
    header_parts: SignedHeaderType,
    secret: str,
    message: Union[str, bytes],
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
) -> bool:
    signature = header_parts.get("signature")
    if not signature:
        return False

    try:
        client_timestamp = int(header_parts.get("timestamp", ""))
    except ValueError:
        logger.warning("Invalid signature timestamp")
        return False

    # Reject signatures outside the tolerance window
    current_time = int(time.time())
    if abs(current_time - client_timestamp) > tolerance:
        logger.warning("Signature expired")
        return False

    expected_signature = compute_signature(secret, client_timestamp, message)
    return hmac.compare_digest(expected_signature, signature)


class WebhookVerifier:
    """Authenticates a payment notification before it touches any order."""

    def verify(self, headers: Mapping[str, str], body: bytes) -> bool:
        raise NotImplementedError


class HmacWebhookVerifier(WebhookVerifier):
    header_name = "X-Webhook-Signature"

    def __init__(self, secret: str, tolerance: int = SIGNATURE_TOLERANCE_SECONDS):
        self.secret = secret
        self.tolerance = tolerance

    def verify(self, headers: Mapping[str, str], body: bytes) -> bool:
        header = headers.get(self.header_name)
        if not header:
            return False
        return validate_signature(parse_header(header), self.secret, body, self.tolerance)


class TrustedWebhookVerifier(WebhookVerifier):
    """Accepts every notification. Only for deployments without a shared secret."""

    def verify(self, headers: Mapping[str, str], body: bytes) -> bool:
        return True

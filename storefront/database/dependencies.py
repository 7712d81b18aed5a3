import hmac

from fastapi import Depends
from fastapi.security import APIKeyHeader

from storefront import config
from storefront.utils.exceptions import AuthenticationError
from storefront.utils.logging import get_logger
from storefront.utils.signature import (
    HmacWebhookVerifier,
    TrustedWebhookVerifier,
    WebhookVerifier,
    parse_header,
    validate_signature,
)

logger = get_logger(__name__)


api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_admin(api_key: str = Depends(api_key_header)) -> str:
    """Admin access: the X-API-KEY header must match ADMIN_API_KEY."""
    if not config.ADMIN_API_KEY or not api_key:
        raise AuthenticationError("Invalid API Key")
    if not hmac.compare_digest(api_key, config.ADMIN_API_KEY):
        raise AuthenticationError("Invalid API Key")
    return api_key


def get_current_customer_email(auth_header: str = Depends(authorization_header)) -> str:
    """Customer access: a signed ``email=...,signature=...,timestamp=...`` header."""
    if auth_header is None or not config.CUSTOMER_TOKEN_SECRET:
        raise AuthenticationError("Access token required")

    header_parts = parse_header(auth_header)
    email = header_parts.get("email")
    if not email:
        raise AuthenticationError("Invalid token")

    valid = validate_signature(header_parts, config.CUSTOMER_TOKEN_SECRET, email)
    if not valid:
        raise AuthenticationError("Invalid token")

    return email.lower()


def get_webhook_verifier() -> WebhookVerifier:
    if config.WEBHOOK_SECRET:
        return HmacWebhookVerifier(config.WEBHOOK_SECRET)
    return TrustedWebhookVerifier()

# routes/webhook.py
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from storefront.database.database import get_db
from storefront.database.dependencies import get_webhook_verifier
from storefront.models.enums import ReconciliationResult
from storefront.models.schemas.payment import PaymentNotification, WebhookAck
from storefront.services.payment import PaymentService
from storefront.utils.exceptions import AuthenticationError
from storefront.utils.logging import get_logger
from storefront.utils.signature import WebhookVerifier

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("/payment", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    verifier: WebhookVerifier = Depends(get_webhook_verifier),
    db: Session = Depends(get_db)
):
    """
    Payment provider notification.

    Authenticated notifications are always acknowledged with 200 so the
    provider does not keep retrying; the outcome is reported in ``result``.
    """
    body = await request.body()
    if not verifier.verify(request.headers, body):
        logger.warning("Rejected payment notification with an invalid signature")
        raise AuthenticationError("Invalid signature")

    try:
        notification = PaymentNotification.model_validate_json(body)
    except PydanticValidationError as e:
        logger.warning(f"Malformed payment notification: {e}")
        return WebhookAck(result=ReconciliationResult.IGNORED)

    try:
        result = await PaymentService(db).reconcile(notification)
    except Exception as e:
        logger.exception(
            f"Failed to reconcile transaction {notification.transaction_id} "
            f"for order {notification.order_id}: {e}"
        )
        return WebhookAck(result=None)

    return WebhookAck(result=result)

"""
Webhook Routes

Inbound payment notifications from Xendit.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Header, Request

from app.api.deps import DbSession, Gateway
from app.core.exceptions import AppError, Unauthorized
from app.services.enrollment_service import EnrollmentService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
    "/xendit",
    summary="Xendit invoice webhook",
)
async def xendit_webhook(
    request: Request,
    db: DbSession,
    gateway: Gateway,
    x_callback_token: Optional[str] = Header(None, alias="x-callback-token"),
) -> dict:
    """
    Receive an invoice status notification.

    Delivery is at-least-once and unordered; reconciliation is idempotent.

    **Responses:**
    - 200 for processed and ignored events (the provider stops retrying)
    - 401 when the callback token does not match
    - 500 for unexpected internal errors (the provider retries)
    """
    if not gateway.verify_webhook_token(x_callback_token):
        logger.warning("Rejected webhook with invalid callback token")
        raise Unauthorized("Invalid callback token")

    try:
        body = await request.json()
    except ValueError:
        logger.warning("Ignoring webhook with malformed JSON body")
        return {"success": True}

    if not isinstance(body, dict):
        logger.warning("Ignoring webhook with non-object body")
        return {"success": True}

    event = gateway.parse_webhook(body)
    logger.info(
        "Webhook received: outcome=%s invoice=%s external_id=%s",
        event.outcome.value, event.invoice_id, event.external_id,
    )

    try:
        await EnrollmentService(db).reconcile_payment(event)
    except AppError as e:
        await db.rollback()
        logger.warning("Webhook for invoice %s not applied: %s", event.invoice_id, e.message)

    return {"success": True}

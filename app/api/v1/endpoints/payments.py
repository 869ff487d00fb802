"""
Payment Routes

Checkout for priced courses.
"""

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DbSession, Gateway
from app.schemas.payment import InvoiceCreate, InvoiceResponse
from app.services.payment_service import PaymentService


router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/invoices",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a payment invoice",
)
async def create_invoice(
    data: InvoiceCreate,
    current_user: CurrentUser,
    db: DbSession,
    gateway: Gateway,
) -> InvoiceResponse:
    """
    Create a hosted invoice for a priced course.

    The payer is redirected to `invoiceUrl`; enrollment is settled by the
    provider's webhook once the invoice is paid.

    Raises:
        ValidationError: If the course is free.
        Conflict: If the caller already has access.
        UpstreamError: If the provider rejects the request.
    """
    record, invoice = await PaymentService(db, gateway).create_checkout(current_user, data)
    return InvoiceResponse(
        id=record.id,
        external_id=record.external_id,
        status=record.status,
        amount=record.amount,
        currency=record.currency,
        description=invoice.get("description"),
        invoice_url=record.invoice_url,
        expiry_date=invoice.get("expiry_date"),
    )

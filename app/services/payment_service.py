"""
Payment Service

Adapter for the Xendit invoicing API plus the checkout flow that issues an
invoice for a priced course.

Outbound: invoice creation (POST /v2/invoices) with Basic auth.
Inbound: webhook token verification and payload normalization.
"""

import base64
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import Conflict, InternalError, UpstreamError, ValidationError
from app.core.http_client import post_with_retry
from app.core.security import tokens_match
from app.models.enrollment import Enrollment
from app.models.enums import InvoiceStatus, WebhookOutcome
from app.models.payment_invoice import PaymentInvoice
from app.models.user import User
from app.schemas.payment import CustomerInfo, InvoiceCreate, WebhookEvent
from app.services.catalog_service import CatalogService


logger = logging.getLogger(__name__)


EXTERNAL_ID_PREFIX = "enroll"

# `event` field values sent by the provider
EVENT_OUTCOMES: Dict[str, WebhookOutcome] = {
    "invoice.paid": WebhookOutcome.PAID,
    "invoice.expired": WebhookOutcome.EXPIRED,
    "invoice.payment_failed": WebhookOutcome.FAILED,
}

# `status` field values, used when no `event` is present
STATUS_OUTCOMES: Dict[str, WebhookOutcome] = {
    "PAID": WebhookOutcome.PAID,
    "SETTLED": WebhookOutcome.PAID,
    "EXPIRED": WebhookOutcome.EXPIRED,
    "FAILED": WebhookOutcome.FAILED,
}


# ============== external_id Convention ==============

def build_external_id(course_id: str, user_id: str) -> str:
    """Correlation string echoed back by the provider: enroll-<courseId>-<userId>."""
    return f"{EXTERNAL_ID_PREFIX}-{course_id}-{user_id}"


def split_external_id(external_id: Optional[str]) -> List[Tuple[str, str]]:
    """
    Enumerate every (course_id, user_id) reading of an external_id.

    Both ids may contain hyphens, so "enroll-abc-123-xyz-456" is ambiguous
    on its own. Every split point after the prefix is returned, in order;
    callers pick the candidate whose ids actually exist.

    Example:
        "enroll-abc-123-xyz-456" ->
            [("abc", "123-xyz-456"), ("abc-123", "xyz-456"), ("abc-123-xyz", "456")]

    Returns:
        Candidate pairs; empty when the string is not in the expected shape.
    """
    if not external_id:
        return []

    prefix = f"{EXTERNAL_ID_PREFIX}-"
    if not external_id.startswith(prefix):
        return []

    rest = external_id[len(prefix):]
    candidates = []
    for index, char in enumerate(rest):
        if char != "-":
            continue
        course_id, user_id = rest[:index], rest[index + 1:]
        if course_id and user_id:
            candidates.append((course_id, user_id))
    return candidates


def _scalar_text(value: Any) -> Optional[str]:
    """Webhook identifiers as strings; numbers are stringified, anything else dropped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return str(value)
    return None


# ============== Gateway Adapter ==============

class XenditGateway:
    """
    Thin adapter over the Xendit Invoice API.

    Holds no state besides configuration; the shared HTTP client lives in
    app.core.http_client.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    @property
    def invoices_url(self) -> str:
        return f"{self.config.XENDIT_API_BASE.rstrip('/')}/v2/invoices"

    def headers(self) -> Dict[str, str]:
        """
        Authorization headers for provider requests.

        Raises:
            InternalError: If no secret key is configured.
        """
        if not self.config.XENDIT_SECRET_KEY:
            raise InternalError("Payment provider is not configured")

        token = base64.b64encode(f"{self.config.XENDIT_SECRET_KEY}:".encode()).decode()
        headers = {
            "Authorization": f"Basic {token}",
            "Content-Type": "application/json",
        }
        # Scope operations to the sub-account when one is configured
        if self.config.XENDIT_SUBACCOUNT_ID:
            headers["for-user-id"] = self.config.XENDIT_SUBACCOUNT_ID
        return headers

    def build_invoice_payload(
        self,
        external_id: str,
        amount: int,
        description: Optional[str] = None,
        customer: Optional[CustomerInfo] = None,
        items: Optional[List[Dict[str, Any]]] = None,
        success_redirect_url: Optional[str] = None,
        failure_redirect_url: Optional[str] = None,
        invoice_duration: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Build the request body for invoice creation.

        Redirect URLs default to the storefront's payment result pages.
        """
        if amount <= 0:
            raise ValidationError("Amount must be positive")
        if not external_id:
            raise ValidationError("External ID is required")

        base_url = self.config.APP_URL.rstrip("/")
        payload: Dict[str, Any] = {
            "external_id": external_id,
            "amount": amount,
            "currency": self.config.PAYMENT_CURRENCY,
            "success_redirect_url": success_redirect_url or f"{base_url}/payment/success",
            "failure_redirect_url": failure_redirect_url or f"{base_url}/payment/failed",
        }

        if description:
            payload["description"] = description

        if customer:
            payload["customer"] = {
                "given_names": customer.given_names or "Customer",
                "surname": customer.surname or "",
                "email": customer.email,
                "mobile_number": customer.mobile_number,
            }

        if items:
            payload["items"] = [
                {
                    "name": item["name"],
                    "quantity": item.get("quantity", 1),
                    "price": item["price"],
                    "category": item.get("category"),
                    "url": item.get("url"),
                }
                for item in items
            ]

        if invoice_duration:
            payload["invoice_duration"] = invoice_duration

        return payload

    async def create_invoice(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an invoice with the provider.

        The call is bounded by PAYMENT_TIMEOUT_SECONDS and retried
        PAYMENT_MAX_RETRIES times on transport failure only; a 5xx is not
        retried because invoice creation is not idempotent.

        Returns:
            The provider's invoice object (includes ``id`` and ``invoice_url``).

        Raises:
            UpstreamError: On transport failure or a non-2xx response.
        """
        try:
            response = await post_with_retry(
                self.invoices_url,
                json=payload,
                headers=self.headers(),
                timeout=self.config.PAYMENT_TIMEOUT_SECONDS,
                max_retries=self.config.PAYMENT_MAX_RETRIES,
                retry_on_server_error=False,
            )
        except httpx.HTTPError as e:
            logger.error("Invoice creation for %s failed: %s", payload.get("external_id"), e)
            raise UpstreamError("Payment provider is unreachable") from e

        if response.status_code >= 400:
            logger.error(
                "Provider rejected invoice %s: %s %s",
                payload.get("external_id"), response.status_code, response.text,
            )
            raise UpstreamError(
                "Failed to create payment link",
                upstream_status=response.status_code,
                upstream_body=response.text,
            )

        return response.json()

    def verify_webhook_token(self, received_token: Optional[str]) -> bool:
        """
        Verify webhook authenticity using the shared callback token.

        When no token is configured every request is accepted.
        """
        expected = self.config.XENDIT_WEBHOOK_TOKEN
        if not expected:
            logger.warning("XENDIT_WEBHOOK_TOKEN not configured, skipping webhook verification")
            return True
        return tokens_match(received_token, expected)

    @staticmethod
    def parse_webhook(body: Dict[str, Any]) -> WebhookEvent:
        """
        Normalize a webhook body into a WebhookEvent.

        The provider sends either an ``event`` field or, absent that, a
        ``status`` field. Unrecognized values map to UNKNOWN.
        """
        raw_event = _scalar_text(body.get("event"))
        raw_status = _scalar_text(body.get("status"))

        if raw_event:
            outcome = EVENT_OUTCOMES.get(raw_event, WebhookOutcome.UNKNOWN)
        elif raw_status:
            outcome = STATUS_OUTCOMES.get(raw_status.upper(), WebhookOutcome.UNKNOWN)
        else:
            outcome = WebhookOutcome.UNKNOWN

        # Event-style payloads may nest the invoice under "data"
        invoice = body.get("data") if isinstance(body.get("data"), dict) else body

        amount = invoice.get("amount", invoice.get("paid_amount"))
        try:
            amount = int(amount) if amount is not None else None
        except (TypeError, ValueError, OverflowError):
            amount = None

        return WebhookEvent(
            outcome=outcome,
            invoice_id=_scalar_text(invoice.get("id")),
            external_id=_scalar_text(invoice.get("external_id")),
            amount=amount,
            raw_event=raw_event,
            raw_status=raw_status,
            failure_code=_scalar_text(invoice.get("failure_code")),
            payload=body,
        )


# ============== Checkout ==============

class PaymentService:
    """Issues invoices for priced courses and records them for webhook lookup."""

    def __init__(self, db: AsyncSession, gateway: XenditGateway):
        self.db = db
        self.gateway = gateway

    async def get_invoice(self, invoice_id: str) -> Optional[PaymentInvoice]:
        return await self.db.get(PaymentInvoice, invoice_id)

    async def find_invoice_by_external_id(self, external_id: str) -> Optional[PaymentInvoice]:
        result = await self.db.execute(
            select(PaymentInvoice)
            .where(PaymentInvoice.external_id == external_id)
            .order_by(PaymentInvoice.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _customer_for(user: User, customer: Optional[CustomerInfo]) -> CustomerInfo:
        name_parts = (user.name or "").split()
        defaults = CustomerInfo(
            given_names=name_parts[0] if name_parts else None,
            surname=" ".join(name_parts[1:]) or None,
            email=user.email,
        )
        if customer is None:
            return defaults
        return CustomerInfo(
            given_names=customer.given_names or defaults.given_names,
            surname=customer.surname or defaults.surname,
            email=customer.email or defaults.email,
            mobile_number=customer.mobile_number,
        )

    async def create_checkout(
        self, user: User, data: InvoiceCreate
    ) -> Tuple[PaymentInvoice, Dict[str, Any]]:
        """
        Create a provider invoice for a priced course.

        The amount always comes from the stored course price.

        Returns:
            The stored invoice record and the raw provider invoice.

        Raises:
            NotFound: If the course does not exist.
            ValidationError: If the course is free.
            Conflict: If the user already has access to the course.
            UpstreamError: If the provider call fails.
        """
        course = await CatalogService(self.db).get_course(data.course_id)

        if course.price <= 0:
            raise ValidationError("This course is free; enroll directly")

        result = await self.db.execute(
            select(Enrollment).where(
                Enrollment.user_id == user.id,
                Enrollment.course_id == course.id,
            )
        )
        enrollment = result.scalar_one_or_none()
        if enrollment and enrollment.has_access:
            raise Conflict("Already enrolled in this course")

        external_id = build_external_id(course.id, user.id)
        payload = self.gateway.build_invoice_payload(
            external_id=external_id,
            amount=course.price,
            description=f"Enrollment: {course.title}",
            customer=self._customer_for(user, data.customer),
            items=[{
                "name": course.title,
                "quantity": 1,
                "price": course.price,
                "category": course.category.name if course.category else None,
                "url": f"{self.gateway.config.APP_URL.rstrip('/')}/courses/{course.id}",
            }],
            success_redirect_url=data.success_redirect_url,
            failure_redirect_url=data.failure_redirect_url,
            invoice_duration=data.invoice_duration,
        )

        invoice = await self.gateway.create_invoice(payload)
        invoice_id = invoice.get("id")
        if not invoice_id:
            raise UpstreamError("Payment provider returned an invoice without an id")

        record = PaymentInvoice(
            id=invoice_id,
            external_id=external_id,
            user_id=user.id,
            course_id=course.id,
            amount=course.price,
            currency=invoice.get("currency") or self.gateway.config.PAYMENT_CURRENCY,
            status=InvoiceStatus.PENDING.value,
            invoice_url=invoice.get("invoice_url"),
        )
        self.db.add(record)
        await self.db.commit()

        logger.info("Invoice %s issued for user %s, course %s", invoice_id, user.id, course.id)
        return record, invoice

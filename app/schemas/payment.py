"""
Payment Schemas

Checkout requests, invoice responses, and the normalized webhook event.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import WebhookOutcome
from app.schemas.base import CamelModel


class CustomerInfo(CamelModel):
    """Payer details forwarded to the provider."""

    given_names: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None
    mobile_number: Optional[str] = None


class InvoiceCreate(CamelModel):
    """Schema for starting a checkout for a priced course."""

    course_id: str = Field(..., min_length=1)
    customer: Optional[CustomerInfo] = None
    success_redirect_url: Optional[str] = None
    failure_redirect_url: Optional[str] = None
    invoice_duration: Optional[int] = Field(default=None, gt=0, description="Seconds until expiry")


class InvoiceResponse(CamelModel):
    id: str
    external_id: str
    status: str
    amount: int
    currency: str
    description: Optional[str] = None
    invoice_url: Optional[str] = None
    expiry_date: Optional[str] = None


class WebhookEvent(BaseModel):
    """
    Provider webhook decoded into a single tagged shape.

    ``outcome`` is derived from either the ``event`` or the ``status`` field
    of the raw payload, whichever the provider sent.
    """

    model_config = ConfigDict(frozen=True)

    outcome: WebhookOutcome
    invoice_id: Optional[str] = None
    external_id: Optional[str] = None
    amount: Optional[int] = None
    raw_event: Optional[str] = None
    raw_status: Optional[str] = None
    failure_code: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)

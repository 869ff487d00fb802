"""
Payment Invoice Model

Lookup table from provider invoice ids to the (course, user) they pay for.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, utcnow
from app.models.enums import InvoiceStatus


class PaymentInvoice(Base):
    """
    Invoice created with the payment provider.

    Webhooks are resolved through this table first, so course and user ids
    never have to be recovered by parsing the free-text external_id.

    Attributes:
        id: Provider invoice id (also stored as Enrollment.payment_id).
        external_id: Correlation string sent to the provider.
        user_id: Paying user.
        course_id: Course being purchased.
        amount: Amount in the smallest currency unit.
        currency: ISO currency code.
        status: pending, paid, expired or failed.
        invoice_url: Hosted payment page for the payer.
    """

    __tablename__ = "payment_invoices"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )
    external_id: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    currency: Mapped[str] = mapped_column(
        String(8),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=InvoiceStatus.PENDING.value,
        nullable=False,
    )
    invoice_url: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PaymentInvoice(id={self.id}, external_id={self.external_id}, status={self.status})>"

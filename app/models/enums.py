"""
Database Enums

Python Enums stored as plain strings so the same schema works on
PostgreSQL and SQLite.
"""

import enum


class PaymentStatus(str, enum.Enum):
    """Enrollment payment status."""
    PENDING = "pending"
    FREE = "free"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class InvoiceStatus(str, enum.Enum):
    """Status of an invoice issued by the payment provider."""
    PENDING = "pending"
    PAID = "paid"
    EXPIRED = "expired"
    FAILED = "failed"


class WebhookOutcome(str, enum.Enum):
    """Normalized outcome of a payment provider webhook."""
    PAID = "paid"
    EXPIRED = "expired"
    FAILED = "failed"
    UNKNOWN = "unknown"

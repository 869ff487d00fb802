"""
Course Marketplace Backend - Services Module

Business logic layer. Each service is constructed with the request's
database session.
"""

from app.services.catalog_service import CatalogService
from app.services.enrollment_service import EnrollmentService
from app.services.payment_service import PaymentService, XenditGateway
from app.services.progress_service import ProgressService

__all__ = [
    "CatalogService",
    "EnrollmentService",
    "PaymentService",
    "ProgressService",
    "XenditGateway",
]

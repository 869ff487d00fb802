"""
Enrollment Service

Enrollment creation, progress overwrite, and reconciliation of payment
webhooks into enrollment state.

State machine for payment_status:
    pending -> paid | failed
    failed  -> paid
    free    -> paid
    paid, refunded: terminal
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import insert_if_absent
from app.core.exceptions import Conflict, NotFound, ValidationError
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.enums import InvoiceStatus, PaymentStatus, WebhookOutcome
from app.models.payment_invoice import PaymentInvoice
from app.models.user import User
from app.schemas.payment import WebhookEvent
from app.schemas.progress import EnrollmentProgressUpdate
from app.services.catalog_service import CatalogService
from app.services.payment_service import split_external_id


logger = logging.getLogger(__name__)


# Statuses a paid webhook may upgrade
PAYABLE_STATUSES = (
    PaymentStatus.PENDING.value,
    PaymentStatus.FAILED.value,
    PaymentStatus.FREE.value,
)


class EnrollmentService:
    """Enrollment engine bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============== Lookups ==============

    async def find(self, user_id: str, course_id: str) -> Optional[Enrollment]:
        result = await self.db.execute(
            select(Enrollment).where(
                Enrollment.user_id == user_id,
                Enrollment.course_id == course_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_for_user(self, enrollment_id: str, user_id: str) -> Enrollment:
        """
        Get an enrollment owned by the user.

        Raises:
            NotFound: If it does not exist or belongs to someone else.
        """
        result = await self.db.execute(
            select(Enrollment).where(
                Enrollment.id == enrollment_id,
                Enrollment.user_id == user_id,
            )
        )
        enrollment = result.scalar_one_or_none()
        if not enrollment:
            raise NotFound("Enrollment not found")
        return enrollment

    async def list_enrollments(self, user_id: str) -> List[Enrollment]:
        """All of the user's enrollments, most recent first, with course loaded."""
        result = await self.db.execute(
            select(Enrollment)
            .where(Enrollment.user_id == user_id)
            .order_by(Enrollment.enrolled_at.desc())
        )
        return list(result.scalars().all())

    # ============== Enroll ==============

    async def _status_for_payment(self, user: User, course: Course, payment_id: str) -> str:
        invoice = await self.db.get(PaymentInvoice, payment_id)
        if invoice is None:
            return PaymentStatus.PAID.value

        if invoice.user_id != user.id or invoice.course_id != course.id:
            raise ValidationError("Payment does not belong to this enrollment")

        if invoice.status == InvoiceStatus.PAID.value:
            return PaymentStatus.PAID.value
        return PaymentStatus.PENDING.value

    async def enroll(self, user: User, course_id: str, payment_id: Optional[str] = None) -> Enrollment:
        """
        Enroll a user in a course.

        Status is ``paid`` when a payment id is supplied (``pending`` if that
        invoice is known and not yet settled), ``free`` for a free course and
        ``pending`` for a priced course awaiting its webhook.

        Raises:
            NotFound: If the course does not exist.
            Conflict: If the user is already enrolled.
        """
        course = await CatalogService(self.db).get_course(course_id)

        if payment_id:
            status = await self._status_for_payment(user, course, payment_id)
        elif course.is_free:
            status = PaymentStatus.FREE.value
        else:
            status = PaymentStatus.PENDING.value

        enrollment_id = await insert_if_absent(
            self.db,
            Enrollment,
            {
                "user_id": user.id,
                "course_id": course.id,
                "payment_status": status,
                "payment_id": payment_id,
            },
            ("user_id", "course_id"),
        )
        if enrollment_id is None:
            raise Conflict("Already enrolled in this course")

        await self.db.commit()
        logger.info("User %s enrolled in %s (%s)", user.id, course.id, status)

        return await self.get_for_user(enrollment_id, user.id)

    # ============== Progress Overwrite ==============

    async def update_progress(
        self,
        enrollment_id: str,
        user: User,
        data: EnrollmentProgressUpdate,
    ) -> Enrollment:
        """
        Overwrite an enrollment's progress and completed lesson set.

        Lesson ids that are not part of the course are dropped. Identical
        input leaves the row untouched.

        Raises:
            NotFound: If the enrollment is missing or not the caller's.
            ValidationError: If course_id is given and does not match.
        """
        enrollment = await self.get_for_user(enrollment_id, user.id)

        if data.course_id and data.course_id != enrollment.course_id:
            raise ValidationError("Course does not match enrollment")

        lessons = await CatalogService(self.db).list_lessons(enrollment.course_id)
        course_lessons = [lesson.id for lesson in lessons]
        wanted = set(data.completed_lessons)
        completed = [lesson_id for lesson_id in course_lessons if lesson_id in wanted]

        if enrollment.progress == data.progress and list(enrollment.completed_lessons or []) == completed:
            return enrollment

        enrollment.progress = data.progress
        enrollment.completed_lessons = completed
        await self.db.commit()
        await self.db.refresh(enrollment)
        return enrollment

    # ============== Webhook Reconciliation ==============

    async def _resolve_invoice(self, event: WebhookEvent) -> Optional[PaymentInvoice]:
        if event.invoice_id:
            invoice = await self.db.get(PaymentInvoice, event.invoice_id)
            if invoice:
                return invoice

        if event.external_id:
            result = await self.db.execute(
                select(PaymentInvoice)
                .where(PaymentInvoice.external_id == event.external_id)
                .order_by(PaymentInvoice.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

        return None

    async def resolve_target(self, external_id: Optional[str]) -> Optional[Tuple[str, str]]:
        """
        Pick the (course_id, user_id) reading of an external_id whose
        course and user both exist.
        """
        for course_id, user_id in split_external_id(external_id):
            if await self.db.get(Course, course_id) is None:
                continue
            if await self.db.get(User, user_id) is None:
                continue
            return course_id, user_id
        return None

    async def reconcile_payment(self, event: WebhookEvent) -> Optional[Enrollment]:
        """
        Apply a provider webhook to enrollment state.

        Safe under at-least-once, out-of-order delivery: repeated events are
        no-ops and an insert that loses a race falls through to the update
        path. Unresolvable events are logged and ignored.

        Returns:
            The affected enrollment, or None when nothing changed.
        """
        invoice = await self._resolve_invoice(event)
        if invoice:
            course_id, user_id = invoice.course_id, invoice.user_id
        else:
            target = await self.resolve_target(event.external_id)
            if target is None:
                logger.warning(
                    "Ignoring webhook with unresolvable external_id %r (invoice %s)",
                    event.external_id, event.invoice_id,
                )
                return None
            course_id, user_id = target

        if event.outcome == WebhookOutcome.PAID:
            enrollment = await self._apply_paid(user_id, course_id, event.invoice_id)
            self._mark_invoice(invoice, InvoiceStatus.PAID)
        elif event.outcome == WebhookOutcome.FAILED:
            enrollment = await self._apply_failed(user_id, course_id)
            self._mark_invoice(invoice, InvoiceStatus.FAILED)
        elif event.outcome == WebhookOutcome.EXPIRED:
            logger.info("Invoice %s expired for user %s, course %s", event.invoice_id, user_id, course_id)
            enrollment = None
            self._mark_invoice(invoice, InvoiceStatus.EXPIRED)
        else:
            logger.info(
                "Ignoring webhook with unknown outcome (event=%r, status=%r)",
                event.raw_event, event.raw_status,
            )
            return None

        await self.db.commit()
        return enrollment

    @staticmethod
    def _mark_invoice(invoice: Optional[PaymentInvoice], status: InvoiceStatus) -> None:
        if invoice is not None and invoice.status != status.value:
            invoice.status = status.value

    async def _apply_paid(
        self, user_id: str, course_id: str, payment_id: Optional[str]
    ) -> Optional[Enrollment]:
        enrollment = await self.find(user_id, course_id)

        if enrollment is None:
            inserted = await insert_if_absent(
                self.db,
                Enrollment,
                {
                    "user_id": user_id,
                    "course_id": course_id,
                    "payment_status": PaymentStatus.PAID.value,
                    "payment_id": payment_id,
                },
                ("user_id", "course_id"),
            )
            if inserted is not None:
                logger.info("Created paid enrollment %s for user %s, course %s", inserted, user_id, course_id)
                return await self.find(user_id, course_id)

            # Another writer created the row between the lookup and the insert
            enrollment = await self.find(user_id, course_id)
            if enrollment is None:
                return None

        if enrollment.payment_status == PaymentStatus.PAID.value:
            if payment_id and enrollment.payment_id not in (None, payment_id):
                logger.warning(
                    "Enrollment %s already paid with %s, ignoring payment %s",
                    enrollment.id, enrollment.payment_id, payment_id,
                )
            return enrollment

        if enrollment.payment_status not in PAYABLE_STATUSES:
            logger.warning(
                "Enrollment %s is %s, ignoring paid webhook %s",
                enrollment.id, enrollment.payment_status, payment_id,
            )
            return enrollment

        logger.info(
            "Enrollment %s: %s -> paid (%s)",
            enrollment.id, enrollment.payment_status, payment_id,
        )
        enrollment.payment_status = PaymentStatus.PAID.value
        enrollment.payment_id = payment_id
        return enrollment

    async def _apply_failed(self, user_id: str, course_id: str) -> Optional[Enrollment]:
        enrollment = await self.find(user_id, course_id)
        if enrollment is None:
            logger.info("Payment failed for user %s, course %s with no enrollment", user_id, course_id)
            return None

        if enrollment.payment_status == PaymentStatus.PENDING.value:
            logger.info("Enrollment %s: pending -> failed", enrollment.id)
            enrollment.payment_status = PaymentStatus.FAILED.value
        return enrollment

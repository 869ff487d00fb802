"""
API Tests

Routes exercised end to end over ASGI with the test database, covering
authentication, the error envelope, enrollment, progress, checkout and
the payment webhook.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from app.models import Enrollment, PaymentInvoice, User
from app.models.enums import InvoiceStatus, PaymentStatus


WEBHOOK_TOKEN = "test-callback-token"


async def count_enrollments(session_maker) -> int:
    async with session_maker() as session:
        result = await session.execute(select(func.count(Enrollment.id)))
        return result.scalar_one()


class TestHealthAndErrors:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_missing_token_uses_error_envelope(self, client):
        response = await client.get("/api/v1/enrollments")

        assert response.status_code == 401
        body = response.json()
        assert body["error"]["code"] == "UNAUTHORIZED"
        assert body["path"] == "/api/v1/enrollments"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_unknown_course_is_not_found(self, client):
        response = await client.get("/api/v1/courses/missing")

        assert response.status_code == 404
        assert response.json()["error"] == {
            "code": "NOT_FOUND",
            "message": "Course not found",
            "details": None,
        }

    @pytest.mark.asyncio
    async def test_request_validation(self, client, auth_headers):
        response = await client.post(
            "/api/v1/enrollments", json={}, headers=auth_headers("student-1"),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_first_request_provisions_user(self, client, session_maker, auth_headers):
        response = await client.get(
            "/api/v1/enrollments",
            headers=auth_headers("idp_user_1", email="ana@example.com", name="Ana Putri"),
        )

        assert response.status_code == 200
        assert response.json() == []
        async with session_maker() as session:
            user = await session.get(User, "idp_user_1")
        assert user.email == "ana@example.com"
        assert user.name == "Ana Putri"

    @pytest.mark.asyncio
    async def test_email_owned_by_another_user_conflicts(self, client, session_maker, make_user, auth_headers):
        await make_user("existing-user", email="ana@example.com")

        response = await client.get(
            "/api/v1/enrollments",
            headers=auth_headers("idp_user_2", email="ana@example.com"),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"
        async with session_maker() as session:
            assert await session.get(User, "idp_user_2") is None

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get(
            "/api/v1/enrollments", headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401


class TestCourseRoutes:
    @pytest.mark.asyncio
    async def test_create_publish_and_read(self, client, make_user, auth_headers):
        await make_user("instructor-1", bio="Statistician")
        headers = auth_headers("instructor-1")

        created = await client.post(
            "/api/v1/courses",
            json={"title": "Statistics", "description": "Numbers", "price": 50000},
            headers=headers,
        )
        assert created.status_code == 201
        course_id = created.json()["id"]
        assert created.json()["isPublished"] is False

        lesson = await client.post(
            "/api/v1/lessons",
            json={"courseId": course_id, "title": "Means", "orderIndex": 0, "isFree": True},
            headers=headers,
        )
        assert lesson.status_code == 201

        published = await client.put(
            f"/api/v1/courses/{course_id}", json={"isPublished": True}, headers=headers,
        )
        assert published.json()["isPublished"] is True

        listing = await client.get("/api/v1/courses")
        assert [c["id"] for c in listing.json()] == [course_id]

        detail = await client.get(f"/api/v1/courses/{course_id}")
        body = detail.json()
        assert body["instructorProfile"]["bio"] == "Statistician"
        assert [l["title"] for l in body["lessons"]] == ["Means"]

        dashboard = await client.get("/api/v1/instructor/courses", headers=headers)
        assert dashboard.json()[0]["lessonCount"] == 1
        assert dashboard.json()[0]["enrollmentCount"] == 0

    @pytest.mark.asyncio
    async def test_non_owner_cannot_update(self, client, make_user, make_course, auth_headers):
        owner = await make_user("instructor-1")
        course = await make_course(owner)

        response = await client.put(
            f"/api/v1/courses/{course.id}", json={"price": 1}, headers=auth_headers("someone-else"),
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"


class TestEnrollmentRoutes:
    @pytest.mark.asyncio
    async def test_enroll_progress_roundtrip(self, client, make_user, make_course, make_lesson, auth_headers):
        owner = await make_user("instructor-1", bio="Bio")
        course = await make_course(owner, price=0)
        lessons = [await make_lesson(course, index) for index in range(4)]
        headers = auth_headers("student-1")

        enrolled = await client.post(
            "/api/v1/enrollments", json={"courseId": course.id}, headers=headers,
        )
        assert enrolled.status_code == 201
        assert enrolled.json()["paymentStatus"] == "free"

        again = await client.post(
            "/api/v1/enrollments", json={"courseId": course.id}, headers=headers,
        )
        assert again.status_code == 409

        marked = await client.post(
            "/api/v1/progress",
            json={"lessonId": lessons[0].id, "courseId": course.id, "isCompleted": True},
            headers=headers,
        )
        assert marked.status_code == 200
        assert marked.json()["enrollment"]["progress"] == 25
        assert marked.json()["lessonProgress"]["isCompleted"] is True

        progress = await client.get(
            "/api/v1/progress", params={"courseId": course.id}, headers=headers,
        )
        assert progress.json()["completedLessons"] == [lessons[0].id]
        assert progress.json()["progress"] == 25

        heartbeat = await client.post(
            "/api/v1/progress/heartbeat",
            json={"lessonId": lessons[1].id, "watchTime": 42},
            headers=headers,
        )
        assert heartbeat.json()["watchTime"] == 42

        listing = await client.get("/api/v1/enrollments", headers=headers)
        assert listing.json()[0]["course"]["id"] == course.id
        assert listing.json()[0]["instructor"]["bio"] == "Bio"

    @pytest.mark.asyncio
    async def test_progress_without_enrollment(self, client, make_user, make_course, auth_headers):
        owner = await make_user("instructor-1")
        course = await make_course(owner)

        response = await client.get(
            "/api/v1/progress", params={"courseId": course.id}, headers=auth_headers("student-1"),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_update_someone_elses_enrollment(self, client, make_user, make_course, auth_headers):
        owner = await make_user("instructor-1")
        course = await make_course(owner)
        enrolled = await client.post(
            "/api/v1/enrollments", json={"courseId": course.id}, headers=auth_headers("student-1"),
        )

        response = await client.put(
            f"/api/v1/enrollments/{enrolled.json()['id']}",
            json={"progress": 100, "completedLessons": []},
            headers=auth_headers("student-2"),
        )

        assert response.status_code == 404


class TestCheckout:
    @pytest.mark.asyncio
    async def test_creates_invoice(self, client, session_maker, make_user, make_course, auth_headers, mock_httpx_response):
        owner = await make_user("instructor-1")
        course = await make_course(owner, course_id="course-1", price=150000)
        provider_invoice = {
            "id": "inv_abc",
            "external_id": "enroll-course-1-student-1",
            "status": "PENDING",
            "amount": 150000,
            "currency": "IDR",
            "invoice_url": "https://checkout.xendit.co/web/inv_abc",
            "expiry_date": "2026-10-20T00:00:00.000Z",
        }

        with patch(
            "app.services.payment_service.post_with_retry",
            AsyncMock(return_value=mock_httpx_response(200, provider_invoice)),
        ) as mock_post:
            response = await client.post(
                "/api/v1/payments/invoices",
                json={"courseId": course.id},
                headers=auth_headers("student-1", email="student@example.com", name="Budi Santoso"),
            )

        assert response.status_code == 201
        body = response.json()
        assert body["id"] == "inv_abc"
        assert body["invoiceUrl"] == "https://checkout.xendit.co/web/inv_abc"
        assert body["externalId"] == "enroll-course-1-student-1"

        payload = mock_post.call_args.kwargs["json"]
        assert payload["amount"] == 150000
        assert payload["customer"]["given_names"] == "Budi"
        assert payload["customer"]["surname"] == "Santoso"
        assert payload["success_redirect_url"] == "https://shop.example.com/payment/success"

        async with session_maker() as session:
            invoice = await session.get(PaymentInvoice, "inv_abc")
        assert invoice.course_id == "course-1"
        assert invoice.user_id == "student-1"

    @pytest.mark.asyncio
    async def test_free_course_rejected(self, client, make_user, make_course, auth_headers):
        owner = await make_user("instructor-1")
        course = await make_course(owner, price=0)

        with patch("app.services.payment_service.post_with_retry", AsyncMock()) as mock_post:
            response = await client.post(
                "/api/v1/payments/invoices", json={"courseId": course.id}, headers=auth_headers("student-1"),
            )

        assert response.status_code == 400
        mock_post.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_error_is_surfaced(self, client, make_user, make_course, auth_headers, mock_httpx_response):
        owner = await make_user("instructor-1")
        course = await make_course(owner, price=150000)

        with patch(
            "app.services.payment_service.post_with_retry",
            AsyncMock(return_value=mock_httpx_response(401, text="INVALID_API_KEY")),
        ):
            response = await client.post(
                "/api/v1/payments/invoices", json={"courseId": course.id}, headers=auth_headers("student-1"),
            )

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "UPSTREAM_ERROR"
        assert error["details"] == {"upstream_status": 401, "upstream_body": "INVALID_API_KEY"}


class TestXenditWebhook:
    """Tests for POST /webhooks/xendit."""

    URL = "/api/v1/webhooks/xendit"

    @pytest.mark.asyncio
    async def test_wrong_token_is_unauthorized(self, client):
        response = await client.post(
            self.URL, json={"status": "PAID"}, headers={"x-callback-token": "wrong"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_paid_webhook_settles_enrollment(self, client, session_maker, make_user, make_course):
        owner = await make_user("instructor-1")
        await make_user("xyz-456")
        await make_course(owner, course_id="abc-123", price=150000)
        body = {"id": "inv_1", "external_id": "enroll-abc-123-xyz-456", "status": "PAID", "amount": 150000}

        for _ in range(2):
            response = await client.post(self.URL, json=body, headers={"x-callback-token": WEBHOOK_TOKEN})
            assert response.status_code == 200
            assert response.json() == {"success": True}

        async with session_maker() as session:
            result = await session.execute(select(Enrollment))
            enrollments = result.scalars().all()
        assert len(enrollments) == 1
        assert enrollments[0].course_id == "abc-123"
        assert enrollments[0].user_id == "xyz-456"
        assert enrollments[0].payment_status == PaymentStatus.PAID.value

    @pytest.mark.asyncio
    async def test_expired_before_enroll_creates_nothing(self, client, session_maker, make_user, make_course):
        owner = await make_user("instructor-1")
        student = await make_user("student-1")
        course = await make_course(owner, price=150000)

        response = await client.post(
            self.URL,
            json={"event": "invoice.expired", "data": {"id": "inv_x", "external_id": f"enroll-{course.id}-{student.id}"}},
            headers={"x-callback-token": WEBHOOK_TOKEN},
        )

        assert response.status_code == 200
        assert await count_enrollments(session_maker) == 0

    @pytest.mark.asyncio
    async def test_expired_marks_known_invoice(self, client, session_maker, db_session, make_user, make_course):
        owner = await make_user("instructor-1")
        student = await make_user("student-1")
        course = await make_course(owner, price=150000)
        db_session.add(PaymentInvoice(
            id="inv_e", external_id=f"enroll-{course.id}-{student.id}",
            user_id=student.id, course_id=course.id, amount=150000, currency="IDR",
        ))
        await db_session.commit()

        response = await client.post(
            self.URL, json={"id": "inv_e", "status": "EXPIRED"}, headers={"x-callback-token": WEBHOOK_TOKEN},
        )

        assert response.status_code == 200
        async with session_maker() as session:
            invoice = await session.get(PaymentInvoice, "inv_e")
        assert invoice.status == InvoiceStatus.EXPIRED.value

    @pytest.mark.asyncio
    async def test_unknown_course_acknowledged(self, client, session_maker):
        response = await client.post(
            self.URL,
            json={"id": "inv_q", "external_id": "enroll-ghost-user", "status": "PAID"},
            headers={"x-callback-token": WEBHOOK_TOKEN},
        )

        assert response.status_code == 200
        assert await count_enrollments(session_maker) == 0

    @pytest.mark.asyncio
    async def test_malformed_body_acknowledged(self, client):
        response = await client.post(
            self.URL,
            content=b"not json",
            headers={"x-callback-token": WEBHOOK_TOKEN, "Content-Type": "application/json"},
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"id": 987, "external_id": "enroll-a-b", "status": "EXPIRED"},
            {"id": "inv_1", "external_id": 12345, "status": "PAID"},
        ],
    )
    async def test_numeric_identifiers_acknowledged(self, client, session_maker, body):
        response = await client.post(self.URL, json=body, headers={"x-callback-token": WEBHOOK_TOKEN})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert await count_enrollments(session_maker) == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self, client):
        with patch(
            "app.api.v1.endpoints.webhooks.EnrollmentService.reconcile_payment",
            AsyncMock(side_effect=RuntimeError("database exploded")),
        ):
            response = await client.post(
                self.URL,
                json={"external_id": "enroll-a-b", "status": "PAID"},
                headers={"x-callback-token": WEBHOOK_TOKEN},
            )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"

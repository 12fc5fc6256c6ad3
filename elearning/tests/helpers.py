"""
Gemeinsame Test-Helfer für die Einschreibungs-Tests.
"""

from decimal import Decimal

from django.contrib.auth.models import User

from core.payment_gateway.callbacks import VerifiedCallback
from elearning.courses.models import Course, CoursePriceOption
from elearning.enrollments.models import Enrollment, EnrollmentStatus
from elearning.users.models import PlatformRole


def make_user(username, role=PlatformRole.STUDENT, **extra):
    extra.setdefault("email", f"{username}@example.com")
    user = User.objects.create_user(username=username, password="Testpasswort123", **extra)
    if role != PlatformRole.STUDENT:
        user.profile.role = role
        user.profile.save()
    return user


def make_course(title="Data Engineering", stages=None, price="1499.00"):
    course = Course.objects.create(
        title=title,
        stages=stages if stages is not None else [{"title": "Basics"}, {"title": "Pipelines"}],
    )
    option = CoursePriceOption.objects.create(course=course, label="Weekend batch", price=Decimal(price))
    return course, option


def make_enrollment(student, course, status=EnrollmentStatus.ENROLLED, trainer=None, **extra):
    extra.setdefault("amount", Decimal("1499.00"))
    return Enrollment.objects.create(
        student=student,
        student_name=student.get_full_name() or student.username,
        student_email=student.email,
        course=course,
        trainer=trainer,
        status=status,
        course_stages=course.stage_template(),
        **extra,
    )


def verified_callback(student, course, option=None, confirmed=True, **fields):
    payload = {
        "order_id": "ORD-1",
        "transaction_id": "TXN-1",
        "amount": "1499.00",
        "response_code": "0" if confirmed else "1043",
        "udf1": str(student.pk) if student is not None else "",
        "udf2": str(course.pk) if course is not None else "",
        "udf3": str(option.pk) if option is not None else "",
    }
    payload.update(fields)
    return VerifiedCallback(payload=payload, confirmed=confirmed)

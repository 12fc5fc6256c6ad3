"""
Enrollment Workflow

Turns a verified PayAid callback into an `Enrollment`.

The workflow resolves the three correlation fields (``udf1`` student,
``udf2`` course, ``udf3`` price option) to platform records and creates the
enrollment at most once:

- unknown student or course      → ``Invalid mapping`` (acknowledged, nothing stored)
- active enrollment already there → ``Already enrolled`` (duplicate delivery)
- otherwise                       → new enrollment with status ``enrolled``

The existence check and the insert are not atomic on their own. Concurrent
deliveries are serialized by the partial unique constraint on
(student, course) for non-terminal enrollments and by the unique gateway
transaction id; the loser of a race hits an `IntegrityError` and is
reported as ``Already enrolled``.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Tuple

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction

from core.payment_gateway.callbacks import VerifiedCallback

from ...courses.models import Course, CoursePriceOption
from ...users.models import display_name
from ..exceptions import PersistenceError
from ..models import Enrollment, EnrollmentStatus

logger = logging.getLogger(__name__)
User = get_user_model()

TWO_PLACES = Decimal("0.01")
# Enrollment.amount is DecimalField(max_digits=10, decimal_places=2)
MAX_AMOUNT = Decimal("99999999.99")


class OutcomeStatus(Enum):
    """Result of applying a callback; the value is the text PayAid receives."""

    CREATED = "OK"
    ALREADY_ENROLLED = "Already enrolled"
    INVALID_MAPPING = "Invalid mapping"
    PAYMENT_FAILED = "Payment failed"


@dataclass
class EnrollmentOutcome:
    status: OutcomeStatus
    enrollment: Optional[Enrollment] = None

    @property
    def created(self) -> bool:
        return self.status is OutcomeStatus.CREATED

    @property
    def response_text(self) -> str:
        return self.status.value


def _lookup(model, reference: Optional[str]):
    if not reference:
        return None
    try:
        pk = int(reference)
    except (TypeError, ValueError):
        return None
    return model.objects.filter(pk=pk).first()


def _parse_amount(value: Optional[str]) -> Optional[Decimal]:
    """Amount as Decimal(10, 2), or None if it is not a non-negative number that fits."""
    if value is None:
        return None
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite() or amount < 0:
            return None
        amount = amount.quantize(TWO_PLACES)
    except (InvalidOperation, ValueError):
        return None
    if amount > MAX_AMOUNT:
        return None
    return amount


class EnrollmentWorkflow:
    """
    Creates enrollments from verified callbacks.

    Example:
        >>> outcome = EnrollmentWorkflow().apply(verified_callback)
        >>> outcome.response_text
        'OK'
    """

    payment_method = "payaid"

    def resolve(self, callback: VerifiedCallback) -> Tuple[Any, Optional[Course], Optional[CoursePriceOption]]:
        """
        Map the correlation fields to (student, course, option).

        A price option that belongs to another course is ignored.
        """
        student = _lookup(User, callback.student_ref)
        course = _lookup(Course, callback.course_ref)
        option = _lookup(CoursePriceOption, callback.option_ref)
        if option is not None and course is not None and option.course_id != course.pk:
            logger.warning(
                "Price option %s does not belong to course %s (order %s); ignoring it",
                option.pk, course.pk, callback.order_id,
            )
            option = None
        return student, course, option

    def find_existing(self, student_id, course_id, transaction_id: Optional[str]) -> Optional[Enrollment]:
        existing = Enrollment.objects.active_for(student_id, course_id).first()
        if existing is None and transaction_id:
            existing = Enrollment.objects.filter(external_transaction_id=transaction_id).first()
        return existing

    def apply(self, callback: VerifiedCallback) -> EnrollmentOutcome:
        """
        Apply a verified callback.

        Raises:
            PersistenceError: For storage failures other than the uniqueness
                conflicts that signal a duplicate delivery
        """
        if not callback.confirmed:
            logger.info("Payment for order %s not successful; no enrollment", callback.order_id)
            return EnrollmentOutcome(OutcomeStatus.PAYMENT_FAILED)

        student, course, option = self.resolve(callback)
        if student is None or course is None:
            logger.warning(
                "Callback for order %s does not map to a student/course (udf1=%s, udf2=%s)",
                callback.order_id, callback.student_ref, callback.course_ref,
            )
            return EnrollmentOutcome(OutcomeStatus.INVALID_MAPPING)

        amount = _parse_amount(callback.amount)
        if amount is None:
            logger.warning("Callback for order %s carries an invalid amount", callback.order_id)
            return EnrollmentOutcome(OutcomeStatus.INVALID_MAPPING)

        transaction_id = callback.transaction_id
        try:
            with transaction.atomic():
                existing = self.find_existing(student.pk, course.pk, transaction_id)
                if existing is not None:
                    logger.info(
                        "Student %s already enrolled in course %s (enrollment %s); order %s ignored",
                        student.pk, course.pk, existing.pk, callback.order_id,
                    )
                    return EnrollmentOutcome(OutcomeStatus.ALREADY_ENROLLED, existing)

                enrollment = Enrollment.objects.create(
                    student=student,
                    student_name=display_name(student),
                    student_email=student.email or "",
                    course=course,
                    selected_option=option,
                    amount=amount,
                    payment_method=self.payment_method,
                    external_transaction_id=transaction_id,
                    external_response=callback.payload,
                    course_stages=course.stage_template(),
                    status=EnrollmentStatus.ENROLLED,
                )
        except IntegrityError as exc:
            existing = self.find_existing(student.pk, course.pk, transaction_id)
            if existing is None:
                logger.exception("Enrollment insert for order %s failed", callback.order_id)
                raise PersistenceError() from exc
            logger.info(
                "Concurrent delivery for order %s lost the race; enrollment %s already exists",
                callback.order_id, existing.pk,
            )
            return EnrollmentOutcome(OutcomeStatus.ALREADY_ENROLLED, existing)
        except DatabaseError as exc:
            logger.exception("Enrollment insert for order %s failed", callback.order_id)
            raise PersistenceError() from exc

        logger.info(
            "Enrolled student %s into course %s (enrollment %s, txn %s)",
            student.pk, course.pk, enrollment.pk, transaction_id,
        )
        return EnrollmentOutcome(OutcomeStatus.CREATED, enrollment)

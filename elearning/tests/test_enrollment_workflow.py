"""
Tests für die Einschreibung aus verifizierten PayAid-Callbacks.
"""

from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from elearning.enrollments.exceptions import PersistenceError
from elearning.enrollments.models import Enrollment, EnrollmentStatus
from elearning.enrollments.services import EnrollmentWorkflow, OutcomeStatus

from .helpers import make_course, make_enrollment, make_user, verified_callback


class EnrollmentWorkflowTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = make_user("asha", first_name="Asha", last_name="Rao")
        cls.course, cls.option = make_course()
        cls.other_course, cls.other_option = make_course(title="Cloud Basics", price="999.00")

    def setUp(self):
        self.workflow = EnrollmentWorkflow()

    def test_confirmed_payment_creates_enrollment(self):
        outcome = self.workflow.apply(verified_callback(self.student, self.course, self.option))

        self.assertEqual(outcome.status, OutcomeStatus.CREATED)
        self.assertEqual(outcome.response_text, "OK")
        enrollment = outcome.enrollment
        self.assertEqual(enrollment.status, EnrollmentStatus.ENROLLED)
        self.assertEqual(enrollment.student_name, "Asha Rao")
        self.assertEqual(enrollment.student_email, "asha@example.com")
        self.assertEqual(enrollment.amount, Decimal("1499.00"))
        self.assertEqual(enrollment.payment_method, "payaid")
        self.assertEqual(enrollment.external_transaction_id, "TXN-1")
        self.assertEqual(enrollment.external_response["order_id"], "ORD-1")
        self.assertIsNone(enrollment.trainer)

    def test_course_stages_are_copied_with_progress_fields(self):
        enrollment = self.workflow.apply(verified_callback(self.student, self.course)).enrollment

        self.assertEqual(len(enrollment.course_stages), 2)
        first = enrollment.course_stages[0]
        self.assertEqual(first["id"], 1)
        self.assertFalse(first["completed"])
        self.assertEqual(first["feedback"], "")
        # the course template itself stays untouched
        self.course.refresh_from_db()
        self.assertNotIn("completed", self.course.stages[0])

    def test_failed_payment_creates_nothing(self):
        outcome = self.workflow.apply(verified_callback(self.student, self.course, confirmed=False))

        self.assertEqual(outcome.status, OutcomeStatus.PAYMENT_FAILED)
        self.assertFalse(Enrollment.objects.exists())

    def test_repeated_callback_is_already_enrolled(self):
        first = self.workflow.apply(verified_callback(self.student, self.course))
        second = self.workflow.apply(verified_callback(self.student, self.course))

        self.assertEqual(second.status, OutcomeStatus.ALREADY_ENROLLED)
        self.assertEqual(second.enrollment.pk, first.enrollment.pk)
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_same_transaction_id_is_not_reused(self):
        self.workflow.apply(verified_callback(self.student, self.course))
        outcome = self.workflow.apply(verified_callback(self.student, self.other_course))

        self.assertEqual(outcome.status, OutcomeStatus.ALREADY_ENROLLED)
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_new_enrollment_after_cancellation(self):
        make_enrollment(self.student, self.course, status=EnrollmentStatus.CANCELLED)

        outcome = self.workflow.apply(verified_callback(self.student, self.course))

        self.assertEqual(outcome.status, OutcomeStatus.CREATED)
        self.assertEqual(Enrollment.objects.filter(student=self.student, course=self.course).count(), 2)

    def test_unknown_student_or_course_is_invalid_mapping(self):
        cases = [
            verified_callback(None, self.course),
            verified_callback(self.student, None),
            verified_callback(self.student, self.course, udf1="999999"),
            verified_callback(self.student, self.course, udf2="not-a-number"),
        ]
        for callback in cases:
            with self.subTest(payload=callback.payload):
                outcome = self.workflow.apply(callback)
                self.assertEqual(outcome.status, OutcomeStatus.INVALID_MAPPING)
                self.assertEqual(outcome.response_text, "Invalid mapping")
        self.assertFalse(Enrollment.objects.exists())

    def test_invalid_amount_is_invalid_mapping(self):
        outcome = self.workflow.apply(verified_callback(self.student, self.course, amount="abc"))
        self.assertEqual(outcome.status, OutcomeStatus.INVALID_MAPPING)

    def test_amount_that_does_not_fit_the_column_is_invalid_mapping(self):
        for amount in ("1e30", "123456789.00", "-1", "Infinity"):
            with self.subTest(amount=amount):
                outcome = self.workflow.apply(verified_callback(self.student, self.course, amount=amount))
                self.assertEqual(outcome.status, OutcomeStatus.INVALID_MAPPING)
        self.assertFalse(Enrollment.objects.exists())

    def test_largest_storable_amount_is_accepted(self):
        outcome = self.workflow.apply(verified_callback(self.student, self.course, amount="99999999.99"))
        self.assertEqual(outcome.status, OutcomeStatus.CREATED)
        self.assertEqual(outcome.enrollment.amount, Decimal("99999999.99"))

    def test_option_of_other_course_is_ignored(self):
        outcome = self.workflow.apply(verified_callback(self.student, self.course, self.other_option))

        self.assertEqual(outcome.status, OutcomeStatus.CREATED)
        self.assertIsNone(outcome.enrollment.selected_option)

    def test_concurrent_insert_is_reported_as_already_enrolled(self):
        existing = make_enrollment(self.student, self.course, external_transaction_id="TXN-0")
        real_find = EnrollmentWorkflow.find_existing
        calls = []

        # first lookup misses as if the other delivery had not committed yet
        def miss_once(workflow, *args):
            calls.append(args)
            if len(calls) == 1:
                return None
            return real_find(workflow, *args)

        with mock.patch.object(EnrollmentWorkflow, "find_existing", autospec=True, side_effect=miss_once):
            outcome = self.workflow.apply(verified_callback(self.student, self.course))

        self.assertEqual(outcome.status, OutcomeStatus.ALREADY_ENROLLED)
        self.assertEqual(outcome.enrollment.pk, existing.pk)
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_database_error_raises_persistence_error(self):
        with mock.patch.object(Enrollment.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(PersistenceError):
                self.workflow.apply(verified_callback(self.student, self.course))

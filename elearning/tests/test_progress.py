"""
Tests für Stufen-Fortschritt und Stornierung von Einschreibungen.
"""

from django.test import TestCase

from elearning.enrollments.exceptions import (
    AccessDenied,
    EnrollmentException,
    EnrollmentNotFound,
    InvalidStatusTransition,
)
from elearning.enrollments.models import Enrollment, EnrollmentStatus
from elearning.enrollments.services import EnrollmentProgressService
from elearning.users.models import PlatformRole

from .helpers import make_course, make_enrollment, make_user


class EnrollmentProgressTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = make_user("admin", role=PlatformRole.ADMIN)
        cls.trainer = make_user("ravi", role=PlatformRole.TRAINER)
        cls.other_trainer = make_user("meera", role=PlatformRole.TRAINER)
        cls.student = make_user("asha")
        cls.course, _ = make_course()

    def setUp(self):
        self.service = EnrollmentProgressService()
        self.enrollment = make_enrollment(
            self.student, self.course, status=EnrollmentStatus.TRAINER_ASSIGNED, trainer=self.trainer
        )

    def test_first_update_starts_enrollment(self):
        enrollment = self.service.update_stage(self.enrollment.pk, 1, self.trainer.pk, feedback="Good start")

        self.assertEqual(enrollment.status, EnrollmentStatus.IN_PROGRESS)
        self.assertEqual(enrollment.course_stages[0]["feedback"], "Good start")
        self.assertFalse(enrollment.course_stages[0]["completed"])

    def test_completing_all_stages_completes_enrollment(self):
        self.service.update_stage(self.enrollment.pk, 1, self.trainer.pk, completed=True)
        enrollment = self.service.update_stage(self.enrollment.pk, "2", self.trainer.pk, completed=True)

        self.assertEqual(enrollment.status, EnrollmentStatus.COMPLETED)
        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.status, EnrollmentStatus.COMPLETED)
        self.assertTrue(all(stage["completed"] for stage in self.enrollment.course_stages))

    def test_completion_frees_slot_for_new_enrollment(self):
        self.service.update_stage(self.enrollment.pk, 1, self.trainer.pk, completed=True)
        self.service.update_stage(self.enrollment.pk, 2, self.trainer.pk, completed=True)

        make_enrollment(self.student, self.course)
        self.assertEqual(Enrollment.objects.active_for(self.student.pk, self.course.pk).count(), 1)

    def test_only_assigned_trainer_may_update(self):
        with self.assertRaises(AccessDenied):
            self.service.update_stage(self.enrollment.pk, 1, self.other_trainer.pk, completed=True)

    def test_admin_may_update_any_enrollment(self):
        enrollment = self.service.update_stage(self.enrollment.pk, 1, self.admin.pk, completed=True)
        self.assertEqual(enrollment.status, EnrollmentStatus.IN_PROGRESS)

    def test_student_may_not_update(self):
        with self.assertRaises(AccessDenied):
            self.service.update_stage(self.enrollment.pk, 1, self.student.pk, completed=True)

    def test_unknown_stage(self):
        with self.assertRaises(EnrollmentException) as ctx:
            self.service.update_stage(self.enrollment.pk, 42, self.trainer.pk, completed=True)
        self.assertEqual(ctx.exception.status_code, 404)

    def test_unknown_enrollment(self):
        with self.assertRaises(EnrollmentNotFound):
            self.service.update_stage(999999, 1, self.trainer.pk, completed=True)

    def test_terminal_enrollment_cannot_progress(self):
        self.enrollment.status = EnrollmentStatus.CANCELLED
        self.enrollment.save()

        with self.assertRaises(InvalidStatusTransition):
            self.service.update_stage(self.enrollment.pk, 1, self.trainer.pk, completed=True)

    def test_admin_cancels(self):
        enrollment = self.service.cancel(self.enrollment.pk, self.admin.pk)

        self.assertEqual(enrollment.status, EnrollmentStatus.CANCELLED)
        self.assertTrue(enrollment.is_terminal)

    def test_trainer_may_not_cancel(self):
        with self.assertRaises(AccessDenied):
            self.service.cancel(self.enrollment.pk, self.trainer.pk)

    def test_cancelled_enrollment_cannot_be_cancelled_again(self):
        self.service.cancel(self.enrollment.pk, self.admin.pk)
        with self.assertRaises(InvalidStatusTransition):
            self.service.cancel(self.enrollment.pk, self.admin.pk)


class EnrollmentStatusMachineTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = make_user("asha")
        cls.course, _ = make_course()

    def test_allowed_transitions(self):
        enrollment = make_enrollment(self.student, self.course)

        self.assertTrue(enrollment.can_transition_to(EnrollmentStatus.TRAINER_ASSIGNED))
        self.assertTrue(enrollment.can_transition_to(EnrollmentStatus.CANCELLED))
        self.assertFalse(enrollment.can_transition_to(EnrollmentStatus.COMPLETED))
        self.assertFalse(enrollment.can_transition_to(EnrollmentStatus.IN_PROGRESS))

    def test_invalid_transition_raises(self):
        enrollment = make_enrollment(self.student, self.course)
        with self.assertRaises(InvalidStatusTransition):
            enrollment.transition_to(EnrollmentStatus.COMPLETED)

        enrollment.refresh_from_db()
        self.assertEqual(enrollment.status, EnrollmentStatus.ENROLLED)

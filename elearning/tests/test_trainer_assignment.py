"""
Tests für die Trainer-Zuweisung und die anschließenden Benachrichtigungen.
"""

import json
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from elearning.enrollments.exceptions import (
    AccessDenied,
    AssignmentConflict,
    EnrollmentNotFound,
    InvalidTrainerRole,
    PersistenceError,
    TrainerNotFound,
)
from elearning.enrollments.models import Enrollment, EnrollmentStatus
from elearning.enrollments.services import TrainerAssignmentCoordinator
from elearning.messaging.models import Message, MessageType
from elearning.messaging.notifications import NotificationDispatcher
from elearning.messaging.realtime import ConnectionRegistry
from elearning.users.models import PlatformRole

from .helpers import make_course, make_enrollment, make_user


class FakeConnection:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, text):
        if self.fail:
            raise ConnectionError("socket closed")
        self.sent.append(json.loads(text))


class TrainerAssignmentTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = make_user("admin", role=PlatformRole.ADMIN)
        cls.trainer = make_user("ravi", role=PlatformRole.TRAINER, first_name="Ravi", last_name="Kumar")
        cls.student = make_user("asha", first_name="Asha", last_name="Rao")
        cls.course, _ = make_course()
        cls.enrollment = make_enrollment(cls.student, cls.course)

    def setUp(self):
        self.registry = ConnectionRegistry()
        self.coordinator = TrainerAssignmentCoordinator(dispatcher=NotificationDispatcher(self.registry))

    def assign(self, enrollment_id=None, trainer_id=None, actor_id=None):
        with self.captureOnCommitCallbacks(execute=True):
            return self.coordinator.assign(
                enrollment_id or self.enrollment.pk,
                trainer_id or self.trainer.pk,
                actor_id or self.admin.pk,
            )

    def test_assigns_trainer(self):
        result = self.assign()

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.status, EnrollmentStatus.TRAINER_ASSIGNED)
        self.assertEqual(self.enrollment.trainer, self.trainer)
        self.assertIsNotNone(self.enrollment.assigned_at)
        self.assertEqual(result.message, "Trainer Ravi Kumar assigned successfully.")

    def test_notifications_are_stored_for_student_and_trainer(self):
        self.assign()

        student_msg = Message.objects.get(receiver=self.student)
        trainer_msg = Message.objects.get(receiver=self.trainer)
        self.assertEqual(student_msg.sender, self.admin)
        self.assertEqual(student_msg.message_type, MessageType.SYSTEM_NOTIFICATION)
        self.assertIn("Ravi Kumar", student_msg.content)
        self.assertIn("Data Engineering", student_msg.content)
        self.assertIn("Asha Rao", trainer_msg.content)

    def test_realtime_events_only_for_connected_users(self):
        student_socket = FakeConnection()
        self.registry.register(self.student.pk, student_socket)

        result = self.assign()

        self.assertEqual(
            student_socket.sent,
            [{"type": "trainer_assigned", "trainerId": self.trainer.pk, "trainerName": "Ravi Kumar"}],
        )
        reports = {report.receiver_id: report for report in result.notifications}
        self.assertTrue(reports[self.student.pk].pushed)
        self.assertFalse(reports[self.trainer.pk].pushed)
        self.assertTrue(reports[self.trainer.pk].persisted)

    def test_push_failure_does_not_undo_assignment(self):
        self.registry.register(self.student.pk, FakeConnection(fail=True))
        trainer_socket = FakeConnection()
        self.registry.register(self.trainer.pk, trainer_socket)

        self.assign()

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.status, EnrollmentStatus.TRAINER_ASSIGNED)
        self.assertEqual(Message.objects.count(), 2)
        self.assertEqual(trainer_socket.sent[0]["type"], "student_assigned")

    def test_message_failure_does_not_undo_assignment(self):
        trainer_socket = FakeConnection()
        self.registry.register(self.trainer.pk, trainer_socket)

        with mock.patch.object(Message.objects, "create", side_effect=DatabaseError("down")):
            result = self.assign()

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.status, EnrollmentStatus.TRAINER_ASSIGNED)
        self.assertFalse(any(report.persisted for report in result.notifications))
        self.assertEqual(len(trainer_socket.sent), 1)

    def test_non_admin_is_denied(self):
        with self.assertRaises(AccessDenied):
            self.assign(actor_id=self.trainer.pk)

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.status, EnrollmentStatus.ENROLLED)
        self.assertFalse(Message.objects.exists())

    def test_staff_user_counts_as_admin(self):
        staff = make_user("staff", is_staff=True)
        self.assign(actor_id=staff.pk)

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.trainer, self.trainer)

    def test_unknown_enrollment(self):
        with self.assertRaises(EnrollmentNotFound):
            self.assign(enrollment_id=999999)

    def test_unknown_trainer(self):
        with self.assertRaises(TrainerNotFound):
            self.assign(trainer_id=999999)

    def test_inactive_trainer(self):
        inactive = make_user("gone", role=PlatformRole.TRAINER, is_active=False)
        with self.assertRaises(TrainerNotFound):
            self.assign(trainer_id=inactive.pk)

    def test_user_without_trainer_role(self):
        with self.assertRaises(InvalidTrainerRole):
            self.assign(trainer_id=self.student.pk)

        self.enrollment.refresh_from_db()
        self.assertIsNone(self.enrollment.trainer)

    def test_reassignment_is_a_conflict(self):
        self.assign()
        other = make_user("meera", role=PlatformRole.TRAINER)

        with self.assertRaises(AssignmentConflict):
            self.assign(trainer_id=other.pk)

        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.trainer, self.trainer)
        self.assertEqual(Message.objects.count(), 2)

    def test_cancelled_enrollment_cannot_get_trainer(self):
        cancelled = make_enrollment(self.student, make_course(title="Old")[0], status=EnrollmentStatus.CANCELLED)

        with self.assertRaises(AssignmentConflict):
            self.assign(enrollment_id=cancelled.pk)

    def test_database_error_is_persistence_error(self):
        with mock.patch.object(Enrollment, "save", side_effect=DatabaseError("down")):
            with self.assertRaises(PersistenceError):
                self.assign()
        self.assertFalse(Message.objects.exists())

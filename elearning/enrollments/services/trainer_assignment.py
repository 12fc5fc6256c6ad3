"""
Trainer Assignment Coordinator

Moves an enrollment from ``enrolled`` to ``trainer_assigned`` and notifies
the student and the trainer.

Preconditions are checked inside one transaction with the enrollment row
locked: the actor must be an administrator, the enrollment must exist, the
trainer must exist and carry the trainer role, and the enrollment must still
be awaiting a trainer (re-assignment is rejected as a conflict).

Notifications run only after the transaction has committed. Each message
write and each realtime push is isolated; their failures are logged and
never roll back the assignment.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, List, Optional

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone

from ...messaging.notifications import DeliveryReport, NotificationDispatcher
from ...users.models import PlatformRole, display_name
from ...users.permissions import actor_has_role
from ..exceptions import (
    AccessDenied,
    AssignmentConflict,
    EnrollmentNotFound,
    InvalidTrainerRole,
    PersistenceError,
    TrainerNotFound,
)
from ..models import Enrollment, EnrollmentStatus

logger = logging.getLogger(__name__)
User = get_user_model()

AccessCheck = Callable[[Optional[int], str], bool]


@dataclass
class AssignmentResult:
    enrollment: Enrollment
    trainer: Any
    notifications: List[DeliveryReport] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Trainer {display_name(self.trainer)} assigned successfully."


class TrainerAssignmentCoordinator:
    """
    Assigns trainers to enrollments.

    Attributes:
        dispatcher: Sends the student/trainer notifications
        access_check: ``(actor_id, required_role) -> bool`` evaluated first
    """

    required_role = PlatformRole.ADMIN

    def __init__(
        self,
        dispatcher: Optional[NotificationDispatcher] = None,
        access_check: Optional[AccessCheck] = None,
    ) -> None:
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.access_check = access_check or actor_has_role

    def _load_trainer(self, trainer_id):
        trainer = User.objects.select_related("profile").filter(pk=trainer_id, is_active=True).first()
        if trainer is None:
            raise TrainerNotFound(trainer_id)
        profile = getattr(trainer, "profile", None)
        if profile is None or profile.role != PlatformRole.TRAINER:
            raise InvalidTrainerRole(trainer_id)
        return trainer

    def assign(self, enrollment_id, trainer_id, acting_user_id) -> AssignmentResult:
        """
        Assign ``trainer_id`` to ``enrollment_id`` on behalf of ``acting_user_id``.

        Raises:
            AccessDenied: Actor is not an administrator
            EnrollmentNotFound / TrainerNotFound: Unknown ids
            InvalidTrainerRole: The user is not a trainer
            AssignmentConflict: Enrollment is not in status ``enrolled``
            PersistenceError: The update could not be stored
        """
        if not self.access_check(acting_user_id, self.required_role):
            logger.warning("User %s may not assign trainers", acting_user_id)
            raise AccessDenied(acting_user_id, self.required_role)

        result = None
        try:
            with transaction.atomic():
                enrollment = Enrollment.objects.select_for_update().filter(pk=enrollment_id).first()
                if enrollment is None:
                    raise EnrollmentNotFound(enrollment_id)
                trainer = self._load_trainer(trainer_id)
                if enrollment.status != EnrollmentStatus.ENROLLED:
                    raise AssignmentConflict(enrollment.pk, enrollment.status)

                enrollment.assign_trainer(trainer, when=timezone.now())
                result = AssignmentResult(enrollment=enrollment, trainer=trainer)
                transaction.on_commit(partial(self.notify, result, acting_user_id), robust=True)
        except DatabaseError as exc:
            logger.exception("Trainer assignment for enrollment %s failed", enrollment_id)
            raise PersistenceError("Could not assign trainer") from exc

        logger.info(
            "Assigned trainer %s to enrollment %s (by user %s)",
            trainer_id, enrollment_id, acting_user_id,
        )
        return result

    def notify(self, result: AssignmentResult, acting_user_id) -> None:
        """Send the student and trainer notifications for a committed assignment."""
        enrollment = result.enrollment
        trainer = result.trainer
        student = enrollment.student
        student_name = display_name(student) or enrollment.student_name or "Student"
        trainer_name = display_name(trainer)
        course_title = enrollment.course.title if enrollment.course_id else "the course"

        result.notifications.append(
            self.dispatcher.dispatch(
                sender_id=acting_user_id,
                receiver_id=student.pk,
                content=(
                    f"Hello {student_name}! Your trainer **{trainer_name}** has been assigned "
                    f"for the course \"{course_title}\". You can now start scheduling classes."
                ),
                event={"type": "trainer_assigned", "trainerId": trainer.pk, "trainerName": trainer_name},
            )
        )
        result.notifications.append(
            self.dispatcher.dispatch(
                sender_id=acting_user_id,
                receiver_id=trainer.pk,
                content=(
                    f"You have been assigned a new student: **{student_name}** for the course "
                    f"\"{course_title}\". Please reach out to them to begin their training journey."
                ),
                event={"type": "student_assigned", "studentId": student.pk, "studentName": student_name},
            )
        )

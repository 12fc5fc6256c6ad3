"""
Stage progress and cancellation of enrollments.

Progress is recorded per stage on the enrollment's own copy of the course
stages. The first update on a ``trainer_assigned`` enrollment starts it
(``in_progress``); once every stage is completed the enrollment is
``completed``. Cancelling frees the (student, course) slot for a new
enrollment.
"""

import logging
from typing import Any, Callable, Optional

from django.db import transaction

from ...users.models import PlatformRole
from ...users.permissions import actor_has_role
from ..exceptions import AccessDenied, EnrollmentException, EnrollmentNotFound, InvalidStatusTransition
from ..models import Enrollment, EnrollmentStatus

logger = logging.getLogger(__name__)


class EnrollmentProgressService:
    def __init__(self, access_check: Optional[Callable[[Optional[int], str], bool]] = None) -> None:
        self.access_check = access_check or actor_has_role

    def _locked(self, enrollment_id) -> Enrollment:
        enrollment = Enrollment.objects.select_for_update().filter(pk=enrollment_id).first()
        if enrollment is None:
            raise EnrollmentNotFound(enrollment_id)
        return enrollment

    def update_stage(
        self,
        enrollment_id,
        stage_id: Any,
        acting_user_id,
        completed: Optional[bool] = None,
        feedback: Optional[str] = None,
    ) -> Enrollment:
        """
        Update one stage of an enrollment.

        Trainers may only update enrollments they are assigned to;
        administrators may update any.

        Raises:
            AccessDenied, EnrollmentNotFound, InvalidStatusTransition,
            EnrollmentException (unknown stage, 404)
        """
        if not self.access_check(acting_user_id, PlatformRole.TRAINER):
            raise AccessDenied(acting_user_id, PlatformRole.TRAINER)

        with transaction.atomic():
            enrollment = self._locked(enrollment_id)
            if enrollment.trainer_id != acting_user_id and not self.access_check(acting_user_id, PlatformRole.ADMIN):
                raise AccessDenied(acting_user_id, PlatformRole.ADMIN)
            if enrollment.is_terminal:
                raise InvalidStatusTransition(enrollment.status, EnrollmentStatus.IN_PROGRESS)

            stages = [dict(stage) for stage in enrollment.course_stages or []]
            target = next((s for s in stages if str(s.get("id")) == str(stage_id)), None)
            if target is None:
                raise EnrollmentException(
                    "Stage not found", status_code=404, error_code="NotFound",
                    details={"stage_id": stage_id},
                )
            if completed is not None:
                target["completed"] = bool(completed)
            if feedback is not None:
                target["feedback"] = feedback

            enrollment.course_stages = stages
            if enrollment.status == EnrollmentStatus.TRAINER_ASSIGNED:
                enrollment.transition_to(EnrollmentStatus.IN_PROGRESS, save=False)
            if (
                enrollment.status == EnrollmentStatus.IN_PROGRESS
                and stages
                and all(stage.get("completed") for stage in stages)
            ):
                enrollment.transition_to(EnrollmentStatus.COMPLETED, save=False)
            enrollment.save(update_fields=["course_stages", "status", "updated_at"])

        logger.info("Stage %s of enrollment %s updated by user %s", stage_id, enrollment_id, acting_user_id)
        return enrollment

    def cancel(self, enrollment_id, acting_user_id) -> Enrollment:
        if not self.access_check(acting_user_id, PlatformRole.ADMIN):
            raise AccessDenied(acting_user_id, PlatformRole.ADMIN)

        with transaction.atomic():
            enrollment = self._locked(enrollment_id)
            enrollment.transition_to(EnrollmentStatus.CANCELLED)

        logger.info("Enrollment %s cancelled by user %s", enrollment_id, acting_user_id)
        return enrollment

"""
Enrollment model and its status machine.

An enrollment is created from a verified payment callback and then moves
through ``enrolled → trainer_assigned → in_progress → completed``; it can be
cancelled from any non-terminal status. For one (student, course) pair at
most one enrollment may be non-terminal; the database enforces this with a
conditional unique constraint so concurrent callbacks cannot both insert.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ..courses.models import Course, CoursePriceOption
from .exceptions import InvalidStatusTransition


class EnrollmentStatus(models.TextChoices):
    ENROLLED = "enrolled", _("Enrolled")
    TRAINER_ASSIGNED = "trainer_assigned", _("Trainer assigned")
    IN_PROGRESS = "in_progress", _("In progress")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


TERMINAL_STATUSES = (EnrollmentStatus.COMPLETED, EnrollmentStatus.CANCELLED)


class EnrollmentQuerySet(models.QuerySet):
    def active(self):
        return self.exclude(status__in=TERMINAL_STATUSES)

    def active_for(self, student_id, course_id):
        return self.active().filter(student_id=student_id, course_id=course_id)

    def pending_assignment(self):
        return self.filter(trainer__isnull=True, status=EnrollmentStatus.ENROLLED)

    def with_relations(self):
        return self.select_related("student", "course", "selected_option", "trainer", "trainer__profile")


class Enrollment(models.Model):
    Status = EnrollmentStatus

    ALLOWED_TRANSITIONS = {
        EnrollmentStatus.ENROLLED: {EnrollmentStatus.TRAINER_ASSIGNED, EnrollmentStatus.CANCELLED},
        EnrollmentStatus.TRAINER_ASSIGNED: {EnrollmentStatus.IN_PROGRESS, EnrollmentStatus.CANCELLED},
        EnrollmentStatus.IN_PROGRESS: {EnrollmentStatus.COMPLETED, EnrollmentStatus.CANCELLED},
        EnrollmentStatus.COMPLETED: set(),
        EnrollmentStatus.CANCELLED: set(),
    }

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="enrollments",
        verbose_name=_("Student"),
    )
    student_name = models.CharField(max_length=255, blank=True, verbose_name=_("Student name"))
    student_email = models.EmailField(blank=True, verbose_name=_("Student email"))
    course = models.ForeignKey(
        Course,
        on_delete=models.PROTECT,
        related_name="enrollments",
        verbose_name=_("Course"),
    )
    selected_option = models.ForeignKey(
        CoursePriceOption,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="enrollments",
        verbose_name=_("Selected price option"),
    )
    trainer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="trainer_enrollments",
        verbose_name=_("Trainer"),
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2, verbose_name=_("Amount"))
    payment_method = models.CharField(max_length=32, default="payaid", verbose_name=_("Payment method"))
    external_transaction_id = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        unique=True,
        verbose_name=_("Gateway transaction id"),
    )
    external_response = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_("Gateway callback"),
        help_text=_("Verified callback payload kept for audit"),
    )
    course_stages = models.JSONField(default=list, blank=True, verbose_name=_("Course stages"))
    status = models.CharField(
        max_length=20,
        choices=EnrollmentStatus.choices,
        default=EnrollmentStatus.ENROLLED,
        verbose_name=_("Status"),
    )
    assigned_at = models.DateTimeField(null=True, blank=True, verbose_name=_("Trainer assigned at"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EnrollmentQuerySet.as_manager()

    class Meta:
        verbose_name = _("Enrollment")
        verbose_name_plural = _("Enrollments")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "course"],
                condition=~Q(status__in=["completed", "cancelled"]),
                name="unique_active_enrollment_per_student_course",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "trainer"], name="elearning_e_status_8b1c2e_idx"),
            models.Index(fields=["student", "course"], name="elearning_e_student_4f0a9d_idx"),
        ]

    def __str__(self):
        return f"{self.student_name or self.student_id} → {self.course_id} [{self.status}]"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, target: str) -> bool:
        return target in self.ALLOWED_TRANSITIONS.get(self.status, set())

    def transition_to(self, target: str, save: bool = True) -> None:
        """
        Move to ``target`` if the status machine allows it.

        Raises:
            InvalidStatusTransition: For transitions outside ALLOWED_TRANSITIONS
        """
        if not self.can_transition_to(target):
            raise InvalidStatusTransition(self.status, target)
        self.status = target
        if save:
            self.save(update_fields=["status", "updated_at"])

    def assign_trainer(self, trainer, when=None) -> None:
        self.transition_to(EnrollmentStatus.TRAINER_ASSIGNED, save=False)
        self.trainer = trainer
        self.assigned_at = when or timezone.now()
        self.save(update_fields=["trainer", "status", "assigned_at", "updated_at"])

"""
Course catalogue models consumed by the enrollment workflow.

Only the fields the payment and enrollment flow needs are modelled here:
the title, the stage template copied into new enrollments and the price
options a student can choose from.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Course(models.Model):
    title = models.CharField(max_length=255, verbose_name=_("Title"))
    description = models.TextField(blank=True, verbose_name=_("Description"))
    stages = models.JSONField(
        default=list,
        blank=True,
        verbose_name=_("Stages"),
        help_text=_("Ordered stage template, e.g. [{\"id\": 1, \"title\": \"Basics\"}]"),
    )
    is_active = models.BooleanField(default=True, verbose_name=_("Active"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Course")
        verbose_name_plural = _("Courses")
        ordering = ["title"]

    def __str__(self):
        return self.title

    def stage_template(self) -> list:
        """
        Fresh copy of the stage template with progress fields initialised.

        Every stage gets ``completed`` and ``feedback`` keys so trainers can
        record progress per enrollment without touching the course.
        """
        stages = []
        for position, stage in enumerate(self.stages or [], start=1):
            record = dict(stage) if isinstance(stage, dict) else {"title": str(stage)}
            record.setdefault("id", position)
            record.setdefault("completed", False)
            record.setdefault("feedback", "")
            stages.append(record)
        return stages


class CoursePriceOption(models.Model):
    """Bookable price option of a course (e.g. 'Weekend batch', '1:1 coaching')."""

    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="price_options",
        verbose_name=_("Course"),
    )
    label = models.CharField(max_length=120, verbose_name=_("Label"))
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        verbose_name=_("Price"),
    )
    currency = models.CharField(max_length=3, default="INR", verbose_name=_("Currency"))

    class Meta:
        verbose_name = _("Course Price Option")
        verbose_name_plural = _("Course Price Options")
        ordering = ["course", "price"]

    def __str__(self):
        return f"{self.course.title} – {self.label} ({self.price} {self.currency})"

"""
E-Learning User Management Models

This module defines the user-related models for the E-Learning system,
extending Django's built-in User model with the platform role and the
trainer specialization, with automatic profile management through Django
signals.

Models:
- Profile: Platform role (student, trainer, admin) and trainer metadata

Features:
- Automatic profile creation for new users
- Role helpers used by the access-control layer and by trainer assignment

Author: DSP Development Team
Version: 1.1.0
"""

from django.db import models
from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils.translation import gettext_lazy as _


class PlatformRole(models.TextChoices):
    STUDENT = "student", _("Student")
    TRAINER = "trainer", _("Trainer")
    ADMIN = "admin", _("Administrator")


class Profile(models.Model):
    """
    Extended user profile model for the E-Learning system.

    Attributes:
        user: One-to-one relationship with Django User model
        role: Platform role deciding what the user may do
        specialist: Specialization label shown for trainers

    The profile is automatically created when a new user is registered
    and maintains a one-to-one relationship with the User model.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        verbose_name=_("User"),
        help_text=_("Associated user account"),
    )

    role = models.CharField(
        max_length=16,
        choices=PlatformRole.choices,
        default=PlatformRole.STUDENT,
        db_index=True,
        verbose_name=_("Role"),
    )

    specialist = models.CharField(
        max_length=120,
        blank=True,
        verbose_name=_("Specialization"),
        help_text=_("Trainer specialization, e.g. 'Data Engineering'"),
    )

    class Meta:
        verbose_name = _("User Profile")
        verbose_name_plural = _("User Profiles")
        db_table = "elearning_profile"

    def __str__(self) -> str:
        return f"{self.user.username} Profile ({self.role})"

    def __repr__(self) -> str:
        return f"<Profile(user={self.user.username}, role={self.role})>"

    @property
    def is_trainer(self) -> bool:
        return self.role == PlatformRole.TRAINER

    @property
    def is_admin(self) -> bool:
        return self.role == PlatformRole.ADMIN or self.user.is_staff

    @property
    def specialist_label(self) -> str:
        return self.specialist or "General"


def display_name(user) -> str:
    """Full name of a user, falling back to the username."""
    if user is None:
        return ""
    return user.get_full_name() or user.username


# --- Signal Handlers for Automatic Profile Management ---


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created: bool, **kwargs) -> None:
    """
    Automatically create a user profile when a new user is created.

    Args:
        sender: The User model class
        instance: The actual User instance that was saved
        created: Boolean indicating if this is a new instance
        **kwargs: Additional signal arguments
    """
    if created:
        Profile.objects.get_or_create(user=instance)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def save_user_profile(sender, instance, **kwargs) -> None:
    """
    Ensure user profile exists and is saved when user is saved.
    """
    try:
        instance.profile.save()
    except Profile.DoesNotExist:
        Profile.objects.create(user=instance)

"""
E-Learning Application Configuration

This module contains the Django application configuration for the E-Learning system.
It defines the application's metadata and default field configuration.

The E-Learning application covers the course catalogue, paid enrollments,
trainer assignment and the notifications sent along the way.

Author: DSP Development Team
Version: 1.1.0
"""

from django.apps import AppConfig


class ElearningConfig(AppConfig):
    """
    Configuration class for the E-Learning Django application.

    Attributes:
        default_auto_field: Default primary key field type for models
        name: Application name for Django registration
        verbose_name: Human-readable application name for admin interface
    """

    default_auto_field: str = "django.db.models.BigAutoField"
    name: str = "elearning"
    verbose_name: str = "E-Learning System"

    def ready(self) -> None:
        """
        Initialize the application when Django starts.

        Importing the users models connects the profile signal handlers.
        """
        super().ready()
        from .users import models  # noqa: F401

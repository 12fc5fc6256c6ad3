"""
E-Learning Application Models Registry

This module serves as the central models registry for the E-Learning application.
It imports and exposes all models from the logical submodules (users, courses,
enrollments, messaging) to ensure they are properly registered with Django's
ORM system under the single ``elearning`` app label.

Architecture:
- users/: Profile with platform role and trainer specialization
- courses/: Courses with stage template and price options
- enrollments/: Paid enrollments and their status machine
- messaging/: System notification messages

Author: DSP Development Team
Version: 1.1.0
"""

# Import all user-related models for registration with Django ORM
from .users.models import Profile, PlatformRole

# Import the course catalogue consumed by enrollments
from .courses.models import Course, CoursePriceOption

# Import enrollment models
from .enrollments.models import Enrollment, EnrollmentStatus, TERMINAL_STATUSES

# Import messaging models
from .messaging.models import Message, MessageType

__all__ = [
    "Profile",
    "PlatformRole",
    "Course",
    "CoursePriceOption",
    "Enrollment",
    "EnrollmentStatus",
    "TERMINAL_STATUSES",
    "Message",
    "MessageType",
]

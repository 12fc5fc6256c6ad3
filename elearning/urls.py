"""
E-Learning Application URL Configuration

URL Structure:
- /api/enrollments/: Enrollment lifecycle (assignment, progress, listings)

Payment endpoints live in `core.payment_gateway` and are mounted under
/api/payments/ by the project URLConf.

Author: DSP Development Team
Version: 1.1.0
"""

from typing import List
from django.urls import path, include, URLPattern

urlpatterns: List[URLPattern] = [
    path("enrollments/", include("elearning.enrollments.urls", namespace="enrollments")),
]

"""
URL configuration for the DSP backend.

- /admin/          → Django admin (Jazzmin)
- /api/payments/   → PayAid order creation and gateway callback
- /api/            → E-Learning API (enrollments)
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/payments/", include("core.payment_gateway.urls", namespace="payment_gateway")),
    path("api/", include("elearning.urls")),
]

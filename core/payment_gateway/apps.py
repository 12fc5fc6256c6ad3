"""
PayAid Payment Gateway AppConfig
================================

Registers `core.payment_gateway` with Django. The package has no models;
it is installed so its views and tests are part of the project.

Author: DSP Development Team
Date: 2025-10-02
"""

from django.apps import AppConfig


class PaymentGatewayConfig(AppConfig):
    """
    App configuration for the `core.payment_gateway` package.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "core.payment_gateway"
    label = "payment_gateway"
    verbose_name = "PayAid Payment Gateway"

"""
PayAid Payment Gateway Package - DSP
=============================================================

This package centralizes the integration with the PayAid payment gateway
for course purchases.

Current Scope
--------------------
- Canonical request/response signing shared by outbound orders and
  inbound callbacks (see signing.py).
- A hardened HTTP client for the PayAid API (TLS 1.2+, certificate and
  hostname checks, bounded timeouts) (see client.py).
- Order creation (see orders.py) and callback verification with optional
  status reconfirmation against the gateway (see callbacks.py).
- API endpoints for order creation and the gateway callback (see views.py).

Enrollment creation itself lives in `elearning.enrollments`; this package
only hands over callbacks whose signature has been verified.

Structure
---------
- __init__.py     → documentation
- apps.py         → App configuration (`PaymentGatewayConfig`)
- signing.py      → canonical signing string + SHA-512 digest
- exceptions.py   → error taxonomy of the gateway integration
- client.py       → `PayAidClient`
- orders.py       → `OrderService`
- callbacks.py    → `CallbackVerifier`, `VerifiedCallback`
- views.py        → REST endpoints
- urls.py         → routes

Author: DSP Development Team
Date: 2025-10-02
"""

"""
PayAid Payment Views (core.payment_gateway)
===========================================

This module exposes the REST API endpoints of the PayAid integration.

Endpoints
---------

1. CreatePayAidOrderView
   - URL: /api/payments/payaid/orders/
   - Method: POST
   - Auth: Required
   - Body: {"amount": "1499", "order_id": "ORD-1", "name": "...", "email": "...",
            "return_url": "...", "udf1": <student id>, "udf2": <course id>,
            "udf3": <price option id>, ...}
   - Purpose:
       Validates and signs the order and returns the hosted PayAid payment
       page (`paymentUrl`) plus PayAid's `uuid`.

2. PayAidCallbackView
   - URL: /api/payments/payaid/callback/
   - Method: POST
   - Auth: None (trusted only through the signature)
   - Purpose:
       Receives PayAid's payment result, verifies it and creates the
       enrollment. Always answers with a definitive plain-text status so
       PayAid knows whether to retry:
         200 "OK" | "Already enrolled" | "Invalid mapping" | "Payment failed"
         400 "Hash mismatch" | "Invalid payload"
         500 "Server error"

Security
--------
- Callbacks are verified with a constant-time signature comparison before
  any database access.
- A blank PAYAID_SALT is a configuration error: both endpoints refuse to
  work (500) instead of accepting unsalted signatures.
- Neither the salt nor any digest is ever logged or returned.

Author: DSP Development Team
Date: 2025-10-02
"""

import logging

from django.core.exceptions import ImproperlyConfigured
from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from elearning.enrollments.services import EnrollmentWorkflow

from .callbacks import CallbackVerifier, normalize_payload
from .exceptions import CallbackIntegrityError, GatewayUnavailable, MalformedPayload, OrderValidationError
from .orders import OrderService

logger = logging.getLogger(__name__)


def _plain(text: str, status_code: int = 200) -> HttpResponse:
    return HttpResponse(text, status=status_code, content_type="text/plain; charset=utf-8")


def _client_ip(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")


class CreatePayAidOrderView(APIView):
    permission_classes = [IsAuthenticated]

    def get_order_service(self) -> OrderService:
        return OrderService()

    def post(self, request):
        try:
            data = normalize_payload(request.data)
        except MalformedPayload as exc:
            return Response({"message": exc.message, "missing": []}, status=status.HTTP_400_BAD_REQUEST)

        # Students pay for themselves unless the frontend says otherwise
        if not str(data.get("udf1") or "").strip():
            data["udf1"] = str(request.user.pk)

        try:
            service = self.get_order_service()
        except ImproperlyConfigured as exc:
            logger.error("PayAid order endpoint misconfigured: %s", exc)
            return Response(
                {"message": "Payment gateway is not configured"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        try:
            result = service.create_order(data)
        except OrderValidationError as exc:
            return Response(
                {"message": exc.message, "missing": exc.missing_fields},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except GatewayUnavailable as exc:
            logger.warning("PayAid order %s failed: %s", data.get("order_id"), exc.message)
            return Response(
                {"message": "Order creation failed", "error": exc.message},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(result.to_dict(), status=status.HTTP_200_OK)


class PayAidCallbackView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get_verifier(self) -> CallbackVerifier:
        return CallbackVerifier()

    def get_workflow(self) -> EnrollmentWorkflow:
        return EnrollmentWorkflow()

    def post(self, request):
        try:
            verified = self.get_verifier().verify(request.data)
            if not verified.confirmed:
                return _plain("Payment failed")
            outcome = self.get_workflow().apply(verified)
        except CallbackIntegrityError as exc:
            logger.warning(
                "Rejected PayAid callback with invalid signature (order=%s, txn=%s, remote=%s)",
                exc.order_id, exc.transaction_id, _client_ip(request),
            )
            return _plain("Hash mismatch", status.HTTP_400_BAD_REQUEST)
        except MalformedPayload:
            logger.warning("Rejected PayAid callback with non-object body (remote=%s)", _client_ip(request))
            return _plain("Invalid payload", status.HTTP_400_BAD_REQUEST)
        except ImproperlyConfigured as exc:
            logger.error("PayAid callback endpoint misconfigured: %s", exc)
            return _plain("Server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
        except Exception:
            logger.exception("PayAid callback processing failed")
            return _plain("Server error", status.HTTP_500_INTERNAL_SERVER_ERROR)

        return _plain(outcome.response_text)

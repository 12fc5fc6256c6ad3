"""
PayAid Payment Gateway Exceptions

This module provides the exception classes raised by the PayAid integration.
They follow the same hierarchical structure as the other DSP integration
exceptions so views can map them to HTTP responses uniformly.

Author: DSP Development Team
Version: 1.0.0
"""

from typing import Optional, Dict, Any, Iterable


class PaymentGatewayException(Exception):
    """
    Base exception class for all PayAid related errors.

    Attributes:
        message (str): Human-readable error message
        status_code (Optional[int]): HTTP status code the API should answer with
        error_code (Optional[str]): Stable machine-readable error identifier
        details (Optional[Dict[str, Any]]): Additional error details

    Example:
        >>> try:
        ...     order_service.create_order(data)
        ... except PaymentGatewayException as e:
        ...     return Response(e.to_dict(), status=e.status_code or 500)
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "message": self.message,
            "status_code": self.status_code,
            "error_code": self.error_code,
            "details": self.details,
            "exception_type": self.__class__.__name__,
        }


class OrderValidationError(PaymentGatewayException):
    """
    Raised when an order request lacks mandatory fields or carries an
    amount that cannot be normalized. User-correctable.
    """

    def __init__(
        self,
        message: str = "Missing required fields",
        missing_fields: Optional[Iterable[str]] = None,
    ) -> None:
        self.missing_fields = list(missing_fields or [])
        details = {"missing_fields": self.missing_fields} if self.missing_fields else {}
        super().__init__(
            message=message,
            status_code=400,
            error_code="ValidationError",
            details=details,
        )


class CallbackIntegrityError(PaymentGatewayException):
    """
    Raised when the signature carried by a callback does not match the one
    recomputed from its fields.

    The message and details never contain the salt or any digest.
    """

    def __init__(
        self,
        message: str = "Hash mismatch",
        order_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> None:
        self.order_id = order_id
        self.transaction_id = transaction_id
        super().__init__(
            message=message,
            status_code=400,
            error_code="IntegrityError",
            details={"order_id": order_id, "transaction_id": transaction_id},
        )


class GatewayUnavailable(PaymentGatewayException):
    """
    Raised for network failures, timeouts, non-2xx answers and malformed
    bodies from PayAid. Retryable for order creation; swallowed with a
    fallback during callback reconfirmation.
    """

    def __init__(
        self,
        message: str = "Payment gateway unavailable",
        endpoint: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        self.endpoint = endpoint
        self.upstream_status = upstream_status
        details: Dict[str, Any] = {}
        if endpoint:
            details["endpoint"] = endpoint
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(
            message=message,
            status_code=502,
            error_code="GatewayUnavailable",
            details=details,
        )


class MalformedPayload(PaymentGatewayException):
    """Raised when a request body is not a field mapping (e.g. a JSON array)."""

    def __init__(self, message: str = "Request body must be an object of fields") -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="ValidationError",
        )

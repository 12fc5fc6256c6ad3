"""
PayAid Order Service

Validates an order request coming from the frontend, builds the canonical
PayAid field set, signs it and asks PayAid for a hosted payment page.

The three ``udf`` fields carry the internal student, course and price-option
ids. PayAid echoes them back in the callback and they are the only link
between a payment and the platform's records.

Nothing is persisted here.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional

from django.conf import settings

from .client import PayAidClient
from .exceptions import OrderValidationError
from .signing import CanonicalSigner, HASH_FIELD

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("amount", "order_id", "name", "email", "return_url")
CORRELATION_FIELDS = ("udf1", "udf2", "udf3")  # studentId, courseId, selectedOptionId
PASSTHROUGH_FIELDS = ("city", "country", "zip_code")
TWO_PLACES = Decimal("0.01")
# Largest amount an Enrollment can store (Decimal(10, 2))
MAX_AMOUNT = Decimal("99999999.99")


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def normalize_amount(value: Any) -> str:
    """Render an amount with exactly two decimals (``"1499.5"`` → ``"1499.50"``)."""
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise OrderValidationError("Invalid amount")
        amount = amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise OrderValidationError("Invalid amount")
    if amount <= 0 or amount > MAX_AMOUNT:
        raise OrderValidationError("Invalid amount")
    return str(amount)


@dataclass
class OrderResult:
    payment_url: str
    correlation_id: str
    received_params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "paymentUrl": self.payment_url,
            "uuid": self.correlation_id,
            "receivedParams": self.received_params,
        }


class OrderService:
    """
    Builds, signs and submits PayAid orders.

    Collaborators default to the ones configured in Django settings and can
    be injected for tests.
    """

    def __init__(
        self,
        client: Optional[PayAidClient] = None,
        signer: Optional[CanonicalSigner] = None,
        api_key: Optional[str] = None,
        mode: Optional[str] = None,
        default_currency: Optional[str] = None,
    ) -> None:
        self.client = client or PayAidClient.from_settings()
        self.signer = signer or CanonicalSigner(settings.PAYAID_SALT)
        self.api_key = api_key if api_key is not None else settings.PAYAID_API_KEY
        self.mode = mode or settings.PAYAID_MODE
        self.default_currency = default_currency or settings.PAYAID_DEFAULT_CURRENCY

    def validate(self, data: Mapping[str, Any]) -> None:
        missing = [name for name in REQUIRED_FIELDS if _is_blank(data.get(name))]
        if missing:
            raise OrderValidationError(missing_fields=missing)

    def build_order(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Return the signed PayAid parameter set for ``data``.

        Raises:
            OrderValidationError: If a mandatory field is missing or the
                amount is not a positive number
        """
        self.validate(data)
        order_id = str(data["order_id"]).strip()

        params: Dict[str, Any] = {
            "api_key": self.api_key,
            "order_id": order_id,
            "amount": normalize_amount(data["amount"]),
            "currency": data.get("currency") or self.default_currency,
            "description": data.get("description") or f"Payment for {order_id}",
            "name": data["name"],
            "email": data["email"],
            "phone": data.get("phone") or "",
            "mode": self.mode,
            "return_url": data["return_url"],
        }
        for name in CORRELATION_FIELDS:
            params[name] = data.get(name) or ""

        params[HASH_FIELD] = self.signer.sign(params)
        return params

    def create_order(self, data: Mapping[str, Any]) -> OrderResult:
        """
        Create a PayAid order and return the hosted payment page.

        Raises:
            OrderValidationError: For incomplete requests
            GatewayUnavailable: If PayAid cannot be reached or answers badly
        """
        params = self.build_order(data)
        link = self.client.create_payment_url(params)

        received = {name: data.get(name, "") for name in REQUIRED_FIELDS}
        received.update(
            {
                "currency": params["currency"],
                "phone": params["phone"],
                "description": params["description"],
            }
        )
        for name in PASSTHROUGH_FIELDS + CORRELATION_FIELDS:
            received[name] = data.get(name, "")

        logger.info(
            "Created PayAid order %s (student=%s, course=%s)",
            params["order_id"], params["udf1"], params["udf2"],
        )
        return OrderResult(
            payment_url=link.payment_url,
            correlation_id=link.correlation_id,
            received_params=received,
        )

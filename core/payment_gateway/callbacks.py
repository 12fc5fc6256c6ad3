"""
PayAid Callback Verification

PayAid reports the outcome of a payment by POSTing the order fields, its own
transaction id, a response code and a ``hash`` to our callback endpoint.
This module is the trust boundary for those requests:

1. The signature is recomputed over every field except ``hash`` and compared
   in constant time. A mismatch raises `CallbackIntegrityError`; such a
   payload never reaches enrollment logic.
2. Optionally, the transaction status is reconfirmed live with PayAid. When
   PayAid answers, its answer is authoritative. When it cannot be reached,
   the response code embedded in the (signed) payload decides.

A correctly signed callback for a failed payment is not an error: it yields
a `VerifiedCallback` with ``confirmed=False``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from django.conf import settings

from .client import PayAidClient, PaymentStatus, parse_response_code, SUCCESS_RESPONSE_CODE
from .exceptions import CallbackIntegrityError, GatewayUnavailable, MalformedPayload
from .signing import CanonicalSigner

logger = logging.getLogger(__name__)

SOURCE_GATEWAY = "gateway"
SOURCE_PAYLOAD = "payload"


def normalize_payload(data: Any) -> Dict[str, Any]:
    """
    Flatten a DRF ``request.data`` (QueryDict or dict) into a plain dict.

    Raises:
        MalformedPayload: If the body is not a mapping of fields
    """
    if data is None:
        return {}
    if hasattr(data, "dict") and callable(data.dict):
        return data.dict()
    if not isinstance(data, Mapping):
        raise MalformedPayload()
    return dict(data)


@dataclass
class VerifiedCallback:
    """
    A callback whose signature has been checked.

    Attributes:
        payload: The full callback as received, kept for audit
        confirmed: Whether the payment is considered successful
        confirmation_source: ``gateway`` if PayAid's live status decided,
            ``payload`` if the embedded response code did
    """

    payload: Dict[str, Any]
    confirmed: bool
    confirmation_source: str = SOURCE_PAYLOAD
    gateway_status: Optional[Dict[str, Any]] = field(default=None, repr=False)

    def _get(self, name: str) -> Optional[str]:
        value = self.payload.get(name)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def order_id(self) -> Optional[str]:
        return self._get("order_id")

    @property
    def transaction_id(self) -> Optional[str]:
        return self._get("transaction_id")

    @property
    def amount(self) -> Optional[str]:
        return self._get("amount")

    @property
    def response_code(self) -> Optional[int]:
        return parse_response_code(self.payload.get("response_code"))

    @property
    def student_ref(self) -> Optional[str]:
        return self._get("udf1")

    @property
    def course_ref(self) -> Optional[str]:
        return self._get("udf2")

    @property
    def option_ref(self) -> Optional[str]:
        return self._get("udf3")


class CallbackVerifier:
    """
    Verifies PayAid callbacks.

    Example:
        >>> verifier = CallbackVerifier()
        >>> verified = verifier.verify(request.data)
        >>> verified.confirmed
        True
    """

    def __init__(
        self,
        client: Optional[PayAidClient] = None,
        signer: Optional[CanonicalSigner] = None,
        api_key: Optional[str] = None,
        reconfirm: Optional[bool] = None,
    ) -> None:
        self.signer = signer or CanonicalSigner(settings.PAYAID_SALT)
        self.api_key = api_key if api_key is not None else settings.PAYAID_API_KEY
        self.reconfirm_enabled = settings.PAYAID_RECONFIRM_STATUS if reconfirm is None else reconfirm
        self.client = client
        if self.client is None and self.reconfirm_enabled:
            self.client = PayAidClient.from_settings()

    def check_signature(self, payload: Mapping[str, Any]) -> None:
        if not self.signer.verify(payload):
            raise CallbackIntegrityError(
                order_id=payload.get("order_id"),
                transaction_id=payload.get("transaction_id"),
            )

    def reconfirm(self, order_id: Optional[str], transaction_id: Optional[str]) -> Optional[PaymentStatus]:
        """
        Query PayAid for the live transaction status.

        Returns None when reconfirmation is disabled, impossible or failed.
        """
        if not self.reconfirm_enabled or self.client is None:
            return None
        if not order_id or not transaction_id:
            return None

        query = self.signer.attach(
            {"api_key": self.api_key, "order_id": order_id, "transaction_id": transaction_id}
        )
        try:
            return self.client.query_status(query)
        except GatewayUnavailable as exc:
            logger.info(
                "Status reconfirmation unavailable for order %s (%s); using callback response code",
                order_id, exc.message,
            )
            return None

    def verify(self, data: Any) -> VerifiedCallback:
        """
        Verify a raw callback.

        Raises:
            CallbackIntegrityError: If the carried ``hash`` does not match
        """
        payload = normalize_payload(data)
        self.check_signature(payload)

        verified = VerifiedCallback(payload=payload, confirmed=False)
        status = self.reconfirm(verified.order_id, verified.transaction_id)
        if status is not None:
            verified.confirmed = status.is_success
            verified.confirmation_source = SOURCE_GATEWAY
            verified.gateway_status = status.raw
        else:
            verified.confirmed = verified.response_code == SUCCESS_RESPONSE_CODE
            verified.confirmation_source = SOURCE_PAYLOAD

        logger.info(
            "Verified PayAid callback order=%s txn=%s confirmed=%s source=%s",
            verified.order_id, verified.transaction_id, verified.confirmed,
            verified.confirmation_source,
        )
        return verified

"""
PayAid HTTP Client

This module wraps the two PayAid endpoints used by the platform:

- ``getpaymentrequesturl`` → creates a hosted payment page for an order
- ``paymentstatus``        → reports the live status of a transaction

All calls go through a `requests.Session` whose adapter pins TLS 1.2 as the
minimum protocol version and keeps certificate and hostname verification
enabled. Requests are only ever sent to the host configured in
``PAYAID_BASE_URL``. Every transport problem (connection errors, timeouts,
non-2xx answers, unparsable bodies) surfaces as `GatewayUnavailable`; the
caller decides whether that is fatal.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urljoin, urlparse

import requests
from requests.adapters import HTTPAdapter
from django.conf import settings

from .exceptions import GatewayUnavailable

logger = logging.getLogger(__name__)

SUCCESS_RESPONSE_CODE = 0


class TLS12HttpAdapter(HTTPAdapter):
    """HTTPS adapter refusing anything older than TLS 1.2."""

    def _build_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        context.check_hostname = True
        context.verify_mode = ssl.CERT_REQUIRED
        return context

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = self._build_context()
        return super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args, **kwargs):
        kwargs["ssl_context"] = self._build_context()
        return super().proxy_manager_for(*args, **kwargs)


@dataclass
class PaymentLink:
    """Hosted payment page returned for a signed order."""

    payment_url: str
    correlation_id: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentStatus:
    """First status record PayAid reports for a transaction."""

    response_code: Optional[int]
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.response_code == SUCCESS_RESPONSE_CODE


def parse_response_code(value: Any) -> Optional[int]:
    """PayAid sends response codes as ints in JSON and as strings in form posts."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class PayAidClient:
    """
    Client for the PayAid REST API.

    Attributes:
        base_url: Scheme and host of the PayAid API
        order_path: Path of the payment-request-url endpoint
        status_path: Path of the payment-status endpoint
        timeout: Connect/read timeout in seconds for every call

    Example:
        >>> client = PayAidClient.from_settings()
        >>> link = client.create_payment_url(signed_order)
        >>> link.payment_url
        'https://sandbox.payaid.com/...'
    """

    def __init__(
        self,
        base_url: str,
        order_path: str = "/v2/getpaymentrequesturl",
        status_path: str = "/v2/paymentstatus",
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        parsed = urlparse(base_url)
        if parsed.scheme != "https" or not parsed.hostname:
            raise ValueError("PAYAID_BASE_URL must be an https:// URL with a host")
        self.base_url = base_url.rstrip("/") + "/"
        self.expected_host = parsed.hostname
        self.order_path = order_path
        self.status_path = status_path
        self.timeout = timeout
        self.session = session or self._build_session()

    @classmethod
    def from_settings(cls, session: Optional[requests.Session] = None) -> "PayAidClient":
        return cls(
            base_url=settings.PAYAID_BASE_URL,
            order_path=settings.PAYAID_ORDER_PATH,
            status_path=settings.PAYAID_STATUS_PATH,
            timeout=settings.PAYAID_TIMEOUT_SECONDS,
            session=session,
        )

    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()
        session.mount("https://", TLS12HttpAdapter())
        session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        return session

    def _url(self, path: str) -> str:
        url = urljoin(self.base_url, path.lstrip("/"))
        if urlparse(url).hostname != self.expected_host:
            raise GatewayUnavailable("Refusing to call unexpected gateway host", endpoint=path)
        return url

    def _post(self, path: str, payload: Mapping[str, Any]) -> Any:
        url = self._url(path)
        try:
            response = self.session.post(url, json=dict(payload), timeout=self.timeout, verify=True)
        except requests.Timeout as exc:
            logger.warning("PayAid call to %s timed out after %ss", path, self.timeout)
            raise GatewayUnavailable("Payment gateway timed out", endpoint=path) from exc
        except requests.RequestException as exc:
            logger.warning("PayAid call to %s failed: %s", path, exc.__class__.__name__)
            raise GatewayUnavailable("Payment gateway unreachable", endpoint=path) from exc

        if not 200 <= response.status_code < 300:
            logger.warning("PayAid call to %s answered HTTP %s", path, response.status_code)
            raise GatewayUnavailable(
                "Payment gateway returned an error",
                endpoint=path,
                upstream_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GatewayUnavailable("Malformed gateway response", endpoint=path) from exc

    def create_payment_url(self, signed_order: Mapping[str, Any]) -> PaymentLink:
        """
        Request a hosted payment page for an already signed order.

        Raises:
            GatewayUnavailable: On any transport or format problem
        """
        body = self._post(self.order_path, signed_order)
        try:
            data = body["data"]
            link = PaymentLink(payment_url=data["url"], correlation_id=data["uuid"], raw=body)
        except (KeyError, TypeError) as exc:
            raise GatewayUnavailable("Malformed gateway response", endpoint=self.order_path) from exc

        logger.info("PayAid payment page created for order %s (uuid=%s)", signed_order.get("order_id"), link.correlation_id)
        return link

    def query_status(self, signed_query: Mapping[str, Any]) -> PaymentStatus:
        """
        Ask PayAid for the live status of a transaction.

        Only the first record of the ``data`` array is considered. A record
        without a numeric ``response_code`` counts as a malformed answer.

        Raises:
            GatewayUnavailable: On any transport or format problem
        """
        body = self._post(self.status_path, signed_query)
        try:
            first = body["data"][0]
            code = parse_response_code(first.get("response_code"))
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise GatewayUnavailable("Malformed gateway response", endpoint=self.status_path) from exc
        if code is None:
            raise GatewayUnavailable("Malformed gateway response", endpoint=self.status_path)
        return PaymentStatus(response_code=code, raw=first)

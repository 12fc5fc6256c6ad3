"""
Canonical signing for PayAid requests and callbacks.

PayAid signs every request and callback with a SHA-512 digest over a
canonical string: the shared salt followed by the trimmed values of all
non-empty fields, ordered by field name and joined with ``|``. The same
routine is used to build outbound orders and to verify inbound callbacks,
so it must not depend on the order in which fields were inserted.
"""

import hashlib
import hmac
import math
from typing import Any, Mapping, Optional

from django.core.exceptions import ImproperlyConfigured

HASH_FIELD = "hash"
SEPARATOR = "|"


def _render(value: Any) -> str:
    # JSON scalars are rendered the way the gateway renders them: true/false, 1499 not 1499.0
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = _render(value).strip()
    return text or None


def canonical_string(fields: Mapping[str, Any], secret: str) -> str:
    """
    Build the string that is fed into the digest.

    Fields whose value is None or blank after trimming are skipped. The
    ``hash`` field itself is never part of its own input.
    """
    parts = [secret]
    for name in sorted(fields):
        if name == HASH_FIELD:
            continue
        value = _clean(fields[name])
        if value is not None:
            parts.append(value)
    return SEPARATOR.join(parts)


def sign_fields(fields: Mapping[str, Any], secret: str) -> str:
    """Return the uppercase hex SHA-512 digest for ``fields``."""
    payload = canonical_string(fields, secret).encode("utf-8")
    return hashlib.sha512(payload).hexdigest().upper()


def signatures_match(expected: str, received: Optional[str]) -> bool:
    """Constant-time comparison of two hex digests (case-insensitive)."""
    if not received:
        return False
    return hmac.compare_digest(expected.upper(), str(received).strip().upper())


class CanonicalSigner:
    """
    Signer bound to one shared secret.

    Example:
        >>> signer = CanonicalSigner("SALT")
        >>> signed = signer.attach({"order_id": "A-1", "amount": "10.00"})
        >>> signer.verify(signed)
        True
    """

    def __init__(self, secret: str) -> None:
        if secret is None or not str(secret).strip():
            raise ImproperlyConfigured("PAYAID_SALT must be set to a non-empty secret")
        self._secret = secret

    def sign(self, fields: Mapping[str, Any]) -> str:
        return sign_fields(fields, self._secret)

    def attach(self, fields: Mapping[str, Any]) -> dict:
        """Return a copy of ``fields`` carrying its own ``hash``."""
        signed = {name: value for name, value in fields.items() if name != HASH_FIELD}
        signed[HASH_FIELD] = self.sign(signed)
        return signed

    def verify(self, fields: Mapping[str, Any]) -> bool:
        """Recompute the digest over everything but ``hash`` and compare."""
        return signatures_match(self.sign(fields), fields.get(HASH_FIELD))

    def __repr__(self) -> str:
        return "<CanonicalSigner secret=***>"

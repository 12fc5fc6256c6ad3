"""
Notification dispatch for enrollment events.

Each notification is two independent steps: persist a `Message` for the
receiver and push a realtime event to the receiver's connection. A failure
in one step is logged and neither aborts the other step nor any other
notification, and nothing here ever propagates into the caller's
transaction.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction

from .models import Message, MessageType
from .realtime import ConnectionRegistry, connection_registry

logger = logging.getLogger(__name__)


@dataclass
class DeliveryReport:
    receiver_id: Any
    message_id: Optional[int] = None
    pushed: bool = False

    @property
    def persisted(self) -> bool:
        return self.message_id is not None


class NotificationDispatcher:
    """
    Persists notification messages and pushes realtime events.

    Attributes:
        registry: Connection registry used for realtime delivery
    """

    def __init__(self, registry: Optional[ConnectionRegistry] = None) -> None:
        self.registry = registry if registry is not None else connection_registry

    def persist(self, sender_id: Any, receiver_id: Any, content: str, message_type: str) -> Optional[int]:
        try:
            with transaction.atomic():
                message = Message.objects.create(
                    sender_id=sender_id,
                    receiver_id=receiver_id,
                    content=content,
                    message_type=message_type,
                )
            return message.pk
        except Exception:
            logger.warning("Could not store notification for user %s", receiver_id, exc_info=True)
            return None

    def push(self, receiver_id: Any, event: Dict[str, Any]) -> bool:
        try:
            return self.registry.push_if_connected(receiver_id, event)
        except Exception:
            logger.warning(
                "Realtime push of %s to user %s failed", event.get("type"), receiver_id, exc_info=True
            )
            return False

    def dispatch(
        self,
        sender_id: Any,
        receiver_id: Any,
        content: str,
        event: Optional[Dict[str, Any]] = None,
        message_type: str = MessageType.SYSTEM_NOTIFICATION,
    ) -> DeliveryReport:
        report = DeliveryReport(receiver_id=receiver_id)
        report.message_id = self.persist(sender_id, receiver_id, content, message_type)
        if event is not None:
            report.pushed = self.push(receiver_id, event)
        return report

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class MessageType(models.TextChoices):
    SYSTEM_NOTIFICATION = "system_notification", _("System notification")
    CHAT = "chat", _("Chat")


class Message(models.Model):
    """Message between two users; system notifications use the acting admin as sender."""

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_messages",
        verbose_name=_("Sender"),
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_messages",
        verbose_name=_("Receiver"),
    )
    content = models.TextField(verbose_name=_("Content"))
    message_type = models.CharField(
        max_length=32,
        choices=MessageType.choices,
        default=MessageType.SYSTEM_NOTIFICATION,
        verbose_name=_("Type"),
    )
    is_read = models.BooleanField(default=False, verbose_name=_("Read"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Message")
        verbose_name_plural = _("Messages")
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["receiver", "is_read"], name="elearning_m_receive_3c7e51_idx")]

    def __str__(self):
        return f"{self.sender_id} → {self.receiver_id}: {self.content[:40]}"

"""
E-Learning User Serializers

Compact user representations embedded in enrollment payloads.

Serializers:
- UserSummarySerializer: id, display name and email of a student
- TrainerSummarySerializer: trainer with specialization label
- TrainerSerializer: trainer summary including current workload

Author: DSP Development Team
Version: 1.1.0
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Profile

User = get_user_model()


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Minimal user representation (``id``, ``name``, ``email``).
    """

    name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ("id", "name", "email")
        read_only_fields = fields

    def get_name(self, obj) -> str:
        """
        Get formatted full name of the user.

        Returns:
            Formatted full name or username if names are not available
        """
        if obj.first_name and obj.last_name:
            return f"{obj.first_name} {obj.last_name}"
        elif obj.first_name:
            return obj.first_name
        elif obj.last_name:
            return obj.last_name
        return obj.username


class TrainerSummarySerializer(UserSummarySerializer):
    """Trainer summary with specialization label."""

    specialist = serializers.SerializerMethodField()

    class Meta(UserSummarySerializer.Meta):
        fields = ("id", "name", "email", "specialist")
        read_only_fields = fields

    def get_specialist(self, obj) -> str:
        try:
            return obj.profile.specialist_label
        except Profile.DoesNotExist:
            return "General"


class TrainerSerializer(TrainerSummarySerializer):
    """
    Trainer summary plus the number of enrollments the trainer is currently
    working on (annotated on the queryset as ``active_enrollments``).
    """

    activeEnrollments = serializers.SerializerMethodField()

    class Meta(TrainerSummarySerializer.Meta):
        fields = ("id", "name", "email", "specialist", "activeEnrollments")
        read_only_fields = fields

    def get_activeEnrollments(self, obj) -> int:
        return getattr(obj, "active_enrollments", 0) or 0

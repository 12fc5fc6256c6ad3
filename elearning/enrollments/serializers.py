from rest_framework import serializers

from ..courses.models import Course, CoursePriceOption
from ..users.serializers import TrainerSummarySerializer, UserSummarySerializer
from .models import Enrollment


class CourseSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Course
        fields = ("id", "title")


class PriceOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = CoursePriceOption
        fields = ("id", "label", "price", "currency")


class EnrollmentSerializer(serializers.ModelSerializer):
    """Read representation used by every enrollment endpoint."""

    student = UserSummarySerializer(read_only=True)
    course = CourseSummarySerializer(read_only=True)
    selectedOption = PriceOptionSerializer(source="selected_option", read_only=True)
    trainer = TrainerSummarySerializer(read_only=True)

    class Meta:
        model = Enrollment
        fields = (
            "id",
            "student",
            "student_name",
            "student_email",
            "course",
            "selectedOption",
            "trainer",
            "amount",
            "payment_method",
            "external_transaction_id",
            "course_stages",
            "status",
            "assigned_at",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class EnrollmentAuditSerializer(EnrollmentSerializer):
    """Admin representation including the stored gateway callback."""

    class Meta(EnrollmentSerializer.Meta):
        fields = EnrollmentSerializer.Meta.fields + ("external_response",)
        read_only_fields = fields


class StageProgressSerializer(serializers.Serializer):
    stageId = serializers.CharField()
    completed = serializers.BooleanField(required=False, allow_null=True, default=None)
    feedback = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)

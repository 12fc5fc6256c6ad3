"""
Enrollment API Views

REST endpoints around the enrollment lifecycle after payment.

Endpoints:
----------
- AssignTrainerView            POST  /api/enrollments/assign-trainer/        (admin)
- PendingAssignmentsView       GET   /api/enrollments/pending-assignments/   (admin)
- AvailableTrainersView        GET   /api/enrollments/trainers/available/    (admin)
- TrainerStudentsView          GET   /api/enrollments/trainer/students/      (trainer)
- StudentEnrollmentsView       GET   /api/enrollments/student/               (authenticated)
- StudentTrainerView           GET   /api/enrollments/<id>/trainer/          (own enrollment)
- EnrollmentListView           GET   /api/enrollments/                       (admin)
- EnrollmentDetailView         GET   /api/enrollments/<id>/                  (admin)
- EnrollmentProgressView       PATCH /api/enrollments/<id>/progress/         (trainer/admin)
- EnrollmentCancelView         POST  /api/enrollments/<id>/cancel/           (admin)

Failures of the lifecycle services are answered with
``{"success": false, "message": ..., "reason": ...}`` and the status code
carried by the exception.

Author: DSP Development Team
Version: 1.0.0
"""

import logging

from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from ..users.models import PlatformRole
from ..users.permissions import IsPlatformAdmin, IsTrainer
from ..users.serializers import TrainerSerializer
from .exceptions import EnrollmentException
from .models import Enrollment, EnrollmentStatus
from .serializers import EnrollmentAuditSerializer, EnrollmentSerializer, StageProgressSerializer
from .services import EnrollmentProgressService, TrainerAssignmentCoordinator

logger = logging.getLogger(__name__)
User = get_user_model()

WORKLOAD_STATUSES = (EnrollmentStatus.TRAINER_ASSIGNED, EnrollmentStatus.IN_PROGRESS)


def _error_response(exc: EnrollmentException) -> Response:
    return Response(exc.to_dict(), status=exc.status_code)


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class AssignTrainerView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get_coordinator(self) -> TrainerAssignmentCoordinator:
        return TrainerAssignmentCoordinator()

    def post(self, request):
        enrollment_id = _as_int(request.data.get("enrollmentId"))
        trainer_id = _as_int(request.data.get("trainerId"))
        if enrollment_id is None or trainer_id is None:
            return Response(
                {
                    "success": False,
                    "message": "Enrollment ID and Trainer ID are required",
                    "reason": "ValidationError",
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            result = self.get_coordinator().assign(enrollment_id, trainer_id, request.user.pk)
        except EnrollmentException as exc:
            return _error_response(exc)

        enrollment = Enrollment.objects.with_relations().get(pk=result.enrollment.pk)
        return Response(
            {
                "success": True,
                "message": result.message,
                "enrollment": EnrollmentSerializer(enrollment).data,
            },
            status=status.HTTP_200_OK,
        )


class PendingAssignmentsView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        pending = Enrollment.objects.pending_assignment().with_relations().order_by("created_at")
        return Response(
            {
                "message": "Pending trainer assignments retrieved",
                "count": len(pending),
                "enrollments": EnrollmentSerializer(pending, many=True).data,
            }
        )


class AvailableTrainersView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        trainers = (
            User.objects.filter(profile__role=PlatformRole.TRAINER, is_active=True)
            .select_related("profile")
            .annotate(
                active_enrollments=Count(
                    "trainer_enrollments",
                    filter=Q(trainer_enrollments__status__in=WORKLOAD_STATUSES),
                )
            )
            .order_by("first_name", "username")
        )
        data = TrainerSerializer(trainers, many=True).data
        return Response(
            {
                "success": True,
                "message": "Available trainers retrieved successfully",
                "count": len(data),
                "trainers": data,
            }
        )


class TrainerStudentsView(APIView):
    permission_classes = [IsTrainer]

    def get(self, request):
        enrollments = (
            Enrollment.objects.filter(trainer=request.user).with_relations().order_by("-assigned_at")
        )
        return Response(
            {
                "message": "Assigned students retrieved",
                "count": len(enrollments),
                "enrollments": EnrollmentSerializer(enrollments, many=True).data,
            }
        )


class StudentEnrollmentsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        enrollments = Enrollment.objects.filter(student=request.user).with_relations()
        if not enrollments:
            return Response(
                {"message": "No enrollments found for this student."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(EnrollmentSerializer(enrollments, many=True).data)


class StudentTrainerView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk: int):
        enrollment = Enrollment.objects.with_relations().filter(pk=pk, student=request.user).first()
        if enrollment is None:
            return Response(
                {"message": "Enrollment not found or access denied"},
                status=status.HTTP_404_NOT_FOUND,
            )
        data = EnrollmentSerializer(enrollment).data
        return Response(
            {
                "message": "Trainer information retrieved",
                "enrollment": data,
                "trainer": data["trainer"],
            }
        )


class EnrollmentListView(generics.ListAPIView):
    serializer_class = EnrollmentSerializer
    permission_classes = [IsPlatformAdmin]

    def get_queryset(self):
        qs = Enrollment.objects.with_relations()
        status_filter = self.request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs.order_by("-created_at")


class EnrollmentDetailView(generics.RetrieveAPIView):
    serializer_class = EnrollmentAuditSerializer
    permission_classes = [IsPlatformAdmin]
    queryset = Enrollment.objects.with_relations()


class EnrollmentProgressView(APIView):
    permission_classes = [IsTrainer]

    def patch(self, request, pk: int):
        serializer = StageProgressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = serializer.validated_data

        try:
            enrollment = EnrollmentProgressService().update_stage(
                pk,
                payload["stageId"],
                request.user.pk,
                completed=payload.get("completed"),
                feedback=payload.get("feedback"),
            )
        except EnrollmentException as exc:
            return _error_response(exc)

        return Response(
            {
                "message": "Progress updated",
                "status": enrollment.status,
                "stages": enrollment.course_stages,
            }
        )


class EnrollmentCancelView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request, pk: int):
        try:
            enrollment = EnrollmentProgressService().cancel(pk, request.user.pk)
        except EnrollmentException as exc:
            return _error_response(exc)
        return Response({"success": True, "message": "Enrollment cancelled", "status": enrollment.status})

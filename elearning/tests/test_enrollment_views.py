"""
API-Tests für die Einschreibungs-Endpunkte unter /api/enrollments/.
"""

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from elearning.enrollments.models import EnrollmentStatus
from elearning.messaging.models import Message
from elearning.users.models import PlatformRole

from .helpers import make_course, make_enrollment, make_user


class EnrollmentApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = make_user("admin", role=PlatformRole.ADMIN)
        cls.trainer = make_user("ravi", role=PlatformRole.TRAINER, first_name="Ravi", last_name="Kumar")
        cls.trainer.profile.specialist = "Data Engineering"
        cls.trainer.profile.save()
        cls.idle_trainer = make_user("meera", role=PlatformRole.TRAINER)
        cls.student = make_user("asha", first_name="Asha", last_name="Rao")
        cls.other_student = make_user("vikram")
        cls.course, cls.option = make_course()
        cls.enrollment = make_enrollment(
            cls.student,
            cls.course,
            selected_option=cls.option,
            external_transaction_id="TXN-1",
            external_response={"order_id": "ORD-1"},
        )

    def client_for(self, user):
        client = APIClient()
        client.force_authenticate(user)
        return client

    # --- assign-trainer ---

    def test_admin_assigns_trainer(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client_for(self.admin).post(
                "/api/enrollments/assign-trainer/",
                {"enrollmentId": self.enrollment.pk, "trainerId": self.trainer.pk},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Trainer Ravi Kumar assigned successfully.")
        self.assertEqual(body["enrollment"]["status"], EnrollmentStatus.TRAINER_ASSIGNED)
        self.assertEqual(body["enrollment"]["trainer"]["specialist"], "Data Engineering")
        self.assertEqual(Message.objects.count(), 2)

    def test_assign_requires_both_ids(self):
        response = self.client_for(self.admin).post(
            "/api/enrollments/assign-trainer/", {"enrollmentId": self.enrollment.pk}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.json()["success"])

    def test_assign_unknown_trainer(self):
        response = self.client_for(self.admin).post(
            "/api/enrollments/assign-trainer/",
            {"enrollmentId": self.enrollment.pk, "trainerId": 999999},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["message"], "Trainer not found")

    def test_assign_user_without_trainer_role(self):
        response = self.client_for(self.admin).post(
            "/api/enrollments/assign-trainer/",
            {"enrollmentId": self.enrollment.pk, "trainerId": self.other_student.pk},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["reason"], "InvalidRole")

    def test_assign_is_admin_only(self):
        response = self.client_for(self.trainer).post(
            "/api/enrollments/assign-trainer/",
            {"enrollmentId": self.enrollment.pk, "trainerId": self.trainer.pk},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # --- admin listings ---

    def test_pending_assignments(self):
        response = self.client_for(self.admin).get("/api/enrollments/pending-assignments/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["count"], 1)
        enrollment = body["enrollments"][0]
        self.assertEqual(enrollment["student"]["name"], "Asha Rao")
        self.assertEqual(enrollment["course"]["title"], "Data Engineering")
        self.assertEqual(enrollment["selectedOption"]["label"], "Weekend batch")

    def test_available_trainers_with_workload(self):
        make_enrollment(
            self.other_student, self.course, status=EnrollmentStatus.IN_PROGRESS, trainer=self.trainer
        )

        response = self.client_for(self.admin).get("/api/enrollments/trainers/available/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        trainers = {trainer["id"]: trainer for trainer in response.json()["trainers"]}
        self.assertEqual(set(trainers), {self.trainer.pk, self.idle_trainer.pk})
        self.assertEqual(trainers[self.trainer.pk]["activeEnrollments"], 1)
        self.assertEqual(trainers[self.idle_trainer.pk]["activeEnrollments"], 0)
        self.assertEqual(trainers[self.idle_trainer.pk]["specialist"], "General")

    def test_list_filtered_by_status(self):
        make_enrollment(self.other_student, self.course, status=EnrollmentStatus.CANCELLED)
        client = self.client_for(self.admin)

        self.assertEqual(len(client.get("/api/enrollments/").json()), 2)
        cancelled = client.get("/api/enrollments/", {"status": "cancelled"}).json()
        self.assertEqual([e["status"] for e in cancelled], ["cancelled"])

    def test_detail_contains_gateway_callback(self):
        response = self.client_for(self.admin).get(f"/api/enrollments/{self.enrollment.pk}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["external_response"], {"order_id": "ORD-1"})

    def test_student_cannot_list_all(self):
        response = self.client_for(self.student).get("/api/enrollments/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # --- student and trainer views ---

    def test_student_sees_own_enrollments(self):
        response = self.client_for(self.student).get("/api/enrollments/student/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e["id"] for e in response.json()], [self.enrollment.pk])
        self.assertNotIn("external_response", response.json()[0])

    def test_student_without_enrollments(self):
        response = self.client_for(self.other_student).get("/api/enrollments/student/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_student_trainer_view(self):
        make_enrollment(self.other_student, make_course(title="Cloud")[0])
        client = self.client_for(self.student)

        response = client.get(f"/api/enrollments/{self.enrollment.pk}/trainer/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.json()["trainer"])

        foreign = self.client_for(self.other_student).get(f"/api/enrollments/{self.enrollment.pk}/trainer/")
        self.assertEqual(foreign.status_code, status.HTTP_404_NOT_FOUND)

    def test_trainer_students(self):
        make_enrollment(
            self.other_student, self.course, status=EnrollmentStatus.TRAINER_ASSIGNED, trainer=self.trainer
        )

        response = self.client_for(self.trainer).get("/api/enrollments/trainer/students/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["count"], 1)
        self.assertEqual(response.json()["enrollments"][0]["student"]["id"], self.other_student.pk)

    def test_trainer_students_requires_trainer(self):
        response = self.client_for(self.student).get("/api/enrollments/trainer/students/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # --- progress and cancellation ---

    def test_progress_update(self):
        assigned = make_enrollment(
            self.other_student, self.course, status=EnrollmentStatus.TRAINER_ASSIGNED, trainer=self.trainer
        )

        response = self.client_for(self.trainer).patch(
            f"/api/enrollments/{assigned.pk}/progress/",
            {"stageId": "1", "completed": True, "feedback": "Well done"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["status"], EnrollmentStatus.IN_PROGRESS)
        self.assertTrue(response.json()["stages"][0]["completed"])

    def test_progress_by_foreign_trainer(self):
        assigned = make_enrollment(
            self.other_student, self.course, status=EnrollmentStatus.TRAINER_ASSIGNED, trainer=self.trainer
        )

        response = self.client_for(self.idle_trainer).patch(
            f"/api/enrollments/{assigned.pk}/progress/", {"stageId": "1", "completed": True}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["reason"], "AccessDenied")

    def test_progress_update_by_admin(self):
        assigned = make_enrollment(
            self.other_student, self.course, status=EnrollmentStatus.TRAINER_ASSIGNED, trainer=self.trainer
        )

        response = self.client_for(self.admin).patch(
            f"/api/enrollments/{assigned.pk}/progress/", {"stageId": "1", "completed": True}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["status"], EnrollmentStatus.IN_PROGRESS)

    def test_progress_update_requires_trainer(self):
        assigned = make_enrollment(
            self.other_student, self.course, status=EnrollmentStatus.TRAINER_ASSIGNED, trainer=self.trainer
        )

        response = self.client_for(self.student).patch(
            f"/api/enrollments/{assigned.pk}/progress/", {"stageId": "1", "completed": True}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cancel(self):
        response = self.client_for(self.admin).post(f"/api/enrollments/{self.enrollment.pk}/cancel/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["status"], EnrollmentStatus.CANCELLED)

        again = self.client_for(self.admin).post(f"/api/enrollments/{self.enrollment.pk}/cancel/")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)

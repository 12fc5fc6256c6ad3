from django.urls import path

from . import views

app_name = "enrollments"

urlpatterns = [
    path("", views.EnrollmentListView.as_view(), name="enrollment-list"),
    path("assign-trainer/", views.AssignTrainerView.as_view(), name="assign-trainer"),
    path("pending-assignments/", views.PendingAssignmentsView.as_view(), name="pending-assignments"),
    path("trainers/available/", views.AvailableTrainersView.as_view(), name="available-trainers"),
    path("trainer/students/", views.TrainerStudentsView.as_view(), name="trainer-students"),
    path("student/", views.StudentEnrollmentsView.as_view(), name="student-enrollments"),
    path("<int:pk>/", views.EnrollmentDetailView.as_view(), name="enrollment-detail"),
    path("<int:pk>/trainer/", views.StudentTrainerView.as_view(), name="student-trainer"),
    path("<int:pk>/progress/", views.EnrollmentProgressView.as_view(), name="enrollment-progress"),
    path("<int:pk>/cancel/", views.EnrollmentCancelView.as_view(), name="enrollment-cancel"),
]

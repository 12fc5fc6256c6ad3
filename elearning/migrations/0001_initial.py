from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255, verbose_name="Title")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                (
                    "stages",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text='Ordered stage template, e.g. [{"id": 1, "title": "Basics"}]',
                        verbose_name="Stages",
                    ),
                ),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Course",
                "verbose_name_plural": "Courses",
                "ordering": ["title"],
            },
        ),
        migrations.CreateModel(
            name="CoursePriceOption",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("label", models.CharField(max_length=120, verbose_name="Label")),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="Price",
                    ),
                ),
                ("currency", models.CharField(default="INR", max_length=3, verbose_name="Currency")),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="price_options",
                        to="elearning.course",
                        verbose_name="Course",
                    ),
                ),
            ],
            options={
                "verbose_name": "Course Price Option",
                "verbose_name_plural": "Course Price Options",
                "ordering": ["course", "price"],
            },
        ),
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "role",
                    models.CharField(
                        choices=[("student", "Student"), ("trainer", "Trainer"), ("admin", "Administrator")],
                        db_index=True,
                        default="student",
                        max_length=16,
                        verbose_name="Role",
                    ),
                ),
                (
                    "specialist",
                    models.CharField(
                        blank=True,
                        help_text="Trainer specialization, e.g. 'Data Engineering'",
                        max_length=120,
                        verbose_name="Specialization",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        help_text="Associated user account",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="User",
                    ),
                ),
            ],
            options={
                "verbose_name": "User Profile",
                "verbose_name_plural": "User Profiles",
                "db_table": "elearning_profile",
            },
        ),
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("student_name", models.CharField(blank=True, max_length=255, verbose_name="Student name")),
                ("student_email", models.EmailField(blank=True, max_length=254, verbose_name="Student email")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="Amount")),
                ("payment_method", models.CharField(default="payaid", max_length=32, verbose_name="Payment method")),
                (
                    "external_transaction_id",
                    models.CharField(
                        blank=True,
                        max_length=128,
                        null=True,
                        unique=True,
                        verbose_name="Gateway transaction id",
                    ),
                ),
                (
                    "external_response",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Verified callback payload kept for audit",
                        verbose_name="Gateway callback",
                    ),
                ),
                ("course_stages", models.JSONField(blank=True, default=list, verbose_name="Course stages")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("enrolled", "Enrolled"),
                            ("trainer_assigned", "Trainer assigned"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="enrolled",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("assigned_at", models.DateTimeField(blank=True, null=True, verbose_name="Trainer assigned at")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="enrollments",
                        to="elearning.course",
                        verbose_name="Course",
                    ),
                ),
                (
                    "selected_option",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="enrollments",
                        to="elearning.coursepriceoption",
                        verbose_name="Selected price option",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollments",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Student",
                    ),
                ),
                (
                    "trainer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="trainer_enrollments",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Trainer",
                    ),
                ),
            ],
            options={
                "verbose_name": "Enrollment",
                "verbose_name_plural": "Enrollments",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "trainer"], name="elearning_e_status_8b1c2e_idx"),
                    models.Index(fields=["student", "course"], name="elearning_e_student_4f0a9d_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["completed", "cancelled"]), _negated=True),
                        fields=("student", "course"),
                        name="unique_active_enrollment_per_student_course",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content", models.TextField(verbose_name="Content")),
                (
                    "message_type",
                    models.CharField(
                        choices=[("system_notification", "System notification"), ("chat", "Chat")],
                        default="system_notification",
                        max_length=32,
                        verbose_name="Type",
                    ),
                ),
                ("is_read", models.BooleanField(default=False, verbose_name="Read")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "receiver",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="received_messages",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Receiver",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Sender",
                    ),
                ),
            ],
            options={
                "verbose_name": "Message",
                "verbose_name_plural": "Messages",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["receiver", "is_read"], name="elearning_m_receive_3c7e51_idx"),
                ],
            },
        ),
    ]

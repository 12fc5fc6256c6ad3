"""
E-Learning Application Django Admin Configuration

This module provides the Django admin interface configuration for the
E-Learning models used by the payment and enrollment flow.

The admin interface is organized into logical sections:
- User Management: User administration with role/profile integration
- Course Catalogue: Courses and their price options
- Enrollments: Paid enrollments, gateway audit data and trainer assignment
- Messaging: System notifications

Enrollment status changes (trainer assignment, cancellation) go through the
API so the status machine and notifications are applied; the admin shows
them read-only.

Author: DSP Development Team
Version: 1.1.0
"""

from typing import Optional
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth import get_user_model
from django.utils.translation import gettext_lazy as _
from django.db.models import QuerySet
from django.http import HttpRequest

from .models import Profile, Course, CoursePriceOption, Enrollment, Message

User = get_user_model()

# --- User Management Administration ---


class ProfileInline(admin.StackedInline):
    """
    Inline admin configuration for user profiles (role and specialization).
    """

    model = Profile
    can_delete = False
    verbose_name_plural = "Profile Information"
    fk_name = "user"
    fields = ("role", "specialist")

    def get_extra(
        self, request: HttpRequest, obj: Optional[User] = None, **kwargs
    ) -> int:
        """Return 0 extra forms since profile should exist or be created automatically."""
        return 0


class UserAdmin(BaseUserAdmin):
    """
    User administration interface with platform role integration.
    """

    inlines = (ProfileInline,)
    list_display = (
        "username",
        "email",
        "first_name",
        "last_name",
        "is_staff",
        "is_active",
        "get_role",
    )
    list_select_related = ("profile",)
    list_filter = ("is_staff", "is_active", "profile__role", "date_joined")
    search_fields = ("username", "first_name", "last_name", "email")
    ordering = ("username",)

    @admin.display(description=_("Role"))
    def get_role(self, instance: User) -> Optional[str]:
        try:
            return instance.profile.get_role_display()
        except Profile.DoesNotExist:
            return None

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        """Optimize queryset with profile prefetch for better performance."""
        return super().get_queryset(request).select_related("profile")


# Register enhanced user administration
admin.site.unregister(User)
admin.site.register(User, UserAdmin)

# --- Course Catalogue Administration ---


class CoursePriceOptionInline(admin.TabularInline):
    model = CoursePriceOption
    extra = 1
    fields = ("label", "price", "currency")


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("title", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("title", "description")
    inlines = [CoursePriceOptionInline]


# --- Enrollment Administration ---


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    """
    Enrollment overview with gateway audit data.

    Status, trainer and gateway fields are read-only here.
    """

    list_display = ("id", "student_name", "course", "status", "trainer", "amount", "created_at")
    list_filter = ("status", "payment_method", "course")
    search_fields = ("student_name", "student_email", "external_transaction_id")
    list_select_related = ("course", "trainer")
    readonly_fields = (
        "student",
        "course",
        "selected_option",
        "amount",
        "payment_method",
        "external_transaction_id",
        "external_response",
        "status",
        "trainer",
        "assigned_at",
        "created_at",
        "updated_at",
    )
    fieldsets = (
        (_("Student"), {"fields": ("student", "student_name", "student_email")}),
        (_("Course"), {"fields": ("course", "selected_option", "course_stages")}),
        (_("Lifecycle"), {"fields": ("status", "trainer", "assigned_at", "created_at", "updated_at")}),
        (
            _("Payment"),
            {
                "fields": ("amount", "payment_method", "external_transaction_id", "external_response"),
                "classes": ("collapse",),
            },
        ),
    )


# --- Messaging Administration ---


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "sender", "receiver", "message_type", "is_read", "created_at")
    list_filter = ("message_type", "is_read")
    search_fields = ("content",)

"""
Role-based access checks for the E-Learning API.

`actor_has_role` is the single ``(actor, required role)`` check every
state-mutating enrollment operation evaluates before it runs. The DRF
permission classes below apply the same rule at the view layer.
"""

from typing import Optional

from django.contrib.auth import get_user_model
from rest_framework.permissions import BasePermission

from .models import PlatformRole, Profile

User = get_user_model()


def user_has_role(user, required_role: str) -> bool:
    """
    True if ``user`` carries ``required_role``.

    Admins (profile role ``admin`` or Django ``is_staff``) satisfy every role.
    """
    if user is None or not getattr(user, "is_authenticated", False) or not user.is_active:
        return False
    if user.is_staff:
        return True
    try:
        role = user.profile.role
    except Profile.DoesNotExist:
        return False
    return role == PlatformRole.ADMIN or role == required_role


def actor_has_role(actor_id: Optional[int], required_role: str) -> bool:
    """Look the actor up by id and apply `user_has_role`."""
    if actor_id is None:
        return False
    actor = User.objects.select_related("profile").filter(pk=actor_id).first()
    return user_has_role(actor, required_role)


class IsPlatformAdmin(BasePermission):
    """Only administrators (profile role or ``is_staff``)."""

    def has_permission(self, request, view):
        return user_has_role(request.user, PlatformRole.ADMIN)


class IsTrainer(BasePermission):
    """Trainers, plus administrators."""

    def has_permission(self, request, view):
        return user_has_role(request.user, PlatformRole.TRAINER)

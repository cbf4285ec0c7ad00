"""
Role-based permission classes.

Roles form a hierarchy: admin > moderator > standard. Superusers are
treated as admins.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS


def is_admin(user):
    return bool(user and user.is_authenticated and user.is_admin)


def is_moderator_or_admin(user):
    return bool(user and user.is_authenticated and user.is_moderator_or_admin)


class IsAdminRole(BasePermission):
    """Only users with the admin role"""
    message = 'Administrator role required.'

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsModeratorOrAdmin(BasePermission):
    """Users with the moderator or admin role"""
    message = 'Moderator or administrator role required.'

    def has_permission(self, request, view):
        return is_moderator_or_admin(request.user)


class ReadOnlyOrAdmin(BasePermission):
    """Any authenticated user may read, only admins may write"""
    message = 'Administrator role required.'

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return is_admin(request.user)


class ReadOnlyOrModerator(BasePermission):
    """Any authenticated user may read, moderators and admins may write"""
    message = 'Moderator or administrator role required.'

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return is_moderator_or_admin(request.user)

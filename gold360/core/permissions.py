from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """Allows access to superusers and users with the admin role"""
    message = 'Admin role required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin_role)


class IsManagerOrAdmin(BasePermission):
    """Allows access to managers and admins"""
    message = 'Manager or admin role required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_manager_or_admin)


def is_manager_or_admin(user):
    return bool(user and user.is_authenticated and user.is_manager_or_admin)

from rest_framework import permissions


class RoleBasedPermissions:
    """
    Shared role check used by the permission classes below.
    """

    @staticmethod
    def has_role(request, allowed_roles):
        """
        Generic role-based permission check.

        Args:
            request: HTTP request object
            allowed_roles (list): List of allowed role names

        Returns:
            bool: True if user has one of the allowed roles
        """
        if not request.user or not request.user.is_authenticated:
            return False

        if not request.user.role:
            return False

        return request.user.role.name in allowed_roles


class IsAdminUser(permissions.BasePermission):
    """
    Only users holding the admin role.
    """

    def has_permission(self, request, view):
        return RoleBasedPermissions.has_role(request, ["admin"])


class IsStaffOrAdmin(permissions.BasePermission):
    """
    Admins and station staff. Used for fleet management, trip scheduling
    and ticket operations performed at the counter.
    """

    def has_permission(self, request, view):
        return RoleBasedPermissions.has_role(request, ["admin", "staff"])


class ReadAuthenticatedWriteStaffMixin:
    """
    Any signed-in user may read; only staff and admins may write.
    """

    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.IsAuthenticated()]
        return [IsStaffOrAdmin()]


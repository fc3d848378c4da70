from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsOwnerOrAssigneeOrAdmin(BasePermission):
    message = "You do not have permission to access this task."

    def has_object_permission(self, request, view, obj):
        access = obj.access_for(request.user)
        if request.method in SAFE_METHODS:
            return access.read
        return access.write


class IsAdminRoleOrReadOnly(BasePermission):
    """Task types: any authenticated user reads, admins write."""

    def has_permission(self, request, view):
        u = request.user
        if not u or not u.is_authenticated:
            return False
        return request.method in SAFE_METHODS or u.is_admin

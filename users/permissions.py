from rest_framework import permissions


class ResourcePermission(permissions.BasePermission):
    """
    Role based permission per dashboard resource.
    - Views declare ``permission_resource`` (users, degrees, attendance, content)
    - Safe methods need 'view', everything else needs 'edit'
    - Superusers are allowed everything
    """

    role_map = {
        'viewer': {
            'users': ['view'],
            'degrees': ['view'],
            'attendance': ['view'],
            'content': ['view'],
        },
        'editor': {
            'users': ['view'],
            'degrees': ['view', 'edit'],
            'attendance': ['view'],
            'content': ['view', 'edit'],
        },
        'admin': {
            'users': ['view', 'edit'],
            'degrees': ['view', 'edit'],
            'attendance': ['view', 'edit'],
            'content': ['view', 'edit'],
        },
    }

    @classmethod
    def allowed(cls, role, resource, action):
        return action in cls.role_map.get(role, {}).get(resource, [])

    @classmethod
    def table_for(cls, role):
        return {resource: list(actions) for resource, actions in cls.role_map.get(role, {}).items()}

    def get_resource(self, request, view):
        resources = getattr(view, 'action_resources', {})
        return resources.get(getattr(view, 'action', None), getattr(view, 'permission_resource', None))

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.user.is_superuser:
            return True

        resource = self.get_resource(request, view)
        if resource is None:
            return True

        profile = getattr(request.user, 'profile', None)
        if not profile:
            return False

        action = 'view' if request.method in permissions.SAFE_METHODS else 'edit'
        return self.allowed(profile.role, resource, action)

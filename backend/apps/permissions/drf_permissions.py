from rest_framework.permissions import BasePermission

from .policies import policy_for

# DRF viewset action -> permission action
VIEW_ACTIONS = {
    'list': 'viewAny',
    'retrieve': 'view',
    'create': 'create',
    'update': 'update',
    'partial_update': 'update',
    'destroy': 'delete',
    'restore': 'restore',
    'force_delete': 'forceDelete',
    'assign_roles': 'assignRole',
}

# Plain APIView handlers
METHOD_ACTIONS = {
    'GET': 'viewAny',
    'HEAD': 'viewAny',
    'OPTIONS': 'viewAny',
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'delete',
}


class HasResourcePermission(BasePermission):
    """
    DRF permission class backed by the resource policies.

    The view declares which resource it protects; the action is derived
    from the viewset action (or HTTP method) unless the view overrides it
    with ``permission_actions``:

        class RoleViewSet(viewsets.ModelViewSet):
            permission_classes = [HasResourcePermission]
            permission_resource = 'role'
    """

    def _resource(self, view):
        return getattr(view, 'permission_resource', None)

    def _action(self, request, view):
        overrides = getattr(view, 'permission_actions', None) or {}
        view_action = getattr(view, 'action', None)
        if view_action:
            if view_action in overrides:
                return overrides[view_action]
            return VIEW_ACTIONS.get(view_action, view_action)
        method = request.method.upper()
        return overrides.get(method) or METHOD_ACTIONS.get(method)

    def has_permission(self, request, view):
        resource = self._resource(view)
        if not resource:
            # A view that does not say what it protects is not exposed.
            return False
        action = self._action(request, view)
        if action is None:
            return False
        if getattr(view, 'action', None) in ('retrieve', 'update', 'partial_update', 'destroy',
                                             'restore', 'force_delete', 'assign_roles'):
            # Instance actions are decided in has_object_permission where
            # ownership and protected identities can be taken into account.
            return True
        return policy_for(resource).allows(request.user, action)

    def has_object_permission(self, request, view, obj):
        resource = self._resource(view)
        action = self._action(request, view)
        if not resource or action is None:
            return False
        return policy_for(resource).allows(request.user, action, obj)

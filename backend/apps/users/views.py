from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.permissions import conf
from apps.permissions.exceptions import AccessDenied
from apps.permissions.policies import policy_for
from apps.permissions.resolver import resolver
from apps.permissions.serializers import UserRolesSerializer
from apps.permissions.store import store
from apps.permissions.views import SoftDeleteViewSet
from .serializers import UserCreateSerializer, UserSerializer

User = get_user_model()


class UserViewSet(SoftDeleteViewSet):
    """
    User administration. The super admin account can only be changed by
    itself; that rule lives in the user policy.
    """
    permission_resource = 'user'
    model = User

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        return UserSerializer

    def get_queryset(self):
        return super().get_queryset().order_by('username')

    def perform_force_delete(self, instance):
        store.assign_roles(instance, [])
        instance.force_delete()


class UserRolesAssignmentView(APIView):
    """GET the role ids bound to a user; PUT replaces them."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, user_id: int):
        target = get_object_or_404(User, pk=user_id)
        policy_for('user').authorize(request.user, 'view', target)
        assigned = sorted(target.user_roles.values_list('role_id', flat=True))
        return Response({'assigned': assigned})

    def put(self, request, user_id: int):
        target = get_object_or_404(User, pk=user_id)
        policy_for('user').authorize(request.user, 'assignRole', target)

        serializer = UserRolesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        roles = serializer.validated_data['role_ids']

        # Granting or removing the admin role takes an admin, whatever
        # user.assignRole grants say.
        admin_slug = conf.get('ADMIN_ROLE_SLUG')
        current = set(target.user_roles.values_list('role__slug', flat=True))
        wanted = {role.slug for role in roles}
        if admin_slug in current ^ wanted and not resolver.is_admin(request.user):
            raise AccessDenied('user', 'assignRole')

        assigned = store.assign_roles(target, roles)
        return Response({'status': 'ok', 'assigned': assigned})

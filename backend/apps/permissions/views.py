from django.db.models import Count
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from .drf_permissions import HasResourcePermission
from .exceptions import GrantConflict, UnknownAction, UnknownResource
from .models import Permission, Role
from .serializers import PermissionSerializer, RoleSerializer
from .snapshot import build_snapshot


class StoreErrorsMixin:
    """Map permission-store errors onto HTTP responses."""

    def handle_exception(self, exc):
        if isinstance(exc, GrantConflict):
            return Response({'detail': str(exc)}, status=status.HTTP_409_CONFLICT)
        if isinstance(exc, UnknownAction):
            return Response({'detail': exc.messages}, status=status.HTTP_400_BAD_REQUEST)
        if isinstance(exc, UnknownResource):
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return super().handle_exception(exc)


class SoftDeleteViewSet(StoreErrorsMixin, viewsets.ModelViewSet):
    """
    CRUD over a soft-deletable model. ``destroy`` trashes, ``restore``
    brings back, ``force_delete`` removes for good. ``?trashed=with`` lists
    trashed rows too, ``?trashed=only`` lists only them.
    """
    permission_classes = [HasResourcePermission]
    model = None

    def get_queryset(self):
        if self.action in ('restore', 'force_delete', 'retrieve'):
            return self.model.all_objects.all()
        trashed = (self.request.query_params.get('trashed') or '').lower()
        if trashed == 'with':
            return self.model.all_objects.all()
        if trashed == 'only':
            return self.model.all_objects.trashed()
        return self.model.objects.all()

    def perform_destroy(self, instance):
        instance.delete()

    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        instance = self.get_object()
        instance.restore()
        return Response(self.get_serializer(instance).data)

    @action(detail=True, methods=['delete'], url_path='force-delete')
    def force_delete(self, request, pk=None):
        instance = self.get_object()
        self.perform_force_delete(instance)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def perform_force_delete(self, instance):
        instance.force_delete()


class RoleViewSet(SoftDeleteViewSet):
    serializer_class = RoleSerializer
    permission_resource = 'role'
    model = Role

    def get_queryset(self):
        return super().get_queryset().annotate(users_count=Count('user_roles')).order_by('name')


class PermissionViewSet(SoftDeleteViewSet):
    serializer_class = PermissionSerializer
    permission_resource = 'permission'
    model = Permission

    def get_queryset(self):
        return super().get_queryset().order_by('resource')


class PermissionSnapshotView(APIView):
    """Resolved permission matrix of the current user for the UI."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(build_snapshot(request.user))

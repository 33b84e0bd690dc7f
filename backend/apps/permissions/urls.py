from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import PermissionSnapshotView, PermissionViewSet, RoleViewSet

router = DefaultRouter()
router.register(r'roles', RoleViewSet, basename='role')
router.register(r'permissions', PermissionViewSet, basename='permission')

urlpatterns = [
    # Must come before the router so "me" is not taken for a primary key
    path('permissions/me/', PermissionSnapshotView.as_view(), name='permission-snapshot'),
    path('', include(router.urls)),
]

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import UserRolesAssignmentView, UserViewSet

router = SimpleRouter()
router.register(r'', UserViewSet, basename='user')

urlpatterns = [
    path("<int:user_id>/roles/", UserRolesAssignmentView.as_view(), name="user-roles-assign"),
    path('', include(router.urls)),
]

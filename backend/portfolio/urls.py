from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from shared.views import HealthCheckView

admin.site.site_header = "Portfolio administration"
admin.site.site_title = "Portfolio administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('apps.permissions.urls')),
    path('api/users/', include('apps.users.urls')),
    # API schema & docs
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('health/', HealthCheckView.as_view(), name='health-check'),
]

from django.utils.functional import SimpleLazyObject

from .snapshot import PermissionSnapshot


class PermissionSnapshotMiddleware:
    """
    Attaches the resolved permission snapshot for the current user to the
    request as ``request.permission_snapshot``. It is computed lazily, fresh
    for each request, and only when something reads it.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        # request.user is read on first access: DRF token authentication
        # replaces it after this middleware has run.
        request.permission_snapshot = SimpleLazyObject(
            lambda: PermissionSnapshot.for_user(getattr(request, 'user', None))
        )
        return self.get_response(request)

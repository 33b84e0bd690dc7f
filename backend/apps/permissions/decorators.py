from functools import wraps

from .policies import policy_for


def permission_required(resource, action, lookup=None):
    """
    Guard a function view with a resource policy. Raises ``AccessDenied``
    (rendered as 403) when the check fails.

    ``lookup`` may be a callable ``(request, *args, **kwargs) -> obj`` that
    loads the instance for object-level checks.

        @permission_required('blog', 'create')
        def create_blog(request): ...
    """

    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            obj = lookup(request, *args, **kwargs) if lookup else None
            policy_for(resource).authorize(request.user, action, obj)
            return view_func(request, *args, **kwargs)

        return _wrapped

    return decorator

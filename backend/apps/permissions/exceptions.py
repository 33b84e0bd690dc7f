from django.core.exceptions import ImproperlyConfigured, PermissionDenied, ValidationError


class UnknownResource(ImproperlyConfigured):
    """An administrative write referenced a resource with no Permission row."""

    def __init__(self, resource):
        self.resource = resource
        super().__init__(f"Unknown permission resource '{resource}'.")


class UnknownAction(ValidationError):
    """Grant or definition used action names outside the resource's vocabulary."""

    def __init__(self, resource, actions):
        self.resource = resource
        self.actions = sorted(actions)
        super().__init__(
            f"Unknown action(s) for '{resource}': {', '.join(self.actions)}",
            code='unknown_action',
        )


class GrantConflict(Exception):
    """A concurrent writer created the same (role, resource) grant."""

    def __init__(self, role, resource):
        self.role = role
        self.resource = resource
        super().__init__(f"Conflicting grant for role '{role}' on '{resource}'; retry the request.")


class AccessDenied(PermissionDenied):
    """Authorization failed. Rendered as HTTP 403 by Django and DRF."""

    def __init__(self, resource=None, action=None):
        self.resource = resource
        self.action = action
        if resource and action:
            message = f"You are not allowed to {action} {resource}."
        else:
            message = "You do not have permission to perform this action."
        super().__init__(message)

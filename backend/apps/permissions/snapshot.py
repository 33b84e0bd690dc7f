"""
Client-side permission snapshot.

The server resolves, per page load, a fixed seven-key record of coarse
decisions for every resource the UI cares about. The presentation layer only
uses it to hide or show affordances; every mutating request is checked again
on the server.
"""
from typing import Dict, Iterable, Optional

from . import conf
from .conf import SNAPSHOT_ACTIONS
from .policies import DisabledPolicy, policy_for, registry
from .resolver import resolver as default_resolver


def snapshot_resources():
    configured = conf.get('SNAPSHOT_RESOURCES')
    if configured is not None:
        return list(configured)
    return sorted(
        resource for resource, policy_class in registry.items()
        if not issubclass(policy_class, DisabledPolicy)
    )


def build_snapshot(user, resources: Optional[Iterable[str]] = None, resolver=None) -> dict:
    """
    ``{"isAdmin": bool, "permissions": {resource: {viewAny: bool, ...}}}``
    computed with the same policies the server enforces.
    """
    resolver = resolver or default_resolver
    if resources is None:
        resources = snapshot_resources()

    permissions: Dict[str, Dict[str, bool]] = {}
    for resource in resources:
        policy = policy_for(resource, resolver)
        permissions[resource] = {action: policy.allows(user, action) for action in SNAPSHOT_ACTIONS}

    return {
        'isAdmin': resolver.is_admin(user),
        'permissions': permissions,
    }


class PermissionSnapshot:
    """
    Pure lookups over a serialized snapshot, mirroring what the front end
    does with it.
    """

    def __init__(self, data: dict):
        data = data or {}
        self.is_admin = bool(data.get('isAdmin', False))
        self.permissions = data.get('permissions') or {}

    @classmethod
    def for_user(cls, user, resources=None):
        return cls(build_snapshot(user, resources))

    def can(self, resource: str, action: str) -> bool:
        if self.is_admin:
            return True
        return bool(self.permissions.get(resource, {}).get(action, False))

    def can_any(self, resource: str) -> bool:
        if self.is_admin:
            return True
        return any(self.permissions.get(resource, {}).values())

    def get_permissions(self, resource: str) -> Dict[str, bool]:
        if self.is_admin:
            return {action: True for action in SNAPSHOT_ACTIONS}
        record = self.permissions.get(resource, {})
        return {action: bool(record.get(action, False)) for action in SNAPSHOT_ACTIONS}

    def to_dict(self) -> dict:
        return {'isAdmin': self.is_admin, 'permissions': self.permissions}

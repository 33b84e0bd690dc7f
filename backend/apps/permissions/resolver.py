"""
The single authorization decision point.

``can(user, resource, action)`` answers whether ``user`` may perform
``action`` on ``resource``:

1. the reserved super admin identity is always allowed;
2. anonymous, inactive or soft-deleted users are denied;
3. holders of the distinguished admin role are always allowed;
4. resources without a Permission row are denied (fail closed);
5. otherwise the actions granted by every role the user holds, on the
   resource itself and on the wildcard resource, are unioned. Granted
   actions that fell out of the resource vocabulary count for nothing.

Resolved grants are cached per user for a short time. Every write to roles,
grants or assignments rotates the cache version, so a cached entry is never
treated as authoritative past a mutation.
"""
import logging
import uuid
from typing import Dict, FrozenSet

from django.core.cache import cache

from . import conf
from .conf import WILDCARD

logger = logging.getLogger(__name__)

VERSION_KEY = 'permissions:version'


def _cache_version() -> str:
    version = cache.get(VERSION_KEY)
    if version is None:
        cache.add(VERSION_KEY, uuid.uuid4().hex, None)
        version = cache.get(VERSION_KEY)
    return version


def invalidate_cache():
    """Drop every cached grant by rotating the version key."""
    cache.set(VERSION_KEY, uuid.uuid4().hex, None)
    logger.debug("Permission cache invalidated")


def is_authenticated(user) -> bool:
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    if not getattr(user, 'is_active', True):
        return False
    return getattr(user, 'deleted_at', None) is None


def is_super_admin(user) -> bool:
    """The reserved identity. Active or trashed state does not matter."""
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    return user.pk == conf.super_admin_id()


class PermissionResolver:
    def __init__(self, cache_timeout=None):
        self._cache_timeout = cache_timeout

    @property
    def cache_timeout(self):
        if self._cache_timeout is not None:
            return self._cache_timeout
        return conf.get('CACHE_TIMEOUT')

    def can(self, user, resource: str, action: str) -> bool:
        if is_super_admin(user):
            return True
        if not is_authenticated(user):
            return False

        state = self._user_state(user)
        if state['is_admin']:
            return True

        if resource not in self.known_resources():
            logger.warning("Permission check on unknown resource '%s' (action '%s') denied", resource, action)
            return False

        allowed = self._union(state['grants'], resource)
        return WILDCARD in allowed or action in allowed

    def is_admin(self, user) -> bool:
        if is_super_admin(user):
            return True
        if not is_authenticated(user):
            return False
        return self._user_state(user)['is_admin']

    def effective_actions(self, user, resource: str) -> FrozenSet[str]:
        """Union of granted actions, with ``*`` expanded to the vocabulary."""
        if resource not in self.known_resources():
            return frozenset()
        if self.is_admin(user):
            return frozenset(self._vocabulary(resource))
        if not is_authenticated(user):
            return frozenset()
        allowed = self._union(self._user_state(user)['grants'], resource)
        if WILDCARD in allowed:
            return frozenset(self._vocabulary(resource))
        return frozenset(allowed)

    def known_resources(self) -> FrozenSet[str]:
        key = f'permissions:{_cache_version()}:resources'
        resources = cache.get(key)
        if resources is None:
            from .models import Permission
            resources = frozenset(
                Permission.objects.exclude(resource=WILDCARD).values_list('resource', flat=True)
            )
            cache.set(key, resources, self.cache_timeout)
        return resources

    def _vocabulary(self, resource):
        from .models import Permission
        permission = Permission.objects.filter(resource=resource).first()
        return permission.actions if permission else []

    @staticmethod
    def _union(grants: Dict[str, FrozenSet[str]], resource: str) -> FrozenSet[str]:
        return grants.get(resource, frozenset()) | grants.get(WILDCARD, frozenset())

    def _user_state(self, user) -> dict:
        key = f'permissions:{_cache_version()}:user:{user.pk}'
        state = cache.get(key)
        if state is None:
            state = self._load_user_state(user)
            cache.set(key, state, self.cache_timeout)
        return state

    def _load_user_state(self, user) -> dict:
        from .models import Role, RolePermission

        roles = Role.objects.filter(user_roles__user_id=user.pk)
        is_admin = roles.filter(slug=conf.get('ADMIN_ROLE_SLUG')).exists()

        grants: Dict[str, set] = {}
        rows = (
            RolePermission.objects
            .filter(role__in=roles, permission__deleted_at__isnull=True)
            .values_list('permission__resource', 'permission__actions', 'actions')
        )
        for resource, vocabulary, actions in rows:
            granted = set(actions or [])
            vocabulary = set(vocabulary or [])
            if WILDCARD not in vocabulary:
                granted &= vocabulary | {WILDCARD}
            grants.setdefault(resource, set()).update(granted)

        return {
            'is_admin': is_admin,
            'grants': {resource: frozenset(actions) for resource, actions in grants.items()},
        }


resolver = PermissionResolver()


def can(user, resource: str, action: str) -> bool:
    return resolver.can(user, resource, action)

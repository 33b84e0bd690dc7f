"""
Persistence of grants (role -> resource -> actions) and of role assignments.

Writes validate against the resource's action vocabulary and invalidate the
resolver cache before returning.
"""
import logging
from typing import Dict, Iterable, List, Optional

from django.apps import apps
from django.db import IntegrityError, transaction

from . import conf, parser
from .conf import WILDCARD
from .exceptions import GrantConflict, UnknownResource
from .models import Permission, Role, RolePermission
from .resolver import invalidate_cache

logger = logging.getLogger(__name__)


def _as_list(actions) -> List[str]:
    if actions is None:
        return []
    if isinstance(actions, str):
        return [actions]
    return list(actions)


def _ordered(actions: Iterable[str], vocabulary: List[str]) -> List[str]:
    """Order actions like the vocabulary; extras (e.g. the wildcard) go last."""
    wanted = set(actions)
    ordered = [action for action in vocabulary if action in wanted]
    ordered += sorted(wanted.difference(ordered))
    return ordered


def _changed():
    invalidate_cache()
    transaction.on_commit(invalidate_cache)


class PermissionStore:

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------
    def define(self, resource: str, actions: Optional[Iterable[str]] = None) -> Permission:
        """
        Create or update the Permission row of ``resource``, restoring it if
        it was soft-deleted. ``actions`` defaults to the configured vocabulary.
        """
        if not resource:
            raise UnknownResource(resource)
        actions = _as_list(actions) or conf.actions_for_resource(resource)

        permission = Permission.all_objects.filter(resource=resource).first()
        if permission is None:
            permission = Permission(resource=resource)
        permission.actions = list(dict.fromkeys(actions))
        permission.deleted_at = None
        permission.save()
        _changed()
        self.prune(permission)
        return permission

    def prune(self, permission: Permission) -> int:
        """
        Drop granted actions that are no longer in ``permission``'s
        vocabulary; bindings left empty are deleted. Returns the number of
        bindings touched.
        """
        vocabulary = set(permission.actions or [])
        if WILDCARD in vocabulary:
            return 0
        allowed = vocabulary | {WILDCARD}

        touched = 0
        with transaction.atomic():
            for binding in RolePermission.objects.select_for_update().filter(permission=permission):
                kept = [action for action in (binding.actions or []) if action in allowed]
                if kept == list(binding.actions or []):
                    continue
                if kept:
                    binding.actions = kept
                    binding.save(update_fields=['actions', 'updated_at'])
                else:
                    binding.delete()
                touched += 1
        if touched:
            _changed()
            logger.info("Pruned %d grant(s) on '%s' to its vocabulary", touched, permission.resource)
        return touched

    def vocabulary(self, resource: str) -> List[str]:
        return list(self._permission(resource).actions or [])

    def _permission(self, resource: str) -> Permission:
        permission = Permission.objects.filter(resource=resource).first()
        if permission is None:
            raise UnknownResource(resource)
        return permission

    @staticmethod
    def _validate(permission: Permission, actions: List[str]):
        permission.validate_actions(actions)

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------
    def grant(self, role: Role, resource: str, actions: Iterable[str]) -> RolePermission:
        """
        Upsert the actions ``role`` holds on ``resource``. The stored set is
        replaced, so granting the same set twice is a no-op.
        """
        actions = _as_list(actions)
        permission = self._permission(resource)
        self._validate(permission, actions)

        try:
            with transaction.atomic():
                binding, created = RolePermission.objects.update_or_create(
                    role=role,
                    permission=permission,
                    defaults={'actions': _ordered(actions, permission.actions or [])},
                )
        except IntegrityError as exc:
            raise GrantConflict(role.slug, resource) from exc

        _changed()
        logger.info(
            "%s grant for role '%s' on '%s': %s",
            "Created" if created else "Updated", role.slug, resource, binding.actions,
        )
        return binding

    def revoke(self, role: Role, resource: str) -> bool:
        deleted, _ = RolePermission.objects.filter(role=role, permission__resource=resource).delete()
        if deleted:
            _changed()
            logger.info("Revoked grant for role '%s' on '%s'", role.slug, resource)
        return bool(deleted)

    def actions_for(self, role: Role, resource: str) -> frozenset:
        """Stored grant of ``role`` on ``resource``; absence means deny."""
        binding = (
            RolePermission.objects
            .filter(role=role, permission__resource=resource, permission__deleted_at__isnull=True)
            .first()
        )
        if binding is None:
            return frozenset()
        return frozenset(binding.actions or [])

    def permissions_of(self, role: Role) -> List[str]:
        """Grants of ``role`` as dotted strings, e.g. ``["blog.view"]``."""
        result = []
        for binding in role.role_permissions.select_related('permission').order_by('permission__resource'):
            result.extend(binding.as_strings())
        return result

    def validate(self, permissions: Iterable[str]) -> Dict[str, List[str]]:
        """
        Check dotted ``permissions`` against the stored vocabularies without
        writing anything; returns them grouped per resource.
        """
        grouped = parser.group(permissions)
        for resource, actions in grouped.items():
            self._validate(self._permission(resource), actions)
        return grouped

    def attach(self, role: Role, permissions: Iterable[str]):
        """Add or replace the grants named by dotted strings, keeping the others."""
        grouped = self.validate(permissions)
        with transaction.atomic():
            for resource, actions in grouped.items():
                self.grant(role, resource, actions)

    def sync(self, role: Role, permissions: Iterable[str]):
        """
        Make ``role`` hold exactly the dotted ``permissions``; an empty list
        detaches everything.
        """
        grouped = self.validate(permissions)

        with transaction.atomic():
            stale = RolePermission.objects.filter(role=role).exclude(permission__resource__in=list(grouped))
            stale.delete()
            for resource, actions in grouped.items():
                self.grant(role, resource, actions)
        _changed()

    # ------------------------------------------------------------------
    # Role assignment
    # ------------------------------------------------------------------
    @staticmethod
    def _user_role_model():
        return apps.get_model('users', 'UserRole')

    @staticmethod
    def _resolve_roles(roles) -> List[Role]:
        resolved = []
        ids = []
        for role in roles:
            if isinstance(role, Role):
                resolved.append(role)
            else:
                ids.append(role)
        if ids:
            found = list(Role.objects.filter(pk__in=ids))
            missing = set(ids) - {role.pk for role in found}
            if missing:
                raise Role.DoesNotExist(f"Unknown role id(s): {sorted(missing)}")
            resolved.extend(found)
        return resolved

    def attach_role(self, user, role: Role) -> bool:
        UserRole = self._user_role_model()
        _, created = UserRole.objects.get_or_create(user=user, role=role)
        if created:
            _changed()
            logger.info("Attached role '%s' to user %s", role.slug, user.pk)
        return created

    def detach_role(self, user, role: Role) -> bool:
        UserRole = self._user_role_model()
        deleted, _ = UserRole.objects.filter(user=user, role=role).delete()
        if deleted:
            _changed()
            logger.info("Detached role '%s' from user %s", role.slug, user.pk)
        return bool(deleted)

    def assign_roles(self, user, roles) -> List[int]:
        """Make ``user`` hold exactly ``roles`` (Role instances or ids)."""
        UserRole = self._user_role_model()
        resolved = self._resolve_roles(roles)
        wanted = {role.pk for role in resolved}

        with transaction.atomic():
            UserRole.objects.filter(user=user).exclude(role_id__in=wanted).delete()
            existing = set(UserRole.objects.filter(user=user).values_list('role_id', flat=True))
            UserRole.objects.bulk_create(
                [UserRole(user=user, role_id=role_id) for role_id in wanted - existing]
            )
        _changed()
        logger.info("Assigned roles %s to user %s", sorted(wanted), user.pk)
        return sorted(wanted)


store = PermissionStore()

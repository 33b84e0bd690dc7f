"""
Per-resource policies.

Each policy names its resource explicitly and composes the generic resolver
with an ordered tuple of overrides. An override returns ``True`` (allow),
``False`` (hard deny) or ``None`` (no opinion). The first override with an
opinion decides; otherwise the resolver does.

    policy_for('comment').allows(request.user, 'update', comment)
"""
from typing import Dict, Optional, Type

from . import conf
from .exceptions import AccessDenied
from .resolver import is_authenticated, is_super_admin, resolver as default_resolver


# ----------------------------------------------------------------------
# Overrides
# ----------------------------------------------------------------------
class Override:
    actions = ()

    def decide(self, user, action: str, obj=None) -> Optional[bool]:
        raise NotImplementedError


class PublicRead(Override):
    """Anyone may list and view; trashed instances still need a grant."""
    actions = ('viewAny', 'view')

    def decide(self, user, action, obj=None):
        if action not in self.actions:
            return None
        if obj is not None and getattr(obj, 'deleted_at', None) is not None:
            return None
        return True


class Ownership(Override):
    """The owner of an instance may update or delete it."""
    actions = ('update', 'delete')

    def __init__(self, owner_field='user_id'):
        self.owner_field = owner_field

    def decide(self, user, action, obj=None):
        if action not in self.actions or obj is None or not is_authenticated(user):
            return None
        owner_id = getattr(obj, self.owner_field, None)
        if owner_id is not None and owner_id == user.pk:
            return True
        return None


class ProtectedIdentity(Override):
    """Only the super admin may modify the super admin."""
    actions = ('update', 'delete', 'forceDelete', 'assignRole')

    def decide(self, user, action, obj=None):
        if action not in self.actions or obj is None:
            return None
        if getattr(obj, 'pk', None) != conf.super_admin_id():
            return None
        if is_super_admin(user):
            return None
        return False


class AlwaysCreate(Override):
    """Creation is open to everyone, guests included."""
    actions = ('create',)

    def decide(self, user, action, obj=None):
        return True if action in self.actions else None


# ----------------------------------------------------------------------
# Policies
# ----------------------------------------------------------------------
class ResourcePolicy:
    resource: str = None
    overrides = ()

    def __init__(self, resolver=None):
        self.resolver = resolver or default_resolver

    def allows(self, user, action: str, obj=None) -> bool:
        for override in self.overrides:
            decision = override.decide(user, action, obj)
            if decision is not None:
                return decision
        return self.resolver.can(user, self.resource, action)

    def authorize(self, user, action: str, obj=None):
        if not self.allows(user, action, obj):
            raise AccessDenied(self.resource, action)

    def __repr__(self):
        return f"<{type(self).__name__} resource={self.resource!r}>"


class DisabledPolicy(ResourcePolicy):
    """A retired resource: nothing is allowed, not even for the super admin."""

    def allows(self, user, action, obj=None):
        return False


registry: Dict[str, Type[ResourcePolicy]] = {}


def register(policy_class: Type[ResourcePolicy]) -> Type[ResourcePolicy]:
    if not policy_class.resource:
        raise ValueError(f"{policy_class.__name__} must declare a resource key.")
    if policy_class.resource in registry and registry[policy_class.resource] is not policy_class:
        raise ValueError(f"A policy for '{policy_class.resource}' is already registered.")
    registry[policy_class.resource] = policy_class
    return policy_class


def policy_for(resource: str, resolver=None) -> ResourcePolicy:
    """Registered policy for ``resource``, or a plain generic one."""
    policy_class = registry.get(resource)
    if policy_class is None:
        policy = ResourcePolicy(resolver)
        policy.resource = resource
        return policy
    return policy_class(resolver)


def allows(user, resource: str, action: str, obj=None) -> bool:
    return policy_for(resource).allows(user, action, obj)


def authorize(user, resource: str, action: str, obj=None):
    policy_for(resource).authorize(user, action, obj)


@register
class BlogPolicy(ResourcePolicy):
    resource = 'blog'


@register
class ProjectPolicy(ResourcePolicy):
    resource = 'project'


@register
class DeploymentPolicy(ResourcePolicy):
    resource = 'deployment'


@register
class DeveloperPolicy(ResourcePolicy):
    resource = 'developer'


@register
class RealEstateProjectPolicy(ResourcePolicy):
    resource = 'real-estate-project'


@register
class GiveawayPolicy(ResourcePolicy):
    resource = 'giveaway'


@register
class InquiryPolicy(ResourcePolicy):
    resource = 'inquiry'
    # Inquiries come from the public contact form.
    overrides = (AlwaysCreate(),)


@register
class UserPolicy(ResourcePolicy):
    resource = 'user'
    overrides = (ProtectedIdentity(),)


@register
class PropertyPolicy(ResourcePolicy):
    resource = 'property'
    overrides = (PublicRead(),)


@register
class ProjectCategoryPolicy(ResourcePolicy):
    resource = 'project-category'
    overrides = (PublicRead(),)


@register
class ExperiencePolicy(ResourcePolicy):
    resource = 'experience'
    overrides = (Ownership(),)


@register
class CommentPolicy(ResourcePolicy):
    resource = 'comment'
    overrides = (Ownership(),)


@register
class GuestbookEntryPolicy(ResourcePolicy):
    resource = 'guestbook-entry'
    overrides = (Ownership(),)


@register
class SkillPolicy(DisabledPolicy):
    resource = 'skill'


@register
class RolePolicy(ResourcePolicy):
    resource = 'role'


@register
class PermissionPolicy(ResourcePolicy):
    resource = 'permission'

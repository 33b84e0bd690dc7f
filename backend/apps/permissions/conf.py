"""
Settings for the permission core.

Everything is read from ``settings.PERMISSIONS`` with the defaults below.
"""
from django.conf import settings

WILDCARD = '*'

DEFAULTS = {
    # The reserved identity that bypasses every check and cannot be
    # modified by anyone else.
    'SUPER_ADMIN_ID': 1,
    # Holding this role slug bypasses the generic checks.
    'ADMIN_ROLE_SLUG': 'super-admin',
    'DEFAULT_ACTIONS': [
        'viewAny',      # List/index - view all records
        'view',         # Show - view single record
        'create',
        'update',
        'delete',
        'restore',      # Restore soft-deleted record
        'forceDelete',  # Permanently delete record
    ],
    # Resource-specific vocabularies; resources not listed use DEFAULT_ACTIONS.
    'RESOURCE_ACTIONS': {},
    # Resources skipped by ``generate_permissions``.
    'EXCLUDED_RESOURCES': [],
    # Resources serialized into the client snapshot; None means every
    # registered policy.
    'SNAPSHOT_RESOURCES': None,
    'CACHE_TIMEOUT': 60,
    'SUPER_ADMIN_EMAIL': None,
}

# The fixed record sent to the presentation layer for every resource.
SNAPSHOT_ACTIONS = ('viewAny', 'view', 'create', 'update', 'delete', 'restore', 'forceDelete')


def get(name):
    user_settings = getattr(settings, 'PERMISSIONS', None) or {}
    if name in user_settings:
        return user_settings[name]
    return DEFAULTS[name]


def super_admin_id() -> int:
    return get('SUPER_ADMIN_ID')


def actions_for_resource(resource: str) -> list:
    """Action vocabulary a freshly defined resource gets."""
    if resource == WILDCARD:
        return [WILDCARD]
    custom = get('RESOURCE_ACTIONS').get(resource)
    if custom:
        return list(custom)
    return list(get('DEFAULT_ACTIONS'))

"""
Helpers for dotted permission strings such as ``"blog.viewAny"``.

The admin forms and the role listing exchange grants in this flat form;
the store works with ``{resource: [actions]}``.
"""
from typing import Dict, Iterable, List, Tuple

from .conf import WILDCARD

SEPARATOR = '.'


def format(resource: str, action: str) -> str:
    return f"{resource}{SEPARATOR}{action}"


def parse(permission: str) -> Tuple[str, str]:
    """
    Split ``"resource.action"``. Missing parts default to the wildcard.
    The action is everything after the last separator so resource keys
    may not contain dots.
    """
    resource, sep, action = permission.rpartition(SEPARATOR)
    if not sep:
        return (permission or WILDCARD, WILDCARD)
    return (resource or WILDCARD, action or WILDCARD)


def group(permissions: Iterable[str]) -> Dict[str, List[str]]:
    """
    ``["users.viewAny", "users.create", "roles.delete"]`` becomes
    ``{"users": ["viewAny", "create"], "roles": ["delete"]}``.
    Order is preserved and duplicates dropped.
    """
    grouped: Dict[str, List[str]] = {}
    for permission in permissions:
        resource, action = parse(permission)
        actions = grouped.setdefault(resource, [])
        if action not in actions:
            actions.append(action)
    return grouped


def matches(permission: str, pattern: str) -> bool:
    """``matches("users.viewAny", "users.*")`` is True; ``*`` matches any part."""
    permission_parts = permission.split(SEPARATOR)
    pattern_parts = pattern.split(SEPARATOR)
    if len(permission_parts) != len(pattern_parts):
        return False
    return all(p == WILDCARD or p == part for part, p in zip(permission_parts, pattern_parts))

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APITestCase

from apps.permissions.models import Role
from apps.permissions.store import store

User = get_user_model()

PASSWORD = "pass12345"


def make_user(username, **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password=PASSWORD,
        **extra,
    )


def make_role(name, grants=None, slug=None):
    role = Role.objects.create(name=name, slug=slug or "")
    if grants:
        store.attach(role, grants)
    return role


class PermissionFixturesMixin:
    """
    Clears the cache and creates the reserved super admin first so that no
    other user created by a test ends up with its id.
    """
    resources = ("blog", "project", "property", "user", "role", "permission", "comment", "inquiry")

    def setUp(self):
        super().setUp()
        cache.clear()
        self.root = User.objects.create_user(
            id=1, username="root", email="root@example.com", password=PASSWORD
        )
        for resource in self.resources:
            store.define(resource)


class PermissionTestCase(PermissionFixturesMixin, TestCase):
    pass


class PermissionAPITestCase(PermissionFixturesMixin, APITestCase):
    pass

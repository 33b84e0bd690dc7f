from django.contrib.auth.models import AnonymousUser
from django.test import override_settings

from apps.permissions.conf import WILDCARD
from apps.permissions.models import Permission, Role
from apps.permissions.resolver import PermissionResolver, can, invalidate_cache, resolver
from apps.permissions.store import store

from .utils import PermissionTestCase, make_role, make_user

ALL_ACTIONS = ["viewAny", "view", "create", "update", "delete", "restore", "forceDelete"]


class ResolverTests(PermissionTestCase):
    def setUp(self):
        super().setUp()
        self.user = make_user("alice")

    def test_user_without_roles_is_denied_everything(self):
        for resource in ("blog", "project", "role"):
            for action in ALL_ACTIONS:
                self.assertFalse(can(self.user, resource, action), f"{resource}.{action}")

    def test_anonymous_and_missing_users_are_denied(self):
        self.assertFalse(can(None, "blog", "viewAny"))
        self.assertFalse(can(AnonymousUser(), "blog", "viewAny"))

    def test_role_grants_exactly_its_action_set(self):
        role = make_role("Reader", ["blog.viewAny", "blog.view"])
        store.attach_role(self.user, role)

        self.assertTrue(can(self.user, "blog", "viewAny"))
        self.assertTrue(can(self.user, "blog", "view"))
        self.assertFalse(can(self.user, "blog", "create"))
        self.assertFalse(can(self.user, "project", "view"))

    def test_grants_of_several_roles_are_unioned(self):
        viewer = make_role("Viewer", ["blog.view"])
        updater = make_role("Updater", ["blog.update"])
        store.assign_roles(self.user, [viewer, updater])

        self.assertTrue(can(self.user, "blog", "view"))
        self.assertTrue(can(self.user, "blog", "update"))
        self.assertFalse(can(self.user, "blog", "delete"))

    def test_editor_scenario(self):
        editor = make_role("Editor", ["blog.viewAny", "blog.view", "blog.create", "blog.update"])
        store.attach_role(self.user, editor)

        self.assertTrue(can(self.user, "blog", "create"))
        self.assertFalse(can(self.user, "blog", "delete"))
        self.assertFalse(can(self.user, "blog", "forceDelete"))

    def test_super_admin_identity_is_always_allowed(self):
        for resource in ("blog", "user", "not-a-resource", WILDCARD):
            for action in ALL_ACTIONS + ["assignRole"]:
                self.assertTrue(can(self.root, resource, action))

    def test_admin_role_holder_is_allowed_everything(self):
        super_admin = make_role("Super Admin", slug="super-admin")
        store.attach_role(self.user, super_admin)

        self.assertTrue(resolver.is_admin(self.user))
        self.assertTrue(can(self.user, "project", "forceDelete"))

    @override_settings(PERMISSIONS={"ADMIN_ROLE_SLUG": "owner"})
    def test_admin_role_slug_is_configurable(self):
        store.attach_role(self.user, make_role("Owner"))
        self.assertTrue(resolver.is_admin(self.user))

    def test_unknown_resource_is_denied_and_logged(self):
        store.define(WILDCARD)
        role = make_role("Everything", ["*.*"])
        store.attach_role(self.user, role)

        with self.assertLogs("apps.permissions.resolver", level="WARNING") as logs:
            self.assertFalse(can(self.user, "nope", "view"))
        self.assertIn("nope", logs.output[0])

    def test_wildcard_resource_grant_covers_known_resources(self):
        store.define(WILDCARD)
        role = make_role("Everything", ["*.*"])
        store.attach_role(self.user, role)

        self.assertTrue(can(self.user, "blog", "delete"))
        self.assertTrue(can(self.user, "role", "forceDelete"))

    def test_wildcard_action_on_one_resource(self):
        role = make_role("Blog Owner", ["blog.*"])
        store.attach_role(self.user, role)

        self.assertTrue(can(self.user, "blog", "forceDelete"))
        self.assertFalse(can(self.user, "project", "view"))
        self.assertEqual(resolver.effective_actions(self.user, "blog"), frozenset(ALL_ACTIONS))

    def test_soft_deleted_role_grants_nothing(self):
        role = make_role("Reader", ["blog.view"])
        store.attach_role(self.user, role)
        self.assertTrue(can(self.user, "blog", "view"))

        role.delete()
        self.assertFalse(can(self.user, "blog", "view"))

        role.restore()
        self.assertTrue(can(self.user, "blog", "view"))

    def test_soft_deleted_resource_is_unknown(self):
        role = make_role("Reader", ["blog.view"])
        store.attach_role(self.user, role)

        Permission.objects.get(resource="blog").delete()
        self.assertFalse(can(self.user, "blog", "view"))

    def test_inactive_or_trashed_user_is_denied(self):
        role = make_role("Reader", ["blog.view"])
        store.attach_role(self.user, role)

        self.user.is_active = False
        self.assertFalse(can(self.user, "blog", "view"))

        self.user.is_active = True
        self.user.delete()
        self.assertFalse(can(self.user, "blog", "view"))

    def test_super_admin_identity_ignores_active_and_trashed_state(self):
        self.root.is_active = False
        self.assertTrue(can(self.root, "blog", "forceDelete"))
        self.assertTrue(resolver.is_admin(self.root))

        self.root.is_active = True
        self.root.delete()
        self.assertTrue(can(self.root, "blog", "forceDelete"))

    def test_grants_outside_the_vocabulary_are_ignored(self):
        store.attach_role(self.user, make_role("Editor", ["blog.view", "blog.delete"]))
        self.assertTrue(can(self.user, "blog", "delete"))

        # A bulk update bypasses the store and leaves the stale grant behind.
        Permission.objects.filter(resource="blog").update(actions=["viewAny", "view"])
        invalidate_cache()

        self.assertFalse(can(self.user, "blog", "delete"))
        self.assertTrue(can(self.user, "blog", "view"))
        self.assertEqual(resolver.effective_actions(self.user, "blog"), frozenset({"view"}))

    def test_effective_actions(self):
        store.attach_role(self.user, make_role("Reader", ["blog.viewAny", "blog.view"]))
        self.assertEqual(resolver.effective_actions(self.user, "blog"), frozenset({"viewAny", "view"}))
        self.assertEqual(resolver.effective_actions(self.user, "project"), frozenset())
        self.assertEqual(resolver.effective_actions(self.root, "blog"), frozenset(ALL_ACTIONS))


class ResolverCacheTests(PermissionTestCase):
    def setUp(self):
        super().setUp()
        self.user = make_user("bob")
        self.role = make_role("Reader")
        store.attach_role(self.user, self.role)

    def test_grant_invalidates_cached_decision(self):
        self.assertFalse(can(self.user, "blog", "view"))
        store.grant(self.role, "blog", ["view"])
        self.assertTrue(can(self.user, "blog", "view"))

    def test_revoke_invalidates_cached_decision(self):
        store.grant(self.role, "blog", ["view"])
        self.assertTrue(can(self.user, "blog", "view"))
        store.revoke(self.role, "blog")
        self.assertFalse(can(self.user, "blog", "view"))

    def test_assignment_invalidates_cached_decision(self):
        other = make_role("Writer", ["blog.create"])
        self.assertFalse(can(self.user, "blog", "create"))
        store.assign_roles(self.user, [self.role, other])
        self.assertTrue(can(self.user, "blog", "create"))
        store.detach_role(self.user, other)
        self.assertFalse(can(self.user, "blog", "create"))

    def test_writes_outside_the_store_invalidate_through_signals(self):
        from apps.permissions.models import RolePermission

        self.assertFalse(can(self.user, "blog", "view"))
        RolePermission.objects.create(
            role=self.role, permission=Permission.objects.get(resource="blog"), actions=["view"]
        )
        self.assertTrue(can(self.user, "blog", "view"))

    def test_bulk_soft_delete_of_roles_invalidates_cached_decision(self):
        store.grant(self.role, "blog", ["view"])
        self.assertTrue(can(self.user, "blog", "view"))

        Role.objects.filter(pk=self.role.pk).delete()
        self.assertFalse(can(self.user, "blog", "view"))

        Role.all_objects.filter(pk=self.role.pk).restore()
        self.assertTrue(can(self.user, "blog", "view"))

    def test_bulk_soft_delete_of_resources_invalidates_cached_decision(self):
        store.grant(self.role, "blog", ["view"])
        self.assertTrue(can(self.user, "blog", "view"))

        Permission.objects.filter(resource="blog").delete()
        self.assertFalse(can(self.user, "blog", "view"))

    def test_resolved_state_is_cached(self):
        resolver = PermissionResolver(cache_timeout=300)
        store.grant(self.role, "blog", ["view"])
        resolver.can(self.user, "blog", "view")

        with self.assertNumQueries(0):
            self.assertTrue(resolver.can(self.user, "blog", "view"))
            self.assertFalse(resolver.can(self.user, "blog", "delete"))

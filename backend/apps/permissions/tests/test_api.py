from unittest import mock

from django.db import IntegrityError
from rest_framework import status

from apps.permissions.models import Permission, Role, RolePermission
from apps.permissions.resolver import can
from apps.permissions.store import store

from .utils import PermissionAPITestCase, make_role, make_user


class PermissionSnapshotAPITests(PermissionAPITestCase):
    url = "/api/permissions/me/"

    def test_requires_authentication(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_returns_the_resolved_snapshot(self):
        user = make_user("editor")
        store.attach_role(user, make_role("Editor", ["blog.viewAny", "blog.create"]))
        self.client.force_authenticate(user)

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["isAdmin"])
        self.assertTrue(response.data["permissions"]["blog"]["create"])
        self.assertFalse(response.data["permissions"]["blog"]["update"])


class RoleAPITests(PermissionAPITestCase):
    url = "/api/roles/"

    def setUp(self):
        super().setUp()
        self.manager = make_user("manager")
        self.client.force_authenticate(self.manager)

    def grant(self, *permissions):
        store.attach_role(self.manager, make_role("Role Manager", list(permissions)))

    def test_listing_requires_view_any(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.grant("role.viewAny")
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["slug"] for row in response.data], ["role-manager"])
        self.assertEqual(response.data[0]["permissions"], ["role.viewAny"])
        self.assertEqual(response.data[0]["users_count"], 1)

    def test_create_with_dotted_permissions(self):
        self.grant("role.create")
        response = self.client.post(
            self.url, {"name": "Blog Editor", "permissions": ["blog.view", "blog.update"]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["slug"], "blog-editor")
        self.assertEqual(response.data["permissions"], ["blog.view", "blog.update"])

    def test_create_with_unknown_action_is_rejected(self):
        self.grant("role.create")
        response = self.client.post(
            self.url, {"name": "Publisher", "permissions": ["blog.publish"]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("permissions", response.data)
        self.assertFalse(Role.all_objects.filter(slug="publisher").exists())

    def test_create_with_unknown_resource_is_rejected(self):
        self.grant("role.create")
        response = self.client.post(
            self.url, {"name": "Pilot", "permissions": ["spaceship.view"]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_syncs_permissions(self):
        self.grant("role.update")
        role = make_role("Writer", ["blog.view", "project.view"])

        response = self.client.patch(f"{self.url}{role.pk}/", {"permissions": ["blog.create"]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(store.permissions_of(role), ["blog.create"])

    def test_update_without_grant_is_forbidden(self):
        role = make_role("Writer", ["blog.view"])
        response = self.client.patch(f"{self.url}{role.pk}/", {"name": "Renamed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_grant_conflict_returns_409(self):
        self.grant("role.update")
        role = make_role("Writer")

        with mock.patch.object(RolePermission.objects, "update_or_create", side_effect=IntegrityError):
            response = self.client.patch(
                f"{self.url}{role.pk}/", {"permissions": ["blog.view"]}, format="json"
            )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_soft_delete_restore_and_force_delete(self):
        self.grant("role.viewAny", "role.delete", "role.restore", "role.forceDelete")
        role = make_role("Temporary", ["blog.view"])

        response = self.client.delete(f"{self.url}{role.pk}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(Role.all_objects.get(pk=role.pk).is_trashed)

        listed = [row["id"] for row in self.client.get(self.url).data]
        self.assertNotIn(role.pk, listed)
        trashed = [row["id"] for row in self.client.get(self.url, {"trashed": "only"}).data]
        self.assertEqual(trashed, [role.pk])
        with_trashed = [row["id"] for row in self.client.get(self.url, {"trashed": "with"}).data]
        self.assertIn(role.pk, with_trashed)

        response = self.client.post(f"{self.url}{role.pk}/restore/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data["deleted_at"])

        response = self.client.delete(f"{self.url}{role.pk}/force-delete/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Role.all_objects.filter(pk=role.pk).exists())
        self.assertFalse(RolePermission.objects.filter(role_id=role.pk).exists())

    def test_restore_requires_its_own_action(self):
        self.grant("role.delete")
        role = make_role("Temporary")
        role.delete()

        response = self.client.post(f"{self.url}{role.pk}/restore/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PermissionAPITests(PermissionAPITestCase):
    url = "/api/permissions/"

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(self.root)

    def test_create_with_all_actions_and_others(self):
        response = self.client.post(
            self.url, {"resource": "giveaway", "all_actions": True, "others": "draw"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(
            Permission.objects.get(resource="giveaway").actions,
            ["viewAny", "view", "create", "update", "delete", "restore", "forceDelete", "draw"],
        )
        self.assertNotIn("all_actions", response.data)

    def test_create_requires_actions(self):
        response = self.client.post(self.url, {"resource": "giveaway"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_resource_must_be_unique_including_trashed(self):
        Permission.objects.get(resource="blog").delete()
        response = self.client.post(self.url, {"resource": "blog", "actions": ["view"]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_shrinking_actions_prunes_grants(self):
        member = make_user("member")
        store.attach_role(member, make_role("Editor", ["blog.view", "blog.delete"]))
        blog = Permission.objects.get(resource="blog")

        response = self.client.patch(f"{self.url}{blog.pk}/", {"actions": ["viewAny", "view"]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

        binding = RolePermission.objects.get(permission=blog)
        self.assertEqual(binding.actions, ["view"])
        self.assertFalse(can(member, "blog", "delete"))

    def test_list_is_ordered_by_resource(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        resources = [row["resource"] for row in response.data]
        self.assertEqual(resources, sorted(resources))

    def test_me_is_not_taken_for_a_primary_key(self):
        response = self.client.get(f"{self.url}me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["isAdmin"])

from __future__ import annotations

from typing import Dict, List

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.permissions import conf
from apps.permissions.conf import WILDCARD
from apps.permissions.models import Permission, Role
from apps.permissions.parser import parse
from apps.permissions.store import store


# Default roles and their dotted grants. The super admin role bypasses the
# grant tables entirely, so it carries none.
ROLE_MAP: Dict[str, Dict[str, object]] = {
    "admin": {"name": "Admin", "permissions": [f"{WILDCARD}.{WILDCARD}"]},
}


class Command(BaseCommand):
    help = "Seed the default roles (admin and the super admin role). Idempotent and safe to re-run."

    @transaction.atomic
    def handle(self, *args, **options):
        # The wildcard row must exist before "*.*" can be granted.
        store.define(WILDCARD)

        created_roles = 0
        updated_roles = 0
        roles: Dict[str, List[str]] = {slug: entry["permissions"] for slug, entry in ROLE_MAP.items()}
        roles.setdefault(conf.get('ADMIN_ROLE_SLUG'), [])

        for slug, permissions in roles.items():
            name = ROLE_MAP.get(slug, {}).get("name") or slug.replace('-', ' ').title()
            role = Role.all_objects.filter(slug=slug).first()
            if role is None:
                role = Role.objects.create(name=name, slug=slug)
                created_roles += 1
            else:
                if role.is_trashed:
                    role.restore()
                updated_roles += 1

            available = [p for p in permissions if self._resource_exists(p)]
            skipped = sorted(set(permissions) - set(available))
            if skipped:
                self.stdout.write(self.style.WARNING(
                    f"Skipping grants for undefined resources on '{slug}': {', '.join(skipped)} "
                    f"(run generate_permissions first)"
                ))
            store.sync(role, available)

        self.stdout.write(
            self.style.SUCCESS(f"Seeded roles; created: {created_roles}, updated: {updated_roles}.")
        )

    @staticmethod
    def _resource_exists(permission: str) -> bool:
        resource, _ = parse(permission)
        return Permission.objects.filter(resource=resource).exists()

from django.core.management.base import BaseCommand

from apps.permissions import conf
from apps.permissions.conf import WILDCARD
from apps.permissions.models import Permission
from apps.permissions.policies import DisabledPolicy, registry
from apps.permissions.store import store


class Command(BaseCommand):
    help = 'Create or update one permission row per registered policy resource.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fresh',
            action='store_true',
            help='Permanently delete existing permissions (except the wildcard) first',
        )
        parser.add_argument(
            '--exclude',
            nargs='*',
            default=[],
            help='Resources to skip',
        )
        parser.add_argument(
            '--noinput', '--no-input',
            action='store_false',
            dest='interactive',
            help='Do not prompt for confirmation',
        )

    def handle(self, *args, **options):
        excluded = set(conf.get('EXCLUDED_RESOURCES')) | set(options['exclude'])
        resources = sorted(
            resource for resource, policy_class in registry.items()
            if resource not in excluded and not issubclass(policy_class, DisabledPolicy)
        )

        if not resources:
            self.stdout.write(self.style.WARNING('All resources are excluded. No permissions to generate.'))
            return

        self.stdout.write(f"Resources: {', '.join(resources)}")
        if options['interactive']:
            answer = input('Generate permissions for these resources? [Y/n] ').strip().lower()
            if answer not in ('', 'y', 'yes'):
                self.stdout.write('Operation cancelled.')
                return

        if options['fresh']:
            self.stdout.write(self.style.WARNING('Deleting existing permissions...'))
            Permission.all_objects.exclude(resource=WILDCARD).force_delete()

        created = 0
        updated = 0
        for resource in resources:
            existing = Permission.all_objects.filter(resource=resource).first()
            if existing is None:
                self.stdout.write(self.style.SUCCESS(f'Creating: {resource}'))
                created += 1
            elif existing.is_trashed:
                self.stdout.write(self.style.MIGRATE_HEADING(f'Restoring: {resource}'))
                updated += 1
            else:
                self.stdout.write(self.style.MIGRATE_HEADING(f'Updating: {resource}'))
                updated += 1
            store.define(resource)

        if not Permission.all_objects.filter(resource=WILDCARD).exists():
            store.define(WILDCARD)

        self.stdout.write(self.style.SUCCESS(
            f'Permission generation complete. Created: {created}, Updated: {updated}, Total: {created + updated}'
        ))

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.permissions import conf
from apps.permissions.models import Role
from apps.permissions.store import store


class Command(BaseCommand):
    help = 'Move a user from the admin role to the super admin role.'

    def add_arguments(self, parser):
        parser.add_argument('email', nargs='?', default=None)

    def handle(self, *args, **options):
        email = options['email'] or conf.get('SUPER_ADMIN_EMAIL')
        if not email:
            raise CommandError('No email given and PERMISSIONS["SUPER_ADMIN_EMAIL"] is not set.')

        user = get_user_model().objects.filter(email=email).first()
        if user is None:
            raise CommandError(f"User with email '{email}' not found.")

        super_admin_role = Role.objects.filter(slug=conf.get('ADMIN_ROLE_SLUG')).first()
        if super_admin_role is None:
            raise CommandError('Super admin role not found. Run seed_default_roles first.')
        admin_role = Role.objects.filter(slug='admin').first()

        self.stdout.write(f"User: {user.email}")
        self.stdout.write(f"Current roles: {', '.join(sorted(user.role_slugs())) or '-'}")

        if admin_role and store.detach_role(user, admin_role):
            self.stdout.write(self.style.SUCCESS('Removed admin role'))

        if store.attach_role(user, super_admin_role):
            self.stdout.write(self.style.SUCCESS('Attached super admin role'))
        else:
            self.stdout.write(self.style.WARNING('User already has the super admin role'))

        self.stdout.write(f"New roles: {', '.join(sorted(user.role_slugs()))}")

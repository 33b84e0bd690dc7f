from django.apps import AppConfig


class PermissionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.permissions'
    verbose_name = 'Permissions & Roles'

    def ready(self):
        # Ensure signal handlers are registered
        from django.apps import apps
        from django.db.models.signals import m2m_changed

        from . import signals

        m2m_changed.connect(
            signals.invalidate_on_m2m_change,
            sender=apps.get_model('users', 'UserRole'),
            dispatch_uid='permissions.user_roles_changed',
        )

from django.contrib.auth.models import AbstractUser
from django.db import models

from apps.permissions import conf
from shared.managers import SoftDeleteUserManager
from shared.models import SoftDeleteMixin


class User(SoftDeleteMixin, AbstractUser):
    """
    Application user. Roles are bound through ``UserRole``.
    """
    roles = models.ManyToManyField(
        'permissions.Role',
        through='UserRole',
        related_name='users',
        blank=True,
    )

    objects = SoftDeleteUserManager()
    all_objects = SoftDeleteUserManager(with_trashed=True)

    class Meta:
        db_table = 'users'

    @property
    def is_super_admin(self) -> bool:
        return self.pk is not None and self.pk == conf.super_admin_id()

    def role_slugs(self) -> set:
        return set(self.roles.filter(deleted_at__isnull=True).values_list('slug', flat=True))

    def is_admin(self) -> bool:
        """Super admin identity or holder of the distinguished admin role."""
        if self.is_super_admin:
            return True
        return conf.get('ADMIN_ROLE_SLUG') in self.role_slugs()


class UserRole(models.Model):
    """
    Many-to-many binding between users and roles
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='user_roles')
    role = models.ForeignKey('permissions.Role', on_delete=models.CASCADE, related_name='user_roles')
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'user_roles'
        unique_together = [['user', 'role']]

    def __str__(self):
        return f"{self.user.username} - {self.role.name}"

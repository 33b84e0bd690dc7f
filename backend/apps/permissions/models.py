from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from django.utils.text import slugify

from shared.models import SoftDeleteModel

from .exceptions import UnknownAction


class Role(SoftDeleteModel):
    """
    A named bundle of resource/action grants assignable to users.
    Soft-deleted roles keep their grants but no longer grant anything.
    """
    name = models.CharField(max_length=255, unique=True)
    slug = models.CharField(
        max_length=255,
        unique=True,
        validators=[RegexValidator(r'^[a-z0-9-]+$', 'Use lowercase letters, digits and dashes.')],
        help_text="Stable key used in code (e.g. admin)",
    )
    permissions = models.ManyToManyField(
        'permissions.Permission',
        through='permissions.RolePermission',
        related_name='roles',
        blank=True,
    )

    class Meta:
        db_table = 'roles'
        ordering = ['name']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)


class Permission(SoftDeleteModel):
    """
    One row per protected resource, carrying the actions the resource supports
    """
    resource = models.CharField(max_length=255, unique=True)
    actions = models.JSONField(default=list, help_text="Action vocabulary of this resource")

    class Meta:
        db_table = 'permissions'
        ordering = ['resource']

    def __str__(self):
        return self.resource

    @property
    def is_wildcard(self) -> bool:
        return self.resource == '*'

    def validate_actions(self, actions):
        """Raise ``UnknownAction`` for actions outside this resource's vocabulary."""
        vocabulary = self.actions or []
        if '*' in vocabulary:
            return
        unknown = set(actions) - set(vocabulary) - {'*'}
        if unknown:
            raise UnknownAction(self.resource, unknown)


class RolePermission(models.Model):
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name='role_permissions')
    permission = models.ForeignKey(Permission, on_delete=models.CASCADE, related_name='role_permissions')
    actions = models.JSONField(default=list, help_text="Actions granted to the role on this resource")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'permission_role'
        unique_together = ('role', 'permission')
        verbose_name = "Role Permission Assignment"
        verbose_name_plural = "Role Permission Assignments"

    def __str__(self):
        return f"{self.role.name} - {self.permission.resource}: {', '.join(self.actions or [])}"

    def clean(self):
        super().clean()
        if self.permission_id is None:
            return
        try:
            self.permission.validate_actions(self.actions or [])
        except UnknownAction as exc:
            raise ValidationError({'actions': exc.messages})

    def as_strings(self):
        return [f"{self.permission.resource}.{action}" for action in (self.actions or [])]

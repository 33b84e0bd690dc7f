from django.contrib.auth.models import UserManager
from django.db import models
from django.utils import timezone

from .signals import soft_delete_changed


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self):
        """Rows that have not been soft-deleted"""
        return self.filter(deleted_at__isnull=True)

    def trashed(self):
        """Only soft-deleted rows"""
        return self.filter(deleted_at__isnull=False)

    def delete(self):
        count = self.update(deleted_at=timezone.now())
        if count:
            soft_delete_changed.send(sender=self.model, action='delete', count=count)
        return count

    def restore(self):
        count = self.update(deleted_at=None)
        if count:
            soft_delete_changed.send(sender=self.model, action='restore', count=count)
        return count

    def force_delete(self):
        return super().delete()


class SoftDeleteManager(models.Manager):
    """
    Default manager hides soft-deleted rows; pass ``with_trashed=True``
    for a manager that sees everything.
    """

    def __init__(self, *args, with_trashed=False, **kwargs):
        self.with_trashed = with_trashed
        super().__init__(*args, **kwargs)

    def get_queryset(self):
        qs = SoftDeleteQuerySet(self.model, using=self._db)
        if self.with_trashed:
            return qs
        return qs.alive()

    def trashed(self):
        return self.get_queryset().trashed()


class SoftDeleteUserManager(UserManager):
    def __init__(self, *args, with_trashed=False, **kwargs):
        self.with_trashed = with_trashed
        super().__init__(*args, **kwargs)

    def get_queryset(self):
        qs = SoftDeleteQuerySet(self.model, using=self._db)
        if self.with_trashed:
            return qs
        return qs.alive()

    def trashed(self):
        return self.get_queryset().trashed()

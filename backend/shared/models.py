from django.db import models
from django.utils import timezone

from shared.managers import SoftDeleteManager


class SoftDeleteMixin(models.Model):
    """
    Abstract mixin that turns ``delete()`` into a soft delete.
    ``force_delete()`` removes the row for good; ``restore()`` brings a
    trashed row back.
    """
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        abstract = True

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False):
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at'])

    def restore(self):
        self.deleted_at = None
        self.save(update_fields=['deleted_at'])

    def force_delete(self, using=None, keep_parents=False):
        return super().delete(using=using, keep_parents=keep_parents)


class SoftDeleteModel(SoftDeleteMixin):
    """
    Abstract base with timestamps and soft delete for admin-managed records
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SoftDeleteManager()
    all_objects = SoftDeleteManager(with_trashed=True)

    class Meta:
        abstract = True

from django.db.models.signals import m2m_changed, post_delete, post_save
from django.dispatch import receiver

from shared.signals import soft_delete_changed

from .models import Permission, Role, RolePermission
from .resolver import invalidate_cache


@receiver(post_save, sender=Role)
@receiver(post_delete, sender=Role)
@receiver(post_save, sender=Permission)
@receiver(post_delete, sender=Permission)
@receiver(post_save, sender=RolePermission)
@receiver(post_delete, sender=RolePermission)
@receiver(post_save, sender='users.UserRole')
@receiver(post_delete, sender='users.UserRole')
def invalidate_on_change(sender, **kwargs):
    """Writes made outside the store (admin site, shell) still drop cached grants."""
    invalidate_cache()


@receiver(soft_delete_changed, sender=Role)
@receiver(soft_delete_changed, sender=Permission)
def invalidate_on_bulk_soft_delete(sender, **kwargs):
    invalidate_cache()


@receiver(m2m_changed, sender=Role.permissions.through)
def invalidate_on_m2m_change(sender, action, **kwargs):
    if action in ('post_add', 'post_remove', 'post_clear'):
        invalidate_cache()

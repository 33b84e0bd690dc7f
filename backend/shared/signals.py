from django.dispatch import Signal

# Sent by SoftDeleteQuerySet after a bulk soft delete or restore. Those go
# through ``update()``, which fires no per-instance model signals.
# Arguments: ``action`` ("delete" or "restore") and ``count``.
soft_delete_changed = Signal()

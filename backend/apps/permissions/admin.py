from django.contrib import admin

from .models import Permission, Role, RolePermission
from .store import store


class TrashedListFilter(admin.SimpleListFilter):
    title = "trashed"
    parameter_name = "trashed"

    def lookups(self, request, model_admin):
        return (("with", "With trashed"), ("only", "Only trashed"))

    def queryset(self, request, queryset):
        if self.value() == "only":
            return queryset.filter(deleted_at__isnull=False)
        if self.value() == "with":
            return queryset
        return queryset.filter(deleted_at__isnull=True)


class SoftDeleteAdmin(admin.ModelAdmin):
    list_filter = [TrashedListFilter]
    actions = ["restore_selected"]

    def get_queryset(self, request):
        return self.model.all_objects.all()

    @admin.action(description="Restore selected rows")
    def restore_selected(self, request, queryset):
        restored = queryset.restore()
        self.message_user(request, f"Restored {restored} row(s).")


class RolePermissionInline(admin.TabularInline):
    model = RolePermission
    extra = 0
    autocomplete_fields = ["permission"]


@admin.register(Permission)
class PermissionAdmin(SoftDeleteAdmin):
    list_display = ["resource", "actions", "deleted_at"]
    search_fields = ["resource"]

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        store.prune(obj)


@admin.register(Role)
class RoleAdmin(SoftDeleteAdmin):
    list_display = ["name", "slug", "deleted_at"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ("name",)}
    inlines = [RolePermissionInline]


@admin.register(RolePermission)
class RolePermissionAdmin(admin.ModelAdmin):
    list_display = ["role", "permission", "actions", "updated_at"]
    list_filter = ["role"]
    search_fields = ["role__name", "permission__resource"]

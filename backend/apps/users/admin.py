from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from apps.permissions.admin import TrashedListFilter

from .models import User, UserRole


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    fieldsets = (
        (None, {"fields": ("username", "password")}),
        ("Personal info", {"fields": ("first_name", "last_name", "email")}),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                )
            },
        ),
        ("Important dates", {"fields": ("last_login", "date_joined", "deleted_at")}),
    )
    list_display = ("username", "email", "first_name", "last_name", "is_staff", "deleted_at")
    list_filter = ("is_staff", "is_active", TrashedListFilter)
    search_fields = ("username", "first_name", "last_name", "email")
    ordering = ("username",)
    inlines = [UserRoleInline]

    def get_queryset(self, request):
        return User.all_objects.all()


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ["user", "role", "assigned_at"]
    list_filter = ["role"]
    search_fields = ["user__username", "user__email", "role__name"]

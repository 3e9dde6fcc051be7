from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

User = get_user_model()

# Re-register the user admin with store columns.
try:
    admin.site.unregister(User)
except admin.sites.NotRegistered:
    pass


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """
    User list with id, store role (Profile.role) and staff flags.
    """
    list_display = (
        "id",
        "username",
        "email",
        "store_role_display",
        "is_staff",
        "is_active",
        "date_joined",
        "last_login",
    )
    list_select_related = ("profile",)
    ordering = ("-date_joined", "-id")
    search_fields = ("username", "email", "profile__phone")
    list_filter = ("is_staff", "is_active", "profile__role")

    def store_role_display(self, obj):
        prof = getattr(obj, "profile", None)
        return getattr(prof, "role", "") or ""
    store_role_display.short_description = "role"
    store_role_display.admin_order_field = "profile__role"

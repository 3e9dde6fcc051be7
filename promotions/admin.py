from django.contrib import admin

from .models import Promotion, PromotionTarget


class PromotionTargetInline(admin.TabularInline):
    model = PromotionTarget
    extra = 0
    raw_id_fields = ("product", "variant")


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "scope", "type", "value", "used_count", "usage_limit", "is_active", "end_date")
    list_filter = ("scope", "type", "is_active")
    search_fields = ("code", "name")
    readonly_fields = ("used_count", "created_at", "updated_at")
    inlines = [PromotionTargetInline]

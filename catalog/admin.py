from django.contrib import admin
from django.db.models import Sum
from .models import Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    """
    Variants edited directly inside the product form.
    """
    model = ProductVariant
    extra = 0
    fields = ("sku", "options", "price", "discounted_price", "stock")
    show_change_link = True


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """
    Product management:
    - inline variant editing
    - search/filter fields
    - total variant stock as a column (annotated, no N+1)
    """
    inlines = [ProductVariantInline]

    list_display = (
        "id",
        "title",
        "price",
        "discounted_price",
        "stock_display",
        "has_variants",
        "is_active",
        "updated_at",
    )
    search_fields = ("title", "slug", "description", "variants__sku")
    list_filter = ("is_active", "has_variants", "updated_at")
    date_hierarchy = "created_at"
    ordering = ("-updated_at", "-id")
    prepopulated_fields = {"slug": ("title",)}
    readonly_fields = ("created_at", "updated_at")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.annotate(_variant_stock=Sum("variants__stock"))

    def stock_display(self, obj):
        if obj.has_variants:
            return getattr(obj, "_variant_stock", None) or 0
        return obj.stock
    stock_display.short_description = "stock"


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ("id", "sku", "product", "price", "discounted_price", "stock")
    list_select_related = ("product",)
    search_fields = ("sku", "product__title")
    ordering = ("product", "id")

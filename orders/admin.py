from django.contrib import admin
from django.utils.html import format_html

from .models import Order, OrderItem, Shipping


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("product", "variant", "quantity", "price", "discounted_price", "selected_options")
    can_delete = False


class ShippingInline(admin.StackedInline):
    model = Shipping
    extra = 0
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Order overview:
    - list: number, status and payment badges, customer, totals, created
    - filters: status, payment status, payment method
    - money fields and counters are snapshots and stay read-only; status
      changes go through the API so stock and promotions stay consistent
    """
    list_display = (
        "order_number",
        "status_badge",
        "payment_badge",
        "payment_method",
        "customer_username",
        "total",
        "promotion_code",
        "created_at",
    )
    list_select_related = ("user",)
    list_filter = ("status", "payment_status", "payment_method", "created_at")
    date_hierarchy = "created_at"
    ordering = ("-created_at", "-id")
    search_fields = ("order_number", "user__username", "promotion_code", "shipping__full_name")
    inlines = [OrderItemInline, ShippingInline]

    readonly_fields = (
        "order_number",
        "user",
        "status",
        "payment_status",
        "payment_method",
        "subtotal",
        "shipping_fee",
        "shipping_discount",
        "discount_amount",
        "total",
        "promotion_code",
        "promotion_released",
        "stock_committed",
        "cancellation_reason",
        "created_at",
        "updated_at",
    )

    _STATUS_COLORS = {
        "PENDING": "#f59e0b",
        "PROCESSING": "#0ea5e9",
        "SHIPPED": "#6366f1",
        "DELIVERED": "#22c55e",
        "CANCELLED": "#ef4444",
    }
    _PAYMENT_COLORS = {
        "PENDING": "#9ca3af",
        "PAID": "#22c55e",
        "FAILED": "#ef4444",
        "REFUNDED": "#a855f7",
    }

    @staticmethod
    def _badge(color, text):
        return format_html(
            '<span style="display:inline-block;padding:2px 8px;border-radius:999px;'
            'font-size:12px;font-weight:600;color:#fff;background:{};">{}</span>',
            color,
            text,
        )

    def status_badge(self, obj):
        return self._badge(self._STATUS_COLORS.get(obj.status, "#9ca3af"), obj.get_status_display())
    status_badge.short_description = "status"
    status_badge.admin_order_field = "status"

    def payment_badge(self, obj):
        return self._badge(self._PAYMENT_COLORS.get(obj.payment_status, "#9ca3af"), obj.get_payment_status_display())
    payment_badge.short_description = "payment"
    payment_badge.admin_order_field = "payment_status"

    def customer_username(self, obj):
        return obj.user.username if obj.user_id else "guest"
    customer_username.short_description = "customer"

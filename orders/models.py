"""Orders app models.

Defines Order, OrderItem and Shipping. Order items snapshot the unit price of
the product (or variant) at checkout, so later catalog changes do not alter
what the customer agreed to pay.
"""

import secrets
import string
import time

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from catalog.models import Product, ProductVariant

COD = "cod"

_ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number() -> str:
    """`ORD-<epoch ms>-<9 upper-case alphanumerics>`"""
    suffix = "".join(secrets.choice(_ORDER_NUMBER_ALPHABET) for _ in range(9))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


class Order(models.Model):
    """A customer's purchase, tracked through a fixed status lifecycle."""

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PROCESSING = "PROCESSING", "Processing"
        SHIPPED = "SHIPPED", "Shipped"
        DELIVERED = "DELIVERED", "Delivered"
        CANCELLED = "CANCELLED", "Cancelled"

    class PaymentStatus(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PAID = "PAID", "Paid"
        FAILED = "FAILED", "Failed"
        REFUNDED = "REFUNDED", "Refunded"

    order_number = models.CharField(max_length=40, unique=True, default=generate_order_number)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_method = models.CharField(max_length=30, default=COD)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    shipping_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    shipping_discount = models.DecimalField(
        max_digits=12, decimal_places=2, default=0, validators=[MinValueValidator(0)]
    )
    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    total = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])

    promotion_code = models.CharField(max_length=50, null=True, blank=True, db_index=True)
    promotion_released = models.BooleanField(default=False)
    stock_committed = models.BooleanField(default=False)
    cancellation_reason = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["status", "payment_status"], name="order_status_payment_idx")]

    def __str__(self) -> str:
        return f"Order<{self.order_number} {self.status} {self.payment_status}>"

    @property
    def is_cod(self) -> bool:
        return (self.payment_method or "").lower() == COD


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="order_items")
    variant = models.ForeignKey(
        ProductVariant, on_delete=models.PROTECT, related_name="order_items", null=True, blank=True
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    discounted_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    selected_options = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"OrderItem<{self.order_id} {self.stock_label} x{self.quantity}>"

    @property
    def effective_price(self):
        return self.discounted_price if self.discounted_price is not None else self.price

    @property
    def line_total(self):
        return self.effective_price * self.quantity

    @property
    def stock_label(self) -> str:
        """Human-readable name of the stock this item draws from."""
        if self.variant_id:
            return f"{self.product.title} ({self.variant.sku})"
        return self.product.title


class Shipping(models.Model):
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name="shipping")
    full_name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=30)
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100, blank=True, default="")
    postal_code = models.CharField(max_length=20, blank=True, default="")
    country = models.CharField(max_length=100, blank=True, default="")
    method = models.CharField(max_length=50, blank=True, default="standard")
    estimated_delivery_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "order_shipping"

    def __str__(self) -> str:
        return f"Shipping<{self.order_id} {self.full_name}>"

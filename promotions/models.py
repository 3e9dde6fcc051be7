"""Promotions app models.

Defines Promotion (a discount code with eligibility rules and a usage counter)
and PromotionTarget (pins a SPECIFIC_ITEMS promotion to a product or variant,
optionally with its own discount value).
"""

from django.core.validators import MinValueValidator
from django.db import models

from catalog.models import Product, ProductVariant


class Promotion(models.Model):
    """A discount code. Codes are stored upper-cased and compared case-insensitively."""

    class Scope(models.TextChoices):
        GLOBAL_ORDER = "GLOBAL_ORDER", "Whole order"
        SPECIFIC_ITEMS = "SPECIFIC_ITEMS", "Specific items"

    class Type(models.TextChoices):
        PERCENTAGE = "PERCENTAGE", "Percentage"
        FIXED = "FIXED", "Fixed amount"
        FREESHIP = "FREESHIP", "Free shipping"
        FREESHIP_PERCENTAGE = "FREESHIP_PERCENTAGE", "Shipping percentage"

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200, blank=True, default="")
    description = models.TextField(blank=True, default="")
    scope = models.CharField(max_length=20, choices=Scope.choices, default=Scope.GLOBAL_ORDER)
    type = models.CharField(max_length=20, choices=Type.choices)
    value = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    max_discount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)
    per_user_limit = models.PositiveIntegerField(null=True, blank=True)
    min_order_value = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "promotions"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Promotion<{self.code} {self.type} {self.value}>"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    @property
    def applies_to_shipping(self) -> bool:
        return self.type in (self.Type.FREESHIP, self.Type.FREESHIP_PERCENTAGE)


class PromotionTarget(models.Model):
    """A product or variant a SPECIFIC_ITEMS promotion applies to."""

    promotion = models.ForeignKey(Promotion, on_delete=models.CASCADE, related_name="targets")
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="promotion_targets", null=True, blank=True
    )
    variant = models.ForeignKey(
        ProductVariant, on_delete=models.CASCADE, related_name="promotion_targets", null=True, blank=True
    )
    specific_value = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )

    class Meta:
        db_table = "promotion_targets"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(product__isnull=False) | models.Q(variant__isnull=False),
                name="promotion_target_has_product_or_variant",
            )
        ]

    def __str__(self):
        return f"Target<{self.promotion_id} product={self.product_id} variant={self.variant_id}>"

"""Catalog app models.

Defines Product and ProductVariant. A product either sells directly from its
own stock or, when `has_variants` is set, only through its variants, each with
its own SKU, optional price override and stock.
"""

from django.core.validators import MinValueValidator
from django.db import models


class Product(models.Model):
    """A sellable catalog entry."""

    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(0)]
    )
    discounted_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    stock = models.PositiveIntegerField(default=0)
    has_variants = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.title} (#{self.pk})"

    @property
    def effective_price(self):
        return self.discounted_price if self.discounted_price is not None else self.price


class ProductVariant(models.Model):
    """A purchasable configuration (color, size, ...) of a product."""

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="variants")
    sku = models.CharField(max_length=64, unique=True)
    options = models.JSONField(default=dict, blank=True)
    price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    discounted_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    stock = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_variants"
        ordering = ["id"]

    def __str__(self):
        return f"{self.sku} of product #{self.product_id}"

    @property
    def unit_price(self):
        return self.price if self.price is not None else self.product.price

    @property
    def effective_price(self):
        if self.discounted_price is not None:
            return self.discounted_price
        if self.price is not None:
            return self.price
        return self.product.effective_price

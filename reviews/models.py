"""Reviews app models.

Defines the Review model. A customer may review each delivered order item
once. Ratings are constrained between 1 and 5.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from catalog.models import Product
from orders.models import OrderItem


class Review(models.Model):
    """Represents a review written by a customer for a purchased product."""

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="reviews")
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="reviews_written",
    )
    order_item = models.OneToOneField(OrderItem, on_delete=models.PROTECT, related_name="review")

    rating = models.IntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    content = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "reviews"
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        """Readable representation for admin and debugging."""
        return f"Review<{self.id} {self.reviewer_id}->{self.product_id} {self.rating}>"

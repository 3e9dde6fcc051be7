"""Reviews API serializers.

Provide serializers for creating a review of a delivered order item,
returning review data, and partially updating rating/content.
"""

from rest_framework import serializers

from orders.models import Order, OrderItem
from reviews.models import Review


class ReviewCreateSerializer(serializers.Serializer):
    """Input serializer for creating a new review."""

    order_item = serializers.IntegerField(required=True)
    rating = serializers.IntegerField(min_value=1, max_value=5, required=True)
    content = serializers.CharField(allow_blank=True, required=False, default="")

    def validate_order_item(self, value):
        """Ensure the item belongs to the reviewer's own delivered order."""
        request = self.context.get("request")
        item = OrderItem.objects.select_related("order", "product").filter(id=value).first()
        if item is None:
            raise serializers.ValidationError("Order item not found.")
        if item.order.user_id != request.user.id:
            raise serializers.ValidationError("You can only review items you ordered.")
        if item.order.status != Order.Status.DELIVERED:
            raise serializers.ValidationError("Items can be reviewed once the order has been delivered.")
        if Review.objects.filter(order_item=item).exists():
            raise serializers.ValidationError("You have already reviewed this item.")
        self.context["order_item_obj"] = item
        return value

    def create(self, validated_data):
        """Create and return the review instance."""
        item = self.context["order_item_obj"]
        return Review.objects.create(
            product=item.product,
            reviewer=self.context["request"].user,
            order_item=item,
            rating=validated_data["rating"],
            content=validated_data.get("content", "") or "",
        )


class ReviewOutputSerializer(serializers.ModelSerializer):
    """Read serializer for returning a review."""

    reviewer_username = serializers.CharField(source="reviewer.username", read_only=True)

    class Meta:
        model = Review
        fields = [
            "id",
            "product",
            "reviewer",
            "reviewer_username",
            "order_item",
            "rating",
            "content",
            "created_at",
            "updated_at",
        ]


class ReviewPatchSerializer(serializers.ModelSerializer):
    """Patch serializer for updating rating/content only."""

    class Meta:
        model = Review
        fields = ["rating", "content"]


class ReviewableItemSerializer(serializers.ModelSerializer):
    """A delivered order item of the caller that has no review yet."""

    order_item = serializers.IntegerField(source="id", read_only=True)
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    sku = serializers.CharField(source="variant.sku", read_only=True, default=None)
    delivered_at = serializers.DateTimeField(source="order.updated_at", read_only=True)

    class Meta:
        model = OrderItem
        fields = ["order_item", "order_number", "variant", "sku", "quantity", "selected_options", "delivered_at"]

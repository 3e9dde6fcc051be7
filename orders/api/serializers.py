"""Orders API serializers.

Input serializers validate the checkout payload and the bodies of the
lifecycle actions; business rules live in `orders.placement` and
`orders.lifecycle`. Output serializers return the full order with its items
and shipping record.
"""

from rest_framework import serializers

from ..models import COD, Order, OrderItem, Shipping
from ..placement import place_order


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    variant_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)
    selected_options = serializers.DictField(child=serializers.CharField(), required=False, allow_null=True)


class ShippingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Shipping
        fields = [
            "full_name",
            "email",
            "phone",
            "address",
            "city",
            "postal_code",
            "country",
            "method",
            "estimated_delivery_date",
        ]


class OrderCreateSerializer(serializers.Serializer):
    """Checkout payload. Prices come from the catalog, not from the client."""

    items = OrderItemInputSerializer(many=True, allow_empty=False)
    shipping = ShippingSerializer()
    payment_method = serializers.CharField(max_length=30, required=False, default=COD)
    promotion_code = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    shipping_fee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)

    def create(self, validated_data):
        request = self.context.get("request")
        user = getattr(request, "user", None)
        return place_order(
            user,
            validated_data["items"],
            validated_data["shipping"],
            payment_method=validated_data["payment_method"],
            promotion_code=validated_data.get("promotion_code"),
            shipping_fee=validated_data["shipping_fee"],
        )


class OrderItemOutputSerializer(serializers.ModelSerializer):
    product_title = serializers.CharField(source="product.title", read_only=True)
    sku = serializers.CharField(source="variant.sku", read_only=True, default=None)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "product_title",
            "variant",
            "sku",
            "quantity",
            "price",
            "discounted_price",
            "line_total",
            "selected_options",
        ]


class OrderOutputSerializer(serializers.ModelSerializer):
    """Read serializer for returning a complete order representation."""

    items = OrderItemOutputSerializer(many=True, read_only=True)
    shipping = ShippingSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            "id",
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
            "cancellation_reason",
            "items",
            "shipping",
            "created_at",
            "updated_at",
        ]


class OrderStatusPatchSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)


class OrderRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, trim_whitespace=True)


class PaymentResultSerializer(serializers.Serializer):
    succeeded = serializers.BooleanField()

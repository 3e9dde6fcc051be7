"""Promotions API serializers.

`PromotionValidateSerializer` is the input of the public validate endpoint.
`PromotionSerializer` is the admin read/write representation; targets are
created with the promotion and replaced as a whole when a PATCH sends them.
"""

from django.db import transaction
from rest_framework import serializers

from ..evaluator import CartLine, normalize_code
from ..models import Promotion, PromotionTarget


class CartItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    variant_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    discounted_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )

    def to_cart_line(self, data) -> CartLine:
        return CartLine(
            product_id=data["product_id"],
            variant_id=data.get("variant_id"),
            quantity=data["quantity"],
            price=data["price"],
            discounted_price=data.get("discounted_price"),
        )


class PromotionValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    cart_items = CartItemSerializer(many=True, required=False, allow_null=True)
    shipping_fee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    def validate_subtotal(self, value):
        if value <= 0:
            raise serializers.ValidationError("Subtotal must be greater than zero.")
        return value

    def cart_lines(self):
        items = self.validated_data.get("cart_items")
        if items is None:
            return None
        child = CartItemSerializer()
        return [child.to_cart_line(item) for item in items]


class PromotionSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Promotion
        fields = ["id", "code", "name", "scope", "type", "value", "max_discount"]


class PromotionTargetSerializer(serializers.ModelSerializer):
    class Meta:
        model = PromotionTarget
        fields = ["id", "product", "variant", "specific_value"]

    def validate(self, attrs):
        product = attrs.get("product")
        variant = attrs.get("variant")
        if product is None and variant is None:
            raise serializers.ValidationError("A target needs a product or a variant.")
        if product is not None and variant is not None and variant.product_id != product.pk:
            raise serializers.ValidationError("Variant does not belong to the given product.")
        return attrs


class PromotionSerializer(serializers.ModelSerializer):
    targets = PromotionTargetSerializer(many=True, required=False)

    class Meta:
        model = Promotion
        fields = [
            "id",
            "code",
            "name",
            "description",
            "scope",
            "type",
            "value",
            "max_discount",
            "start_date",
            "end_date",
            "usage_limit",
            "used_count",
            "per_user_limit",
            "min_order_value",
            "is_active",
            "targets",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["used_count", "created_at", "updated_at"]
        # Uniqueness is checked case-insensitively in validate_code.
        extra_kwargs = {"code": {"validators": []}}

    def validate_code(self, value):
        code = normalize_code(value)
        if not code:
            raise serializers.ValidationError("Code must not be blank.")
        qs = Promotion.objects.filter(code=code)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A promotion with this code already exists.")
        return code

    def validate(self, attrs):
        def current(name):
            return attrs.get(name, getattr(self.instance, name, None))

        start, end = current("start_date"), current("end_date")
        if start is not None and end is not None and end <= start:
            raise serializers.ValidationError({"end_date": "Must be after start_date."})

        promo_type, value = current("type"), current("value")
        percent_types = (Promotion.Type.PERCENTAGE, Promotion.Type.FREESHIP_PERCENTAGE)
        if promo_type in percent_types and value is not None and value > 100:
            raise serializers.ValidationError({"value": "A percentage cannot exceed 100."})
        if promo_type == Promotion.Type.PERCENTAGE and "targets" in attrs:
            for target in attrs["targets"]:
                specific = target.get("specific_value")
                if specific is not None and specific > 100:
                    raise serializers.ValidationError(
                        {"targets": "A percentage cannot exceed 100 (specific_value)."}
                    )

        scope = current("scope")
        if scope == Promotion.Scope.SPECIFIC_ITEMS:
            if promo_type not in (Promotion.Type.PERCENTAGE, Promotion.Type.FIXED):
                raise serializers.ValidationError({"type": "Item promotions must be PERCENTAGE or FIXED."})
            has_targets = bool(attrs["targets"]) if "targets" in attrs else (
                self.instance is not None and self.instance.targets.exists()
            )
            if not has_targets:
                raise serializers.ValidationError({"targets": "Item promotions need at least one target."})
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        targets = validated_data.pop("targets", [])
        promotion = Promotion.objects.create(**validated_data)
        PromotionTarget.objects.bulk_create([PromotionTarget(promotion=promotion, **t) for t in targets])
        return promotion

    @transaction.atomic
    def update(self, instance, validated_data):
        targets = validated_data.pop("targets", None)
        for attr, val in validated_data.items():
            setattr(instance, attr, val)
        instance.save()
        if targets is not None:
            instance.targets.all().delete()
            PromotionTarget.objects.bulk_create([PromotionTarget(promotion=instance, **t) for t in targets])
        return instance

"""Catalog API serializers.

Provide serializers for creating products (with nested variants), listing and
retrieving products, and partially updating a product (variants identified by
SKU).
"""

from django.db import transaction
from django.utils.text import slugify
from rest_framework import serializers

from ..models import Product, ProductVariant


# --------------------------- helpers (pure functions) ---------------------------

def _ensure_options_is_str_dict(options):
    if not isinstance(options, dict):
        raise serializers.ValidationError({"options": "Must be an object."})
    if any(not isinstance(k, str) or not isinstance(v, str) for k, v in options.items()):
        raise serializers.ValidationError({"options": "All option names and values must be strings."})


def _unique_slug(title: str) -> str:
    base = slugify(title) or "product"
    slug, n = base, 2
    while Product.objects.filter(slug=slug).exists():
        slug = f"{base}-{n}"
        n += 1
    return slug


def _check_discount_not_above_price(attrs, instance=None):
    price = attrs.get("price", getattr(instance, "price", None))
    discounted = attrs.get("discounted_price", getattr(instance, "discounted_price", None))
    if price is not None and discounted is not None and discounted > price:
        raise serializers.ValidationError({"discounted_price": "Must not exceed price."})


# --------------------------------- serializers ---------------------------------

class ProductVariantSerializer(serializers.ModelSerializer):
    """Nested serializer for variants during product creation and in output."""

    id = serializers.IntegerField(read_only=True)
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = ProductVariant
        fields = ["id", "sku", "options", "price", "discounted_price", "effective_price", "stock"]
        # SKU uniqueness is checked against the table by the model constraint;
        # duplicate SKUs inside one payload are rejected by the parent serializer.
        extra_kwargs = {"sku": {"validators": []}}

    def validate_options(self, value):
        _ensure_options_is_str_dict(value)
        return value

    def validate(self, attrs):
        _check_discount_not_above_price(attrs)
        return attrs


class ProductSerializer(serializers.ModelSerializer):
    """Serializer for creating a product with optional nested variants.

    Notes:
    - `slug` is derived from the title when omitted.
    - A product created with variants is flagged `has_variants`; its own stock
      is then unused.
    """

    id = serializers.IntegerField(read_only=True)
    slug = serializers.SlugField(max_length=220, required=False)
    variants = ProductVariantSerializer(many=True, required=False)
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "slug",
            "description",
            "price",
            "discounted_price",
            "effective_price",
            "stock",
            "has_variants",
            "is_active",
            "variants",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["has_variants", "created_at", "updated_at"]

    def validate_slug(self, value):
        if Product.objects.filter(slug=value).exists():
            raise serializers.ValidationError("Slug already in use.")
        return value

    def validate_variants(self, value):
        skus = [v["sku"] for v in value]
        if len(set(skus)) != len(skus):
            raise serializers.ValidationError("Each variant must have a unique sku.")
        taken = set(ProductVariant.objects.filter(sku__in=skus).values_list("sku", flat=True))
        if taken:
            raise serializers.ValidationError(f"SKU already in use: {', '.join(sorted(taken))}.")
        return value

    def validate(self, attrs):
        _check_discount_not_above_price(attrs)
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        """Create the Product and its variants in a single transaction."""
        variants_data = validated_data.pop("variants", [])
        if not validated_data.get("slug"):
            validated_data["slug"] = _unique_slug(validated_data["title"])
        product = Product.objects.create(has_variants=bool(variants_data), **validated_data)
        for v in variants_data:
            ProductVariant.objects.create(product=product, **v)
        return product


class ProductListSerializer(serializers.ModelSerializer):
    """List serializer with a computed total stock across variants."""

    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    available_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "slug",
            "price",
            "discounted_price",
            "effective_price",
            "has_variants",
            "available_stock",
            "is_active",
            "updated_at",
        ]

    def get_available_stock(self, obj):
        if obj.has_variants:
            return sum(v.stock for v in obj.variants.all())
        return obj.stock


class ProductVariantPartialSerializer(serializers.Serializer):
    """Serializer for a single variant update in PATCH, identified by `sku`."""

    sku = serializers.CharField(max_length=64)
    options = serializers.DictField(child=serializers.CharField(), required=False)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    discounted_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    stock = serializers.IntegerField(min_value=0, required=False)


class ProductPatchSerializer(serializers.ModelSerializer):
    """PATCH serializer for products, allowing partial update of variants by SKU."""

    variants = ProductVariantPartialSerializer(many=True, required=False)

    class Meta:
        model = Product
        fields = ["title", "description", "price", "discounted_price", "stock", "is_active", "variants"]

    def validate(self, attrs):
        _check_discount_not_above_price(attrs, self.instance)
        return attrs

    def _apply_variant_patch(self, instance: Product, payload: dict) -> None:
        variant = instance.variants.filter(sku=payload["sku"]).first()
        if variant is None:
            raise serializers.ValidationError(
                {"variants": f"Variant with sku '{payload['sku']}' does not exist for this product."}
            )
        fields = [f for f in ("options", "price", "discounted_price", "stock") if f in payload]
        for f in fields:
            setattr(variant, f, payload[f])
        if fields:
            variant.save(update_fields=fields)

    @transaction.atomic
    def update(self, instance: Product, validated_data):
        """Apply partial updates to the product and its existing variants."""
        variant_updates = validated_data.pop("variants", None)
        for attr, val in validated_data.items():
            setattr(instance, attr, val)
        instance.save()
        for payload in variant_updates or []:
            self._apply_variant_patch(instance, payload)
        return instance

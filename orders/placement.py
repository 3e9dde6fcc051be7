"""Checkout: turn a validated cart into a pending order.

Stock is checked here but only committed when an admin approves the order.
The promotion use is consumed in the same transaction that creates the order.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Q
from rest_framework.exceptions import ValidationError

from catalog.models import Product, ProductVariant
from notifications.dispatch import notify_admins
from notifications.models import Notification
from promotions.evaluator import CartLine, normalize_code, quantize_money, shipping_discount_for, validate_and_price
from promotions.exceptions import PromotionUsageExhausted
from promotions.models import Promotion
from .exceptions import EmptyOrder, InsufficientStock
from .models import COD, Order, OrderItem, Shipping

logger = logging.getLogger(__name__)


class _ResolvedLine:
    __slots__ = ("product", "variant", "quantity", "selected_options")

    def __init__(self, product, variant, quantity, selected_options):
        self.product = product
        self.variant = variant
        self.quantity = quantity
        self.selected_options = selected_options

    @property
    def unit_price(self):
        return self.variant.unit_price if self.variant else self.product.price

    @property
    def discounted_price(self):
        if self.variant is None:
            return self.product.discounted_price
        if self.variant.discounted_price is not None or self.variant.price is not None:
            return self.variant.discounted_price
        return self.product.discounted_price

    @property
    def stock(self):
        return self.variant.stock if self.variant else self.product.stock

    @property
    def label(self):
        return f"{self.product.title} ({self.variant.sku})" if self.variant else self.product.title

    def as_cart_line(self) -> CartLine:
        return CartLine(
            product_id=self.product.pk,
            variant_id=self.variant.pk if self.variant else None,
            quantity=self.quantity,
            price=self.unit_price,
            discounted_price=self.discounted_price,
        )


def _resolve_items(items):
    """Load products/variants for the cart and check they can be sold."""
    resolved = []
    for idx, raw in enumerate(items):
        product = Product.objects.filter(pk=raw["product_id"], is_active=True).first()
        if product is None:
            raise ValidationError({"items": [f"Item {idx + 1}: product not found."]})

        variant = None
        variant_id = raw.get("variant_id")
        if product.has_variants and variant_id is None:
            raise ValidationError({"items": [f"Item {idx + 1}: choose a variant of '{product.title}'."]})
        if variant_id is not None:
            variant = ProductVariant.objects.filter(pk=variant_id, product=product).first()
            if variant is None:
                raise ValidationError({"items": [f"Item {idx + 1}: variant does not belong to '{product.title}'."]})

        resolved.append(_ResolvedLine(product, variant, raw["quantity"], raw.get("selected_options")))
    return resolved


def _check_stock(lines):
    demand = {}
    for line in lines:
        key = ("variant", line.variant.pk) if line.variant else ("product", line.product.pk)
        required = demand.get(key, 0) + line.quantity
        demand[key] = required
        if line.stock < required:
            raise InsufficientStock(line.label, line.stock, required)


def _consume_promotion_use(promotion) -> None:
    """Increment `used_count` only while the usage limit still allows it."""
    updated = (
        Promotion.objects.filter(pk=promotion.pk)
        .filter(Q(usage_limit__isnull=True) | Q(used_count__lt=F("usage_limit")))
        .update(used_count=F("used_count") + 1)
    )
    if not updated:
        raise PromotionUsageExhausted()


def place_order(user, items, shipping, payment_method=COD, promotion_code=None, shipping_fee=0) -> Order:
    """Create a PENDING order with its items and shipping record.

    `user` may be None for guest checkout. Totals are computed from the
    catalog prices at this moment, never from client-supplied amounts.
    """
    if not items:
        raise EmptyOrder()
    if user is not None and not user.is_authenticated:
        user = None

    shipping_fee = quantize_money(shipping_fee or 0)
    code = normalize_code(promotion_code) or None

    with transaction.atomic():
        lines = _resolve_items(items)
        _check_stock(lines)
        subtotal = quantize_money(sum((Decimal(line.as_cart_line().line_subtotal) for line in lines), Decimal("0")))

        promotion = None
        discount = Decimal("0.00")
        shipping_discount = Decimal("0.00")
        if code:
            quote = validate_and_price(code, subtotal, [line.as_cart_line() for line in lines], user=user)
            promotion = quote.promotion
            discount = quote.discount_amount
            if quote.applied_to_shipping:
                shipping_discount = shipping_discount_for(promotion, shipping_fee)
            _consume_promotion_use(promotion)

        total = max(subtotal - discount + shipping_fee - shipping_discount, Decimal("0"))
        order = Order.objects.create(
            user=user,
            payment_method=(payment_method or COD).lower(),
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            shipping_discount=shipping_discount,
            discount_amount=discount if promotion else None,
            total=quantize_money(total),
            promotion_code=promotion.code if promotion else None,
        )
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product=line.product,
                    variant=line.variant,
                    quantity=line.quantity,
                    price=line.unit_price,
                    discounted_price=line.discounted_price,
                    selected_options=line.selected_options or (line.variant.options if line.variant else None),
                )
                for line in lines
            ]
        )
        Shipping.objects.create(order=order, **shipping)

    logger.info(
        "Order %s placed by %s (%s, total %s, promotion %s)",
        order.order_number,
        user.pk if user else "guest",
        order.payment_method,
        order.total,
        order.promotion_code or "-",
    )
    notify_admins(
        Notification.Type.ORDER_CREATED,
        "New order",
        f"Order {order.order_number} was placed with a total of {order.total}.",
        order=order,
    )
    return order

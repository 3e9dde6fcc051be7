"""Promotion evaluation.

`validate_and_price` checks a code against its eligibility rules and prices the
discount for a subtotal (and, for item-scoped promotions, a list of cart
lines). It never changes `used_count`; consuming a use belongs to checkout.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from django.utils import timezone

from orders.models import Order
from .exceptions import (
    InvalidCart,
    PromotionBelowMinimum,
    PromotionInactive,
    PromotionNotFound,
    PromotionOutOfWindow,
    PromotionPerUserLimitReached,
    PromotionUsageExhausted,
)
from .models import Promotion

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    price: Decimal
    variant_id: Optional[int] = None
    discounted_price: Optional[Decimal] = None

    @property
    def line_subtotal(self) -> Decimal:
        unit = self.discounted_price if self.discounted_price is not None else self.price
        return Decimal(unit) * self.quantity


@dataclass(frozen=True)
class PromotionQuote:
    promotion: Promotion
    discount_amount: Decimal
    shipping_discount: Decimal = ZERO
    applied_to_shipping: bool = False


def normalize_code(code) -> str:
    return (code or "").strip().upper()


def _check_eligibility(promotion, subtotal, user, now):
    if not promotion.is_active:
        raise PromotionInactive()
    if now < promotion.start_date or now > promotion.end_date:
        raise PromotionOutOfWindow()
    if promotion.usage_limit is not None and promotion.used_count >= promotion.usage_limit:
        raise PromotionUsageExhausted()
    if promotion.min_order_value is not None and subtotal < promotion.min_order_value:
        raise PromotionBelowMinimum(promotion.min_order_value)
    if user is not None and getattr(user, "is_authenticated", False) and promotion.per_user_limit is not None:
        used = Order.objects.filter(user=user, promotion_code=promotion.code).count()
        if used >= promotion.per_user_limit:
            raise PromotionPerUserLimitReached()


def _match_target(targets, line: CartLine):
    """Variant lines match variant targets; plain lines match product-only targets."""
    for target in targets:
        if line.variant_id is not None:
            if target.variant_id == line.variant_id:
                return target
        elif target.product_id == line.product_id and target.variant_id is None:
            return target
    return None


def _item_discount(promotion, targets, cart_items: Iterable[CartLine]) -> Decimal:
    total = Decimal("0")
    for line in cart_items:
        target = _match_target(targets, line)
        if target is None:
            continue
        value = target.specific_value if target.specific_value is not None else promotion.value
        line_subtotal = line.line_subtotal
        if promotion.type == Promotion.Type.PERCENTAGE:
            total += min(line_subtotal * value / 100, line_subtotal)
        elif promotion.type == Promotion.Type.FIXED:
            total += min(value, line_subtotal)
    return total


def _order_discount(promotion, subtotal: Decimal) -> Decimal:
    if promotion.type == Promotion.Type.PERCENTAGE:
        discount = subtotal * promotion.value / 100
        if promotion.max_discount is not None:
            discount = min(discount, promotion.max_discount)
        return discount
    if promotion.type == Promotion.Type.FIXED:
        return min(promotion.value, subtotal)
    return Decimal("0")


def validate_and_price(code, subtotal, cart_items=None, user=None, now=None) -> PromotionQuote:
    """Validate `code` for a cart and compute its order discount.

    Raises the first failing rule in this order: not found, inactive, out of
    window, usage exhausted, below minimum, per-user limit reached. Free-ship
    promotions only flag `applied_to_shipping`; the caller prices them against
    the actual shipping fee with `shipping_discount_for`.
    """
    subtotal = Decimal(subtotal)
    now = now or timezone.now()

    promotion = Promotion.objects.prefetch_related("targets").filter(code=normalize_code(code)).first()
    if promotion is None:
        raise PromotionNotFound()
    _check_eligibility(promotion, subtotal, user, now)

    if promotion.scope == Promotion.Scope.SPECIFIC_ITEMS:
        if cart_items is None:
            raise InvalidCart()
        discount = _item_discount(promotion, list(promotion.targets.all()), cart_items)
        return PromotionQuote(promotion=promotion, discount_amount=quantize_money(discount))

    if promotion.applies_to_shipping:
        return PromotionQuote(promotion=promotion, discount_amount=ZERO, applied_to_shipping=True)

    return PromotionQuote(promotion=promotion, discount_amount=quantize_money(_order_discount(promotion, subtotal)))


def shipping_discount_for(promotion, shipping_fee) -> Decimal:
    """Discount a free-ship promotion grants on `shipping_fee`; zero for other types."""
    fee = Decimal(shipping_fee)
    if promotion is None or fee <= 0:
        return ZERO
    if promotion.type == Promotion.Type.FREESHIP:
        return quantize_money(fee)
    if promotion.type == Promotion.Type.FREESHIP_PERCENTAGE:
        discount = fee * promotion.value / 100
        if promotion.max_discount is not None:
            discount = min(discount, promotion.max_discount)
        return quantize_money(min(discount, fee))
    return ZERO

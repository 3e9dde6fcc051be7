"""Order lifecycle.

Every operation runs in one transaction that holds a row lock on the order.
Stock and promotion counters change through conditional UPDATE statements in
that same transaction, so a failing check rolls back status, inventory and
promotion usage together. Notifications go out after the transaction closes.

Transitions:
    PENDING    -> PROCESSING, CANCELLED
    PROCESSING -> SHIPPED, CANCELLED
    SHIPPED    -> DELIVERED, CANCELLED
    DELIVERED and CANCELLED are terminal.
"""

import logging
from collections import Counter
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F, IntegerField, Value
from django.db.models.functions import Greatest
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from catalog.models import Product, ProductVariant
from notifications.dispatch import notify_admins, notify_user
from notifications.models import Notification
from profiles.roles import is_admin_user
from promotions.models import Promotion
from .exceptions import (
    EmptyOrder,
    IllegalTransition,
    InsufficientStock,
    InvalidOrderState,
    InvalidPaymentState,
    NotOrderOwner,
)
from .models import COD, Order

logger = logging.getLogger(__name__)

Status = Order.Status
PaymentStatus = Order.PaymentStatus

ALLOWED_TRANSITIONS = {
    Status.PENDING: {Status.PROCESSING, Status.CANCELLED},
    Status.PROCESSING: {Status.SHIPPED, Status.CANCELLED},
    Status.SHIPPED: {Status.DELIVERED, Status.CANCELLED},
    Status.DELIVERED: set(),
    Status.CANCELLED: set(),
}


def can_transition(current: str, requested: str) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, set())


def check_transition(current: str, requested: str) -> bool:
    """Return True when the order must change, False for a same-status no-op.

    Raises IllegalTransition for any edge outside the table.
    """
    if current == requested:
        return False
    if not can_transition(current, requested):
        raise IllegalTransition(current, requested)
    return True


def default_timeout_minutes() -> int:
    return int(getattr(settings, "ORDER_AUTO_CANCEL_TIMEOUT_MINUTES", 15))


# ----------------------------- helpers (module-level) -----------------------------

def _require_admin(actor):
    if not is_admin_user(actor):
        raise PermissionDenied("Only store administrators may perform this action.")


def _lock_order(order_id) -> Order:
    return get_object_or_404(Order.objects.select_for_update(), pk=order_id)


def _status_label(value) -> str:
    return Status(value).label


def _stock_demand(items):
    """Sum the quantity per stock record; several items may draw on the same one."""
    demand = {}
    labels = {}
    for item in items:
        key = (ProductVariant, item.variant_id) if item.variant_id else (Product, item.product_id)
        demand[key] = demand.get(key, 0) + item.quantity
        labels.setdefault(key, item.stock_label)
    return demand, labels


def _commit_stock(items):
    """Decrement stock for every item or raise InsufficientStock without writing."""
    demand, labels = _stock_demand(items)

    for (model, pk), required in demand.items():
        available = model.objects.filter(pk=pk).values_list("stock", flat=True).first() or 0
        if available < required:
            raise InsufficientStock(labels[(model, pk)], available, required)

    for (model, pk), required in demand.items():
        updated = model.objects.filter(pk=pk, stock__gte=required).update(stock=F("stock") - required)
        if not updated:
            # Stock moved between the check and the write; the transaction rolls back.
            available = model.objects.filter(pk=pk).values_list("stock", flat=True).first() or 0
            raise InsufficientStock(labels[(model, pk)], available, required)


def _restock(order: Order) -> None:
    demand, _ = _stock_demand(order.items.select_related("product", "variant"))
    for (model, pk), quantity in demand.items():
        model.objects.filter(pk=pk).update(stock=F("stock") + quantity)
    order.stock_committed = False


def _release_promotion(order: Order) -> bool:
    """Give the order's promotion use back once; `promotion_released` guards every path."""
    if not order.promotion_code or order.promotion_released:
        return False
    Promotion.objects.filter(code=order.promotion_code, used_count__gt=0).update(used_count=F("used_count") - 1)
    order.promotion_released = True
    return True


def _approve_locked(order: Order) -> None:
    if order.status != Status.PENDING:
        raise InvalidOrderState(f"Only pending orders can be approved (current status: {order.status}).")
    if order.payment_status == PaymentStatus.FAILED:
        raise InvalidPaymentState("Payment for this order failed.")
    if not order.is_cod and order.payment_status != PaymentStatus.PAID:
        raise InvalidPaymentState("Prepaid order has not been paid yet.")

    items = list(order.items.select_related("product", "variant"))
    if not items:
        raise EmptyOrder()

    _commit_stock(items)
    order.status = Status.PROCESSING
    order.stock_committed = True


def _cancel_locked(order: Order, reason=None) -> None:
    order.status = Status.CANCELLED
    if reason:
        order.cancellation_reason = reason
    _release_promotion(order)
    if order.stock_committed:
        _restock(order)


# --------------------------------- operations ---------------------------------

def approve(order_id, actor) -> Order:
    """PENDING -> PROCESSING, committing inventory for every item."""
    _require_admin(actor)
    with transaction.atomic():
        order = _lock_order(order_id)
        _approve_locked(order)
        order.save(update_fields=["status", "stock_committed", "updated_at"])

    logger.info("Order %s approved by %s", order.order_number, actor.pk)
    notify_user(
        order.user,
        Notification.Type.ORDER_APPROVED,
        "Order approved",
        f"Your order {order.order_number} has been approved and is being prepared.",
        order=order,
    )
    return order


def reject(order_id, actor, reason) -> Order:
    """Cancel an unpaid cash-on-delivery order with a reason."""
    _require_admin(actor)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError({"reason": ["A rejection reason is required."]})

    with transaction.atomic():
        order = _lock_order(order_id)
        if order.status != Status.PENDING:
            raise InvalidOrderState(f"Only pending orders can be rejected (current status: {order.status}).")
        if not order.is_cod:
            raise InvalidPaymentState("Only cash-on-delivery orders can be rejected; prepaid orders need a refund.")

        _cancel_locked(order, reason)
        if order.payment_status == PaymentStatus.PAID:
            order.payment_status = PaymentStatus.REFUNDED
        order.save(
            update_fields=["status", "cancellation_reason", "promotion_released", "payment_status", "updated_at"]
        )

    logger.info("Order %s rejected by %s", order.order_number, actor.pk)
    notify_user(
        order.user,
        Notification.Type.ORDER_REJECTED,
        "Order rejected",
        f"Your order {order.order_number} was rejected. Reason: {reason}",
        order=order,
    )
    return order


def cancel(order_id, user) -> Order:
    """Customer cancellation of an own, pending, unpaid order."""
    with transaction.atomic():
        order = _lock_order(order_id)
        if user is None or order.user_id is None or order.user_id != user.pk:
            raise NotOrderOwner()
        if order.status != Status.PENDING:
            raise InvalidOrderState(f"Only pending orders can be cancelled (current status: {order.status}).")
        if order.payment_status == PaymentStatus.PAID:
            raise InvalidPaymentState("Paid orders cannot be cancelled here; please contact support.")

        _cancel_locked(order, "Cancelled by customer")
        order.save(update_fields=["status", "cancellation_reason", "promotion_released", "updated_at"])

    logger.info("Order %s cancelled by customer %s", order.order_number, user.pk)
    notify_admins(
        Notification.Type.ORDER_CANCELLED,
        "Order cancelled",
        f"Customer {user.get_username()} cancelled order {order.order_number}.",
        order=order,
    )
    return order


def update_status(order_id, actor, new_status) -> Order:
    """Generic admin transition along the lifecycle table.

    PENDING -> PROCESSING goes through the approval checks. Delivering a cash
    order marks it paid. Cancelling releases the promotion use and returns
    committed stock.
    """
    _require_admin(actor)
    if new_status not in Status.values:
        raise ValidationError({"status": [f"Unknown status '{new_status}'."]})

    with transaction.atomic():
        order = _lock_order(order_id)
        if not check_transition(order.status, new_status):
            return order

        previous = order.status
        if previous == Status.PENDING and new_status == Status.PROCESSING:
            _approve_locked(order)
        elif new_status == Status.CANCELLED:
            _cancel_locked(order)
        else:
            order.status = new_status

        if (
            new_status == Status.DELIVERED
            and order.is_cod
            and order.payment_status == PaymentStatus.PENDING
        ):
            order.payment_status = PaymentStatus.PAID
        order.save()

    logger.info("Order %s status %s -> %s by %s", order.order_number, previous, new_status, actor.pk)
    notify_user(
        order.user,
        Notification.Type.ORDER_STATUS_CHANGED,
        "Order status updated",
        f"Your order {order.order_number} is now {_status_label(new_status)}.",
        order=order,
    )
    return order


def stale_pending_orders(timeout_minutes=None, now=None):
    """Unpaid prepaid orders that stayed pending longer than the timeout."""
    if timeout_minutes is None:
        timeout_minutes = default_timeout_minutes()
    cutoff = (now or timezone.now()) - timedelta(minutes=timeout_minutes)
    return (
        Order.objects.filter(
            status=Status.PENDING,
            payment_status=PaymentStatus.PENDING,
            created_at__lt=cutoff,
        )
        .exclude(payment_method__iexact=COD)
    )


def auto_cancel_stale_pending(timeout_minutes=None, now=None):
    """Cancel stale prepaid orders and give their promotion uses back.

    Safe to repeat: cancelled orders no longer match the PENDING filter.
    Returns the cancelled orders.
    """
    if timeout_minutes is None:
        timeout_minutes = default_timeout_minutes()

    with transaction.atomic():
        stale = list(stale_pending_orders(timeout_minutes, now).select_for_update())
        if not stale:
            return []

        ids = [o.pk for o in stale]
        reason = f"Payment not completed within {timeout_minutes} minutes"
        Order.objects.filter(pk__in=ids).update(
            status=Status.CANCELLED,
            payment_status=PaymentStatus.FAILED,
            cancellation_reason=reason,
            updated_at=timezone.now(),
        )

        to_release = [o for o in stale if o.promotion_code and not o.promotion_released]
        per_code = Counter(o.promotion_code for o in to_release)
        for code, count in per_code.items():
            Promotion.objects.filter(code=code).update(
                used_count=Greatest(F("used_count") - count, Value(0), output_field=IntegerField())
            )
        released_ids = {o.pk for o in to_release}
        Order.objects.filter(pk__in=released_ids).update(promotion_released=True)

    for order in stale:
        order.status = Status.CANCELLED
        order.payment_status = PaymentStatus.FAILED
        order.cancellation_reason = reason
        if order.pk in released_ids:
            order.promotion_released = True

    logger.info(
        "Auto-cancelled %d stale pending order(s) older than %d minutes: %s",
        len(stale),
        timeout_minutes,
        ", ".join(o.order_number for o in stale),
    )
    return stale


def record_payment_result(order_id, succeeded: bool) -> Order:
    """Apply a payment provider callback.

    PAID is sticky: a late failure or a repeated success leaves it untouched.
    REFUNDED is final as well. The order status is not changed here.
    """
    with transaction.atomic():
        order = _lock_order(order_id)
        if order.payment_status in (PaymentStatus.PAID, PaymentStatus.REFUNDED):
            logger.info(
                "Ignoring payment %s for order %s already %s",
                "success" if succeeded else "failure",
                order.order_number,
                order.payment_status,
            )
            return order
        order.payment_status = PaymentStatus.PAID if succeeded else PaymentStatus.FAILED
        order.save(update_fields=["payment_status", "updated_at"])

    if succeeded and order.status == Status.CANCELLED:
        logger.warning("Payment received for cancelled order %s", order.order_number)
    logger.info("Order %s payment %s", order.order_number, order.payment_status)
    return order

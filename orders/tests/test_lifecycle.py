from unittest import mock

from django.db import DatabaseError
from django.http import Http404
from django.test import TestCase
from rest_framework.exceptions import PermissionDenied, ValidationError

from notifications.models import Notification
from orders import lifecycle
from orders.exceptions import (
    EmptyOrder,
    IllegalTransition,
    InsufficientStock,
    InvalidOrderState,
    InvalidPaymentState,
    NotOrderOwner,
)
from orders.models import Order
from .utils import age_order, make_admin, make_order, make_product, make_promotion, make_user, make_variant

Status = Order.Status
PaymentStatus = Order.PaymentStatus


class TransitionTableTests(TestCase):
    def test_allowed_edges(self):
        self.assertTrue(lifecycle.check_transition(Status.PENDING, Status.PROCESSING))
        self.assertTrue(lifecycle.check_transition(Status.PENDING, Status.CANCELLED))
        self.assertTrue(lifecycle.check_transition(Status.PROCESSING, Status.SHIPPED))
        self.assertTrue(lifecycle.check_transition(Status.SHIPPED, Status.DELIVERED))
        self.assertTrue(lifecycle.check_transition(Status.SHIPPED, Status.CANCELLED))

    def test_same_status_is_a_noop(self):
        for value in Status.values:
            self.assertFalse(lifecycle.check_transition(value, value))

    def test_illegal_edges_raise_with_both_statuses(self):
        for current, requested in [
            (Status.PENDING, Status.SHIPPED),
            (Status.PROCESSING, Status.PENDING),
            (Status.DELIVERED, Status.CANCELLED),
            (Status.CANCELLED, Status.PENDING),
        ]:
            with self.assertRaises(IllegalTransition) as ctx:
                lifecycle.check_transition(current, requested)
            self.assertIn(current, str(ctx.exception.detail))
            self.assertIn(requested, str(ctx.exception.detail))


class ApproveTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.customer = make_user("cust")
        self.phone = make_product("Phone", stock=5)
        self.shirt = make_product("Shirt", price="200000.00", stock=0)
        self.white = make_variant(self.shirt, "SHIRT-W", stock=3)

    def test_approve_commits_stock_and_notifies_owner(self):
        order = make_order(self.customer, [(self.phone, 2), (self.shirt, 1, self.white)])

        result = lifecycle.approve(order.pk, self.admin)

        self.assertEqual(result.status, Status.PROCESSING)
        self.assertTrue(result.stock_committed)
        self.phone.refresh_from_db()
        self.white.refresh_from_db()
        self.shirt.refresh_from_db()
        self.assertEqual(self.phone.stock, 3)
        self.assertEqual(self.white.stock, 2)
        self.assertEqual(self.shirt.stock, 0)
        self.assertTrue(
            Notification.objects.filter(user=self.customer, type=Notification.Type.ORDER_APPROVED).exists()
        )

    def test_insufficient_stock_changes_nothing(self):
        order = make_order(self.customer, [(self.phone, 2), (self.shirt, 4, self.white)])

        with self.assertRaises(InsufficientStock) as ctx:
            lifecycle.approve(order.pk, self.admin)

        self.assertEqual(ctx.exception.available, 3)
        self.assertEqual(ctx.exception.required, 4)
        self.assertIn("SHIRT-W", str(ctx.exception.detail))
        order.refresh_from_db()
        self.phone.refresh_from_db()
        self.assertEqual(order.status, Status.PENDING)
        self.assertEqual(self.phone.stock, 5)

    def test_demand_is_summed_across_items(self):
        order = make_order(self.customer, [(self.phone, 3), (self.phone, 3)])
        with self.assertRaises(InsufficientStock) as ctx:
            lifecycle.approve(order.pk, self.admin)
        self.assertEqual(ctx.exception.required, 6)
        self.phone.refresh_from_db()
        self.assertEqual(self.phone.stock, 5)

    def test_unpaid_prepaid_order_is_rejected(self):
        order = make_order(self.customer, [(self.phone, 1)], payment_method="momo")
        with self.assertRaises(InvalidPaymentState):
            lifecycle.approve(order.pk, self.admin)
        order.refresh_from_db()
        self.phone.refresh_from_db()
        self.assertEqual(order.status, Status.PENDING)
        self.assertEqual(self.phone.stock, 5)

    def test_paid_prepaid_order_can_be_approved(self):
        order = make_order(
            self.customer, [(self.phone, 1)], payment_method="stripe", payment_status=PaymentStatus.PAID
        )
        self.assertEqual(lifecycle.approve(order.pk, self.admin).status, Status.PROCESSING)

    def test_failed_payment_is_rejected(self):
        order = make_order(self.customer, [(self.phone, 1)], payment_status=PaymentStatus.FAILED)
        with self.assertRaises(InvalidPaymentState):
            lifecycle.approve(order.pk, self.admin)

    def test_empty_order(self):
        order = make_order(self.customer, [])
        with self.assertRaises(EmptyOrder):
            lifecycle.approve(order.pk, self.admin)

    def test_only_pending_orders(self):
        order = make_order(self.customer, [(self.phone, 1)], status=Status.SHIPPED)
        with self.assertRaises(InvalidOrderState):
            lifecycle.approve(order.pk, self.admin)

    def test_requires_admin(self):
        order = make_order(self.customer, [(self.phone, 1)])
        with self.assertRaises(PermissionDenied):
            lifecycle.approve(order.pk, self.customer)

    def test_missing_order(self):
        with self.assertRaises(Http404):
            lifecycle.approve(999999, self.admin)

    def test_notification_failure_does_not_fail_approval(self):
        order = make_order(self.customer, [(self.phone, 1)])
        with mock.patch.object(Notification.objects, "create", side_effect=DatabaseError("down")):
            with self.assertLogs("notifications.dispatch", level="ERROR"):
                result = lifecycle.approve(order.pk, self.admin)
        self.assertEqual(result.status, Status.PROCESSING)
        order.refresh_from_db()
        self.assertEqual(order.status, Status.PROCESSING)


class RejectAndCancelTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.customer = make_user("cust")
        self.other = make_user("other")
        self.phone = make_product("Phone", stock=5)
        self.promo = make_promotion("SALE10", used_count=3)

    def test_reject_releases_promotion_once(self):
        order = make_order(self.customer, [(self.phone, 1)], promotion_code="SALE10")

        result = lifecycle.reject(order.pk, self.admin, "  Out of delivery area  ")

        self.assertEqual(result.status, Status.CANCELLED)
        self.assertEqual(result.cancellation_reason, "Out of delivery area")
        self.promo.refresh_from_db()
        self.assertEqual(self.promo.used_count, 2)
        self.assertTrue(
            Notification.objects.filter(user=self.customer, type=Notification.Type.ORDER_REJECTED).exists()
        )

        # A second cancellation path must not give the use back again.
        with self.assertRaises(IllegalTransition):
            lifecycle.update_status(order.pk, self.admin, Status.PROCESSING)
        lifecycle.update_status(order.pk, self.admin, Status.CANCELLED)
        self.promo.refresh_from_db()
        self.assertEqual(self.promo.used_count, 2)

    def test_reject_marks_paid_cod_order_refunded(self):
        order = make_order(self.customer, [(self.phone, 1)], payment_status=PaymentStatus.PAID)
        result = lifecycle.reject(order.pk, self.admin, "Duplicate order")
        self.assertEqual(result.payment_status, PaymentStatus.REFUNDED)

    def test_reject_requires_reason(self):
        order = make_order(self.customer, [(self.phone, 1)])
        with self.assertRaises(ValidationError):
            lifecycle.reject(order.pk, self.admin, "   ")

    def test_reject_prepaid_order_is_refused(self):
        order = make_order(self.customer, [(self.phone, 1)], payment_method="stripe")
        with self.assertRaises(InvalidPaymentState):
            lifecycle.reject(order.pk, self.admin, "No stock")
        order.refresh_from_db()
        self.assertEqual(order.status, Status.PENDING)

    def test_customer_cancel_releases_promotion_and_notifies_admins(self):
        order = make_order(self.customer, [(self.phone, 1)], promotion_code="SALE10")

        result = lifecycle.cancel(order.pk, self.customer)

        self.assertEqual(result.status, Status.CANCELLED)
        self.promo.refresh_from_db()
        self.assertEqual(self.promo.used_count, 2)
        self.assertTrue(
            Notification.objects.filter(user=self.admin, type=Notification.Type.ORDER_CANCELLED).exists()
        )

        with self.assertRaises(InvalidOrderState):
            lifecycle.cancel(order.pk, self.customer)
        self.promo.refresh_from_db()
        self.assertEqual(self.promo.used_count, 2)

    def test_cancel_by_other_user(self):
        order = make_order(self.customer, [(self.phone, 1)])
        with self.assertRaises(NotOrderOwner):
            lifecycle.cancel(order.pk, self.other)

    def test_paid_order_cannot_be_self_cancelled(self):
        order = make_order(self.customer, [(self.phone, 1)], payment_method="stripe", payment_status=PaymentStatus.PAID)
        with self.assertRaises(InvalidPaymentState):
            lifecycle.cancel(order.pk, self.customer)

    def test_release_never_goes_negative(self):
        self.promo.used_count = 0
        self.promo.save()
        order = make_order(self.customer, [(self.phone, 1)], promotion_code="SALE10")
        lifecycle.cancel(order.pk, self.customer)
        self.promo.refresh_from_db()
        self.assertEqual(self.promo.used_count, 0)


class UpdateStatusTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.customer = make_user("cust")
        self.phone = make_product("Phone", stock=5)

    def test_delivering_cod_order_marks_it_paid(self):
        order = make_order(self.customer, [(self.phone, 1)], status=Status.SHIPPED)

        result = lifecycle.update_status(order.pk, self.admin, Status.DELIVERED)

        self.assertEqual(result.status, Status.DELIVERED)
        self.assertEqual(result.payment_status, PaymentStatus.PAID)
        note = Notification.objects.get(user=self.customer, type=Notification.Type.ORDER_STATUS_CHANGED)
        self.assertIn("Delivered", note.message)

    def test_same_status_is_noop_without_notification(self):
        order = make_order(self.customer, [(self.phone, 1)], status=Status.SHIPPED)
        result = lifecycle.update_status(order.pk, self.admin, Status.SHIPPED)
        self.assertEqual(result.status, Status.SHIPPED)
        self.assertFalse(Notification.objects.filter(user=self.customer).exists())

    def test_illegal_transition_leaves_order_unchanged(self):
        order = make_order(self.customer, [(self.phone, 1)], status=Status.DELIVERED)
        with self.assertRaises(IllegalTransition):
            lifecycle.update_status(order.pk, self.admin, Status.CANCELLED)
        order.refresh_from_db()
        self.assertEqual(order.status, Status.DELIVERED)

    def test_pending_to_processing_runs_approval(self):
        order = make_order(self.customer, [(self.phone, 2)])
        result = lifecycle.update_status(order.pk, self.admin, Status.PROCESSING)
        self.assertEqual(result.status, Status.PROCESSING)
        self.phone.refresh_from_db()
        self.assertEqual(self.phone.stock, 3)

    def test_cancelling_approved_order_restores_stock(self):
        promo = make_promotion("SALE10", used_count=1)
        order = make_order(self.customer, [(self.phone, 2)], promotion_code="SALE10")
        lifecycle.approve(order.pk, self.admin)

        result = lifecycle.update_status(order.pk, self.admin, Status.CANCELLED)

        self.assertEqual(result.status, Status.CANCELLED)
        self.assertFalse(result.stock_committed)
        self.phone.refresh_from_db()
        self.assertEqual(self.phone.stock, 5)
        order.refresh_from_db()
        self.assertTrue(order.promotion_released)
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 0)

        with self.assertRaises(IllegalTransition):
            lifecycle.update_status(order.pk, self.admin, Status.PROCESSING)
        lifecycle.update_status(order.pk, self.admin, Status.CANCELLED)
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 0)

    def test_cancel_releases_promotion_exactly_once(self):
        promo = make_promotion("SALE10", used_count=2)
        order = make_order(self.customer, [(self.phone, 1)], promotion_code="SALE10")

        lifecycle.update_status(order.pk, self.admin, Status.CANCELLED)
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 1)

        lifecycle.update_status(order.pk, self.admin, Status.CANCELLED)
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 1)

    def test_rejected_order_cancelled_again_keeps_counter(self):
        promo = make_promotion("SALE10", used_count=2)
        order = make_order(self.customer, [(self.phone, 1)], promotion_code="SALE10")
        lifecycle.reject(order.pk, self.admin, "Address unreachable")
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 1)

        result = lifecycle.update_status(order.pk, self.admin, Status.CANCELLED)
        self.assertEqual(result.status, Status.CANCELLED)
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 1)

    def test_unknown_status(self):
        order = make_order(self.customer, [(self.phone, 1)])
        with self.assertRaises(ValidationError):
            lifecycle.update_status(order.pk, self.admin, "LOST")


class AutoCancelTests(TestCase):
    def setUp(self):
        self.customer = make_user("cust")
        self.phone = make_product("Phone", stock=5)
        self.promo = make_promotion("SALE10", used_count=1)

    def test_cancels_stale_prepaid_orders_once(self):
        stale_a = make_order(self.customer, [(self.phone, 1)], payment_method="momo", promotion_code="SALE10")
        stale_b = make_order(self.customer, [(self.phone, 1)], payment_method="stripe", promotion_code="SALE10")
        fresh = make_order(self.customer, [(self.phone, 1)], payment_method="momo")
        cod = make_order(self.customer, [(self.phone, 1)], payment_method="cod")
        for order in (stale_a, stale_b, cod):
            age_order(order, 30)

        self.assertEqual(lifecycle.stale_pending_orders(15).count(), 2)
        cancelled = lifecycle.auto_cancel_stale_pending(15)

        self.assertEqual({o.pk for o in cancelled}, {stale_a.pk, stale_b.pk})
        for order in (stale_a, stale_b):
            order.refresh_from_db()
            self.assertEqual(order.status, Status.CANCELLED)
            self.assertEqual(order.payment_status, PaymentStatus.FAILED)
            self.assertTrue(order.promotion_released)
        fresh.refresh_from_db()
        cod.refresh_from_db()
        self.assertEqual(fresh.status, Status.PENDING)
        self.assertEqual(cod.status, Status.PENDING)

        # Two orders shared a code with only one recorded use: floor at zero.
        self.promo.refresh_from_db()
        self.assertEqual(self.promo.used_count, 0)

        self.assertEqual(lifecycle.auto_cancel_stale_pending(15), [])

    def test_default_timeout_comes_from_settings(self):
        order = make_order(self.customer, [(self.phone, 1)], payment_method="momo")
        age_order(order, 10)
        with self.settings(ORDER_AUTO_CANCEL_TIMEOUT_MINUTES=5):
            self.assertEqual(len(lifecycle.auto_cancel_stale_pending()), 1)


class PaymentResultTests(TestCase):
    def setUp(self):
        self.customer = make_user("cust")
        self.phone = make_product("Phone", stock=5)

    def test_paid_is_sticky(self):
        order = make_order(self.customer, [(self.phone, 1)], payment_method="stripe")
        self.assertEqual(lifecycle.record_payment_result(order.pk, True).payment_status, PaymentStatus.PAID)

        result = lifecycle.record_payment_result(order.pk, False)

        self.assertEqual(result.payment_status, PaymentStatus.PAID)
        self.assertEqual(result.status, Status.PENDING)

    def test_failure_marks_failed(self):
        order = make_order(self.customer, [(self.phone, 1)], payment_method="stripe")
        self.assertEqual(lifecycle.record_payment_result(order.pk, False).payment_status, PaymentStatus.FAILED)

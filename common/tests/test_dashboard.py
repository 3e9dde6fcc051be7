from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from orders.models import Order
from orders.tests.utils import auth, make_admin, make_order, make_product, make_user


class DashboardAPITests(APITestCase):
    def setUp(self):
        self.url = reverse("dashboard")
        self.admin = make_admin()
        self.cust = make_user("cust")
        phone = make_product("Phone", price="100000.00")

        make_order(self.cust, [(phone, 1)])  # cod, approvable
        make_order(self.cust, [(phone, 1)], payment_method="momo")  # unpaid prepaid
        make_order(self.cust, [(phone, 2)], payment_method="stripe", payment_status=Order.PaymentStatus.PAID)
        make_order(self.cust, [(phone, 3)], status=Order.Status.DELIVERED, payment_status=Order.PaymentStatus.PAID)
        make_order(self.cust, [(phone, 1)], status=Order.Status.CANCELLED)
        make_order(
            self.cust, [(phone, 4)], payment_method="stripe",
            status=Order.Status.CANCELLED, payment_status=Order.PaymentStatus.PAID,
        )

    def test_admin_overview(self):
        auth(self.client, self.admin)
        res = self.client.get(self.url)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(
            res.data["orders_by_status"],
            {"PENDING": 3, "PROCESSING": 0, "SHIPPED": 0, "DELIVERED": 1, "CANCELLED": 2},
        )
        self.assertEqual(res.data["revenue"], "500000.00")
        self.assertEqual(res.data["pending_approvals"], 2)

    def test_customer_forbidden(self):
        auth(self.client, self.cust)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)

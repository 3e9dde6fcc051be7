from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from notifications.models import Notification
from orders.tests.utils import auth, make_order, make_product, make_user


class NotificationApiTests(APITestCase):
    def setUp(self):
        self.cust = make_user("cust")
        self.other = make_user("other")
        order = make_order(self.cust, [(make_product("Phone"), 1)])
        self.read = Notification.objects.create(
            user=self.cust, type="ORDER_CREATED", title="a", message="a", order=order, is_read=True
        )
        self.unread = Notification.objects.create(
            user=self.cust, type="ORDER_APPROVED", title="b", message="b", order=order
        )
        self.foreign = Notification.objects.create(user=self.other, type="ORDER_APPROVED", title="c", message="c")
        self.list_url = reverse("notification-list")

    def test_list_own_with_unread_count(self):
        auth(self.client, self.cust)
        res = self.client.get(self.list_url)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["unread_count"], 1)
        self.assertEqual({n["id"] for n in res.data["notifications"]}, {self.read.id, self.unread.id})
        self.assertIsNotNone(res.data["notifications"][0]["order_number"])

    def test_unread_only_and_limit(self):
        auth(self.client, self.cust)
        res = self.client.get(self.list_url, {"unread_only": "true"})
        self.assertEqual([n["id"] for n in res.data["notifications"]], [self.unread.id])
        res = self.client.get(self.list_url, {"limit": 1})
        self.assertEqual(len(res.data["notifications"]), 1)
        self.assertEqual(self.client.get(self.list_url, {"limit": "x"}).status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_read(self):
        auth(self.client, self.cust)
        res = self.client.patch(reverse("notification-detail", args=[self.unread.id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["is_read"])

    def test_mark_foreign_forbidden(self):
        auth(self.client, self.cust)
        res = self.client.patch(reverse("notification-detail", args=[self.foreign.id]))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_read_all(self):
        auth(self.client, self.cust)
        res = self.client.post(reverse("notification-read-all"))
        self.assertEqual(res.data["updated"], 1)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_delete_clears_only_own(self):
        auth(self.client, self.cust)
        res = self.client.delete(self.list_url)
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(list(Notification.objects.values_list("id", flat=True)), [self.foreign.id])

    def test_unauthenticated_401(self):
        self.assertEqual(self.client.get(self.list_url).status_code, status.HTTP_401_UNAUTHORIZED)

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from orders.models import Order
from orders.tests.utils import auth, make_admin, make_product, make_promotion, make_user
from promotions.models import Promotion, PromotionTarget


class PromotionValidateTests(APITestCase):
    def setUp(self):
        self.url = reverse("promotion-validate")

    def test_percentage_quote_200(self):
        make_promotion("P10", value="10", max_discount="50000")
        res = self.client.post(self.url, {"code": "p10", "subtotal": "1000000"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["discount_amount"], "50000.00")
        self.assertEqual(res.data["shipping_discount"], "0.00")
        self.assertFalse(res.data["applied_to_shipping"])
        self.assertEqual(res.data["promotion"]["code"], "P10")
        for key in ["id", "name", "scope", "type", "value", "max_discount"]:
            self.assertIn(key, res.data["promotion"])

    def test_freeship_with_fee(self):
        make_promotion("SHIP", type=Promotion.Type.FREESHIP, value="0")
        res = self.client.post(
            self.url, {"code": "SHIP", "subtotal": "100000", "shipping_fee": "25000"}, format="json"
        )
        self.assertTrue(res.data["applied_to_shipping"])
        self.assertEqual(res.data["shipping_discount"], "25000.00")

    def test_specific_items_with_cart(self):
        mug = make_product("Mug", price="100000.00")
        promo = make_promotion("MUG", scope=Promotion.Scope.SPECIFIC_ITEMS, type=Promotion.Type.FIXED, value="30000")
        PromotionTarget.objects.create(promotion=promo, product=mug)
        cart = [{"product_id": mug.id, "quantity": 2, "price": "100000"}]
        res = self.client.post(self.url, {"code": "MUG", "subtotal": "200000", "cart_items": cart}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["discount_amount"], "30000.00")

    def test_specific_items_without_cart_400(self):
        make_promotion("MUG", scope=Promotion.Scope.SPECIFIC_ITEMS)
        res = self.client.post(self.url, {"code": "MUG", "subtotal": "200000"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["code"], "invalid_cart")

    def test_failure_codes(self):
        make_promotion("MIN", min_order_value="500000")
        make_promotion("OFF", is_active=False)
        cases = [
            ("NOPE", status.HTTP_404_NOT_FOUND, "promotion_not_found"),
            ("MIN", status.HTTP_400_BAD_REQUEST, "promotion_below_minimum"),
            ("OFF", status.HTTP_400_BAD_REQUEST, "promotion_inactive"),
        ]
        for code, http_status, error_code in cases:
            res = self.client.post(self.url, {"code": code, "subtotal": "100000"}, format="json")
            self.assertEqual(res.status_code, http_status, code)
            self.assertEqual(res.data["code"], error_code)

    def test_per_user_limit_uses_authenticated_user(self):
        user = make_user("cust")
        make_promotion("ONCE", per_user_limit=1)
        Order.objects.create(user=user, subtotal="100", total="100", promotion_code="ONCE")

        anon = self.client.post(self.url, {"code": "ONCE", "subtotal": "100000"}, format="json")
        self.assertEqual(anon.status_code, status.HTTP_200_OK)

        auth(self.client, user)
        res = self.client.post(self.url, {"code": "ONCE", "subtotal": "100000"}, format="json")
        self.assertEqual(res.data["code"], "promotion_per_user_limit_reached")

    def test_invalid_subtotal_400(self):
        res = self.client.post(self.url, {"code": "X", "subtotal": "0"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("subtotal", res.data)


class PromotionAdminTests(APITestCase):
    def setUp(self):
        self.list_url = reverse("promotion-list")
        self.admin = make_admin()
        self.cust = make_user("cust")
        self.mug = make_product("Mug")
        now = timezone.now()
        self.window = {
            "start_date": now.isoformat(),
            "end_date": (now + timedelta(days=7)).isoformat(),
        }

    def test_admin_creates_item_promotion_with_targets(self):
        auth(self.client, self.admin)
        payload = {
            "code": "mugs20",
            "name": "Mug week",
            "scope": "SPECIFIC_ITEMS",
            "type": "PERCENTAGE",
            "value": "20",
            "targets": [{"product": self.mug.id, "specific_value": "25"}],
            **self.window,
        }
        res = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["code"], "MUGS20")
        self.assertEqual(res.data["used_count"], 0)
        self.assertEqual(len(res.data["targets"]), 1)
        self.assertEqual(res.data["targets"][0]["specific_value"], "25.00")

    def test_code_unique_case_insensitive(self):
        make_promotion("SALE")
        auth(self.client, self.admin)
        payload = {"code": "sale", "type": "FIXED", "value": "10", **self.window}
        res = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("code", res.data)

    def test_end_before_start_400(self):
        auth(self.client, self.admin)
        payload = {
            "code": "BACK",
            "type": "FIXED",
            "value": "10",
            "start_date": self.window["end_date"],
            "end_date": self.window["start_date"],
        }
        res = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("end_date", res.data)

    def test_percentage_above_100_400(self):
        auth(self.client, self.admin)
        payload = {"code": "TOOMUCH", "type": "PERCENTAGE", "value": "150", **self.window}
        res = self.client.post(self.list_url, payload, format="json")
        self.assertIn("value", res.data)

    def test_target_percentage_above_100_400(self):
        auth(self.client, self.admin)
        payload = {
            "code": "MUGS250",
            "scope": "SPECIFIC_ITEMS",
            "type": "PERCENTAGE",
            "value": "10",
            "targets": [{"product": self.mug.id, "specific_value": "250"}],
            **self.window,
        }
        res = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("targets", res.data)
        self.assertFalse(Promotion.objects.filter(code="MUGS250").exists())

    def test_item_promotion_needs_targets(self):
        auth(self.client, self.admin)
        payload = {"code": "EMPTY", "scope": "SPECIFIC_ITEMS", "type": "FIXED", "value": "10", **self.window}
        res = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("targets", res.data)

    def test_patch_replaces_targets(self):
        promo = make_promotion("ITEMS", scope=Promotion.Scope.SPECIFIC_ITEMS)
        PromotionTarget.objects.create(promotion=promo, product=self.mug)
        cup = make_product("Cup")
        auth(self.client, self.admin)
        res = self.client.patch(
            reverse("promotion-detail", args=[promo.id]),
            {"targets": [{"product": cup.id}], "is_active": False},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(res.data["is_active"])
        self.assertEqual([t["product"] for t in res.data["targets"]], [cup.id])
        self.assertEqual(promo.targets.count(), 1)

    def test_used_count_is_read_only(self):
        promo = make_promotion("SALE", used_count=3)
        auth(self.client, self.admin)
        self.client.patch(reverse("promotion-detail", args=[promo.id]), {"used_count": 0}, format="json")
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 3)

    def test_list_and_delete(self):
        promo = make_promotion("SALE")
        make_promotion("OLD", is_active=False)
        auth(self.client, self.admin)
        res = self.client.get(self.list_url, {"is_active": "true"})
        self.assertEqual([p["code"] for p in res.data], ["SALE"])
        res = self.client.delete(reverse("promotion-detail", args=[promo.id]))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Promotion.objects.filter(pk=promo.pk).exists())

    def test_customer_forbidden(self):
        auth(self.client, self.cust)
        self.assertEqual(self.client.get(self.list_url).status_code, status.HTTP_403_FORBIDDEN)

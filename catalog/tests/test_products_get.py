from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from catalog.models import Product, ProductVariant
from profiles.models import Profile

User = get_user_model()


def add_product(title, price, stock=5, **extra):
    return Product.objects.create(
        title=title, slug=title.lower().replace(" ", "-"), price=price, stock=stock, **extra
    )


class ProductListTests(APITestCase):
    def setUp(self):
        self.url = reverse("product-list")
        self.phone = add_product("Phone X", "12000000.00", stock=3)
        self.case = add_product("Phone Case", "150000.00", stock=0)
        self.hidden = add_product("Old Model", "5000000.00", is_active=False)
        self.shirt = add_product("Shirt", "250000.00", stock=0, has_variants=True)
        ProductVariant.objects.create(product=self.shirt, sku="SHIRT-M", options={"size": "M"}, stock=4)

    def test_list_is_public_and_paginated(self):
        res = self.client.get(self.url)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 3)
        ids = {p["id"] for p in res.data["results"]}
        self.assertNotIn(self.hidden.id, ids)

    def test_in_stock_filter_counts_variant_stock(self):
        res = self.client.get(self.url, {"in_stock": "true"})
        ids = {p["id"] for p in res.data["results"]}
        self.assertEqual(ids, {self.phone.id, self.shirt.id})

    def test_available_stock_sums_variants(self):
        res = self.client.get(self.url, {"search": "shirt"})
        self.assertEqual(res.data["results"][0]["available_stock"], 4)

    def test_price_filters_and_ordering(self):
        res = self.client.get(self.url, {"max_price": "1000000", "ordering": "price"})
        titles = [p["title"] for p in res.data["results"]]
        self.assertEqual(titles, ["Phone Case", "Shirt"])

    def test_bad_filter_values_400(self):
        self.assertEqual(self.client.get(self.url, {"min_price": "abc"}).status_code, 400)
        self.assertEqual(self.client.get(self.url, {"ordering": "title"}).status_code, 400)

    def test_non_finite_price_filters_400(self):
        for raw in ("NaN", "Infinity", "-inf"):
            res = self.client.get(self.url, {"min_price": raw})
            self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST, raw)
            self.assertIn("min_price", res.data)

    def test_admin_sees_inactive_products(self):
        admin = User.objects.create_user("admin", "admin@shop.vn", "pass1234")
        Profile.objects.create(user=admin, role="admin")
        token = Token.objects.create(user=admin)
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")
        res = self.client.get(self.url)
        self.assertEqual(res.data["count"], 4)

    def test_detail_hides_inactive_for_public(self):
        res = self.client.get(reverse("product-detail", args=[self.hidden.id]))
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        res = self.client.get(reverse("product-detail", args=[self.shirt.id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["variants"][0]["sku"], "SHIRT-M")

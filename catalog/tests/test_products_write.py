from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from catalog.models import Product, ProductVariant
from orders.models import Order, OrderItem
from profiles.models import Profile

User = get_user_model()


def create_user_with_role(username, role):
    user = User.objects.create_user(username, f"{username}@shop.vn", "pass1234")
    Profile.objects.create(user=user, role=role)
    return user, Token.objects.create(user=user)


class ProductWriteTests(APITestCase):
    def setUp(self):
        self.admin, self.admin_token = create_user_with_role("admin", "admin")
        self.cust, self.cust_token = create_user_with_role("cust", "customer")
        self.url = reverse("product-list")

    def auth(self, token):
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")

    def test_admin_creates_product_with_variants(self):
        self.auth(self.admin_token)
        payload = {
            "title": "Tai nghe Bluetooth",
            "price": "990000.00",
            "variants": [
                {"sku": "TN-BLACK", "options": {"color": "black"}, "stock": 5},
                {"sku": "TN-WHITE", "options": {"color": "white"}, "price": "1050000.00", "stock": 2},
            ],
        }
        res = self.client.post(self.url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertTrue(res.data["has_variants"])
        self.assertEqual(res.data["slug"], "tai-nghe-bluetooth")
        product = Product.objects.get(id=res.data["id"])
        self.assertEqual(product.variants.count(), 2)
        white = ProductVariant.objects.get(sku="TN-WHITE")
        self.assertEqual(str(white.effective_price), "1050000.00")

    def test_duplicate_variant_sku_400(self):
        self.auth(self.admin_token)
        payload = {
            "title": "Dup",
            "price": "10.00",
            "variants": [{"sku": "A", "stock": 1}, {"sku": "A", "stock": 1}],
        }
        res = self.client.post(self.url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Product.objects.filter(title="Dup").exists())

    def test_discount_above_price_400(self):
        self.auth(self.admin_token)
        res = self.client.post(self.url, {"title": "X", "price": "10.00", "discounted_price": "11.00"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_cannot_create_403(self):
        self.auth(self.cust_token)
        res = self.client.post(self.url, {"title": "X", "price": "10.00"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_unauthenticated_create_401(self):
        res = self.client.post(self.url, {"title": "X", "price": "10.00"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_patch_updates_variant_stock_by_sku(self):
        product = Product.objects.create(title="Shirt", slug="shirt", price="200.00", has_variants=True)
        ProductVariant.objects.create(product=product, sku="S-M", stock=1)
        self.auth(self.admin_token)
        url = reverse("product-detail", args=[product.id])
        res = self.client.patch(url, {"title": "Shirt v2", "variants": [{"sku": "S-M", "stock": 9}]}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["title"], "Shirt v2")
        self.assertEqual(ProductVariant.objects.get(sku="S-M").stock, 9)

    def test_patch_unknown_sku_400(self):
        product = Product.objects.create(title="Shirt", slug="shirt", price="200.00")
        self.auth(self.admin_token)
        url = reverse("product-detail", args=[product.id])
        res = self.client.patch(url, {"variants": [{"sku": "NOPE", "stock": 1}]}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_product_referenced_by_order_400(self):
        product = Product.objects.create(title="Lamp", slug="lamp", price="50.00", stock=3)
        order = Order.objects.create(order_number="ORD-1-TEST", payment_method="cod", subtotal="50.00", total="50.00")
        OrderItem.objects.create(order=order, product=product, quantity=1, price="50.00")
        self.auth(self.admin_token)
        res = self.client.delete(reverse("product-detail", args=[product.id]))
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Product.objects.filter(id=product.id).exists())

    def test_delete_unused_product_204(self):
        product = Product.objects.create(title="Lamp", slug="lamp", price="50.00")
        self.auth(self.admin_token)
        res = self.client.delete(reverse("product-detail", args=[product.id]))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)

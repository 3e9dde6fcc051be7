from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from rest_framework.authtoken.models import Token

from catalog.models import Product, ProductVariant
from profiles.models import Profile
from promotions.models import Promotion

DEMO_USERS = {
    "customer": {"username": "demo_customer", "password": "demo-pass-1", "email": "customer@example.com"},
    "admin": {"username": "demo_admin", "password": "demo-pass-2", "email": "admin@example.com"},
}

DEMO_PRODUCTS = [
    {"title": "Ceramic Mug", "slug": "ceramic-mug", "price": "120000.00", "stock": 40},
    {"title": "Linen Tote Bag", "slug": "linen-tote-bag", "price": "250000.00", "discounted_price": "199000.00", "stock": 15},
    {
        "title": "Cotton T-Shirt",
        "slug": "cotton-t-shirt",
        "price": "300000.00",
        "variants": [
            {"sku": "TSHIRT-WHITE-M", "options": {"color": "white", "size": "M"}, "stock": 10},
            {"sku": "TSHIRT-BLACK-L", "options": {"color": "black", "size": "L"}, "price": "320000.00", "stock": 5},
        ],
    },
]


class Command(BaseCommand):
    help = "Create or update demo users, products and a welcome promotion."

    def handle(self, *args, **options):
        with transaction.atomic():
            self._seed_users()
            self._seed_products()
            self._seed_promotion()
        self.stdout.write(self.style.SUCCESS("Demo store ready."))

    def _seed_users(self):
        User = get_user_model()
        for role, cfg in DEMO_USERS.items():
            u, created = User.objects.get_or_create(username=cfg["username"], defaults={"email": cfg["email"]})
            if created:
                self.stdout.write(self.style.SUCCESS(f"Created user '{u.username}'"))
            else:
                self.stdout.write(f"User '{u.username}' already exists")

            u.set_password(cfg["password"])
            u.save(update_fields=["password"])

            prof, _ = Profile.objects.get_or_create(user=u, defaults={"role": role})
            if prof.role != role:
                prof.role = role
                prof.save(update_fields=["role"])

            token, _ = Token.objects.get_or_create(user=u)
            self.stdout.write(f"  -> role={role}, token={token.key}")

    def _seed_products(self):
        for spec in DEMO_PRODUCTS:
            data = dict(spec)
            variants = data.pop("variants", [])
            product, created = Product.objects.update_or_create(
                slug=data.pop("slug"), defaults={**data, "has_variants": bool(variants)}
            )
            for v in variants:
                v = dict(v)
                ProductVariant.objects.update_or_create(sku=v.pop("sku"), defaults={**v, "product": product})
            self.stdout.write(f"{'Created' if created else 'Updated'} product '{product.title}'")

    def _seed_promotion(self):
        now = timezone.now()
        promo, created = Promotion.objects.update_or_create(
            code="WELCOME10",
            defaults={
                "name": "Welcome discount",
                "scope": Promotion.Scope.GLOBAL_ORDER,
                "type": Promotion.Type.PERCENTAGE,
                "value": "10.00",
                "max_discount": "50000.00",
                "start_date": now,
                "end_date": now + timedelta(days=30),
                "per_user_limit": 1,
                "is_active": True,
            },
        )
        self.stdout.write(f"{'Created' if created else 'Updated'} promotion '{promo.code}'")

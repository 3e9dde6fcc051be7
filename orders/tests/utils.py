"""Shared builders for order, review and dashboard tests."""

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.authtoken.models import Token

from catalog.models import Product, ProductVariant
from orders.models import Order, OrderItem, Shipping
from profiles.models import Profile
from promotions.models import Promotion

User = get_user_model()

SHIPPING = {
    "full_name": "Nguyen Van A",
    "email": "a@example.com",
    "phone": "0901234567",
    "address": "1 Le Duan",
    "city": "Ho Chi Minh City",
    "country": "VN",
}


def make_user(username, role=Profile.Role.CUSTOMER):
    user = User.objects.create_user(username=username, email=f"{username}@example.com", password="Pass123!")
    Profile.objects.create(user=user, role=role)
    return user


def make_admin(username="admin"):
    return make_user(username, role=Profile.Role.ADMIN)


def auth(client, user):
    token, _ = Token.objects.get_or_create(user=user)
    client.credentials(HTTP_AUTHORIZATION=f"Token {token.key}")


def make_product(title="Phone", price="100000.00", stock=10, slug=None, **extra):
    return Product.objects.create(
        title=title,
        slug=slug or title.lower().replace(" ", "-"),
        price=Decimal(price),
        stock=stock,
        **extra,
    )


def make_variant(product, sku, stock=5, price=None, **extra):
    if not product.has_variants:
        product.has_variants = True
        product.save(update_fields=["has_variants"])
    return ProductVariant.objects.create(
        product=product,
        sku=sku,
        stock=stock,
        price=Decimal(price) if price is not None else None,
        **extra,
    )


def make_order(user=None, lines=(), payment_method="cod", promotion_code=None, **fields):
    """Create an order from (product, quantity) or (product, quantity, variant) tuples."""
    subtotal = Decimal("0")
    for line in lines:
        product, quantity = line[0], line[1]
        variant = line[2] if len(line) > 2 else None
        unit = variant.unit_price if variant else product.price
        subtotal += unit * quantity
    order = Order.objects.create(
        user=user,
        payment_method=payment_method,
        subtotal=subtotal,
        total=fields.pop("total", subtotal),
        promotion_code=promotion_code,
        **fields,
    )
    for line in lines:
        product, quantity = line[0], line[1]
        variant = line[2] if len(line) > 2 else None
        OrderItem.objects.create(
            order=order,
            product=product,
            variant=variant,
            quantity=quantity,
            price=variant.unit_price if variant else product.price,
        )
    Shipping.objects.create(order=order, **SHIPPING)
    return order


def age_order(order, minutes):
    Order.objects.filter(pk=order.pk).update(created_at=timezone.now() - timedelta(minutes=minutes))


def make_promotion(code="SALE10", type=Promotion.Type.PERCENTAGE, value="10.00", **fields):
    now = timezone.now()
    defaults = {
        "scope": Promotion.Scope.GLOBAL_ORDER,
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=1),
    }
    defaults.update(fields)
    return Promotion.objects.create(code=code, type=type, value=Decimal(value), **defaults)

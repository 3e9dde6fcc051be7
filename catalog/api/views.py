"""Catalog API views.

List and create products on the same endpoint with pagination, searching,
filtering and ordering. Retrieve, patch and delete are provided on the product
detail route. Writes are limited to store admins.
"""

from decimal import Decimal, InvalidOperation

from django.db.models import ProtectedError, Q
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from profiles.api.permissions import IsStoreAdmin
from profiles.roles import is_admin_user
from ..models import Product
from .serializers import ProductSerializer, ProductListSerializer, ProductPatchSerializer


class ProductsPagination(PageNumberPagination):
    """Default pagination for products with an adjustable page size via query param."""

    page_size = 12
    page_size_query_param = "page_size"
    max_page_size = 100


# ----------------------------- helpers (module-level) -----------------------------

def _parse_decimal(params, name):
    raw = params.get(name)
    if raw is None:
        return None
    try:
        value = Decimal(raw)
    except (InvalidOperation, TypeError):
        raise ValidationError({name: "Must be a number."})
    if not value.is_finite():
        raise ValidationError({name: "Must be a number."})
    return value


def _apply_filters(qs, params):
    min_price = _parse_decimal(params, "min_price")
    if min_price is not None:
        qs = qs.filter(price__gte=min_price)

    max_price = _parse_decimal(params, "max_price")
    if max_price is not None:
        qs = qs.filter(price__lte=max_price)

    if params.get("in_stock") in ("1", "true"):
        qs = qs.filter(Q(has_variants=False, stock__gt=0) | Q(has_variants=True, variants__stock__gt=0)).distinct()

    search = params.get("search")
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))
    return qs


def _apply_ordering(qs, ordering):
    if not ordering:
        return qs.order_by("-created_at", "-id")
    allowed = {"created_at", "-created_at", "price", "-price"}
    if ordering not in allowed:
        raise ValidationError({"ordering": "Allowed values: created_at, -created_at, price, -price."})
    return qs.order_by(ordering, "-id")


# --------------------------------------- views ---------------------------------------

class ProductListCreateAPIView(generics.ListCreateAPIView):
    """GET: paginated public list; inactive products only for admins. POST: admin create."""

    queryset = Product.objects.all().prefetch_related("variants")
    pagination_class = ProductsPagination

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated(), IsStoreAdmin()]
        return [AllowAny()]

    def get_serializer_class(self):
        return ProductListSerializer if self.request.method == "GET" else ProductSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        if not is_admin_user(self.request.user):
            qs = qs.filter(is_active=True)
        qs = _apply_filters(qs, self.request.query_params)
        return _apply_ordering(qs, self.request.query_params.get("ordering"))


class ProductRetrieveUpdateDestroyAPIView(generics.RetrieveUpdateDestroyAPIView):
    """GET: public product detail. PATCH/DELETE: admin only."""

    queryset = Product.objects.all().prefetch_related("variants")

    def get_permissions(self):
        if self.request.method in ["PATCH", "PUT", "DELETE"]:
            return [IsAuthenticated(), IsStoreAdmin()]
        return [AllowAny()]

    def get_queryset(self):
        qs = super().get_queryset()
        if self.request.method == "GET" and not is_admin_user(self.request.user):
            qs = qs.filter(is_active=True)
        return qs

    def get_serializer_class(self):
        if self.request.method in ["PATCH", "PUT"]:
            return ProductPatchSerializer
        return ProductSerializer

    def update(self, request, *args, **kwargs):
        """Perform a partial update and return the full product payload."""
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        instance.refresh_from_db()
        return Response(ProductSerializer(instance).data, status=status.HTTP_200_OK)

    def destroy(self, request, *args, **kwargs):
        """Delete the product unless orders reference it; then deactivate instead."""
        instance = self.get_object()
        try:
            self.perform_destroy(instance)
        except ProtectedError:
            return Response(
                {"detail": "Product is referenced by orders; deactivate it instead.", "code": "product_in_use"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

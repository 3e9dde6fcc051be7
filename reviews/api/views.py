"""Reviews API views.

List reviews publicly and create them for delivered order items on the same
endpoint. Supports filtering by product_id and reviewer_id and ordering by
updated_at or rating. Patch/delete a single review with owner-only access.
The reviewable-items endpoint lists what the caller may still review for a
product.
"""

from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from catalog.models import Product
from orders.models import Order, OrderItem
from reviews.models import Review
from .permissions import IsReviewOwner
from .serializers import (
    ReviewableItemSerializer,
    ReviewCreateSerializer,
    ReviewOutputSerializer,
    ReviewPatchSerializer,
)


# ----------------------------- helpers (module-level) -----------------------------

def _apply_filters_and_ordering(qs, params):
    """Filter by ids and apply ordering; raises ValidationError on bad input."""
    for param, field in (("product_id", "product_id"), ("reviewer_id", "reviewer_id")):
        v = params.get(param)
        if v:
            if not v.isdigit():
                raise ValidationError({param: "Must be an integer."})
            qs = qs.filter(**{field: int(v)})

    ordering = params.get("ordering")
    if ordering:
        allowed = {"updated_at", "-updated_at", "rating", "-rating"}
        if ordering not in allowed:
            raise ValidationError({"ordering": "Allowed values: updated_at, -updated_at, rating, -rating."})
        return qs.order_by(ordering, "-id")
    return qs.order_by("-updated_at", "-id")


def _validate_patch_fields(data: dict):
    """Allow only rating/content; return Response(400) if extra fields present."""
    extra = set(data.keys()) - {"rating", "content"}
    if extra:
        return Response(
            {
                "detail": f"Only 'rating' and 'content' may be updated. Invalid: {', '.join(sorted(extra))}.",
                "code": "invalid",
            },
            status=status.HTTP_400_BAD_REQUEST,
        )
    return None


# --------------------------------------- views ---------------------------------------

class ReviewListCreateAPIView(generics.ListCreateAPIView):
    """GET: public list (filter/order). POST: review a delivered order item."""

    queryset = Review.objects.all().select_related("reviewer")

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated()]
        return [AllowAny()]

    def get_serializer_class(self):
        return ReviewOutputSerializer if self.request.method == "GET" else ReviewCreateSerializer

    def get_queryset(self):
        return _apply_filters_and_ordering(super().get_queryset(), self.request.query_params)

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        review = ser.save()
        return Response(ReviewOutputSerializer(review).data, status=status.HTTP_201_CREATED)


class ReviewDetailUpdateDeleteAPIView(generics.RetrieveUpdateDestroyAPIView):
    """GET: public. PATCH: owner-only update of rating/content. DELETE: owner-only."""

    queryset = Review.objects.all().select_related("reviewer")
    http_method_names = ["get", "patch", "delete", "options", "head"]

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return [IsAuthenticated(), IsReviewOwner()]

    def get_serializer_class(self):
        return ReviewPatchSerializer if self.request.method == "PATCH" else ReviewOutputSerializer

    def partial_update(self, request, *args, **kwargs):
        """Allow updating only 'rating' and 'content'; return full review."""
        bad = _validate_patch_fields(request.data)
        if bad is not None:
            return bad
        instance = self.get_object()
        ser = self.get_serializer(instance, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        self.perform_update(ser)
        return Response(ReviewOutputSerializer(instance).data, status=status.HTTP_200_OK)


class ReviewableItemsAPIView(generics.ListAPIView):
    """GET /api/products/{id}/reviewable-items/"""

    serializer_class = ReviewableItemSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None

    def get_queryset(self):
        product = get_object_or_404(Product, pk=self.kwargs["pk"])
        return (
            OrderItem.objects.filter(
                product=product,
                order__user=self.request.user,
                order__status=Order.Status.DELIVERED,
                review__isnull=True,
            )
            .select_related("order", "variant")
            .order_by("-order__updated_at", "-id")
        )

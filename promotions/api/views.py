"""Promotions API views.

`POST /api/promotions/validate/` quotes a code for a cart without consuming
it. The remaining endpoints are the admin console for promotions.
"""

import logging

from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from profiles.api.permissions import IsStoreAdmin
from ..evaluator import shipping_discount_for, validate_and_price
from ..models import Promotion
from .serializers import PromotionSerializer, PromotionSummarySerializer, PromotionValidateSerializer

logger = logging.getLogger(__name__)


class PromotionValidateAPIView(APIView):
    """Quote a promotion code; uses the authenticated user for per-user limits when present."""

    permission_classes = [AllowAny]

    def post(self, request):
        serializer = PromotionValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        quote = validate_and_price(
            data["code"],
            data["subtotal"],
            cart_items=serializer.cart_lines(),
            user=request.user if request.user.is_authenticated else None,
        )
        shipping_discount = quote.shipping_discount
        if quote.applied_to_shipping and "shipping_fee" in data:
            shipping_discount = shipping_discount_for(quote.promotion, data["shipping_fee"])

        logger.debug("Promotion %s quoted: discount %s", quote.promotion.code, quote.discount_amount)
        return Response(
            {
                "promotion": PromotionSummarySerializer(quote.promotion).data,
                "discount_amount": str(quote.discount_amount),
                "shipping_discount": str(shipping_discount),
                "applied_to_shipping": quote.applied_to_shipping,
            },
            status=status.HTTP_200_OK,
        )


class PromotionListCreateAPIView(generics.ListCreateAPIView):
    """GET: all promotions (filter `is_active`). POST: create with targets."""

    serializer_class = PromotionSerializer
    permission_classes = [IsAuthenticated, IsStoreAdmin]

    def get_queryset(self):
        qs = Promotion.objects.all().prefetch_related("targets")
        is_active = self.request.query_params.get("is_active")
        if is_active in ("1", "true"):
            qs = qs.filter(is_active=True)
        elif is_active in ("0", "false"):
            qs = qs.filter(is_active=False)
        return qs


class PromotionDetailAPIView(generics.RetrieveUpdateDestroyAPIView):
    """GET / PATCH / DELETE a promotion. Orders keep their code after deletion."""

    queryset = Promotion.objects.all().prefetch_related("targets")
    serializer_class = PromotionSerializer
    permission_classes = [IsAuthenticated, IsStoreAdmin]
    http_method_names = ["get", "patch", "delete", "options", "head"]

    def perform_destroy(self, instance):
        logger.info("Promotion %s deleted", instance.code)
        instance.delete()

from decimal import Decimal

from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from catalog.models import Product
from orders.models import COD, Order
from profiles.api.permissions import IsStoreAdmin
from promotions.models import Promotion
from reviews.models import Review


class BaseInfoAPIView(APIView):
    """
    GET /api/base-info/

    Returns storefront-wide aggregate statistics:
    - product_count: number of active products
    - review_count: total number of reviews
    - average_rating: average rating across all reviews (rounded to 1 decimal)
    - active_promotion_count: active promotions whose validity window includes now

    Authentication: none
    Permissions: AllowAny
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        """
        Compute and return the aggregate counters. If there are no reviews,
        average_rating is 0.0 (not null).
        """
        now = timezone.now()
        avg = Review.objects.aggregate(avg=Avg("rating"))["avg"] or 0.0
        data = {
            "product_count": Product.objects.filter(is_active=True).count(),
            "review_count": Review.objects.count(),
            "average_rating": round(float(avg), 1),
            "active_promotion_count": Promotion.objects.filter(
                is_active=True, start_date__lte=now, end_date__gte=now
            ).count(),
        }
        return Response(data, status=status.HTTP_200_OK)


class DashboardAPIView(APIView):
    """
    GET /api/dashboard/

    Admin overview of order processing:
    - orders_by_status: count per lifecycle status (every status present)
    - revenue: sum of totals of paid orders that were not cancelled
    - pending_approvals: pending orders an admin can approve now
      (cash on delivery, or prepaid and already paid)
    """

    permission_classes = [IsAuthenticated, IsStoreAdmin]

    def get(self, request):
        counts = {value: 0 for value in Order.Status.values}
        for row in Order.objects.values("status").annotate(n=Count("id")):
            counts[row["status"]] = row["n"]

        revenue = (
            Order.objects.filter(payment_status=Order.PaymentStatus.PAID)
            .exclude(status=Order.Status.CANCELLED)
            .aggregate(s=Sum("total"))["s"]
        )
        pending_approvals = (
            Order.objects.filter(status=Order.Status.PENDING)
            .exclude(payment_status=Order.PaymentStatus.FAILED)
            .filter(Q(payment_method__iexact=COD) | Q(payment_status=Order.PaymentStatus.PAID))
            .count()
        )
        data = {
            "orders_by_status": counts,
            "revenue": str((revenue or Decimal("0")).quantize(Decimal("0.01"))),
            "pending_approvals": pending_approvals,
        }
        return Response(data, status=status.HTTP_200_OK)

"""Orders API views.

List and create orders on the same endpoint: customers see their own orders,
store admins see all of them, and anyone (guests included) may check out.
The detail route reads an order and lets admins move it along the lifecycle.
Approve, reject, cancel, payment and auto-cancel are action endpoints that
delegate to `orders.lifecycle`.
"""

from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from profiles.api.permissions import IsStoreAdmin
from profiles.roles import is_admin_user
from .. import lifecycle
from ..models import Order
from .permissions import IsOrderOwnerOrAdmin
from .serializers import (
    OrderCreateSerializer,
    OrderOutputSerializer,
    OrderRejectSerializer,
    OrderStatusPatchSerializer,
    PaymentResultSerializer,
)


# ----------------------------- helpers (module-level) -----------------------------

def _orders_with_details():
    return Order.objects.select_related("shipping").prefetch_related("items__product", "items__variant")


def _order_response(order, status_code=status.HTTP_200_OK):
    """Reload the order with its relations and serialize it."""
    fresh = _orders_with_details().get(pk=order.pk)
    return Response(OrderOutputSerializer(fresh).data, status=status_code)


def _validate_patch_only_status(data: dict):
    """Allow only 'status' in PATCH; return a 400 response otherwise."""
    extra = set(data.keys()) - {"status"}
    if extra:
        return Response(
            {"detail": f"Only 'status' may be updated. Invalid fields: {', '.join(sorted(extra))}.", "code": "invalid"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return None


def _parse_timeout(params):
    raw = params.get("timeout")
    if raw in (None, ""):
        return lifecycle.default_timeout_minutes()
    try:
        timeout = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({"timeout": "Must be an integer number of minutes."})
    if timeout < 1:
        raise ValidationError({"timeout": "Must be at least 1 minute."})
    return timeout


# --------------------------------------- views ---------------------------------------

class OrderListCreateAPIView(generics.ListCreateAPIView):
    """GET: orders visible to the caller, optionally filtered by `status`.
    POST: checkout, open to guests.
    """

    queryset = Order.objects.all()

    def get_permissions(self):
        if self.request.method == "POST":
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        return OrderOutputSerializer if self.request.method == "GET" else OrderCreateSerializer

    def get_queryset(self):
        qs = _orders_with_details().exclude(payment_status=Order.PaymentStatus.FAILED)
        user = self.request.user
        if not is_admin_user(user):
            qs = qs.filter(user=user)
        status_filter = self.request.query_params.get("status")
        if status_filter:
            if status_filter not in Order.Status.values:
                raise ValidationError({"status": f"Allowed values: {', '.join(Order.Status.values)}."})
            qs = qs.filter(status=status_filter)
        return qs.order_by("-created_at", "-id")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = serializer.save()
        return _order_response(order, status.HTTP_201_CREATED)


class OrderDetailAPIView(generics.RetrieveUpdateAPIView):
    """GET: owner or admin. PATCH: admin status transition, body `{"status": ...}` only."""

    queryset = Order.objects.all()
    http_method_names = ["get", "patch", "options", "head"]

    def get_permissions(self):
        if self.request.method == "PATCH":
            return [IsAuthenticated(), IsStoreAdmin()]
        return [IsAuthenticated(), IsOrderOwnerOrAdmin()]

    def get_queryset(self):
        return _orders_with_details()

    def get_serializer_class(self):
        return OrderStatusPatchSerializer if self.request.method == "PATCH" else OrderOutputSerializer

    def partial_update(self, request, *args, **kwargs):
        bad = _validate_patch_only_status(request.data)
        if bad is not None:
            return bad
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = lifecycle.update_status(kwargs["pk"], request.user, serializer.validated_data["status"])
        return _order_response(order)


class OrderApproveAPIView(APIView):
    """POST /api/orders/{id}/approve/"""

    permission_classes = [IsAuthenticated, IsStoreAdmin]

    def post(self, request, pk: int):
        return _order_response(lifecycle.approve(pk, request.user))


class OrderRejectAPIView(APIView):
    """POST /api/orders/{id}/reject/ with `{"reason": "..."}`"""

    permission_classes = [IsAuthenticated, IsStoreAdmin]

    def post(self, request, pk: int):
        serializer = OrderRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return _order_response(lifecycle.reject(pk, request.user, serializer.validated_data["reason"]))


class OrderCancelAPIView(APIView):
    """POST /api/orders/{id}/cancel/ by the customer who placed the order."""

    permission_classes = [IsAuthenticated]

    def post(self, request, pk: int):
        return _order_response(lifecycle.cancel(pk, request.user))


class OrderPaymentAPIView(APIView):
    """POST /api/orders/{id}/payment/ with `{"succeeded": bool}` (provider callback relay)."""

    permission_classes = [IsAuthenticated, IsStoreAdmin]

    def post(self, request, pk: int):
        serializer = PaymentResultSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return _order_response(lifecycle.record_payment_result(pk, serializer.validated_data["succeeded"]))


class OrderAutoCancelAPIView(APIView):
    """GET: dry-run count of stale prepaid orders. POST: cancel them.

    Both accept `?timeout=<minutes>` and answer `{"count": <int>, "timeout_minutes": <int>}`.
    """

    permission_classes = [IsAuthenticated, IsStoreAdmin]

    def get(self, request):
        timeout = _parse_timeout(request.query_params)
        count = lifecycle.stale_pending_orders(timeout).count()
        return Response({"count": count, "timeout_minutes": timeout, "dry_run": True}, status=status.HTTP_200_OK)

    def post(self, request):
        timeout = _parse_timeout(request.query_params)
        cancelled = lifecycle.auto_cancel_stale_pending(timeout)
        return Response(
            {
                "count": len(cancelled),
                "timeout_minutes": timeout,
                "order_numbers": [o.order_number for o in cancelled],
            },
            status=status.HTTP_200_OK,
        )

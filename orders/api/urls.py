from django.urls import path

from .views import (
    OrderApproveAPIView,
    OrderAutoCancelAPIView,
    OrderCancelAPIView,
    OrderDetailAPIView,
    OrderListCreateAPIView,
    OrderPaymentAPIView,
    OrderRejectAPIView,
)

urlpatterns = [
    path("orders/", OrderListCreateAPIView.as_view(), name="order-list"),
    path("orders/auto-cancel/", OrderAutoCancelAPIView.as_view(), name="order-auto-cancel"),
    path("orders/<int:pk>/", OrderDetailAPIView.as_view(), name="order-detail"),
    path("orders/<int:pk>/approve/", OrderApproveAPIView.as_view(), name="order-approve"),
    path("orders/<int:pk>/reject/", OrderRejectAPIView.as_view(), name="order-reject"),
    path("orders/<int:pk>/cancel/", OrderCancelAPIView.as_view(), name="order-cancel"),
    path("orders/<int:pk>/payment/", OrderPaymentAPIView.as_view(), name="order-payment"),
]

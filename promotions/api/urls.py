from django.urls import path

from .views import PromotionDetailAPIView, PromotionListCreateAPIView, PromotionValidateAPIView

urlpatterns = [
    path("promotions/", PromotionListCreateAPIView.as_view(), name="promotion-list"),
    path("promotions/validate/", PromotionValidateAPIView.as_view(), name="promotion-validate"),
    path("promotions/<int:pk>/", PromotionDetailAPIView.as_view(), name="promotion-detail"),
]

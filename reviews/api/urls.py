from django.urls import path

from .views import ReviewableItemsAPIView, ReviewDetailUpdateDeleteAPIView, ReviewListCreateAPIView

urlpatterns = [
    path("reviews/", ReviewListCreateAPIView.as_view(), name="review-list"),
    path("reviews/<int:pk>/", ReviewDetailUpdateDeleteAPIView.as_view(), name="review-detail"),
    path("products/<int:pk>/reviewable-items/", ReviewableItemsAPIView.as_view(), name="product-reviewable-items"),
]

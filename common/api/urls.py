from django.urls import path

from .views import BaseInfoAPIView, DashboardAPIView

urlpatterns = [
    path("base-info/", BaseInfoAPIView.as_view(), name="base-info"),
    path("dashboard/", DashboardAPIView.as_view(), name="dashboard"),
]

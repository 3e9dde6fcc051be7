from django.urls import path

from .views import NotificationListAPIView, NotificationMarkReadAPIView, NotificationReadAllAPIView

urlpatterns = [
    path("notifications/", NotificationListAPIView.as_view(), name="notification-list"),
    path("notifications/read-all/", NotificationReadAllAPIView.as_view(), name="notification-read-all"),
    path("notifications/<int:pk>/", NotificationMarkReadAPIView.as_view(), name="notification-detail"),
]

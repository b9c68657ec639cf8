from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import RoomViewSet, RoomAvailabilityAPIView

router = SimpleRouter(trailing_slash=False)
router.register(r"", RoomViewSet, basename="room")

urlpatterns = [
    path("availability", RoomAvailabilityAPIView.as_view(), name="room-availability"),
    path("", include(router.urls)),
]

from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import GuestViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r"", GuestViewSet, basename="guest")

urlpatterns = [
    path("", include(router.urls)),
]

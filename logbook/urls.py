from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import LogBookViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r"", LogBookViewSet, basename="logbook")

urlpatterns = [
    path("", include(router.urls)),
]

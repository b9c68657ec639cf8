from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import InventoryItemViewSet, ComplementaryItemViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r"complementary", ComplementaryItemViewSet, basename="complementary-item")
router.register(r"", InventoryItemViewSet, basename="inventory-item")

urlpatterns = [path("", include(router.urls))]

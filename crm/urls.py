from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import EnquiryViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r"", EnquiryViewSet, basename="enquiry")

urlpatterns = [
    path("", include(router.urls)),
]

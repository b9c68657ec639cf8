from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import EmployeeViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r"", EmployeeViewSet, basename="employee")

urlpatterns = [
    path("", include(router.urls)),
]

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    PropertyTypeViewSet, EventTypeViewSet, SpecialOfferingViewSet, TimeSlotViewSet,
    HotelServiceViewSet, DepartmentViewSet, ShiftViewSet, ExpenseHeadViewSet,
    RoomSettingsAPIView, PolicyAPIView, HotelProfileAPIView,
    PaymentGatewayKeysAPIView, EmailConfigurationAPIView,
)


router = DefaultRouter(trailing_slash=False)
router.register(r"rooms/property-types", PropertyTypeViewSet, basename="property-type")
router.register(r"rooms/event-types", EventTypeViewSet, basename="event-type")
router.register(r"rooms/special-offerings", SpecialOfferingViewSet, basename="special-offering")
router.register(r"rooms/time-slots", TimeSlotViewSet, basename="time-slot")
router.register(r"rooms/services", HotelServiceViewSet, basename="hotel-service")
router.register(r"employeeManagement/departments", DepartmentViewSet, basename="department")
router.register(r"employeeManagement/shifts", ShiftViewSet, basename="shift")
router.register(r"finance/expenses", ExpenseHeadViewSet, basename="expense-head")


urlpatterns = [
    path("rooms", RoomSettingsAPIView.as_view(), name="room-settings"),
    path("policy", PolicyAPIView.as_view(), name="policy"),
    path("hotel", HotelProfileAPIView.as_view(), name="hotel-profile"),
    path("payment-gateway", PaymentGatewayKeysAPIView.as_view(), name="payment-gateway-keys"),
    path("email", EmailConfigurationAPIView.as_view(), name="email-configuration"),
    path("", include(router.urls)),
]

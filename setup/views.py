from rest_framework import viewsets, filters, permissions, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.mixins import SuccessEnvelopeMixin
from .models import (
    PropertyType, EventType, SpecialOffering, TimeSlot, HotelService,
    HotelProfile, Department, Shift, Policy, ExpenseHead,
    PaymentGatewayKeys, EmailConfiguration,
)
from .serializers import (
    PropertyTypeSerializer, EventTypeSerializer, SpecialOfferingSerializer,
    TimeSlotSerializer, HotelServiceSerializer, HotelProfileSerializer,
    DepartmentSerializer, ShiftSerializer, PolicySerializer, ExpenseHeadSerializer,
    PaymentGatewayKeysSerializer, EmailConfigurationSerializer,
)


class ReadOpenWriteAuthenticated(permissions.BasePermission):
    """Guests may read public settings; only staff sessions may change them."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)


class LookupViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    permission_classes = [ReadOpenWriteAuthenticated]
    filter_backends = [filters.SearchFilter]
    search_fields = ["name", "code"]

    def get_queryset(self):
        qs = super().get_queryset()

        if "is_active" in self.request.query_params:
            val = self.request.query_params.get("is_active").lower()
            qs = qs.filter(is_active=(val == "true"))

        return qs


class PropertyTypeViewSet(LookupViewSet):
    queryset = PropertyType.objects.all().order_by("name")
    serializer_class = PropertyTypeSerializer


class EventTypeViewSet(LookupViewSet):
    queryset = EventType.objects.all().order_by("name")
    serializer_class = EventTypeSerializer


class SpecialOfferingViewSet(LookupViewSet):
    queryset = SpecialOffering.objects.all().order_by("name")
    serializer_class = SpecialOfferingSerializer


class TimeSlotViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    queryset = TimeSlot.objects.all()
    serializer_class = TimeSlotSerializer
    permission_classes = [ReadOpenWriteAuthenticated]


class HotelServiceViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    queryset = HotelService.objects.all().order_by("name")
    serializer_class = HotelServiceSerializer
    permission_classes = [ReadOpenWriteAuthenticated]


class RoomSettingsAPIView(APIView):
    """
    GET /api/settings/rooms

    Everything the booking forms need in one call.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response(
            {
                "success": True,
                "settings": {
                    "property_types": PropertyTypeSerializer(PropertyType.objects.filter(is_active=True), many=True).data,
                    "event_types": EventTypeSerializer(EventType.objects.filter(is_active=True), many=True).data,
                    "time_slots": TimeSlotSerializer(TimeSlot.objects.all(), many=True).data,
                    "special_offerings": SpecialOfferingSerializer(SpecialOffering.objects.filter(is_active=True), many=True).data,
                    "services": HotelServiceSerializer(HotelService.objects.filter(is_active=True), many=True).data,
                },
            },
            status=status.HTTP_200_OK,
        )


class DepartmentViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    queryset = Department.objects.all()
    serializer_class = DepartmentSerializer
    permission_classes = [IsAuthenticated]


class ShiftViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    queryset = Shift.objects.all()
    serializer_class = ShiftSerializer
    permission_classes = [IsAuthenticated]


class ExpenseHeadViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    queryset = ExpenseHead.objects.all()
    serializer_class = ExpenseHeadSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = super().get_queryset()
        kind = self.request.query_params.get("kind")
        if kind:
            qs = qs.filter(kind=kind)
        return qs


class SingletonSettingsAPIView(APIView):
    """
    GET -> current row (or null)
    POST/PUT -> create the row the first time, update it afterwards
    """
    model = None
    serializer_class = None
    payload_key = "data"
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.model.objects.order_by("id").first()

    def get(self, request):
        obj = self.get_object()
        data = self.serializer_class(obj).data if obj else None
        return Response({"success": True, self.payload_key: data}, status=status.HTTP_200_OK)

    def post(self, request):
        obj = self.get_object()
        serializer = self.serializer_class(obj, data=request.data, partial=obj is not None)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {"success": True, self.payload_key: serializer.data},
            status=status.HTTP_200_OK if obj else status.HTTP_201_CREATED,
        )

    put = post


class PolicyAPIView(SingletonSettingsAPIView):
    model = Policy
    serializer_class = PolicySerializer
    payload_key = "policy"
    permission_classes = [ReadOpenWriteAuthenticated]


class HotelProfileAPIView(SingletonSettingsAPIView):
    model = HotelProfile
    serializer_class = HotelProfileSerializer
    payload_key = "hotel"
    permission_classes = [ReadOpenWriteAuthenticated]


class PaymentGatewayKeysAPIView(SingletonSettingsAPIView):
    model = PaymentGatewayKeys
    serializer_class = PaymentGatewayKeysSerializer
    payload_key = "keys"


class EmailConfigurationAPIView(SingletonSettingsAPIView):
    model = EmailConfiguration
    serializer_class = EmailConfigurationSerializer
    payload_key = "configuration"

from rest_framework import viewsets, filters
from rest_framework.permissions import IsAuthenticated

from common.mixins import SuccessEnvelopeMixin
from .models import InventoryItem, ComplementaryItem
from .serializers import InventoryItemSerializer, ComplementaryItemSerializer


class InventoryItemViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    """
    /api/settings/inventory            GET (?status=&category=) / POST
    /api/settings/inventory/{id}       GET / PUT / PATCH / DELETE
    """
    queryset = InventoryItem.objects.all()
    serializer_class = InventoryItemSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter]
    search_fields = ["category", "sub_category", "brand_name", "supplier_name"]
    envelope_key = "items"

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params
        if q.get("status"):
            qs = qs.filter(status=q["status"])
        if q.get("category"):
            qs = qs.filter(category__iexact=q["category"])
        return qs


class ComplementaryItemViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    queryset = ComplementaryItem.objects.select_related("room").all()
    serializer_class = ComplementaryItemSerializer
    permission_classes = [IsAuthenticated]
    envelope_key = "items"

    def get_queryset(self):
        qs = super().get_queryset()
        room_id = self.request.query_params.get("room_id")
        if room_id:
            qs = qs.filter(room_id=room_id)
        return qs

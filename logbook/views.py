# logbook/views.py
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.mixins import SuccessEnvelopeMixin
from . import services
from .models import LogBookEntry
from .serializers import LogBookEntrySerializer, LogVerificationSerializer


class LogBookPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100


class LogBookViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    """
    /api/logbook
      GET    -> newest first, paginated (?page, ?limit, ?search)
      POST   -> issue items against a booking
    /api/logbook/{id}
      GET / PUT / PATCH / DELETE   (edits only while the entry is issued)
    /api/logbook/{id}/verify
      POST   -> damage / loss summary, stock write-off, grand total
    """
    queryset = LogBookEntry.objects.all()
    serializer_class = LogBookEntrySerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LogBookPagination
    filter_backends = [filters.SearchFilter]
    search_fields = ["booking_number", "customer_name", "mobile_no"]

    @action(detail=True, methods=["post"])
    def verify(self, request, pk=None):
        entry = self.get_object()
        serializer = LogVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry, results = services.verify_log_entry(entry.pk, serializer.validated_data)
        return Response(
            {
                "success": True,
                "data": LogBookEntrySerializer(entry).data,
                "message": "Log entry verified and inventory updated",
                "diagnostics": [r.as_dict() for r in results],
            },
            status=status.HTTP_200_OK,
        )

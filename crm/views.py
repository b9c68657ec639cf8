# crm/views.py
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from common.mixins import SuccessEnvelopeMixin
from .models import Enquiry
from .serializers import EnquirySerializer


class EnquiryViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    """
    /api/crm
      GET    -> open enquiries (?include_moved=true for all)
      POST   -> new enquiry (public contact form)
    /api/crm/{id}
      GET / PUT / PATCH / DELETE
    /api/crm/{id}/move-to-booking
      POST   -> flag as converted
    """
    queryset = Enquiry.objects.all()
    serializer_class = EnquirySerializer
    envelope_key = "contacts"

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action == "list" and self.request.query_params.get("include_moved") != "true":
            qs = qs.filter(moved_to_booking=False)
        return qs

    @action(detail=True, methods=["post"], url_path="move-to-booking")
    def move_to_booking(self, request, pk=None):
        enquiry = self.get_object()
        enquiry.moved_to_booking = True
        enquiry.save(update_fields=["moved_to_booking", "updated_at"])
        return Response(
            {"success": True, "contact": EnquirySerializer(enquiry).data},
            status=status.HTTP_200_OK,
        )

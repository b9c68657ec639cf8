# rooms/views.py
import logging
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.views import APIView

from common.mixins import SuccessEnvelopeMixin
from common.utils import parse_when
from setup.views import ReadOpenWriteAuthenticated
from . import availability
from .models import Room, RoomAvailability
from .serializers import (
    RoomSerializer,
    RoomUnitSerializer,
    RoomAvailabilitySerializer,
    AvailabilityUpsertSerializer,
)

log = logging.getLogger(__name__)


class RoomViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    """
    /api/rooms
      GET    -> list (?type=room|hall)
      POST   -> create category with its unit numbers
    /api/rooms/{id}
      GET / PUT / PATCH / DELETE
    /api/rooms/{id}/free-units?check_in=...&check_out=...
      GET    -> units with no overlapping booked date
    """
    queryset = Room.objects.prefetch_related("units").all()
    serializer_class = RoomSerializer
    permission_classes = [ReadOpenWriteAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    envelope_key = "rooms"

    def get_queryset(self):
        qs = super().get_queryset()
        kind = self.request.query_params.get("type")
        if kind:
            qs = qs.filter(type=kind)
        return qs

    @action(detail=True, methods=["get"], url_path="free-units")
    def free_units(self, request, pk=None):
        room = self.get_object()
        start = parse_when(request.query_params.get("check_in"), "check_in")
        end = parse_when(request.query_params.get("check_out"), "check_out")
        if start and end and end <= start:
            raise ValidationError("Check-out must be after check-in")
        units = availability.free_units(room, start, end)
        return Response(
            {"success": True, "units": RoomUnitSerializer(units, many=True).data},
            status=status.HTTP_200_OK,
        )


class RoomAvailabilityAPIView(APIView):
    """
    GET    /api/rooms/availability?room_id=&room_number=&room_type=&booking_number=&start_date=&end_date=
    POST   /api/rooms/availability          -> upsert one booking into a unit's history
    DELETE /api/rooms/availability?booking_number=...&action=remove|cancel
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        q = request.query_params
        qs = RoomAvailability.objects.select_related("room").all()
        if q.get("room_id"):
            qs = qs.filter(room_id=q["room_id"])
        if q.get("room_number"):
            qs = qs.filter(room_number=q["room_number"])
        if q.get("room_type"):
            qs = qs.filter(room_type=q["room_type"])

        booking_number = q.get("booking_number")
        start = parse_when(q.get("start_date"), "start_date")
        end = parse_when(q.get("end_date"), "end_date")

        records = []
        for avail in qs:
            data = RoomAvailabilitySerializer(avail).data
            history = data["booking_history"]
            if booking_number:
                history = [e for e in history if e.get("booking_number") == booking_number]
            if start or end:
                history = [e for e in history if availability.overlaps(e, start, end)]
            if (booking_number or start or end) and not history:
                continue
            data["booking_history"] = history
            records.append(data)

        return Response({"success": True, "availability": records}, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = AvailabilityUpsertSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        room = data.pop("room")
        room_number = data.pop("room_number")
        room_type = data.pop("room_type", "") or room.name

        if not room.units.filter(number=room_number).exists():
            raise ValidationError(f"Room number {room_number} does not belong to {room.name}")

        data["check_in"] = data["check_in"].isoformat()
        data["check_out"] = data["check_out"].isoformat()
        avail = availability.upsert_booking_record(room.pk, room_number, data, room_type=room_type)
        return Response(
            {"success": True, "availability": RoomAvailabilitySerializer(avail).data},
            status=status.HTTP_200_OK,
        )

    def delete(self, request):
        q = request.query_params
        booking_number = q.get("booking_number")
        if not booking_number:
            raise ValidationError("booking_number is required")
        mode = q.get("action", "remove")
        if mode not in ("remove", "cancel"):
            raise ValidationError("action must be remove or cancel")

        changed = availability.drop_booking_records(
            booking_number, action=mode, room_id=q.get("room_id"), room_number=q.get("room_number")
        )
        if not changed:
            return Response(
                {"success": False, "error": "No availability records found for this booking"},
                status=status.HTTP_404_NOT_FOUND,
            )
        log.debug("Availability %s for %s on %s rows", mode, booking_number, changed)
        return Response(
            {"success": True, "message": f"Booking {mode} applied", "updated": changed},
            status=status.HTTP_200_OK,
        )

# booking/views.py
import logging

from django.conf import settings
from rest_framework import permissions, status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.views import APIView

from common.mixins import SuccessEnvelopeMixin
from common.tasks import send_booking_confirmation_email
from common.utils import parse_when
from finance import gateway
from . import services
from .models import Booking, GuestInfo
from .serializers import (
    BookingSerializer,
    GuestInfoSerializer,
    RazorpayOrderSerializer,
    RazorpayPaymentLinkSerializer,
    RazorpayVerifySerializer,
)

log = logging.getLogger(__name__)


def _uploaded_files(request):
    return request.FILES.getlist("files") if hasattr(request.FILES, "getlist") else []


class BookingListAPIView(APIView):
    """
    GET /api/bookings?booking_number=&email=&status=&guest_id=&check_in_date=&check_out_date=

    Overdue bookings are checked out (and invoiced when paid) before the
    list is read, so staff always see the current state.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        updated = 0
        if settings.HOTELBOOK.get("SWEEP_ON_LIST", True):
            updated = services.sweep_overdue_bookings()
            services.backfill_invoices()

        q = request.query_params
        qs = Booking.objects.all()
        if q.get("booking_number"):
            qs = qs.filter(booking_number=q["booking_number"])
        if q.get("email"):
            qs = qs.filter(email__iexact=q["email"])
        if q.get("status"):
            qs = qs.filter(status=q["status"])
        if q.get("guest_id"):
            qs = qs.filter(guest_id=q["guest_id"])
        check_in = parse_when(q.get("check_in_date"), "check_in_date")
        check_out = parse_when(q.get("check_out_date"), "check_out_date")
        if check_in:
            qs = qs.filter(check_in_date__gte=check_in)
        if check_out:
            qs = qs.filter(check_out_date__lte=check_out)

        return Response(
            {
                "success": True,
                "bookings": BookingSerializer(qs, many=True).data,
                "updated_bookings": updated,
            },
            status=status.HTTP_200_OK,
        )


class AddBookingAPIView(APIView):
    """
    POST /api/bookings/addbooking

    Guest checkout. multipart/form-data or JSON; nested values (rooms,
    total_amount, guests, groom_details, ...) may arrive as JSON strings.
    Verification documents come in as ``files``.
    """
    permission_classes = [permissions.AllowAny]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def post(self, request):
        outcome = services.create_booking(request.data, _uploaded_files(request))
        booking = outcome.booking
        message = "Booking created successfully"
        if not outcome.email_sent:
            message += ", but the confirmation email could not be sent"
        return Response(
            {
                "success": True,
                "booking": BookingSerializer(booking).data,
                "message": message,
                "email_sent": outcome.email_sent,
                "diagnostics": outcome.diagnostics_payload(),
            },
            status=status.HTTP_201_CREATED,
        )


class BookingDetailAPIView(APIView):
    """
    GET    /api/bookings/<booking_number>
    PUT    /api/bookings/<booking_number>   -> status transition and / or field edits
    DELETE /api/bookings/<booking_number>
    """
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get(self, request, booking_number):
        booking = services.get_booking(booking_number)
        return Response({"success": True, "booking": BookingSerializer(booking).data})

    def put(self, request, booking_number):
        outcome = services.transition_booking(booking_number, request.data, _uploaded_files(request))
        body = {
            "success": True,
            "booking": BookingSerializer(outcome.booking).data,
            "message": "Booking updated successfully",
            "diagnostics": outcome.diagnostics_payload(),
        }
        if str(outcome.booking.status) == "cancelled":
            body["email_sent"] = outcome.email_sent
        return Response(body, status=status.HTTP_200_OK)

    def delete(self, request, booking_number):
        results = services.delete_booking(booking_number)
        return Response(
            {
                "success": True,
                "message": "Booking deleted successfully",
                "diagnostics": [r.as_dict() for r in results],
            },
            status=status.HTTP_200_OK,
        )


class ResendConfirmationAPIView(APIView):
    """POST /api/bookings/<booking_number>/resend-confirmation -> queued on celery"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, booking_number):
        booking = services.get_booking(booking_number)
        send_booking_confirmation_email.delay(booking.pk)
        return Response(
            {"success": True, "message": "Confirmation email queued"},
            status=status.HTTP_202_ACCEPTED,
        )


# ---------- Razorpay ----------

class CreateRazorpayOrderAPIView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RazorpayOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = gateway.RazorpayClient().create_order(
            data["amount"], currency=data["currency"], receipt=data["receipt"], notes=data["notes"]
        )
        return Response({"success": True, "order": order}, status=status.HTTP_200_OK)


class CreateRazorpayPaymentLinkAPIView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RazorpayPaymentLinkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        customer = {"name": data["customer_name"]}
        if data["customer_email"]:
            customer["email"] = data["customer_email"]
        if data["customer_contact"]:
            customer["contact"] = data["customer_contact"]

        link = gateway.RazorpayClient().create_payment_link(
            data["amount"],
            customer,
            description=data["description"],
            currency=data["currency"],
            reference_id=data["reference_id"],
            callback_url=data["callback_url"],
        )
        return Response(
            {
                "success": True,
                "payment_link": {
                    "id": link.get("id"),
                    "short_url": link.get("short_url"),
                    "status": link.get("status"),
                },
            },
            status=status.HTTP_200_OK,
        )


class VerifyRazorpayPaymentAPIView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RazorpayVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if not gateway.verify_signature(
            data["razorpay_order_id"], data["razorpay_payment_id"], data["razorpay_signature"]
        ):
            raise ValidationError("Invalid payment signature")
        return Response({"success": True, "message": "Payment verified"}, status=status.HTTP_200_OK)


class CheckPaymentStatusAPIView(APIView):
    """GET /api/bookings/check-payment-status/<payment_link_id>"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, payment_link_id):
        link = gateway.RazorpayClient().fetch_payment_link(payment_link_id)
        link_status = link.get("status")
        return Response(
            {
                "success": True,
                "status": link_status,
                "paid": link_status == "paid",
                "amount_paid": link.get("amount_paid", 0),
            },
            status=status.HTTP_200_OK,
        )


# ---------- guest directory ----------

class GuestViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    """
    /api/guests            GET (?email=, ?mobile_no=)
    /api/guests/<guest_id> GET / PUT / PATCH / DELETE
    Guests are created by bookings; POST is not offered.
    """
    queryset = GuestInfo.objects.all()
    serializer_class = GuestInfoSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_field = "guest_id"
    envelope_key = "guests"
    http_method_names = ["get", "put", "patch", "delete", "head", "options"]

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params
        if q.get("email"):
            qs = qs.filter(email__iexact=q["email"])
        if q.get("mobile_no"):
            qs = qs.filter(mobile_no=q["mobile_no"])
        return qs

from django.conf import settings

from common.pdf_utils import render_html_to_pdf_bytes
from common.utils import send_templated_email
from setup.models import HotelProfile, Policy


def _context(booking):
    hotel = HotelProfile.load()
    policy = Policy.objects.order_by("id").first()
    return {
        "booking": booking,
        "hotel": hotel,
        "hotel_name": hotel.hotel_name if hotel else "Our Hotel",
        "policy": policy,
        "totals": booking.total_amount or {},
        "frontend_base": getattr(settings, "FRONTEND_BASE_URL", ""),
    }


def send_booking_confirmation(booking):
    """
    Booking confirmation with the booking slip attached as PDF.
    Raises if the mail could not be handed to the SMTP server.
    """
    context = _context(booking)
    attachments = []
    pdf = render_html_to_pdf_bytes("booking/confirmation_pdf.html", context)
    if pdf:
        attachments.append((f"{booking.booking_number}.pdf", pdf, "application/pdf"))

    return send_templated_email(
        f"Booking Confirmation - {booking.booking_number}",
        "booking/confirmation_email.html",
        context,
        booking.email,
        attachments=attachments,
    )


def send_booking_cancellation(booking):
    return send_templated_email(
        f"Booking Cancelled - {booking.booking_number}",
        "booking/cancellation_email.html",
        _context(booking),
        booking.email,
    )

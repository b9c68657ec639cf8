# common/tasks.py
import logging

from celery import shared_task

from booking.emails import send_booking_cancellation, send_booking_confirmation
from booking.models import Booking
from booking.services import sweep_overdue_bookings
from finance.invoicing import roll_over_financial_year

log = logging.getLogger(__name__)


# ---------- 1) booking emails ----------

@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def send_booking_confirmation_email(self, booking_id: int):
    try:
        booking = Booking.objects.get(pk=booking_id)
    except Booking.DoesNotExist:
        return False

    if not booking.email:
        return False

    try:
        send_booking_confirmation(booking)
    except Exception as exc:
        log.warning("Confirmation mail for %s failed: %s", booking.booking_number, exc)
        raise self.retry(exc=exc)
    return True


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def send_booking_cancellation_email(self, booking_id: int):
    try:
        booking = Booking.objects.get(pk=booking_id)
    except Booking.DoesNotExist:
        return False

    if not booking.email:
        return False

    try:
        send_booking_cancellation(booking)
    except Exception as exc:
        log.warning("Cancellation mail for %s failed: %s", booking.booking_number, exc)
        raise self.retry(exc=exc)
    return True


# ---------- 2) periodic (celery beat) ----------

@shared_task
def auto_checkout_overdue_bookings():
    """Same sweep the booking list runs, for days nobody opens the list."""
    count = sweep_overdue_bookings()
    log.info("auto_checkout_overdue_bookings: %s bookings checked out", count)
    return count


@shared_task
def roll_over_financial_year_task():
    year = roll_over_financial_year()
    if year is None:
        return None
    return year.year_format

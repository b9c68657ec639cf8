# booking/numbering.py
import logging

from django.db.models import Q
from django.utils import timezone

from .models import Booking, GuestInfo

log = logging.getLogger(__name__)


def booking_number_prefix(day=None):
    day = day or timezone.localdate()
    return f"B-{day:%d%m%y}-"


def next_booking_number(day=None):
    """
    B-DDMMYY-NNNN, NNNN being one past the highest number issued today.
    Not reserved: the unique index on Booking.booking_number catches a
    concurrent duplicate and the caller retries.
    """
    prefix = booking_number_prefix(day)
    last = (
        Booking.objects.filter(booking_number__startswith=prefix)
        .order_by("-booking_number")
        .values_list("booking_number", flat=True)
        .first()
    )
    sequence = 1
    if last:
        try:
            sequence = int(last[-4:]) + 1
        except ValueError:
            log.warning("Unparsable booking number %s, restarting sequence", last)
    return f"{prefix}{sequence:04d}"


def mint_guest_id(now=None):
    """G + yymmddHHMMSS; a suffix is added if that second is already taken."""
    now = timezone.localtime(now or timezone.now())
    base = f"G{now:%y%m%d%H%M%S}"
    candidate, n = base, 1
    while GuestInfo.objects.filter(guest_id=candidate).exists():
        n += 1
        candidate = f"{base}{n}"
    return candidate


def resolve_guest_id(email="", mobile_no=""):
    """First guest seen with this email or mobile keeps the id; otherwise a new one."""
    match = Q()
    if email:
        match |= Q(email__iexact=email)
    if mobile_no:
        match |= Q(mobile_no=mobile_no)
    if match:
        existing = GuestInfo.objects.filter(match).order_by("created_at", "id").first()
        if existing is not None:
            return existing.guest_id, False
    return mint_guest_id(), True

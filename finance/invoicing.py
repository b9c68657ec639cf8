# finance/invoicing.py
"""
Financial years and invoice numbering.

Invoice numbers look like ``INV/24-25/17``. The last segment is the
sequence of the active FinancialYear and is only ever moved by
get_next_invoice_number().
"""
import logging
import re
from datetime import date

from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework.exceptions import NotFound, ValidationError

from common.exceptions import Conflict
from .models import FinanceSettings, FinancialYear, Invoice, INVOICE_PREFIX_RE, HEX_COLOR_RE

log = logging.getLogger(__name__)

# Attempts at the conditional sequence update before giving up.
MAX_SEQUENCE_ATTEMPTS = 10


def year_format_for(start, end):
    return f"{start.year % 100:02d}-{end.year % 100:02d}"


def add_years(day, years):
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 Feb in a non leap year
        return day.replace(year=day.year + years, day=28)


MIRROR_FIELDS = [
    "financial_year_start",
    "financial_year_end",
    "invoice_financial_year",
    "invoice_sequence",
    "updated_at",
]


def _mirror_year(fs, year):
    fs.financial_year_start = year.start_date
    fs.financial_year_end = year.end_date
    fs.invoice_financial_year = year.year_format
    fs.invoice_sequence = year.sequence


# ---------- 1) sequence ----------

def get_next_invoice_number():
    """
    Allocate the next invoice number of the active financial year.

    The year row is bumped with an UPDATE conditioned on the settings id,
    the year id and the sequence we read, so two callers can never be
    handed the same number. A lost race just re-reads and tries again.
    """
    fs = FinanceSettings.load()
    if fs is None:
        raise NotFound("Finance settings not found")

    for attempt in range(MAX_SEQUENCE_ATTEMPTS):
        year = (
            FinancialYear.objects.filter(settings=fs, is_active=True)
            .order_by("-start_date")
            .first()
        )
        if year is None:
            raise NotFound("No active financial year found")

        next_sequence = year.sequence + 1
        with transaction.atomic():
            updated = FinancialYear.objects.filter(
                pk=year.pk,
                settings_id=fs.pk,
                is_active=True,
                sequence=year.sequence,
            ).update(sequence=next_sequence, updated_at=timezone.now())
            if updated:
                FinanceSettings.objects.filter(pk=fs.pk).update(
                    invoice_sequence=next_sequence,
                    invoice_financial_year=year.year_format,
                    updated_at=timezone.now(),
                )
                prefix = FinanceSettings.objects.values_list("invoice_prefix", flat=True).get(pk=fs.pk)
                invoice_number = f"{prefix}/{year.year_format}/{next_sequence}"
                log.debug("Allocated invoice number %s", invoice_number)
                return invoice_number

        log.debug("Invoice sequence of %s moved under us (attempt %s)", year.year_format, attempt + 1)

    raise Conflict("Could not allocate an invoice number, please retry")


# ---------- 2) rollover ----------

def roll_over_financial_year(fs=None, today=None):
    """
    Move the active year forward once it has ended.
    Skipped entirely while manual year control is on.
    Returns the newly activated FinancialYear, or None when nothing changed.
    """
    fs = fs or FinanceSettings.load()
    if fs is None or fs.manual_year_control:
        return None

    today = today or timezone.localdate()
    active = fs.active_year
    if active is not None and today <= active.end_date:
        return None

    if active is not None:
        base_start, base_end = active.start_date, active.end_date
    elif fs.financial_year_start and fs.financial_year_end:
        base_start, base_end = fs.financial_year_start, fs.financial_year_end
    else:
        return None

    shift = 1
    while add_years(base_end, shift) < today:
        shift += 1
    new_start = add_years(base_start, shift)
    new_end = add_years(base_end, shift)
    new_format = year_format_for(new_start, new_end)

    with transaction.atomic():
        FinancialYear.objects.filter(settings=fs, is_active=True).update(is_active=False)
        year, created = FinancialYear.objects.get_or_create(
            settings=fs,
            year_format=new_format,
            defaults={"start_date": new_start, "end_date": new_end, "sequence": 0},
        )
        year.is_active = True
        year.save(update_fields=["is_active", "updated_at"])
        _mirror_year(fs, year)
        fs.save(update_fields=MIRROR_FIELDS)

    log.info(
        "Financial year rolled over to %s (%s)", new_format, "created" if created else "reactivated"
    )
    return year


# ---------- 3) settings form ----------

def _as_date(value):
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    text = str(value)
    try:
        parsed = parse_date(text[:10]) if len(text) >= 10 else None
        if parsed is None:
            dt = parse_datetime(text)
            parsed = dt.date() if dt else None
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError("Invalid date: " + text)
    return parsed


def _as_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def validate_year_window(start, end):
    """Checks shared by the settings form; order matters for the error reported."""
    if end.year - start.year < 1 or start >= end:
        raise ValidationError("Financial year must span at least one full year")
    if start.day != 1:
        raise ValidationError("Start date must be the first day of a month")


def save_finance_settings(data, logo=None):
    """
    POST /api/settings/finance/invoice

    Fields: start_date, end_date, invoice_prefix, color, manual_year_control,
    manual_year_activation, logo (file).
    Nothing is written unless every check passes.
    """
    start_raw = data.get("start_date")
    end_raw = data.get("end_date")
    prefix = (data.get("invoice_prefix") or "").strip()
    if not start_raw or not end_raw or not prefix:
        raise ValidationError("Missing required fields")

    start, end = _as_date(start_raw), _as_date(end_raw)
    validate_year_window(start, end)

    if not re.match(INVOICE_PREFIX_RE, prefix):
        raise ValidationError("Invoice prefix must be exactly 3 uppercase letters")
    color = (data.get("color") or "").strip() or "#00569B"
    if not re.match(HEX_COLOR_RE, color):
        raise ValidationError("Color must be a hex value like #00569B")

    manual_control = _as_bool(data.get("manual_year_control", False))
    manual_activation = _as_bool(data.get("manual_year_activation", False))
    year_format = year_format_for(start, end)

    with transaction.atomic():
        fs = FinanceSettings.objects.select_for_update().order_by("id").first()

        if fs is None:
            fs = FinanceSettings.objects.create(
                invoice_prefix=prefix,
                color=color,
                manual_year_control=manual_control,
            )
            year = FinancialYear.objects.create(
                settings=fs, start_date=start, end_date=end, year_format=year_format,
                sequence=0, is_active=True,
            )
        elif manual_activation:
            year = FinancialYear.objects.filter(settings=fs, start_date=start, end_date=end).first()
            if year is None:
                raise NotFound("Selected financial year not found")
            fs.years.update(is_active=False)
            year.is_active = True
            year.save(update_fields=["is_active", "updated_at"])
            fs.manual_year_control = True
        else:
            fs.years.update(is_active=False)
            year = fs.years.filter(year_format=year_format).first()
            if year is None:
                year = FinancialYear.objects.create(
                    settings=fs, start_date=start, end_date=end, year_format=year_format,
                    sequence=0, is_active=True,
                )
            else:
                # keep the sequence of a year that already issued invoices
                year.start_date, year.end_date, year.is_active = start, end, True
                year.save(update_fields=["start_date", "end_date", "is_active", "updated_at"])
            fs.manual_year_control = manual_control
            fs.invoice_prefix = prefix
            fs.color = color

        if logo is not None:
            if fs.logo:
                fs.logo.delete(save=False)
            fs.logo = logo

        _mirror_year(fs, year)
        fs.save()

    return fs


def current_finance_settings():
    """GET side: roll the year over first unless manual control is on."""
    fs = FinanceSettings.load()
    if fs is None:
        return None
    if not fs.manual_year_control:
        roll_over_financial_year(fs)
        fs.refresh_from_db()
    return fs


# ---------- 4) invoice snapshot ----------

def _transactions_snapshot(txn):
    if txn is None:
        return None
    return {
        "payable_amount": txn.payable_amount,
        "total_paid": txn.total_paid,
        "remaining_balance": txn.remaining_balance,
        "is_fully_paid": txn.is_fully_paid,
        "payments": [
            {
                "payment_number": p.payment_number,
                "payment_method": p.payment_method,
                "payment_type": p.payment_type,
                "amount": p.amount,
                "payment_date": p.payment_date.isoformat() if p.payment_date else None,
                "status": p.status,
                "transaction_id": p.transaction_ref,
            }
            for p in txn.payments.all()
        ],
    }


def create_invoice_record(booking, txn=None, hotel=None):
    """
    Freeze ``booking`` into an Invoice under booking.invoice_number.
    Does nothing when an invoice with that number already exists.
    """
    if not booking.invoice_number:
        raise ValidationError("Invoice number is required")

    existing = Invoice.objects.filter(invoice_number=booking.invoice_number).first()
    if existing is not None:
        return existing, False

    totals = booking.total_amount or {}
    data = {
        "booking": booking,
        "booking_number": booking.booking_number,
        "invoice_date": timezone.now(),
        "status": str(booking.status),
        "customer_details": {
            "name": f"{booking.first_name} {booking.last_name}".strip(),
            "email": booking.email,
            "phone": booking.mobile_no,
            "address": booking.address,
            "guest_id": booking.guest_id,
        },
        "hotel_details": hotel.snapshot() if hotel else {},
        "stay_details": {
            "check_in": booking.check_in_date.isoformat() if booking.check_in_date else None,
            "check_out": booking.check_out_date.isoformat() if booking.check_out_date else None,
            "number_of_nights": booking.number_of_nights,
            "number_of_rooms": booking.number_of_rooms,
            "number_of_guests": booking.guests or {},
            "property_type": booking.property_type or "room",
            "time_slot": booking.time_slot or None,
        },
        "rooms": [
            {
                "room_number": line.get("number"),
                "room_type": line.get("type"),
                "rate_per_night": line.get("price", 0),
                "additional_guest_charge": line.get("additional_guest_charge", 0),
                "taxes": {
                    "cgst": line.get("cgst", 0),
                    "sgst": line.get("sgst", 0),
                    "igst": line.get("igst", 0),
                },
                "total_amount": line.get("total_amount", 0),
            }
            for line in booking.rooms or []
        ],
        "payment_details": {
            "method": booking.payment_method,
            "status": booking.payment_status,
            "razorpay_order_id": booking.razorpay_order_id,
            "razorpay_payment_id": booking.razorpay_payment_id,
            "razorpay_payment_link_id": booking.razorpay_payment_link_id,
            "razorpay_qr_code_id": booking.razorpay_qr_code_id,
        },
        "amounts": {
            "subtotal": totals.get("room_charge", 0),
            "total_tax": totals.get("taxes", 0),
            "additional_guest_charge": totals.get("additional_guest_charge", 0),
            "services_charge": totals.get("services_charge", 0),
            "discount": totals.get("discount", 0),
            "discount_amount": totals.get("discount_amount", 0),
            "total_amount": totals.get("total", 0),
        },
        "selected_services": [
            {
                "name": s.get("name"),
                "price": s.get("price", 0),
                "quantity": s.get("quantity") or 1,
                "total_amount": s.get("total_amount") or (s.get("price", 0) * (s.get("quantity") or 1)),
            }
            for s in booking.selected_services or []
        ],
        "transactions": _transactions_snapshot(txn),
    }
    if booking.property_type == "hall":
        data["hall_details"] = {
            "event_type": booking.event_type or "Not specified",
            "groom_details": booking.groom_details or None,
            "bride_details": booking.bride_details or None,
            "time_slot": booking.time_slot or None,
        }

    try:
        with transaction.atomic():
            invoice = Invoice.objects.create(invoice_number=booking.invoice_number, **data)
    except IntegrityError:
        # created by a concurrent sweep
        return Invoice.objects.get(invoice_number=booking.invoice_number), False
    log.info("Invoice %s created for booking %s", invoice.invoice_number, booking.booking_number)
    return invoice, True

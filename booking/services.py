# booking/services.py
"""
Booking lifecycle: create -> checkin -> checkout / cancelled.

The booking row is the only write that has to succeed. Occupancy,
inventory, guest directory and mail are side effects: each one is run
through best_effort() and reported back as a SideEffectResult instead of
failing the request.
"""
import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from common.exceptions import Conflict
from common.utils import (
    SideEffectResult,
    best_effort,
    delete_upload,
    missing_field,
    parse_json_field,
    parse_when,
    round_amount,
    save_upload,
    validate_upload,
)
from finance import gateway
from finance.invoicing import create_invoice_record, get_next_invoice_number
from finance.models import PaymentMethod, PaymentStatus, Transaction
from inventory.services import consume_for_checkin
from rooms import availability
from rooms.models import PropertyKind, Room
from setup.models import HotelProfile
from .emails import send_booking_cancellation, send_booking_confirmation
from .models import Booking, BookingStatus, GuestInfo
from .numbering import next_booking_number, resolve_guest_id

log = logging.getLogger(__name__)

REQUIRED_FIELDS = [
    "first_name",
    "last_name",
    "email",
    "check_in_date",
    "check_out_date",
    "payment_method",
    "payment_status",
]

AMOUNT_KEYS = [
    "room_charge",
    "taxes",
    "additional_guest_charge",
    "services_charge",
    "discount",
    "discount_amount",
    "total",
]

LINE_AMOUNT_KEYS = ["price", "igst", "additional_guest_charge", "total_amount"]

GUEST_FIELDS = [
    "mobile_no",
    "gender",
    "nationality",
    "verification_type",
    "verification_id",
    "address",
]

# plain fields staff may edit together with a status change
EDITABLE_FIELDS = [
    "first_name",
    "last_name",
    "email",
    "mobile_no",
    "gender",
    "nationality",
    "address",
    "verification_type",
    "verification_id",
    "event_type",
]

GUEST_FILES_FOLDER = "bookings/guest_files"


@dataclass
class BookingOutcome:
    booking: Booking
    email_sent: bool = False
    diagnostics: list = field(default_factory=list)

    def add(self, results):
        if isinstance(results, SideEffectResult):
            results = [results]
        self.diagnostics.extend(results)

    @property
    def failed(self):
        return [d for d in self.diagnostics if not d.ok]

    def diagnostics_payload(self):
        return [d.as_dict() for d in self.diagnostics]


# ---------- helpers ----------

def get_booking(booking_number, lock=False):
    qs = Booking.objects.select_for_update() if lock else Booking.objects
    booking = qs.filter(booking_number=booking_number).first()
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def round_totals(raw):
    totals = parse_json_field(raw, {}) or {}
    if not isinstance(totals, dict) or not totals.get("total"):
        raise ValidationError("Invalid total amount")
    return {key: round_amount(totals.get(key)) for key in AMOUNT_KEYS}


def clean_room_lines(raw):
    lines = parse_json_field(raw, []) or []
    if not isinstance(lines, list) or not lines:
        raise ValidationError("At least one room must be selected")

    room_ids = {line.get("room_id") for line in lines if isinstance(line, dict)}
    rooms = {str(r.pk): r for r in Room.objects.filter(pk__in=[r for r in room_ids if r])}

    cleaned = []
    for line in lines:
        if not isinstance(line, dict) or not line.get("number"):
            raise ValidationError("Every room line needs a room number")
        room = rooms.get(str(line.get("room_id")))
        if room is None:
            raise ValidationError(f"Room not found: {line.get('room_id')}")
        cleaned.append(
            {
                "room_id": room.pk,
                "type": line.get("type") or room.name,
                "number": str(line["number"]),
                "main_image": line.get("main_image") or (room.main_image.name if room.main_image else ""),
                **{key: round_amount(line.get(key)) for key in LINE_AMOUNT_KEYS},
            }
        )
    return cleaned


def _named(raw):
    """Hall sub-documents are only kept when they carry a name."""
    value = parse_json_field(raw, None)
    if isinstance(value, dict) and value.get("name"):
        return value
    return None


def _payment_references(data, method):
    refs = {}
    if method == PaymentMethod.ONLINE:
        refs = {
            "razorpay_order_id": data.get("razorpay_order_id") or "",
            "razorpay_payment_id": data.get("razorpay_payment_id") or "",
            "razorpay_signature": data.get("razorpay_signature") or "",
            "razorpay_amount": round_amount(data.get("razorpay_amount"), default=None),
            "razorpay_currency": data.get("razorpay_currency") or "INR",
        }
        if refs["razorpay_signature"] and not gateway.verify_signature(
            refs["razorpay_order_id"], refs["razorpay_payment_id"], refs["razorpay_signature"]
        ):
            raise ValidationError("Invalid payment signature")
    elif method == PaymentMethod.PAYMENT_LINK:
        link_id = data.get("razorpay_payment_link_id")
        if not link_id:
            raise ValidationError("Missing required field: razorpay_payment_link_id")
        if not gateway.RazorpayClient().payment_link_is_paid(link_id):
            raise ValidationError("Payment not completed")
        refs = {"razorpay_payment_link_id": link_id}
    elif method == PaymentMethod.QR:
        refs = {
            "razorpay_qr_code_id": data.get("razorpay_qr_code_id") or "",
            "razorpay_amount": round_amount(data.get("razorpay_amount"), default=None),
            "razorpay_currency": data.get("razorpay_currency") or "INR",
        }
    return refs


def _save_files(files):
    for f in files:
        validate_upload(f)
    return [save_upload(f, GUEST_FILES_FOLDER) for f in files]


def _stamp(when=None):
    return (when or timezone.now()).isoformat()


# ---------- guest directory ----------

def upsert_guest(booking):
    guest, created = GuestInfo.objects.get_or_create(
        guest_id=booking.guest_id,
        defaults={"first_name": booking.first_name, "last_name": booking.last_name},
    )
    guest.first_name = booking.first_name
    guest.last_name = booking.last_name
    guest.email = booking.email or guest.email
    for name in GUEST_FIELDS:
        value = getattr(booking, name)
        if value:
            setattr(guest, name, value)
    if booking.date_of_birth:
        guest.date_of_birth = booking.date_of_birth

    payment_status = booking.payment_status
    txn = Transaction.objects.filter(booking_number=booking.booking_number).first()
    if txn is not None:
        payment_status = PaymentStatus.COMPLETED if txn.is_fully_paid else PaymentStatus.PENDING

    guest.stay_history = [
        s for s in guest.stay_history if s.get("booking_number") != booking.booking_number
    ] + [
        {
            "booking_number": booking.booking_number,
            "property_type": booking.property_type,
            "check_in": booking.check_in_date.isoformat(),
            "check_out": booking.check_out_date.isoformat(),
            "amount": (booking.total_amount or {}).get("total", 0),
            "payment_status": str(payment_status),
        }
    ]
    guest.total_visits = len(guest.stay_history)
    guest.total_amount_spent = sum(s.get("amount") or 0 for s in guest.stay_history)
    guest.save()
    return SideEffectResult("guest_directory", detail={"guest_id": guest.guest_id, "created": created})


# ---------- 1) create ----------

def _insert_booking(fields):
    """Insert with a fresh booking number, retrying when a concurrent request took it."""
    retries = settings.HOTELBOOK.get("BOOKING_NUMBER_RETRIES", 5)
    for attempt in range(retries):
        number = next_booking_number()
        try:
            with transaction.atomic():
                return Booking.objects.create(booking_number=number, **fields)
        except IntegrityError:
            if not Booking.objects.filter(booking_number=number).exists():
                raise
            log.warning("Booking number %s taken, retrying (%s/%s)", number, attempt + 1, retries)
    raise Conflict("A booking with this number already exists.")


def create_booking(data, files=()):
    totals = round_totals(data.get("total_amount"))

    method = data.get("payment_method")
    if method and method != PaymentMethod.COD:
        gateway.load_keys()
        if data.get("payment_status") != PaymentStatus.COMPLETED:
            raise ValidationError("Invalid payment status")

    name = missing_field(data, REQUIRED_FIELDS)
    if name:
        raise ValidationError(f"Missing required field: {name}")
    if method not in PaymentMethod.values:
        raise ValidationError("Invalid payment method")
    if data.get("payment_status") not in PaymentStatus.values:
        raise ValidationError("Invalid payment status")

    check_in = parse_when(str(data["check_in_date"]), "check_in_date")
    check_out = parse_when(str(data["check_out_date"]), "check_out_date")
    if check_out <= check_in:
        raise ValidationError("Check-out date must be after check-in date")

    lines = clean_room_lines(data.get("rooms"))
    property_type = data.get("property_type") or PropertyKind.ROOM
    if property_type not in PropertyKind.values:
        raise ValidationError("Invalid property type")

    fields = {
        "property_type": property_type,
        "first_name": data["first_name"],
        "last_name": data["last_name"],
        "email": data["email"],
        "check_in_date": check_in,
        "check_out_date": check_out,
        "number_of_rooms": len(lines),
        "number_of_nights": max(1, (check_out.date() - check_in.date()).days),
        "guests": parse_json_field(data.get("guests"), {}) or {},
        "rooms": lines,
        "total_amount": totals,
        "payment_method": method,
        "payment_status": data["payment_status"],
        "status": BookingStatus.BOOKED,
        "status_timestamps": {BookingStatus.BOOKED.value: _stamp()},
        "selected_services": parse_json_field(data.get("services"), []) or [],
    }
    for name in GUEST_FIELDS:
        if data.get(name):
            fields[name] = data[name]
    if data.get("date_of_birth"):
        fields["date_of_birth"] = parse_when(str(data["date_of_birth"]), "date_of_birth").date()

    if property_type == PropertyKind.HALL:
        fields["groom_details"] = _named(data.get("groom_details"))
        fields["bride_details"] = _named(data.get("bride_details"))
        fields["event_type"] = data.get("event_type") or ""
        fields["time_slot"] = _named(data.get("time_slot"))

    fields.update(_payment_references(data, method))

    guest_id, _ = resolve_guest_id(data.get("email", ""), data.get("mobile_no", ""))
    fields["guest_id"] = guest_id

    stored_files = _save_files(files)
    fields["uploaded_files"] = stored_files
    try:
        booking = _insert_booking(fields)
    except Exception:
        for f in stored_files:
            delete_upload(f["path"])
        raise

    log.info("Booking %s created for %s", booking.booking_number, booking.email)
    outcome = BookingOutcome(booking)
    outcome.add(best_effort("guest_directory", upsert_guest, booking))
    outcome.add(availability.register_booking(booking))

    mail = best_effort("confirmation_email", send_booking_confirmation, booking)
    outcome.add(mail)
    outcome.email_sent = mail.ok
    return outcome


# ---------- 2) transition ----------

def _apply_edits(booking, data, files):
    changed = []
    for name in EDITABLE_FIELDS:
        if name in data and data.get(name) is not None:
            setattr(booking, name, data.get(name))
            changed.append(name)
    for name in ("groom_details", "bride_details", "time_slot"):
        if name in data:
            setattr(booking, name, parse_json_field(data.get(name), None))
            changed.append(name)

    if "existing_files" in data or files:
        kept = parse_json_field(data.get("existing_files"), None)
        current = booking.uploaded_files if kept is None else kept
        booking.uploaded_files = list(current) + _save_files(files)
        changed.append("uploaded_files")
    return changed


def transition_booking(booking_number, data, files=()):
    """
    PUT /api/bookings/<booking_number>

    ``status`` is optional; without it only the field edits are applied.
    """
    new_status = data.get("status") or None
    if new_status is not None and new_status not in BookingStatus.values:
        raise ValidationError("Invalid status")

    now = timezone.now()
    with transaction.atomic():
        booking = get_booking(booking_number, lock=True)
        old_status = str(booking.status)
        status_changed = new_status is not None and new_status != old_status
        if status_changed and not booking.can_move_to(new_status):
            raise ValidationError(f"Cannot change status from {old_status} to {new_status}")

        update_fields = _apply_edits(booking, data, files)
        if status_changed:
            booking.status = new_status
            booking.status_timestamps = dict(booking.status_timestamps or {}, **{new_status: _stamp(now)})
            update_fields += ["status", "status_timestamps"]
        if update_fields:
            booking.save(update_fields=list(dict.fromkeys(update_fields + ["updated_at"])))

    outcome = BookingOutcome(booking)
    if not status_changed:
        return outcome

    log.info("Booking %s: %s -> %s", booking.booking_number, old_status, new_status)
    if new_status == BookingStatus.CHECKIN:
        try:
            outcome.add(consume_for_checkin(booking))
        except Exception as exc:
            log.exception("Inventory consumption failed for %s", booking.booking_number)
            outcome.add(SideEffectResult.failed("inventory", exc))

    outcome.add(availability.apply_status_to_rooms(booking, new_status, now))

    if new_status == BookingStatus.CANCELLED:
        mail = best_effort("cancellation_email", send_booking_cancellation, booking)
        outcome.add(mail)
        outcome.email_sent = mail.ok

    if new_status == BookingStatus.CHECKOUT:
        outcome.add(best_effort("invoice", issue_invoice_for_booking, booking))

    return outcome


# ---------- 3) delete ----------

def delete_booking(booking_number):
    """Removes the booking and its uploads. Occupancy rows are left as they are."""
    booking = get_booking(booking_number)
    results = [delete_upload(f.get("path")) for f in booking.uploaded_files or [] if f.get("path")]
    booking.delete()
    log.info("Booking %s deleted", booking_number)
    return results


# ---------- 4) invoices ----------

def issue_invoice_for_booking(booking):
    """
    Give a completed, fully paid booking its invoice number and invoice.
    A booking that already has a number never gets another one; a missing
    Invoice row for that number is recreated from the booking.
    """
    hotel = HotelProfile.load()

    with transaction.atomic():
        locked = Booking.objects.select_for_update().get(pk=booking.pk)
        txn = Transaction.objects.filter(booking_number=locked.booking_number).first()

        if not locked.invoice_number:
            if locked.payment_status != PaymentStatus.COMPLETED or txn is None or not txn.is_fully_paid:
                return SideEffectResult("invoice", detail={"skipped": "not fully paid"})
            locked.invoice_number = get_next_invoice_number()
            locked.save(update_fields=["invoice_number", "updated_at"])

        invoice, created = create_invoice_record(locked, txn, hotel)

    booking.invoice_number = locked.invoice_number
    return SideEffectResult(
        "invoice", detail={"invoice_number": invoice.invoice_number, "created": created}
    )


def backfill_invoices():
    """Checked-out, paid bookings that somehow missed their invoice."""
    issued = 0
    candidates = Booking.objects.filter(
        status=BookingStatus.CHECKOUT,
        payment_status=PaymentStatus.COMPLETED,
        invoice_number__isnull=True,
    )
    for booking in candidates:
        result = best_effort("invoice", issue_invoice_for_booking, booking)
        if result.ok and result.detail.get("created"):
            issued += 1
    return issued


# ---------- 5) sweep ----------

def _checkout_overdue(booking, now):
    with transaction.atomic():
        locked = Booking.objects.select_for_update().get(pk=booking.pk)
        if str(locked.status) not in (BookingStatus.BOOKED, BookingStatus.CHECKIN):
            return False
        locked.status = BookingStatus.CHECKOUT
        locked.status_timestamps = dict(
            locked.status_timestamps or {}, **{BookingStatus.CHECKOUT.value: _stamp(now)}
        )
        locked.save(update_fields=["status", "status_timestamps", "updated_at"])

    availability.apply_status_to_rooms(locked, BookingStatus.CHECKOUT, now)
    best_effort("invoice", issue_invoice_for_booking, locked)
    return True


def _force_checkout(booking, now):
    stamps = dict(booking.status_timestamps or {}, **{BookingStatus.CHECKOUT.value: _stamp(now)})
    forced = Booking.objects.filter(
        pk=booking.pk, status__in=[BookingStatus.BOOKED, BookingStatus.CHECKIN]
    ).update(status=BookingStatus.CHECKOUT, status_timestamps=stamps, updated_at=timezone.now())
    if not forced:
        return False
    booking.status = BookingStatus.CHECKOUT
    booking.status_timestamps = stamps
    failed = [r for r in availability.apply_status_to_rooms(booking, BookingStatus.CHECKOUT, now) if not r.ok]
    if failed:
        log.warning("Forced checkout of %s left %s room updates undone", booking.booking_number, len(failed))
    best_effort("invoice", issue_invoice_for_booking, booking)
    return True


def sweep_overdue_bookings(now=None):
    """
    Check out every booked / checked-in booking whose check-out time has passed
    and invoice the fully paid ones. Returns how many bookings were checked out.
    """
    now = now or timezone.now()
    overdue = Booking.objects.filter(
        status__in=[BookingStatus.BOOKED, BookingStatus.CHECKIN],
        check_out_date__lt=now,
    )
    count = 0
    for booking in overdue:
        try:
            changed = _checkout_overdue(booking, now)
        except Exception:
            log.exception("Auto checkout of %s failed, forcing status", booking.booking_number)
            changed = _force_checkout(booking, now)
        if changed:
            count += 1
    if count:
        log.info("Auto checkout: %s overdue bookings checked out", count)
    return count

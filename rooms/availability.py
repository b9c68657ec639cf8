# rooms/availability.py
"""
Occupancy bookkeeping for physical units.

The same occupancy fact is kept in two places:
  * RoomUnit.booked_dates       - what the booking calendar reads
  * RoomAvailability.history    - full per unit history with status timestamps

Both are updated here so callers never touch the JSON lists directly.
"""
import logging

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from common.utils import SideEffectResult, best_effort
from .models import OccupancyStatus, Room, RoomAvailability, RoomUnit

log = logging.getLogger(__name__)

RELEASING_STATUSES = (OccupancyStatus.CHECKOUT, OccupancyStatus.CANCELLED)


def _iso(value):
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def _as_datetime(value):
    if value is None or hasattr(value, "isoformat"):
        return value
    return parse_datetime(str(value))


def empty_status_timestamps():
    return {s: None for s in OccupancyStatus.values}


def booked_date_entry(booking):
    return {
        "booking_number": booking.booking_number,
        "check_in": _iso(booking.check_in_date),
        "check_out": _iso(booking.check_out_date),
        "status": str(booking.status),
        "guests": booking.guests or {},
    }


def booking_record(booking):
    """History snapshot written into RoomAvailability for ``booking``."""
    return {
        "booking_number": booking.booking_number,
        "check_in": _iso(booking.check_in_date),
        "check_out": _iso(booking.check_out_date),
        "status": str(booking.status),
        "guests": booking.guests or {},
        "customer_name": f"{booking.first_name} {booking.last_name}".strip(),
        "customer_email": booking.email,
        "customer_phone": booking.mobile_no,
    }


# ---------- RoomUnit.booked_dates ----------

def push_booked_date(room_id, number, booking):
    with transaction.atomic():
        unit = (
            RoomUnit.objects.select_for_update()
            .filter(room_id=room_id, number=str(number))
            .first()
        )
        if unit is None:
            return SideEffectResult.failed(
                "booked_dates.push", "Room unit not found", room_id=room_id, number=str(number)
            )
        entries = [e for e in unit.booked_dates if e.get("booking_number") != booking.booking_number]
        entries.append(booked_date_entry(booking))
        unit.booked_dates = entries
        unit.save(update_fields=["booked_dates", "updated_at"])
    return SideEffectResult("booked_dates.push", detail={"number": str(number)})


def set_booked_date_status(room_id, number, booking_number, status):
    status = str(status)
    with transaction.atomic():
        unit = (
            RoomUnit.objects.select_for_update()
            .filter(room_id=room_id, number=str(number))
            .first()
        )
        if unit is None:
            return SideEffectResult.failed(
                "booked_dates.status", "Room unit not found", room_id=room_id, number=str(number)
            )
        for entry in unit.booked_dates:
            if entry.get("booking_number") == booking_number:
                entry["status"] = status
        unit.save(update_fields=["booked_dates", "updated_at"])
    return SideEffectResult("booked_dates.status", detail={"number": str(number)})


def release_booked_date(room_id, number, booking_number):
    """Drop the booking from the unit's calendar so the unit can be sold again."""
    with transaction.atomic():
        unit = (
            RoomUnit.objects.select_for_update()
            .filter(room_id=room_id, number=str(number))
            .first()
        )
        if unit is None:
            return SideEffectResult.failed(
                "booked_dates.release", "Room unit not found", room_id=room_id, number=str(number)
            )
        before = len(unit.booked_dates)
        unit.booked_dates = [e for e in unit.booked_dates if e.get("booking_number") != booking_number]
        if len(unit.booked_dates) != before:
            unit.save(update_fields=["booked_dates", "updated_at"])
    return SideEffectResult("booked_dates.release", detail={"number": str(number)})


# ---------- RoomAvailability.booking_history ----------

def upsert_booking_record(room_id, room_number, record, room_type="", when=None):
    """
    Insert or refresh the history entry for record["booking_number"].
    An existing entry gets its status, that status' timestamp and any changed dates updated.
    """
    when = _iso(when or timezone.now())
    status = str(record.get("status") or OccupancyStatus.BOOKED)

    if not Room.objects.filter(pk=room_id).exists():
        raise Room.DoesNotExist(f"Room {room_id} not found")

    with transaction.atomic():
        avail, _ = RoomAvailability.objects.select_for_update().get_or_create(
            room_id=room_id,
            room_number=str(room_number),
            defaults={"room_type": room_type},
        )
        entry = avail.find_entry(record["booking_number"])
        if entry is not None:
            entry["status"] = status
            entry.setdefault("status_timestamps", empty_status_timestamps())[status] = when
            for key in ("check_in", "check_out"):
                if record.get(key) and record[key] != entry.get(key):
                    entry[key] = record[key]
        else:
            timestamps = empty_status_timestamps()
            timestamps[status] = when
            avail.booking_history.append(dict(record, status=status, status_timestamps=timestamps))
        if room_type and not avail.room_type:
            avail.room_type = room_type
        avail.save(update_fields=["booking_history", "room_type", "updated_at"])
    return avail


def set_history_status(room_id, room_number, booking_number, status, when=None):
    status = str(status)
    when = _iso(when or timezone.now())
    with transaction.atomic():
        avail = (
            RoomAvailability.objects.select_for_update()
            .filter(room_id=room_id, room_number=str(room_number))
            .first()
        )
        if avail is None:
            return SideEffectResult.failed(
                "availability.status", "Availability record not found", number=str(room_number)
            )
        entry = avail.find_entry(booking_number)
        if entry is None:
            return SideEffectResult.failed(
                "availability.status", "Booking not in unit history", number=str(room_number)
            )
        entry["status"] = status
        entry.setdefault("status_timestamps", empty_status_timestamps())[status] = when
        avail.save(update_fields=["booking_history", "updated_at"])
    return SideEffectResult("availability.status", detail={"number": str(room_number), "status": status})


def drop_booking_records(booking_number, action="remove", room_id=None, room_number=None):
    """
    Manual clean-up used by DELETE /rooms/availability.
    ``remove`` deletes the history entries, ``cancel`` marks them cancelled.
    Returns how many availability rows changed.
    """
    qs = RoomAvailability.objects.all()
    if room_id:
        qs = qs.filter(room_id=room_id)
    if room_number:
        qs = qs.filter(room_number=str(room_number))

    when = _iso(timezone.now())
    changed = 0
    with transaction.atomic():
        for avail in qs.select_for_update():
            entry = avail.find_entry(booking_number)
            if entry is None:
                continue
            if action == "cancel":
                entry["status"] = OccupancyStatus.CANCELLED.value
                entry.setdefault("status_timestamps", empty_status_timestamps())[OccupancyStatus.CANCELLED.value] = when
            else:
                avail.booking_history = [
                    e for e in avail.booking_history if e.get("booking_number") != booking_number
                ]
            avail.save(update_fields=["booking_history", "updated_at"])
            changed += 1
    return changed


# ---------- whole booking helpers ----------

def register_booking(booking):
    """Occupancy writes for a freshly created booking, one pair per room line."""
    results = []
    record = booking_record(booking)
    for line in booking.rooms or []:
        room_id, number = line.get("room_id"), line.get("number")
        results.append(best_effort("booked_dates.push", push_booked_date, room_id, number, booking))
        results.append(
            best_effort(
                "availability.upsert",
                upsert_booking_record,
                room_id,
                number,
                record,
                room_type=line.get("type", ""),
            )
        )
    return results


def apply_status_to_rooms(booking, new_status, when=None):
    """
    Mirror a booking status change into both occupancy copies.
    Checkout and cancellation free the unit.
    """
    results = []
    for line in booking.rooms or []:
        room_id, number = line.get("room_id"), line.get("number")
        results.append(
            best_effort(
                "availability.status",
                set_history_status,
                room_id,
                number,
                booking.booking_number,
                new_status,
                when,
            )
        )
        if new_status in RELEASING_STATUSES:
            results.append(
                best_effort("booked_dates.release", release_booked_date, room_id, number, booking.booking_number)
            )
        else:
            results.append(
                best_effort(
                    "booked_dates.status",
                    set_booked_date_status,
                    room_id,
                    number,
                    booking.booking_number,
                    new_status,
                )
            )
    for r in results:
        if not r.ok:
            log.warning("Booking %s: %s failed: %s", booking.booking_number, r.name, r.reason)
    return results


def overlaps(entry, start, end):
    """True when the history/booked-date ``entry`` intersects [start, end)."""
    check_in = _as_datetime(entry.get("check_in"))
    check_out = _as_datetime(entry.get("check_out"))
    if check_in is None or check_out is None:
        return False
    if start and check_out <= start:
        return False
    if end and check_in >= end:
        return False
    return True


def free_units(room, start, end):
    """Units of ``room`` with no active booked date overlapping [start, end)."""
    busy_statuses = {
        OccupancyStatus.BOOKED.value,
        OccupancyStatus.CHECKIN.value,
        OccupancyStatus.MAINTENANCE.value,
    }
    free = []
    for unit in room.units.all():
        if not any(
            e.get("status") in busy_statuses and overlaps(e, start, end)
            for e in unit.booked_dates
        ):
            free.append(unit)
    return free

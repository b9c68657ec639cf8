from datetime import date, timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from finance.models import FinanceSettings, FinancialYear
from rooms.models import Room, RoomUnit


def make_user(username="frontdesk"):
    return get_user_model().objects.create_user(username=username, password="pass1234")


def make_room(name="Deluxe", numbers=("101",), price=2000, type="room"):
    room = Room.objects.create(type=type, name=name, price=price, capacity=2, max_guests=3)
    for n in numbers:
        RoomUnit.objects.create(room=room, number=n)
    return room


def make_finance_settings(prefix="INV", sequence=0, start=date(2024, 4, 1), end=date(2025, 3, 31)):
    fs = FinanceSettings.objects.create(
        invoice_prefix=prefix,
        financial_year_start=start,
        financial_year_end=end,
        invoice_financial_year=f"{start.year % 100:02d}-{end.year % 100:02d}",
        invoice_sequence=sequence,
    )
    year = FinancialYear.objects.create(
        settings=fs,
        start_date=start,
        end_date=end,
        year_format=fs.invoice_financial_year,
        sequence=sequence,
        is_active=True,
    )
    return fs, year


def booking_payload(room, number="101", check_in=None, check_out=None, **overrides):
    check_in = check_in or timezone.now() + timedelta(days=1)
    check_out = check_out or check_in + timedelta(days=2)
    data = {
        "first_name": "Asha",
        "last_name": "Rao",
        "email": "asha@example.com",
        "mobile_no": "9876543210",
        "check_in_date": check_in.isoformat(),
        "check_out_date": check_out.isoformat(),
        "payment_method": "cod",
        "payment_status": "pending",
        "guests": {"adults": 2, "children": 0},
        "rooms": [
            {
                "room_id": room.pk,
                "type": room.name,
                "number": number,
                "price": 2000.5,
                "igst": 240,
                "additional_guest_charge": 0,
                "total_amount": 2240.5,
            }
        ],
        "total_amount": {
            "room_charge": 2000.5,
            "taxes": 240,
            "additional_guest_charge": 0,
            "services_charge": 0,
            "discount": 0,
            "discount_amount": 0,
            "total": 2240.5,
        },
    }
    data.update(overrides)
    return data

import hashlib
import hmac
import re
from datetime import timedelta
from smtplib import SMTPException
from unittest.mock import Mock, patch

from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from booking import services
from booking.models import Booking, GuestInfo
from finance import gateway
from finance.models import Invoice
from finance.payments import record_payment
from inventory.models import ComplementaryItem, InventoryItem
from rooms.models import RoomAvailability, RoomUnit
from setup.models import PaymentGatewayKeys
from tests.helpers import booking_payload, make_finance_settings, make_room, make_user

ADD_URL = "/api/bookings/addbooking"


class BookingTestCase(TestCase):
    def setUp(self):
        pdf = patch("booking.emails.render_html_to_pdf_bytes", return_value=b"%PDF-1.4 test")
        pdf.start()
        self.addCleanup(pdf.stop)

        self.room = make_room(numbers=("101", "102"))
        self.guest = APIClient()
        self.staff = APIClient()
        self.staff.force_authenticate(make_user())

    def create(self, **overrides):
        resp = self.guest.post(ADD_URL, booking_payload(self.room, **overrides), format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        return resp.data["booking"]["booking_number"]

    def pay_in_full(self, booking_number, amount=2241):
        booking = Booking.objects.get(booking_number=booking_number)
        return record_payment(
            {
                "booking_id": str(booking.pk),
                "booking_number": booking_number,
                "payment_method": "cod",
                "amount": amount,
                "payment_date": timezone.now().isoformat(),
                "customer_name": booking.full_name,
                "payable_amount": 2241,
            }
        )


class CreateBookingTests(BookingTestCase):
    def test_guest_checkout(self):
        resp = self.guest.post(ADD_URL, booking_payload(self.room), format="json")

        self.assertEqual(resp.status_code, 201)
        self.assertTrue(resp.data["success"])
        self.assertTrue(resp.data["email_sent"])
        booking = resp.data["booking"]
        self.assertRegex(booking["booking_number"], r"^B-\d{6}-0001$")
        self.assertEqual(booking["status"], "booked")
        self.assertEqual(booking["total_amount"]["total"], 2241)
        self.assertEqual(booking["rooms"][0]["price"], 2001)
        self.assertEqual(booking["number_of_nights"], 2)
        self.assertIn("booked", booking["status_timestamps"])

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, f"Booking Confirmation - {booking['booking_number']}")
        self.assertEqual(mail.outbox[0].attachments[0][0], f"{booking['booking_number']}.pdf")

        unit = RoomUnit.objects.get(room=self.room, number="101")
        self.assertEqual(unit.booked_dates[0]["booking_number"], booking["booking_number"])
        self.assertTrue(RoomAvailability.objects.filter(room=self.room, room_number="101").exists())

    def test_returning_guest_keeps_guest_id(self):
        first = self.create()
        second = self.create(number="102")

        self.assertTrue(first.endswith("-0001"))
        self.assertTrue(second.endswith("-0002"))
        b1 = Booking.objects.get(booking_number=first)
        b2 = Booking.objects.get(booking_number=second)
        self.assertEqual(b1.guest_id, b2.guest_id)

        guest = GuestInfo.objects.get(guest_id=b1.guest_id)
        self.assertEqual(guest.total_visits, 2)
        self.assertEqual(guest.total_amount_spent, 4482)
        self.assertEqual(
            [s["booking_number"] for s in guest.stay_history], [first, second]
        )

    def test_missing_required_field(self):
        payload = booking_payload(self.room)
        del payload["last_name"]
        resp = self.guest.post(ADD_URL, payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Missing required field: last_name")
        self.assertFalse(Booking.objects.exists())

    def test_invalid_total(self):
        resp = self.guest.post(ADD_URL, booking_payload(self.room, total_amount={}), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Invalid total amount")

    def test_zero_total_is_rejected(self):
        payload = booking_payload(self.room)
        payload["total_amount"]["total"] = 0
        resp = self.guest.post(ADD_URL, payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Invalid total amount")
        self.assertFalse(Booking.objects.exists())

    def test_unknown_property_type(self):
        resp = self.guest.post(ADD_URL, booking_payload(self.room, property_type="suite"), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Invalid property type")
        self.assertFalse(Booking.objects.exists())

    def test_checkout_before_checkin(self):
        now = timezone.now()
        resp = self.guest.post(
            ADD_URL,
            booking_payload(self.room, check_in=now + timedelta(days=2), check_out=now + timedelta(days=1)),
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Check-out date must be after check-in date")

    def test_unknown_room(self):
        payload = booking_payload(self.room)
        payload["rooms"][0]["room_id"] = 9999
        resp = self.guest.post(ADD_URL, payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Room not found: 9999")

    def test_mail_failure_still_creates_booking(self):
        with patch("booking.services.send_booking_confirmation", side_effect=SMTPException("down")):
            resp = self.guest.post(ADD_URL, booking_payload(self.room), format="json")

        self.assertEqual(resp.status_code, 201)
        self.assertFalse(resp.data["email_sent"])
        self.assertIn("could not be sent", resp.data["message"])
        self.assertTrue(Booking.objects.exists())
        failed = [d for d in resp.data["diagnostics"] if not d["ok"]]
        self.assertEqual(failed[0]["name"], "confirmation_email")

    def test_number_collision_is_a_conflict(self):
        taken = self.create()
        with patch("booking.services.next_booking_number", return_value=taken):
            resp = self.guest.post(ADD_URL, booking_payload(self.room, number="102"), format="json")

        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["error"], "A booking with this number already exists.")
        self.assertEqual(Booking.objects.count(), 1)


class GatewayBookingTests(BookingTestCase):
    def setUp(self):
        super().setUp()
        PaymentGatewayKeys.objects.create(api_key="rzp_test_key", secret_key="sekret")

    def sign(self, order_id, payment_id, secret="sekret"):
        return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()

    def test_online_needs_completed_status(self):
        resp = self.guest.post(
            ADD_URL, booking_payload(self.room, payment_method="online", payment_status="pending"), format="json"
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Invalid payment status")

    def test_online_signature_is_checked(self):
        payload = booking_payload(
            self.room,
            payment_method="online",
            payment_status="completed",
            razorpay_order_id="order_1",
            razorpay_payment_id="pay_1",
            razorpay_signature="bad",
        )
        resp = self.guest.post(ADD_URL, payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Invalid payment signature")

        payload["razorpay_signature"] = self.sign("order_1", "pay_1")
        resp = self.guest.post(ADD_URL, payload, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["booking"]["razorpay_payment_id"], "pay_1")

    @patch("finance.gateway.requests.request")
    def test_unpaid_payment_link_is_rejected(self, request):
        request.return_value = Mock(status_code=200, json=Mock(return_value={"status": "created"}))
        payload = booking_payload(
            self.room,
            payment_method="paymentLink",
            payment_status="completed",
            razorpay_payment_link_id="plink_1",
        )

        resp = self.guest.post(ADD_URL, payload, format="json")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Payment not completed")
        self.assertFalse(Booking.objects.exists())
        self.assertTrue(request.call_args[0][1].endswith("/payment_links/plink_1"))

    @patch("finance.gateway.requests.request")
    def test_paid_payment_link(self, request):
        request.return_value = Mock(status_code=200, json=Mock(return_value={"status": "paid"}))
        payload = booking_payload(
            self.room,
            payment_method="paymentLink",
            payment_status="completed",
            razorpay_payment_link_id="plink_2",
        )
        resp = self.guest.post(ADD_URL, payload, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["booking"]["razorpay_payment_link_id"], "plink_2")

    def test_verify_endpoint(self):
        data = {"razorpay_order_id": "order_9", "razorpay_payment_id": "pay_9"}
        resp = self.guest.post(
            "/api/bookings/verify-razorpay-payment",
            dict(data, razorpay_signature=self.sign("order_9", "pay_9")),
            format="json",
        )
        self.assertEqual(resp.status_code, 200)

        resp = self.guest.post(
            "/api/bookings/verify-razorpay-payment", dict(data, razorpay_signature="nope"), format="json"
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Invalid payment signature")


class SignatureTests(TestCase):
    def test_explicit_secret(self):
        good = hmac.new(b"s3", b"order_1|pay_1", hashlib.sha256).hexdigest()
        self.assertTrue(gateway.verify_signature("order_1", "pay_1", good, secret="s3"))
        self.assertFalse(gateway.verify_signature("order_1", "pay_2", good, secret="s3"))
        self.assertFalse(gateway.verify_signature("order_1", "pay_1", "", secret="s3"))


class TransitionTests(BookingTestCase):
    def url(self, booking_number):
        return f"/api/bookings/{booking_number}"

    def test_checkin_consumes_complementary_items(self):
        stock = InventoryItem.objects.create(
            category="Beverage", sub_category="Water", brand_name="Aqua", quantity_in_stock=10, low_quantity_alert=2
        )
        ComplementaryItem.objects.create(
            room=self.room, category="Beverage", sub_category="Water", brand_name="Aqua", quantity=2
        )
        number = self.create()

        resp = self.staff.put(self.url(number), {"status": "checkin"}, format="json")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["booking"]["status"], "checkin")
        self.assertIn("checkin", resp.data["booking"]["status_timestamps"])
        stock.refresh_from_db()
        self.assertEqual(stock.quantity_in_stock, 8)
        unit = RoomUnit.objects.get(room=self.room, number="101")
        self.assertEqual(unit.booked_dates[0]["status"], "checkin")

    def test_reads_and_writes_need_login(self):
        number = self.create()
        resp = self.guest.put(self.url(number), {"status": "checkin"}, format="json")
        self.assertEqual(resp.status_code, 401)

        resp = self.guest.get(self.url(number))
        self.assertEqual(resp.status_code, 401)
        self.assertNotIn("booking", resp.data)

        resp = self.staff.get(self.url(number))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["booking"]["booking_number"], number)

    def test_unknown_booking(self):
        resp = self.staff.put(self.url("B-000000-0000"), {"status": "checkin"}, format="json")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data["error"], "Booking not found")

    def test_rejected_transitions(self):
        number = self.create()
        resp = self.staff.put(self.url(number), {"status": "archived"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Invalid status")

        self.staff.put(self.url(number), {"status": "checkout"}, format="json")
        resp = self.staff.put(self.url(number), {"status": "checkin"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Cannot change status from checkout to checkin")

    def test_field_edit_without_status(self):
        number = self.create()
        resp = self.staff.put(self.url(number), {"address": "12 MG Road"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Booking.objects.get(booking_number=number).address, "12 MG Road")
        self.assertEqual(resp.data["booking"]["status"], "booked")

    def test_cancel_sends_mail_and_frees_unit(self):
        number = self.create()
        resp = self.staff.put(self.url(number), {"status": "cancelled"}, format="json")

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["email_sent"])
        self.assertEqual(mail.outbox[-1].subject, f"Booking Cancelled - {number}")
        self.assertEqual(RoomUnit.objects.get(room=self.room, number="101").booked_dates, [])
        entry = RoomAvailability.objects.get(room=self.room, room_number="101").find_entry(number)
        self.assertEqual(entry["status"], "cancelled")

    def test_checkout_invoices_paid_booking_once(self):
        make_finance_settings()
        number = self.create(payment_status="completed")
        self.pay_in_full(number)

        resp = self.staff.put(self.url(number), {"status": "checkout"}, format="json")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["booking"]["invoice_number"], "INV/24-25/1")
        booking = Booking.objects.get(booking_number=number)
        self.assertEqual(booking.invoice_number, "INV/24-25/1")

        services.issue_invoice_for_booking(booking)
        booking.refresh_from_db()
        self.assertEqual(booking.invoice_number, "INV/24-25/1")
        self.assertEqual(Invoice.objects.filter(booking_number=number).count(), 1)

    def test_checkout_without_full_payment_has_no_invoice(self):
        make_finance_settings()
        number = self.create(payment_status="completed")
        self.pay_in_full(number, amount=1000)

        resp = self.staff.put(self.url(number), {"status": "checkout"}, format="json")

        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.data["booking"]["invoice_number"])
        self.assertFalse(Invoice.objects.exists())

    def test_delete_leaves_occupancy_history(self):
        number = self.create()
        resp = self.staff.delete(self.url(number))
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Booking.objects.filter(booking_number=number).exists())
        self.assertTrue(RoomAvailability.objects.get(room_number="101").find_entry(number))

    def test_resend_confirmation(self):
        number = self.create()
        resp = self.staff.post(f"{self.url(number)}/resend-confirmation")
        self.assertEqual(resp.status_code, 202)
        self.assertEqual(len(mail.outbox), 2)


class SweepTests(BookingTestCase):
    def overdue(self, **overrides):
        now = timezone.now()
        return self.create(
            check_in=now - timedelta(days=1), check_out=now - timedelta(hours=1), **overrides
        )

    def test_listing_checks_out_and_invoices_overdue_bookings(self):
        make_finance_settings()
        number = self.overdue(payment_status="completed")
        self.pay_in_full(number)
        upcoming = self.create(number="102")

        resp = self.staff.get("/api/bookings/")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["updated_bookings"], 1)
        by_number = {b["booking_number"]: b for b in resp.data["bookings"]}
        self.assertEqual(by_number[number]["status"], "checkout")
        self.assertEqual(by_number[number]["invoice_number"], "INV/24-25/1")
        self.assertEqual(by_number[upcoming]["status"], "booked")
        self.assertEqual(RoomUnit.objects.get(room=self.room, number="101").booked_dates, [])

    def test_failing_checkout_is_forced(self):
        number = self.overdue()
        with patch("booking.services._checkout_overdue", side_effect=RuntimeError("lock timeout")):
            self.assertEqual(services.sweep_overdue_bookings(), 1)
        booking = Booking.objects.get(booking_number=number)
        self.assertEqual(booking.status, "checkout")
        self.assertIn("checkout", booking.status_timestamps)
        self.assertEqual(RoomUnit.objects.get(room=self.room, number="101").booked_dates, [])
        record = RoomAvailability.objects.get(room=self.room, room_number="101")
        self.assertEqual(record.booking_history[0]["status"], "checkout")

    def test_list_filters(self):
        number = self.create()
        self.create(number="102", email="other@example.com", mobile_no="9000000000")

        resp = self.staff.get("/api/bookings/", {"email": "asha@example.com"})
        self.assertEqual([b["booking_number"] for b in resp.data["bookings"]], [number])
        self.assertEqual(resp.data["updated_bookings"], 0)

    def test_celery_sweep_task(self):
        from common.tasks import auto_checkout_overdue_bookings

        self.overdue()
        self.assertEqual(auto_checkout_overdue_bookings.delay().get(), 1)
        self.assertTrue(re.match(r"^B-\d{6}-0001$", Booking.objects.get().booking_number))

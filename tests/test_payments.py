from django.test import TestCase, override_settings
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient

from finance.models import Payment, PaymentType, Transaction
from finance.payments import normalize_payment_type, record_payment
from tests.helpers import make_user


def payment(**overrides):
    data = {
        "booking_id": "42",
        "booking_number": "B-010125-0001",
        "payment_method": "cod",
        "amount": "500.4",
        "payment_date": "2025-01-01T10:00:00+05:30",
        "customer_name": "Asha Rao",
        "payable_amount": "1000",
    }
    data.update(overrides)
    return data


class RecordPaymentTests(TestCase):
    def test_payments_accumulate_on_one_transaction(self):
        txn, created = record_payment(payment())
        self.assertTrue(created)
        self.assertEqual(txn.total_paid, 500)
        self.assertEqual(txn.remaining_balance, 500)
        self.assertFalse(txn.is_fully_paid)

        txn, created = record_payment(payment(amount="500", guest_id="G250101100000"))
        self.assertFalse(created)
        self.assertEqual(txn.total_paid, 1000)
        self.assertEqual(txn.remaining_balance, 0)
        self.assertTrue(txn.is_fully_paid)
        self.assertEqual(txn.guest_id, "G250101100000")

        self.assertEqual(Transaction.objects.count(), 1)
        self.assertEqual(
            list(txn.payments.values_list("payment_number", "amount")), [(1, 500), (2, 500)]
        )

    def test_overpayment_leaves_no_negative_balance(self):
        txn, _ = record_payment(payment(amount="1200"))
        self.assertEqual(txn.remaining_balance, 0)
        self.assertTrue(txn.is_fully_paid)
        self.assertEqual(
            txn.summary(),
            {"total_paid": 1200, "total_payable": 1000, "remaining_balance": 0, "is_partial_payment": False},
        )

    def test_unknown_status_defaults_to_completed(self):
        txn, _ = record_payment(payment(status="weird"))
        self.assertEqual(txn.payments.get().status, "completed")

    def test_unknown_payment_type_is_coerced(self):
        txn, _ = record_payment(payment(payment_method="online", payment_type="wallet"))
        self.assertEqual(txn.payments.get().payment_type, PaymentType.BANK)

    def test_missing_field(self):
        with self.assertRaisesMessage(ValidationError, "Missing required field: amount"):
            record_payment(payment(amount=""))
        self.assertFalse(Payment.objects.exists())

    def test_online_needs_payment_type(self):
        with self.assertRaisesMessage(ValidationError, "Payment type is required for online/bank payments"):
            record_payment(payment(payment_method="bank"))

    def test_payment_link_needs_link_id(self):
        with self.assertRaisesMessage(
            ValidationError, "Razorpay payment link ID is required for payment link method"
        ):
            record_payment(payment(payment_method="paymentLink"))

    def test_invalid_method(self):
        with self.assertRaisesMessage(ValidationError, "Invalid payment method"):
            record_payment(payment(payment_method="crypto"))


class NormalizePaymentTypeTests(TestCase):
    def test_defaults_per_method(self):
        self.assertEqual(normalize_payment_type("cod", "voucher"), "cash")
        self.assertEqual(normalize_payment_type("paymentLink", "x"), "paymentLink")
        self.assertEqual(normalize_payment_type("qr", "x"), "")

    def test_valid_and_empty_pass_through(self):
        self.assertEqual(normalize_payment_type("online", "upi"), "upi")
        self.assertEqual(normalize_payment_type("cod", ""), "")

    def test_strict_mode_rejects(self):
        with self.assertRaisesMessage(ValidationError, "Invalid payment type: voucher"):
            normalize_payment_type("cod", "voucher", strict=True)

    def test_strict_mode_from_settings(self):
        with override_settings(HOTELBOOK={"STRICT_PAYMENT_TYPE": True}):
            with self.assertRaises(ValidationError):
                normalize_payment_type("online", "wallet")


class TransactionsAPITests(TestCase):
    url = "/api/financials/transactions"

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user())

    def test_post_returns_summary(self):
        resp = self.client.post(self.url, payment(), format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(
            resp.data["payment_summary"],
            {"total_paid": 500, "total_payable": 1000, "remaining_balance": 500, "is_partial_payment": True},
        )

    def test_get_by_booking_number(self):
        record_payment(payment())
        record_payment(payment(booking_id="43", booking_number="B-010125-0002", amount="1000"))

        resp = self.client.get(self.url, {"booking_number": "B-010125-0002"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data["transactions"]), 1)
        self.assertTrue(resp.data["payment_summary"]["is_fully_paid"])

    def test_validation_error_shape(self):
        resp = self.client.post(self.url, payment(customer_name=""), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data, {"success": False, "error": "Missing required field: customer_name"})

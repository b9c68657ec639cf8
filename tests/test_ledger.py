from datetime import datetime

from django.test import TestCase
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.test import APIClient

from finance.ledger import change_opening_balance, clean_account_payload, post_entry, record_bank_entry
from finance.models import BankAccount, BankEntry, Ledger, LedgerEntry
from tests.helpers import make_user


def at(year, month, day):
    return timezone.make_aware(datetime(year, month, day, 12, 0))


def bank_account(**overrides):
    data = dict(
        type="bank", name="Main", bank_name="HDFC", account_number="123456789",
        ifsc_code="HDFC0001234", opening_balance=5000, current_balance=5000,
    )
    data.update(overrides)
    return BankAccount.objects.create(**data)


class PostEntryTests(TestCase):
    def test_running_balance_within_month(self):
        post_entry("income", "Room", "B-1", credit=1000, date=at(2025, 1, 10))
        entry = post_entry("expenses", "Laundry", "E-1", debit="300.5", date=at(2025, 1, 11))

        self.assertEqual(entry.debit, 301)
        self.assertEqual(entry.balance, 699)
        ledger = Ledger.objects.get(month=1, year=2025)
        self.assertEqual(ledger.total_income, 1000)
        self.assertEqual(ledger.total_expenses, 301)
        self.assertEqual(ledger.closing_balance, 699)
        self.assertEqual(ledger.net_profit, 699)

    def test_new_month_opens_with_previous_closing(self):
        post_entry("income", "Room", "B-1", credit=800, date=at(2025, 1, 10))
        entry = post_entry("income", "Room", "B-2", credit=200, date=at(2025, 2, 3))

        february = Ledger.objects.get(month=2, year=2025)
        self.assertEqual(february.opening_balance, 800)
        self.assertEqual(entry.balance, 1000)

    def test_december_carries_into_january(self):
        post_entry("income", "Room", "B-1", credit=500, date=at(2024, 12, 20))
        post_entry("income", "Room", "B-2", credit=100, date=at(2025, 1, 5))
        self.assertEqual(Ledger.objects.get(month=1, year=2025).opening_balance, 500)

    def test_amount_required_for_type(self):
        with self.assertRaisesMessage(ValidationError, "Credit amount is required for income entries"):
            post_entry("income", "Room", "B-1", debit=100)
        with self.assertRaisesMessage(ValidationError, "Debit amount is required for expense entries"):
            post_entry("expenses", "Food", "E-1", credit=100)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_adjusting_bank_opening(self):
        bank = bank_account()
        ledger = post_entry(
            "income", "Hall", "B-9", credit=1500, bank=bank, adjust_bank_opening=True
        ).ledger
        bank.refresh_from_db()
        self.assertEqual(bank.opening_balance, 6500)
        ledger.refresh_from_db()
        self.assertEqual(ledger.bank_balance, 6500)


class BankEntryTests(TestCase):
    def setUp(self):
        self.bank = bank_account()
        self.cash = BankAccount.objects.create(type="cash", name="Front desk", opening_balance=200, current_balance=200)

    def test_deposit(self):
        record_bank_entry(
            {"transaction_type": "deposit", "payment_type": "cash", "from_account": self.bank.pk, "amount": "1000"}
        )
        self.bank.refresh_from_db()
        self.assertEqual(self.bank.current_balance, 6000)
        self.assertEqual(self.bank.opening_balance, 5000)
        entry = LedgerEntry.objects.get()
        self.assertEqual((entry.category, entry.credit), ("Bank Deposit", 1000))

    def test_withdrawal(self):
        record_bank_entry(
            {"transaction_type": "withdrawal", "payment_type": "bank", "from_account": self.bank.pk, "amount": 700}
        )
        self.bank.refresh_from_db()
        self.assertEqual(self.bank.current_balance, 4300)
        self.assertEqual(LedgerEntry.objects.get().category, "Bank Withdrawal")

    def test_transfer_posts_two_entries(self):
        record_bank_entry(
            {
                "transaction_type": "transfer",
                "payment_type": "bank",
                "from_account": self.bank.pk,
                "to_account": self.cash.pk,
                "amount": 500,
            }
        )
        self.bank.refresh_from_db()
        self.cash.refresh_from_db()
        self.assertEqual(self.bank.current_balance, 4500)
        self.assertEqual(self.cash.current_balance, 700)
        self.assertEqual(
            list(LedgerEntry.objects.order_by("id").values_list("category", "debit", "credit")),
            [("Bank Transfer (Out)", 500, 0), ("Bank Transfer (In)", 0, 500)],
        )

    def test_transfer_needs_target(self):
        with self.assertRaisesMessage(ValidationError, "Missing required field: to_account for transfer"):
            record_bank_entry(
                {"transaction_type": "transfer", "payment_type": "bank", "from_account": self.bank.pk, "amount": 5}
            )

    def test_unknown_account(self):
        with self.assertRaisesMessage(NotFound, "From account not found"):
            record_bank_entry(
                {"transaction_type": "deposit", "payment_type": "cash", "from_account": 9999, "amount": 5}
            )
        self.assertFalse(BankEntry.objects.exists())


class AccountRegistryTests(TestCase):
    def test_cash_accounts_drop_bank_fields(self):
        data = clean_account_payload({"type": "cash", "name": "Petty", "bank_name": "X", "ifsc_code": "Y"})
        self.assertEqual(data, {"type": "cash", "name": "Petty"})

    def test_bank_accounts_need_identity(self):
        with self.assertRaisesMessage(ValidationError, "Missing required field: ifsc_code"):
            clean_account_payload({"type": "bank", "name": "Main", "bank_name": "HDFC", "account_number": "1"})

    def test_invalid_type(self):
        with self.assertRaisesMessage(ValidationError, "Invalid account type"):
            clean_account_payload({"type": "wallet", "name": "W"})

    def test_opening_balance_change_shifts_current(self):
        account = bank_account(current_balance=6000)
        change_opening_balance(account, 4000)
        self.assertEqual((account.opening_balance, account.current_balance), (4000, 5000))


class BankAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user())

    def test_create_update_and_deactivate(self):
        resp = self.client.post(
            "/api/financials/bank",
            {"type": "bank", "name": "Main", "bank_name": "HDFC", "account_number": "123",
             "ifsc_code": "HDFC0001234", "opening_balance": 1000},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        account_id = resp.data["account"]["id"]
        self.assertEqual(resp.data["account"]["current_balance"], 1000)

        resp = self.client.patch(f"/api/financials/bank/{account_id}", {"opening_balance": 1500}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["account"]["opening_balance"], 1500)
        self.assertEqual(resp.data["account"]["current_balance"], 1500)

        resp = self.client.delete(f"/api/financials/bank/{account_id}")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(BankAccount.objects.get(pk=account_id).is_active)

    def test_ledger_book_round_trip(self):
        bank = bank_account()
        resp = self.client.post(
            "/api/financials/ledger-book",
            {"type": "income", "category": "Room", "ref_id": "B-1", "credit": 250, "bank": bank.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["ledger_summary"]["bank_balance"], 5250)

        now = timezone.localdate()
        resp = self.client.get("/api/financials/ledger-book", {"month": now.month, "year": now.year})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data["entries"]), 1)
        self.assertEqual(resp.data["account_summary"]["bank"]["credited"], 250)

from datetime import date

from django.test import TestCase
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.test import APIClient

from finance.invoicing import get_next_invoice_number, roll_over_financial_year, save_finance_settings
from finance.models import FinanceSettings, FinancialYear
from tests.helpers import make_finance_settings, make_user


class InvoiceSequenceTests(TestCase):
    def test_numbers_are_contiguous_within_a_year(self):
        fs, year = make_finance_settings()
        numbers = [get_next_invoice_number() for _ in range(3)]

        self.assertEqual(numbers, ["INV/24-25/1", "INV/24-25/2", "INV/24-25/3"])
        year.refresh_from_db()
        fs.refresh_from_db()
        self.assertEqual(year.sequence, 3)
        self.assertEqual(fs.invoice_sequence, 3)

    def test_continues_from_stored_sequence(self):
        make_finance_settings(prefix="HTL", sequence=41)
        self.assertEqual(get_next_invoice_number(), "HTL/24-25/42")

    def test_without_settings(self):
        with self.assertRaisesMessage(NotFound, "Finance settings not found"):
            get_next_invoice_number()

    def test_without_active_year(self):
        fs, year = make_finance_settings()
        FinancialYear.objects.filter(pk=year.pk).update(is_active=False)
        with self.assertRaisesMessage(NotFound, "No active financial year found"):
            get_next_invoice_number()

    def test_only_active_year_moves(self):
        fs, active = make_finance_settings()
        old = FinancialYear.objects.create(
            settings=fs, start_date=date(2023, 4, 1), end_date=date(2024, 3, 31),
            year_format="23-24", sequence=90, is_active=False,
        )
        get_next_invoice_number()
        old.refresh_from_db()
        self.assertEqual(old.sequence, 90)


class RolloverTests(TestCase):
    def test_rolls_to_next_year_after_end(self):
        fs, old = make_finance_settings(sequence=12)
        year = roll_over_financial_year(fs, today=date(2025, 4, 2))

        self.assertEqual(year.year_format, "25-26")
        self.assertEqual(year.start_date, date(2025, 4, 1))
        self.assertEqual(year.end_date, date(2026, 3, 31))
        self.assertEqual(year.sequence, 0)
        old.refresh_from_db()
        self.assertFalse(old.is_active)
        self.assertEqual(FinancialYear.objects.filter(settings=fs, is_active=True).count(), 1)

        fs.refresh_from_db()
        self.assertEqual(fs.invoice_financial_year, "25-26")
        self.assertEqual(fs.financial_year_start, date(2025, 4, 1))
        self.assertEqual(get_next_invoice_number(), "INV/25-26/1")

    def test_skips_missed_years(self):
        fs, _ = make_finance_settings()
        year = roll_over_financial_year(fs, today=date(2027, 5, 1))
        self.assertEqual(year.year_format, "27-28")
        self.assertTrue(year.start_date <= date(2027, 5, 1) <= year.end_date)

    def test_nothing_to_do_inside_window(self):
        fs, _ = make_finance_settings()
        self.assertIsNone(roll_over_financial_year(fs, today=date(2024, 10, 1)))

    def test_manual_control_blocks_rollover(self):
        fs, _ = make_finance_settings()
        fs.manual_year_control = True
        fs.save()
        self.assertIsNone(roll_over_financial_year(fs, today=date(2026, 1, 1)))
        self.assertEqual(FinancialYear.objects.count(), 1)

    def test_reactivates_existing_year_keeping_sequence(self):
        fs, _ = make_finance_settings()
        FinancialYear.objects.create(
            settings=fs, start_date=date(2025, 4, 1), end_date=date(2026, 3, 31),
            year_format="25-26", sequence=5, is_active=False,
        )
        year = roll_over_financial_year(fs, today=date(2025, 6, 1))
        self.assertEqual(year.sequence, 5)
        self.assertEqual(get_next_invoice_number(), "INV/25-26/6")


class SaveFinanceSettingsTests(TestCase):
    def test_first_save_creates_active_year(self):
        fs = save_finance_settings(
            {"start_date": "2024-04-01", "end_date": "2025-03-31", "invoice_prefix": "ABC"}
        )
        self.assertEqual(fs.invoice_prefix, "ABC")
        self.assertEqual(fs.invoice_financial_year, "24-25")
        self.assertEqual(fs.active_year.year_format, "24-25")

    def test_resave_keeps_sequence_of_known_year(self):
        fs, year = make_finance_settings(sequence=7)
        save_finance_settings(
            {"start_date": "2024-04-01", "end_date": "2025-03-31", "invoice_prefix": "INV", "color": "#112233"}
        )
        year.refresh_from_db()
        self.assertEqual(year.sequence, 7)
        fs.refresh_from_db()
        self.assertEqual(fs.color, "#112233")
        self.assertEqual(fs.invoice_sequence, 7)

    def test_validation_order(self):
        cases = [
            ({"start_date": "2024-04-01", "end_date": "2025-03-31"}, "Missing required fields"),
            (
                {"start_date": "2024-04-01", "end_date": "2024-12-31", "invoice_prefix": "INV"},
                "Financial year must span at least one full year",
            ),
            (
                {"start_date": "2024-04-15", "end_date": "2025-04-14", "invoice_prefix": "INV"},
                "Start date must be the first day of a month",
            ),
            (
                {"start_date": "2024-04-01", "end_date": "2025-03-31", "invoice_prefix": "inv"},
                "Invoice prefix must be exactly 3 uppercase letters",
            ),
        ]
        for data, message in cases:
            with self.subTest(message=message):
                with self.assertRaisesMessage(ValidationError, message):
                    save_finance_settings(data)
        self.assertFalse(FinanceSettings.objects.exists())

    def test_manual_activation_of_unknown_year(self):
        make_finance_settings()
        with self.assertRaisesMessage(NotFound, "Selected financial year not found"):
            save_finance_settings(
                {
                    "start_date": "2030-04-01",
                    "end_date": "2031-03-31",
                    "invoice_prefix": "INV",
                    "manual_year_activation": "true",
                }
            )

    def test_manual_activation_switches_year(self):
        fs, current = make_finance_settings()
        FinancialYear.objects.create(
            settings=fs, start_date=date(2023, 4, 1), end_date=date(2024, 3, 31),
            year_format="23-24", sequence=3, is_active=False,
        )
        fs = save_finance_settings(
            {
                "start_date": "2023-04-01",
                "end_date": "2024-03-31",
                "invoice_prefix": "INV",
                "manual_year_activation": True,
            }
        )
        self.assertTrue(fs.manual_year_control)
        self.assertEqual(fs.invoice_financial_year, "23-24")
        current.refresh_from_db()
        self.assertFalse(current.is_active)
        self.assertEqual(get_next_invoice_number(), "INV/23-24/4")


class FinanceSettingsAPITests(TestCase):
    url = "/api/settings/finance/invoice"

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_user())

    def test_bad_start_date_is_rejected_without_changes(self):
        fs, year = make_finance_settings()
        before = FinanceSettings.objects.values().get(pk=fs.pk)

        resp = self.client.post(
            self.url,
            {"start_date": "2025-04-15", "end_date": "2026-04-14", "invoice_prefix": "NEW"},
            format="json",
        )

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data, {"success": False, "error": "Start date must be the first day of a month"})
        self.assertEqual(FinanceSettings.objects.values().get(pk=fs.pk), before)
        self.assertEqual(FinancialYear.objects.count(), 1)

    def test_get_without_settings(self):
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data, {"success": True, "settings": None})

    def test_post_then_get(self):
        resp = self.client.post(
            self.url,
            {"start_date": "2024-04-01", "end_date": "2025-03-31", "invoice_prefix": "ABC",
             "manual_year_control": True},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["success"])

        resp = self.client.get(self.url)
        self.assertEqual(resp.data["settings"]["invoice_prefix"], "ABC")
        self.assertEqual(resp.data["settings"]["invoice_financial_year"], "24-25")
        self.assertEqual(len(resp.data["settings"]["years"]), 1)

    def test_requires_authentication(self):
        resp = APIClient().get(self.url)
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.data["success"])

from django.test import TestCase
from rest_framework.test import APIClient

from setup.models import EventType, PaymentGatewayKeys
from tests.helpers import make_user


class LookupTests(TestCase):
    def test_code_is_derived_from_name(self):
        self.assertEqual(EventType.objects.create(name="Birthday party").code, "BIRTHDAY_PARTY")
        self.assertEqual(EventType.objects.create(name="Wedding", code="wed-main").code, "WED_MAIN")


class SettingsAPITests(TestCase):
    def setUp(self):
        self.staff = APIClient()
        self.staff.force_authenticate(make_user())

    def test_room_settings_are_public(self):
        EventType.objects.create(name="Wedding")
        EventType.objects.create(name="Retired", is_active=False)

        resp = APIClient().get("/api/settings/rooms")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual([e["name"] for e in resp.data["settings"]["event_types"]], ["Wedding"])

    def test_time_slot_must_end_after_start(self):
        resp = self.staff.post(
            "/api/settings/rooms/time-slots",
            {"name": "Evening", "from_time": "18:00", "to_time": "12:00"},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Slot end time must be after its start time")

    def test_policy_singleton(self):
        resp = APIClient().get("/api/settings/policy")
        self.assertEqual(resp.data, {"success": True, "policy": None})

        resp = self.staff.post("/api/settings/policy", {"payment_policy": "50% advance"}, format="json")
        self.assertEqual(resp.status_code, 201)
        resp = self.staff.post("/api/settings/policy", {"privacy_policy": "No sharing"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["policy"]["payment_policy"], "50% advance")
        self.assertEqual(resp.data["policy"]["privacy_policy"], "No sharing")

    def test_gateway_secret_is_write_only(self):
        resp = self.staff.post(
            "/api/settings/payment-gateway", {"api_key": "rzp_live", "secret_key": "s3cret"}, format="json"
        )
        self.assertEqual(resp.status_code, 201)
        self.assertNotIn("secret_key", resp.data["keys"])
        self.assertEqual(PaymentGatewayKeys.load().secret_key, "s3cret")

        resp = APIClient().get("/api/settings/payment-gateway")
        self.assertEqual(resp.status_code, 401)

    def test_expense_heads_by_kind(self):
        self.staff.post("/api/settings/finance/expenses", {"kind": "category", "name": "Utilities"}, format="json")
        self.staff.post("/api/settings/finance/expenses", {"kind": "expense", "name": "Electricity"}, format="json")

        resp = self.staff.get("/api/settings/finance/expenses", {"kind": "expense"})
        self.assertEqual([h["name"] for h in resp.data["data"]], ["Electricity"])

# finance/gateway.py
"""
Thin Razorpay REST client.

Amounts are sent to Razorpay in paise. Keys come from the back office
(PaymentGatewayKeys) and fall back to RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET.
"""
import hashlib
import hmac
import logging

import requests
from django.conf import settings
from rest_framework.exceptions import NotFound

from common.exceptions import UpstreamUnavailable
from setup.models import PaymentGatewayKeys

log = logging.getLogger(__name__)


class GatewayKeys:
    def __init__(self, key_id, key_secret):
        self.key_id = key_id
        self.key_secret = key_secret

    def __bool__(self):
        return bool(self.key_id and self.key_secret)


def load_keys(required=True):
    stored = PaymentGatewayKeys.load()
    if stored is not None and stored.api_key and stored.secret_key:
        keys = GatewayKeys(stored.api_key, stored.secret_key)
    else:
        keys = GatewayKeys(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
    if required and not keys:
        raise NotFound("Razorpay keys not found")
    return keys


def to_paise(amount):
    return int(round(float(amount) * 100))


def verify_signature(order_id, payment_id, signature, secret=None):
    """HMAC-SHA256 of "<order_id>|<payment_id>" with the key secret, compared in constant time."""
    if not (order_id and payment_id and signature):
        return False
    secret = secret or load_keys().key_secret
    expected = hmac.new(
        secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(expected, str(signature))


class RazorpayClient:
    def __init__(self, keys=None, base_url=None, timeout=None):
        self.keys = keys or load_keys()
        self.base_url = (base_url or settings.RAZORPAY_API_BASE).rstrip("/")
        self.timeout = timeout or settings.RAZORPAY_TIMEOUT

    def _request(self, method, path, payload=None):
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = requests.request(
                method,
                url,
                json=payload,
                auth=(self.keys.key_id, self.keys.key_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log.error("Razorpay %s %s unreachable: %s", method, path, exc)
            raise UpstreamUnavailable("Payment gateway is not reachable. Please try again later.")

        try:
            data = resp.json()
        except ValueError:
            log.error("Razorpay %s %s returned non JSON (%s)", method, path, resp.status_code)
            raise UpstreamUnavailable("Invalid response from payment gateway.")

        if resp.status_code >= 400:
            message = (data.get("error") or {}).get("description") if isinstance(data, dict) else None
            log.error("Razorpay %s %s failed (%s): %s", method, path, resp.status_code, message)
            raise UpstreamUnavailable(message or "Payment gateway rejected the request.")
        return data

    def create_order(self, amount, currency="INR", receipt="", notes=None):
        return self._request(
            "POST",
            "orders",
            {
                "amount": to_paise(amount),
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
        )

    def create_payment_link(self, amount, customer, description="", currency="INR", reference_id="",
                            callback_url=""):
        payload = {
            "amount": to_paise(amount),
            "currency": currency,
            "description": description,
            "customer": customer,
            "notify": {"sms": bool(customer.get("contact")), "email": bool(customer.get("email"))},
            "reminder_enable": True,
        }
        if reference_id:
            payload["reference_id"] = reference_id
        if callback_url:
            payload["callback_url"] = callback_url
            payload["callback_method"] = "get"
        return self._request("POST", "payment_links", payload)

    def fetch_payment_link(self, payment_link_id):
        return self._request("GET", f"payment_links/{payment_link_id}")

    def payment_link_is_paid(self, payment_link_id):
        return self.fetch_payment_link(payment_link_id).get("status") == "paid"

# common/utils.py
import json
import logging
from datetime import datetime, time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_FLOOR

from django.conf import settings
from django.core.files.storage import default_storage
from django.core.mail import EmailMultiAlternatives, get_connection
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from django.utils.text import get_valid_filename
from rest_framework.exceptions import ValidationError

from setup.models import EmailConfiguration

log = logging.getLogger(__name__)


# ---------- money ----------

def round_amount(value, default=0) -> int:
    """
    Round half up to a whole rupee (2.5 -> 3, -2.5 -> -2).
    Empty / unparsable values become ``default``.
    """
    if value is None or value == "":
        return default
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    if not d.is_finite():
        return default
    return int((d + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


# ---------- best effort side effects ----------

@dataclass
class SideEffectResult:
    name: str
    ok: bool = True
    reason: str = ""
    detail: dict = field(default_factory=dict)

    @classmethod
    def failed(cls, name, reason, **detail):
        return cls(name=name, ok=False, reason=str(reason), detail=detail)

    def as_dict(self):
        data = {"name": self.name, "ok": self.ok}
        if self.reason:
            data["reason"] = self.reason
        if self.detail:
            data["detail"] = self.detail
        return data


def best_effort(name, fn, *args, **kwargs) -> SideEffectResult:
    """
    Run a side effect that must never abort the caller's primary write.
    The callable may return a SideEffectResult itself; anything else counts as ok.
    """
    try:
        result = fn(*args, **kwargs)
    except Exception as exc:
        log.exception("Side effect %s failed", name)
        return SideEffectResult.failed(name, exc)
    if isinstance(result, SideEffectResult):
        return result
    return SideEffectResult(name=name)


# ---------- request parsing ----------

def parse_json_field(value, default=None):
    """Multipart requests send nested objects as JSON strings."""
    if value is None or value == "":
        return default
    if isinstance(value, (dict, list)):
        return value
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid JSON value: {value!r}")


def missing_field(data, fields):
    """Return the first field in ``fields`` that is absent or empty in ``data``."""
    for name in fields:
        value = data.get(name)
        if value is None or value == "" or value == [] or value == {}:
            return name
    return None


def parse_when(value, label="date"):
    """Parse an ISO datetime or plain date from a query string into an aware datetime."""
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
        if parsed is None:
            day = parse_date(value)
            parsed = datetime.combine(day, time.min) if day else None
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"Invalid {label}: {value}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


# ---------- uploads ----------

def validate_upload(upload):
    opts = settings.HOTELBOOK
    if upload.content_type not in opts["ALLOWED_UPLOAD_TYPES"]:
        raise ValidationError("Invalid file type. Only JPEG, PNG and PDF files are allowed.")
    if upload.size > opts["MAX_UPLOAD_SIZE"]:
        raise ValidationError("File size too large. Maximum size is 5MB.")


def save_upload(upload, folder) -> dict:
    name = get_valid_filename(upload.name) or "upload"
    path = default_storage.save(f"{folder}/{name}", upload)
    return {"name": upload.name, "path": path, "url": default_storage.url(path)}


def delete_upload(path) -> SideEffectResult:
    try:
        if path and default_storage.exists(path):
            default_storage.delete(path)
    except OSError as exc:
        log.warning("Could not delete upload %s: %s", path, exc)
        return SideEffectResult.failed("delete_file", exc, path=path)
    return SideEffectResult(name="delete_file", detail={"path": path})


# ---------- email ----------

def get_mail_connection():
    """
    SMTP settings saved from the back office win over the ones in settings.py.
    """
    conf = EmailConfiguration.objects.order_by("-updated_at").first()
    if conf is None or not conf.smtp_host:
        return get_connection(), settings.DEFAULT_FROM_EMAIL
    connection = get_connection(
        host=conf.smtp_host,
        port=conf.smtp_port,
        username=conf.smtp_username,
        password=conf.smtp_password,
        use_tls=conf.use_tls,
        timeout=10,
    )
    return connection, conf.sender_email or settings.DEFAULT_FROM_EMAIL


def send_templated_email(subject, template_name, context, to_email, attachments=()):
    """
    Render ``template_name`` as the HTML body and send it.
    Raises on transport failure; callers decide whether that is fatal.
    """
    connection, from_email = get_mail_connection()
    html = render_to_string(template_name, context)
    msg = EmailMultiAlternatives(
        subject,
        "Please view this email in an HTML capable client.",
        from_email,
        [to_email],
        connection=connection,
    )
    msg.attach_alternative(html, "text/html")
    for filename, content, mimetype in attachments:
        msg.attach(filename, content, mimetype)
    msg.send(fail_silently=False)
    return True

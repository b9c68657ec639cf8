# common/pdf_utils.py
import logging
from io import BytesIO

from django.template.loader import render_to_string
from xhtml2pdf import pisa

log = logging.getLogger(__name__)


def render_html_to_pdf_bytes(template_name: str, context: dict) -> bytes | None:
    """
    Render a Django template to PDF bytes using xhtml2pdf.
    Returns None when xhtml2pdf reports errors, so mails can go out without the attachment.
    """
    html = render_to_string(template_name, context)

    result = BytesIO()
    pisa_status = pisa.CreatePDF(html, dest=result, encoding="utf-8")

    if pisa_status.err:
        log.error("PDF render of %s failed with %s errors", template_name, pisa_status.err)
        return None

    return result.getvalue()

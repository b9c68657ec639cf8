# finance/views.py
import logging

from django.db import transaction
from rest_framework import permissions, status, viewsets
from rest_framework.exceptions import NotFound
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.views import APIView

from common.mixins import SuccessEnvelopeMixin
from common.utils import delete_upload, parse_when
from . import ledger as ledger_service
from .invoicing import current_finance_settings, save_finance_settings
from .models import BankAccount, BankEntry, Expense, Invoice, Transaction
from .payments import record_payment
from .serializers import (
    BankAccountSerializer,
    BankEntrySerializer,
    ExpenseSerializer,
    FinanceSettingsSerializer,
    InvoiceSerializer,
    LedgerEntrySerializer,
    LedgerSerializer,
    TransactionSerializer,
)

log = logging.getLogger(__name__)


# ---------- /api/settings/finance/invoice ----------

class FinanceSettingsAPIView(APIView):
    """
    GET  -> settings with the active year (rolled over first unless manual control is on)
    POST -> save year window, prefix, colour, logo; manual_year_activation switches years
    """
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get(self, request):
        fs = current_finance_settings()
        return Response(
            {"success": True, "settings": FinanceSettingsSerializer(fs).data if fs else None},
            status=status.HTTP_200_OK,
        )

    def post(self, request):
        fs = save_finance_settings(request.data, logo=request.FILES.get("logo"))
        return Response(
            {
                "success": True,
                "message": "Finance settings saved successfully",
                "settings": FinanceSettingsSerializer(fs).data,
            },
            status=status.HTTP_200_OK,
        )


# ---------- /api/financials/transactions ----------

class TransactionsAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        q = request.query_params
        qs = Transaction.objects.prefetch_related("payments").all()
        if q.get("booking_id"):
            qs = qs.filter(booking_ref=q["booking_id"])
        if q.get("booking_number"):
            qs = qs.filter(booking_number=q["booking_number"])
        if q.get("guest_id"):
            qs = qs.filter(guest_id=q["guest_id"])
        if q.get("customer_name"):
            qs = qs.filter(customer_name__icontains=q["customer_name"])
        if q.get("payment_method"):
            qs = qs.filter(payments__payment_method=q["payment_method"])
        if q.get("status"):
            qs = qs.filter(payments__status=q["status"])
        qs = qs.distinct()

        body = {"success": True, "transactions": TransactionSerializer(qs, many=True).data}
        if q.get("booking_id") or q.get("booking_number"):
            first = qs.first()
            if first is not None:
                body["payment_summary"] = dict(first.summary(), is_fully_paid=first.is_fully_paid)
        return Response(body, status=status.HTTP_200_OK)

    def post(self, request):
        txn, created = record_payment(request.data)
        return Response(
            {
                "success": True,
                "transaction": TransactionSerializer(txn).data,
                "payment_summary": txn.summary(),
            },
            status=status.HTTP_201_CREATED,
        )


# ---------- /api/financials/invoices ----------

class InvoiceViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    """
    GET ?invoice_number=&booking_number=&email=&start_date=&end_date=
    Invoices are snapshots: edits here never touch the booking.
    """
    queryset = Invoice.objects.all()
    serializer_class = InvoiceSerializer
    permission_classes = [permissions.IsAuthenticated]
    envelope_key = "invoices"

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params
        if q.get("invoice_number"):
            qs = qs.filter(invoice_number=q["invoice_number"])
        if q.get("booking_number"):
            qs = qs.filter(booking_number=q["booking_number"])
        if q.get("email"):
            qs = qs.filter(customer_details__email=q["email"])
        start = parse_when(q.get("start_date"), "start_date")
        end = parse_when(q.get("end_date"), "end_date")
        if start:
            qs = qs.filter(invoice_date__gte=start)
        if end:
            qs = qs.filter(invoice_date__lte=end)
        return qs


# ---------- /api/financials/ledger-book ----------

class LedgerBookAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        q = request.query_params
        account_type = q.get("account_type")
        if account_type == "all":
            account_type = None
        ledger, entries, by_type = ledger_service.ledger_summary(
            q.get("month"), q.get("year"), account_type
        )
        return Response(
            {
                "success": True,
                "ledger": LedgerSerializer(ledger).data if ledger else None,
                "entries": LedgerEntrySerializer(entries, many=True).data,
                "account_summary": by_type,
            },
            status=status.HTTP_200_OK,
        )

    def post(self, request):
        data = request.data
        bank = None
        if data.get("bank"):
            bank = BankAccount.objects.filter(pk=data["bank"]).first()
        when = parse_when(str(data["date"]), "date") if data.get("date") else None

        entry = ledger_service.post_entry(
            data.get("type"),
            data.get("category"),
            data.get("ref_id"),
            debit=data.get("debit", 0),
            credit=data.get("credit", 0),
            date=when,
            bank=bank,
            description=data.get("description", ""),
            payment_type=data.get("payment_type", ""),
            adjust_bank_opening=True,
        )
        ledger = entry.ledger
        ledger.refresh_from_db()
        return Response(
            {
                "success": True,
                "entry": LedgerEntrySerializer(entry).data,
                "ledger_summary": {
                    "total_income": ledger.total_income,
                    "total_expenses": ledger.total_expenses,
                    "bank_balance": ledger.bank_balance,
                    "net_profit": ledger.net_profit,
                },
            },
            status=status.HTTP_201_CREATED,
        )


# ---------- /api/financials/bank ----------

class BankAccountViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    """
    GET ?type=bank|cash&is_active=true|false
    DELETE only deactivates: ledger rows keep pointing at the account.
    """
    queryset = BankAccount.objects.all()
    serializer_class = BankAccountSerializer
    permission_classes = [permissions.IsAuthenticated]
    envelope_key = "accounts"

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params
        if q.get("type"):
            qs = qs.filter(type=q["type"])
        if q.get("is_active") in ("true", "false"):
            qs = qs.filter(is_active=q["is_active"] == "true")
        return qs

    def create(self, request, *args, **kwargs):
        payload = ledger_service.clean_account_payload(request.data.copy())
        serializer = self.get_serializer(data=payload)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {"success": True, "account": serializer.data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        with transaction.atomic():
            account = BankAccount.objects.select_for_update().filter(pk=kwargs.get("pk")).first()
            if account is None:
                raise NotFound("Bank account not found")
            data = request.data.copy()
            new_opening = data.pop("opening_balance", None)
            if isinstance(new_opening, list):
                new_opening = new_opening[0] if new_opening else None
            serializer = self.get_serializer(account, data=data, partial=partial)
            serializer.is_valid(raise_exception=True)
            account = serializer.save()
            if new_opening not in (None, ""):
                ledger_service.change_opening_balance(account, new_opening)
                account.save(update_fields=["opening_balance", "current_balance", "updated_at"])
        return Response(
            {"success": True, "account": self.get_serializer(account).data},
            status=status.HTTP_200_OK,
        )

    def destroy(self, request, *args, **kwargs):
        account = self.get_object()
        account.is_active = False
        account.save(update_fields=["is_active", "updated_at"])
        return Response(
            {"success": True, "message": "Bank account deactivated successfully"},
            status=status.HTTP_200_OK,
        )


class BankEntryAPIView(APIView):
    """
    GET  /api/financials/bank/entry?transaction_type=&payment_type=&from_account=&to_account=&start_date=&end_date=
    POST /api/financials/bank/entry  -> deposit | withdrawal | transfer
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        q = request.query_params
        qs = BankEntry.objects.select_related("from_account", "to_account").all()
        for name in ("transaction_type", "payment_type", "from_account", "to_account"):
            if q.get(name):
                qs = qs.filter(**{name: q[name]})
        start = parse_when(q.get("start_date"), "start_date")
        end = parse_when(q.get("end_date"), "end_date")
        if start and end:
            qs = qs.filter(date__gte=start, date__lte=end)
        return Response(
            {"success": True, "entries": BankEntrySerializer(qs, many=True).data},
            status=status.HTTP_200_OK,
        )

    def post(self, request):
        entry = ledger_service.record_bank_entry(request.data)
        entry.refresh_from_db()
        return Response(
            {"success": True, "entry": BankEntrySerializer(entry).data},
            status=status.HTTP_201_CREATED,
        )


# ---------- /api/financials/expenses ----------

class ExpenseViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    queryset = Expense.objects.select_related("account").all()
    serializer_class = ExpenseSerializer
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    envelope_key = "expenses"

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params
        if q.get("category"):
            qs = qs.filter(category=q["category"])
        start = parse_when(q.get("start_date"), "start_date")
        end = parse_when(q.get("end_date"), "end_date")
        if start:
            qs = qs.filter(date__gte=start)
        if end:
            qs = qs.filter(date__lte=end)
        return qs

    def perform_destroy(self, instance):
        if instance.receipt:
            instance.receipt.delete(save=False)
        instance.delete()

    def perform_update(self, serializer):
        old = serializer.instance.receipt.name if serializer.instance.receipt else None
        expense = serializer.save()
        if old and expense.receipt.name != old:
            delete_upload(old)

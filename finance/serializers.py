# finance/serializers.py
from rest_framework import serializers

from common.utils import validate_upload
from .models import (
    BankAccount,
    BankEntry,
    Expense,
    FinanceSettings,
    FinancialYear,
    Invoice,
    Ledger,
    LedgerEntry,
    Payment,
    Transaction,
)


# ---------- settings ----------

class FinancialYearSerializer(serializers.ModelSerializer):
    class Meta:
        model = FinancialYear
        fields = ["id", "start_date", "end_date", "year_format", "sequence", "is_active"]
        read_only_fields = fields


class FinanceSettingsSerializer(serializers.ModelSerializer):
    years = FinancialYearSerializer(many=True, read_only=True)

    class Meta:
        model = FinanceSettings
        fields = [
            "id",
            "financial_year_start",
            "financial_year_end",
            "invoice_prefix",
            "invoice_sequence",
            "invoice_financial_year",
            "manual_year_control",
            "color",
            "logo",
            "years",
            "updated_at",
        ]
        read_only_fields = fields


# ---------- invoices ----------

class InvoiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "booking",
            "booking_number",
            "invoice_date",
            "status",
            "customer_details",
            "hotel_details",
            "stay_details",
            "rooms",
            "hall_details",
            "payment_details",
            "amounts",
            "selected_services",
            "transactions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_invoice_number(self, value):
        # numbers are allocated by the sequencer and never renamed
        if self.instance is not None and value != self.instance.invoice_number:
            raise serializers.ValidationError("Invoice number cannot be changed")
        return value


# ---------- transactions ----------

class PaymentSerializer(serializers.ModelSerializer):
    transaction_id = serializers.CharField(source="transaction_ref", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "payment_number",
            "payment_method",
            "payment_type",
            "amount",
            "transaction_id",
            "payment_date",
            "remarks",
            "bank",
            "razorpay_payment_link_id",
            "status",
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    booking_id = serializers.CharField(source="booking_ref", read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "booking_id",
            "booking_number",
            "customer_name",
            "guest_id",
            "payable_amount",
            "total_paid",
            "remaining_balance",
            "is_fully_paid",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


# ---------- bank / ledger ----------

class BankAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankAccount
        fields = [
            "id",
            "type",
            "name",
            "bank_name",
            "account_number",
            "ifsc_code",
            "branch",
            "opening_balance",
            "current_balance",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "current_balance", "created_at", "updated_at"]

    def create(self, validated_data):
        validated_data["current_balance"] = validated_data.get("opening_balance", 0)
        return super().create(validated_data)


class BankEntrySerializer(serializers.ModelSerializer):
    from_account_name = serializers.CharField(source="from_account.name", read_only=True)
    to_account_name = serializers.CharField(source="to_account.name", read_only=True, default=None)

    class Meta:
        model = BankEntry
        fields = [
            "id",
            "transaction_type",
            "payment_type",
            "from_account",
            "from_account_name",
            "to_account",
            "to_account_name",
            "amount",
            "date",
            "reference",
            "razorpay_payment_link_id",
            "description",
            "created_at",
        ]
        read_only_fields = fields


class LedgerEntrySerializer(serializers.ModelSerializer):
    bank_name = serializers.CharField(source="bank.name", read_only=True, default=None)

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "date",
            "type",
            "category",
            "ref_id",
            "description",
            "payment_type",
            "debit",
            "credit",
            "balance",
            "bank",
            "bank_name",
        ]
        read_only_fields = fields


class LedgerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Ledger
        fields = [
            "id",
            "month",
            "year",
            "opening_balance",
            "closing_balance",
            "total_income",
            "total_expenses",
            "net_profit",
            "bank_balance",
        ]
        read_only_fields = fields


# ---------- expenses ----------

class ExpenseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Expense
        fields = [
            "id",
            "amount",
            "category",
            "expense",
            "description",
            "date",
            "receipt",
            "payment_type",
            "account",
            "bank",
            "reference",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_receipt(self, value):
        if value:
            validate_upload(value)
        return value

from django.contrib import admin

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


class FinancialYearInline(admin.TabularInline):
    model = FinancialYear
    extra = 0
    readonly_fields = ("sequence",)


@admin.register(FinanceSettings)
class FinanceSettingsAdmin(admin.ModelAdmin):
    list_display = ("invoice_prefix", "invoice_financial_year", "invoice_sequence", "manual_year_control")
    readonly_fields = ("invoice_sequence", "invoice_financial_year")
    inlines = [FinancialYearInline]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "booking_number", "invoice_date", "status")
    search_fields = ("invoice_number", "booking_number")


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("booking_number", "customer_name", "payable_amount", "total_paid", "is_fully_paid")
    search_fields = ("booking_number", "customer_name", "guest_id")
    inlines = [PaymentInline]


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "bank_name", "opening_balance", "current_balance", "is_active")
    list_filter = ("type", "is_active")


@admin.register(BankEntry)
class BankEntryAdmin(admin.ModelAdmin):
    list_display = ("transaction_type", "from_account", "to_account", "amount", "date")
    list_filter = ("transaction_type",)


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    extra = 0


@admin.register(Ledger)
class LedgerAdmin(admin.ModelAdmin):
    list_display = ("year", "month", "opening_balance", "closing_balance", "net_profit")
    inlines = [LedgerEntryInline]


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ("category", "expense", "amount", "date")
    list_filter = ("category",)

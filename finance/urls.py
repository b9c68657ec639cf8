from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import (
    BankAccountViewSet,
    BankEntryAPIView,
    ExpenseViewSet,
    InvoiceViewSet,
    LedgerBookAPIView,
    TransactionsAPIView,
)

router = SimpleRouter(trailing_slash=False)
router.register(r"invoices", InvoiceViewSet, basename="invoice")
router.register(r"bank", BankAccountViewSet, basename="bank-account")
router.register(r"expenses", ExpenseViewSet, basename="expense")

urlpatterns = [
    # before the router so "entry" is not read as an account id
    path("bank/entry", BankEntryAPIView.as_view(), name="bank-entry"),
    path("transactions", TransactionsAPIView.as_view(), name="transactions"),
    path("ledger-book", LedgerBookAPIView.as_view(), name="ledger-book"),
    path("", include(router.urls)),
]

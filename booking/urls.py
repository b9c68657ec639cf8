# booking/urls.py
from django.urls import path

from .views import (
    AddBookingAPIView,
    BookingDetailAPIView,
    BookingListAPIView,
    CheckPaymentStatusAPIView,
    CreateRazorpayOrderAPIView,
    CreateRazorpayPaymentLinkAPIView,
    ResendConfirmationAPIView,
    VerifyRazorpayPaymentAPIView,
)

# fixed paths first; the booking number route would swallow them otherwise
urlpatterns = [
    path("", BookingListAPIView.as_view(), name="booking-list"),
    path("addbooking", AddBookingAPIView.as_view(), name="booking-add"),
    path("create-razorpay-order", CreateRazorpayOrderAPIView.as_view(), name="razorpay-order"),
    path("create-razorpay-payment-link", CreateRazorpayPaymentLinkAPIView.as_view(), name="razorpay-payment-link"),
    path("verify-razorpay-payment", VerifyRazorpayPaymentAPIView.as_view(), name="razorpay-verify"),
    path(
        "check-payment-status/<str:payment_link_id>",
        CheckPaymentStatusAPIView.as_view(),
        name="razorpay-payment-status",
    ),
    path(
        "<str:booking_number>/resend-confirmation",
        ResendConfirmationAPIView.as_view(),
        name="booking-resend-confirmation",
    ),
    path("<str:booking_number>", BookingDetailAPIView.as_view(), name="booking-detail"),
]

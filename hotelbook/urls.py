from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from finance.views import FinanceSettingsAPIView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("api/settings/finance/invoice", FinanceSettingsAPIView.as_view(), name="finance-settings"),
    path("api/settings/inventory/", include("inventory.urls")),
    path("api/settings/", include("setup.urls")),
    path("api/rooms/", include("rooms.urls")),
    path("api/bookings/", include("booking.urls")),
    path("api/guests/", include("booking.guest_urls")),
    path("api/financials/", include("finance.urls")),
    path("api/crm/", include("crm.urls")),
    path("api/employees/", include("staff.urls")),
    path("api/logbook/", include("logbook.urls")),
]
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

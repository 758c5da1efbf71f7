from django.urls import include, path

from reports.urls import dashboard_urlpatterns

urlpatterns = [
    path("api/", include("inventory.urls")),
    path("api/", include("parties.urls")),
    path("api/", include("accounts.urls")),
    path("api/quotes/", include("quotes.urls")),
    path("api/invoices/", include("billing.urls")),
    path("api/dashboard/", include((dashboard_urlpatterns, "dashboard"))),
    path("api/reports/", include("reports.urls")),
]

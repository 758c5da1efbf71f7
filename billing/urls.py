from django.urls import path
from . import views

app_name = "billing"

urlpatterns = [
    path("client", views.invoices_collection, {"side": "client"}, name="client_invoices"),
    path("client/<int:pk>", views.invoice_detail, {"side": "client"}, name="client_invoice_detail"),
    path("supplier", views.invoices_collection, {"side": "supplier"}, name="supplier_invoices"),
    path("supplier/<int:pk>", views.invoice_detail, {"side": "supplier"}, name="supplier_invoice_detail"),
]

from django.urls import path
from . import views

app_name = "quotes"

urlpatterns = [
    path("client", views.quotes_collection, {"side": "client"}, name="client_quotes"),
    path("client/<int:pk>", views.quote_detail, {"side": "client"}, name="client_quote_detail"),
    path("client/<int:pk>/status", views.quote_status, {"side": "client"}, name="client_quote_status"),
    path("client/<int:pk>/convert", views.quote_convert, {"side": "client"}, name="client_quote_convert"),
    path("supplier", views.quotes_collection, {"side": "supplier"}, name="supplier_quotes"),
    path("supplier/<int:pk>", views.quote_detail, {"side": "supplier"}, name="supplier_quote_detail"),
    path("supplier/<int:pk>/status", views.quote_status, {"side": "supplier"}, name="supplier_quote_status"),
    path("supplier/<int:pk>/convert", views.quote_convert, {"side": "supplier"}, name="supplier_quote_convert"),
]

from django.urls import path
from . import views

app_name = "parties"

urlpatterns = [
    path("clients", views.clients_collection, name="clients"),
    path("clients/<int:pk>", views.client_detail, name="client_detail"),
    path("clients/<int:pk>/stats", views.client_stats, name="client_stats"),
    path("suppliers", views.suppliers_collection, name="suppliers"),
    path("suppliers/<int:pk>", views.supplier_detail, name="supplier_detail"),
]

from django.urls import path
from . import views

app_name = "inventory"

urlpatterns = [
    path("products", views.products_collection, name="products"),
    path("products/check-reference", views.check_reference, name="check_reference"),
    path("products/<int:pk>", views.product_detail, name="product_detail"),
    path("categories", views.categories_collection, name="categories"),
    path("categories/<int:pk>", views.category_detail, name="category_detail"),
]

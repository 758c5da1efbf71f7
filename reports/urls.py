from django.urls import path
from . import views

app_name = "reports"

# dashboard_urlpatterns are mounted under api/dashboard/ by backoffice.urls.
dashboard_urlpatterns = [
    path("stats", views.stats, name="dashboard_stats"),
    path("alerts", views.alerts, name="dashboard_alerts"),
    path("top-selling-products", views.top_selling, name="dashboard_top_selling"),
    path("category-distribution", views.categories, name="dashboard_categories"),
    path("revenue-chart", views.revenue, name="dashboard_revenue_chart"),
    path("recent-activity", views.activity, name="dashboard_recent_activity"),
    path("stock-levels", views.stock, name="dashboard_stock_levels"),
]

urlpatterns = [
    path("sales/monthly", views.sales_monthly, name="sales_monthly"),
    path("clients/top", views.clients_top, name="clients_top"),
    path("clients/spending", views.clients_spending, name="clients_spending"),
    path("clients/contributions", views.clients_contributions, name="clients_contributions"),
    path("suppliers/expenses", views.suppliers_expenses, name="suppliers_expenses"),
    path("suppliers/products", views.suppliers_products, name="suppliers_products"),
    path("suppliers/<int:pk>", views.supplier_detail, name="supplier_detail"),
    path("products/inventory", views.products_inventory, name="products_inventory"),
    path("products/stock-levels", views.stock, name="products_stock_levels"),
]

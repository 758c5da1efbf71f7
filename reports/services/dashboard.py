"""
Dashboard aggregates: headline counts, alerts, top sellers, category split,
revenue chart, stock levels and recent activity.
- Headline revenue only counts PAID client invoices; the chart counts all.
- Low stock compares each product with its own reorder_level.
- Overdue = client invoice still UNPAID BACKOFFICE_OVERDUE_DAYS after creation.
"""
import calendar
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Count, F, Sum
from django.db.models.functions import ExtractMonth
from django.utils import timezone

from billing.models import ClientInvoice, ClientInvoiceItem, PaymentStatus, SupplierInvoice
from inventory.models import Category, Product
from parties.models import Client, Supplier

TOP_SELLING_LIMIT = 5
# Products under this quantity show up in the stock-level widgets.
STOCK_LEVEL_CEILING = 20
STOCK_LEVEL_LIMIT = 10


def _count_and_value(qs):
    agg = qs.aggregate(count=Count("id"), value=Sum("total_amount", default=Decimal("0.00")))
    return agg["count"], agg["value"]


def dashboard_stats():
    revenue = ClientInvoice.objects.filter(payment_status=PaymentStatus.PAID).aggregate(
        s=Sum("total_amount", default=Decimal("0.00"))
    )["s"]
    return {
        "totalProducts": Product.objects.count(),
        "lowStockProducts": Product.objects.filter(stock_quantity__lte=F("reorder_level")).count(),
        "totalRevenue": revenue,
        "pendingOrders": ClientInvoice.objects.filter(payment_status=PaymentStatus.UNPAID).count(),
        "totalClients": Client.objects.count(),
        "totalSuppliers": Supplier.objects.count(),
        "currency": settings.BACKOFFICE_CURRENCY,
    }


def dashboard_alerts(now=None):
    """Only alerts with a non-zero count are returned."""
    now = now or timezone.now()
    overdue_days = settings.BACKOFFICE_OVERDUE_DAYS
    alerts = []

    low = Product.objects.filter(stock_quantity__lte=F("reorder_level")).count()
    if low:
        alerts.append({
            "id": "low-stock",
            "type": "stock",
            "severity": "high",
            "title": "Low Stock Alert",
            "description": f"{low} products are running low on stock",
            "count": low,
        })

    count, value = _count_and_value(
        ClientInvoice.objects.filter(
            payment_status=PaymentStatus.UNPAID,
            date_created__lt=now - timedelta(days=overdue_days),
        )
    )
    if count:
        alerts.append({
            "id": "overdue-invoices",
            "type": "payment",
            "severity": "high",
            "title": "Overdue Invoices",
            "description": f"{count} invoices are overdue by more than {overdue_days} days",
            "count": count,
            "value": value,
        })

    out = Product.objects.filter(stock_quantity__lte=0).count()
    if out:
        alerts.append({
            "id": "out-of-stock",
            "type": "stock",
            "severity": "medium",
            "title": "Out of Stock Products",
            "description": f"{out} products are completely out of stock",
            "count": out,
        })

    count, value = _count_and_value(SupplierInvoice.objects.filter(payment_status=PaymentStatus.UNPAID))
    if count:
        alerts.append({
            "id": "unpaid-suppliers",
            "type": "supplier",
            "severity": "medium",
            "title": "Unpaid Supplier Invoices",
            "description": f"{count} supplier invoices are pending payment",
            "count": count,
            "value": value,
        })
    return alerts


def top_selling_products(limit=TOP_SELLING_LIMIT):
    rows = (
        ClientInvoiceItem.objects.filter(invoice__payment_status=PaymentStatus.PAID)
        .values("product_id", "product__name", "product__reference", "product__stock_quantity")
        .annotate(total_sold=Sum("quantity"), total_revenue=Sum("total_price"))
        .order_by("-total_sold", "product__name")[:limit]
    )
    return [
        {
            "id": r["product_id"],
            "name": r["product__name"],
            "reference": r["product__reference"],
            "sales": r["total_sold"],
            "totalRevenue": r["total_revenue"],
            "currentStock": r["product__stock_quantity"],
        }
        for r in rows
    ]


def category_distribution():
    data = [
        {"name": c.name, "value": c.product_count}
        for c in Category.objects.annotate(product_count=Count("products")).order_by("-product_count", "name")
    ]
    uncategorized = Product.objects.filter(category__isnull=True).count()
    if uncategorized:
        data.append({"name": "Uncategorized", "value": uncategorized})
    return data


def _monthly_totals(model, year):
    return {
        r["month"]: r["total"]
        for r in model.objects.filter(date_created__year=year)
        .annotate(month=ExtractMonth("date_created"))
        .values("month")
        .annotate(total=Sum("total_amount"))
    }


def revenue_chart(year):
    """Client invoice revenue against supplier invoice expenses, Jan..Dec."""
    revenue = _monthly_totals(ClientInvoice, year)
    expenses = _monthly_totals(SupplierInvoice, year)
    return [
        {
            "name": calendar.month_abbr[month],
            "revenue": revenue.get(month) or Decimal("0.00"),
            "expenses": expenses.get(month) or Decimal("0.00"),
        }
        for month in range(1, 13)
    ]


def stock_level_status(quantity):
    if quantity <= 5:
        return "critical"
    if quantity <= 10:
        return "low"
    return "medium"


def stock_levels(limit=STOCK_LEVEL_LIMIT):
    """Products running short, emptiest first."""
    qs = (
        Product.objects.select_related("category")
        .filter(stock_quantity__lt=STOCK_LEVEL_CEILING)
        .order_by("stock_quantity", "name")[:limit]
    )
    return [
        {
            "id": p.id,
            "name": p.name,
            "reference": p.reference,
            "stock": p.stock_quantity,
            "category": p.category.name if p.category_id else "Uncategorized",
            "status": stock_level_status(p.stock_quantity),
        }
        for p in qs
    ]


def recent_activity(limit=10):
    """Latest products, client invoices and clients merged newest first."""
    activities = []
    for p in Product.objects.select_related("category").order_by("-created_at")[:3]:
        activities.append({
            "id": f"product-{p.id}",
            "type": "product",
            "title": f"New product: {p.name}",
            "description": f"Product {p.reference} added to {p.category.name if p.category_id else 'Uncategorized'}",
            "timestamp": p.created_at,
        })
    for inv in ClientInvoice.objects.select_related("client").order_by("-date_created")[:3]:
        activities.append({
            "id": f"invoice-{inv.id}",
            "type": "invoice",
            "title": f"Invoice #{inv.id} {inv.payment_status.lower()}",
            "description": f"Invoice for {inv.client.name}",
            "timestamp": inv.date_created,
            "value": inv.total_amount,
            "status": inv.payment_status,
        })
    for c in Client.objects.order_by("-created_at")[:2]:
        activities.append({
            "id": f"client-{c.id}",
            "type": "client",
            "title": f"New client: {c.name}",
            "description": f"Client registered with email {c.email}",
            "timestamp": c.created_at,
        })
    activities.sort(key=lambda a: a["timestamp"], reverse=True)
    return activities[:limit]

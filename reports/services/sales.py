"""
Report aggregates over invoices and stock.
"""
import calendar
from datetime import timedelta
from decimal import Decimal

from django.db.models import Avg, Count, Max, Q, Sum
from django.db.models.functions import ExtractMonth, ExtractYear
from django.utils import timezone

from billing.models import ClientInvoice, PaymentStatus, SupplierInvoice
from inventory.models import Product
from parties.models import Client, Supplier

TWO_PLACES = Decimal("0.01")
ACTIVE_CLIENT_DAYS = 90


def monthly_sales(year: int):
    """
    Twelve rows (Jan..Dec) of client invoice revenue for `year`.
    growth is % change against the previous month; 0 when either month is empty.
    """
    by_month = {
        r["month"]: r
        for r in ClientInvoice.objects.filter(date_created__year=year)
        .annotate(month=ExtractMonth("date_created"))
        .values("month")
        .annotate(revenue=Sum("total_amount"), orders=Count("id"))
    }
    rows = []
    for month in range(1, 13):
        current = by_month.get(month)
        previous = by_month.get(month - 1)
        revenue = current["revenue"] if current else Decimal("0.00")
        orders = current["orders"] if current else 0
        growth = Decimal("0")
        if current and previous and previous["revenue"]:
            growth = (revenue - previous["revenue"]) / previous["revenue"] * 100
        rows.append({
            "month": f"{calendar.month_abbr[month]} {year}",
            "revenue": revenue,
            "orders": orders,
            "averageOrderValue": (revenue / orders).quantize(TWO_PLACES) if orders else Decimal("0.00"),
            "growth": growth.quantize(TWO_PLACES),
        })
    return rows


def top_clients(limit=5, now=None):
    now = now or timezone.now()
    paid = Q(invoices__payment_status=PaymentStatus.PAID)
    qs = (
        Client.objects.annotate(
            total_spent=Sum("invoices__total_amount", filter=paid, default=Decimal("0.00")),
            order_count=Count("invoices", filter=paid),
            last_purchase=Max("invoices__date_created", filter=paid),
        )
        .order_by("-total_spent", "name")[:limit]
    )
    active_since = now - timedelta(days=ACTIVE_CLIENT_DAYS)
    return [
        {
            "id": c.id,
            "name": c.name,
            "totalSpent": c.total_spent,
            "orderCount": c.order_count,
            "lastPurchase": c.last_purchase,
            "status": "active" if c.last_purchase and c.last_purchase >= active_since else "inactive",
        }
        for c in qs
    ]


def supplier_expenses(limit=5):
    # Separate aggregates: joining invoices and products together would multiply sums.
    expenses = {
        r["id"]: r["expenses"]
        for r in Supplier.objects.values("id").annotate(
            expenses=Sum("invoices__total_amount", default=Decimal("0.00"))
        )
    }
    products = {
        r["id"]: r["products"]
        for r in Supplier.objects.values("id").annotate(products=Count("products"))
    }
    rows = [
        {"id": s.id, "name": s.name, "expenses": expenses.get(s.id, Decimal("0.00")), "products": products.get(s.id, 0)}
        for s in Supplier.objects.all()
    ]
    rows.sort(key=lambda r: (-r["expenses"], r["name"]))
    return rows[:limit]


def product_inventory():
    """Out of stock first, then low stock, then the rest; each block by name."""
    rows = []
    for p in Product.objects.select_related("category", "supplier"):
        if p.stock_quantity <= 0:
            status, rank = "out-of-stock", 1
        elif p.is_low_stock:
            status, rank = "low-stock", 2
        else:
            status, rank = "in-stock", 3
        rows.append((rank, p.name, {
            "id": p.id,
            "name": p.name,
            "reference": p.reference,
            "category": p.category.name if p.category_id else None,
            "supplier": p.supplier.name,
            "inStock": p.stock_quantity,
            "reorderLevel": p.reorder_level,
            "status": status,
            "stockValue": p.stock_quantity * p.supplier_price,
            "profitMargin": p.profit_margin,
        }))
    rows.sort(key=lambda r: (r[0], r[1]))
    return [r[2] for r in rows]


def client_spending(months=6, now=None):
    """Client invoice totals per calendar month over the last `months` months, oldest first."""
    now = now or timezone.now()
    start = now - timedelta(days=31 * months)
    rows = (
        ClientInvoice.objects.filter(date_created__gte=start)
        .annotate(year=ExtractYear("date_created"), month=ExtractMonth("date_created"))
        .values("year", "month")
        .annotate(spending=Sum("total_amount"), orders=Count("id"))
        .order_by("year", "month")
    )
    return [
        {
            "month": f"{calendar.month_abbr[r['month']]} {r['year']}",
            "spending": r["spending"],
            "orders": r["orders"],
        }
        for r in rows
    ]


def client_contributions(limit=5):
    """Share of PAID revenue per client, biggest first."""
    paid = Q(invoices__payment_status=PaymentStatus.PAID)
    total = ClientInvoice.objects.filter(payment_status=PaymentStatus.PAID).aggregate(
        s=Sum("total_amount", default=Decimal("0.00"))
    )["s"]
    qs = Client.objects.annotate(
        revenue=Sum("invoices__total_amount", filter=paid, default=Decimal("0.00"))
    ).order_by("-revenue", "name")[:limit]
    return [
        {
            "id": c.id,
            "name": c.name,
            "revenue": c.revenue,
            "percentage": (c.revenue / total * 100).quantize(TWO_PLACES) if total else Decimal("0.00"),
        }
        for c in qs
    ]


def supplier_report(supplier):
    """Purchasing summary for one supplier. averageDeliveryTime is in days, None without dated deliveries."""
    invoices = SupplierInvoice.objects.filter(supplier=supplier)
    agg = invoices.aggregate(
        invoice_count=Count("id"),
        total_spent=Sum("total_amount", filter=Q(payment_status=PaymentStatus.PAID), default=Decimal("0.00")),
        unpaid_amount=Sum("total_amount", filter=Q(payment_status=PaymentStatus.UNPAID), default=Decimal("0.00")),
        last_order_date=Max("date_created"),
    )
    delays = [
        (delivery_date - timezone.localtime(created).date()).days
        for created, delivery_date in invoices.filter(delivery_date__isnull=False).values_list(
            "date_created", "delivery_date"
        )
    ]
    average_delay = None
    if delays:
        average_delay = (Decimal(sum(delays)) / len(delays)).quantize(Decimal("0.1"))
    return {
        "id": supplier.id,
        "name": supplier.name,
        "contactName": supplier.contact_name,
        "email": supplier.email,
        "productCount": supplier.products.count(),
        "invoiceCount": agg["invoice_count"],
        "totalSpent": agg["total_spent"],
        "unpaidAmount": agg["unpaid_amount"],
        "lastOrderDate": agg["last_order_date"],
        "averageDeliveryTime": average_delay,
    }


def supplier_products():
    """Catalogue share per supplier (suppliers without products are left out)."""
    rows = list(
        Supplier.objects.annotate(total_products=Count("products"), avg_price=Avg("products__selling_price"))
        .filter(total_products__gt=0)
        .order_by("-total_products", "name")
    )
    catalogue = sum(s.total_products for s in rows)
    return [
        {
            "id": s.id,
            "name": s.name,
            "totalProducts": s.total_products,
            "avgPrice": Decimal(s.avg_price or 0).quantize(TWO_PLACES),
            "percentage": (Decimal(s.total_products) / catalogue * 100).quantize(TWO_PLACES),
        }
        for s in rows
    ]

import logging

from django.http import JsonResponse
from django.utils import timezone

from backoffice.http import api_view, iso, json_error, money, parse_int
from parties.models import Supplier
from .services.dashboard import (
    category_distribution, dashboard_alerts, dashboard_stats, recent_activity, revenue_chart, stock_levels,
    top_selling_products,
)
from .services.sales import (
    client_contributions, client_spending, monthly_sales, product_inventory, supplier_expenses, supplier_products,
    supplier_report, top_clients,
)

logger = logging.getLogger(__name__)


def _with_money(row, *keys):
    for key in keys:
        if key in row:
            row[key] = money(row[key])
    return row


# --- Dashboard ---


@api_view(["GET"])
def stats(request):
    return JsonResponse(_with_money(dashboard_stats(), "totalRevenue"))


@api_view(["GET"])
def alerts(request):
    return JsonResponse([_with_money(a, "value") for a in dashboard_alerts()], safe=False)


@api_view(["GET"])
def top_selling(request):
    rows = top_selling_products()
    return JsonResponse([_with_money(r, "totalRevenue") for r in rows], safe=False)


@api_view(["GET"])
def categories(request):
    return JsonResponse(category_distribution(), safe=False)


@api_view(["GET"])
def revenue(request):
    year = parse_int(request.GET.get("year"), default=timezone.localdate().year)
    return JsonResponse([_with_money(r, "revenue", "expenses") for r in revenue_chart(year)], safe=False)


@api_view(["GET"])
def activity(request):
    rows = recent_activity(limit=parse_int(request.GET.get("limit"), default=10))
    for r in rows:
        _with_money(r, "value")
        r["timestamp"] = iso(r["timestamp"])
    return JsonResponse(rows, safe=False)


@api_view(["GET"])
def stock(request):
    return JsonResponse(stock_levels(), safe=False)


# --- Reports ---


@api_view(["GET"])
def sales_monthly(request):
    year = parse_int(request.GET.get("year"), default=timezone.localdate().year)
    rows = monthly_sales(year)
    return JsonResponse(
        [_with_money(r, "revenue", "averageOrderValue", "growth") for r in rows], safe=False
    )


@api_view(["GET"])
def clients_top(request):
    rows = top_clients(limit=parse_int(request.GET.get("limit"), default=5))
    for r in rows:
        _with_money(r, "totalSpent")
        r["lastPurchase"] = iso(r["lastPurchase"])
    return JsonResponse(rows, safe=False)


@api_view(["GET"])
def suppliers_expenses(request):
    rows = supplier_expenses(limit=parse_int(request.GET.get("limit"), default=5))
    return JsonResponse([_with_money(r, "expenses") for r in rows], safe=False)


@api_view(["GET"])
def products_inventory(request):
    rows = product_inventory()
    return JsonResponse([_with_money(r, "stockValue", "profitMargin") for r in rows], safe=False)


@api_view(["GET"])
def clients_spending(request):
    rows = client_spending(months=parse_int(request.GET.get("months"), default=6))
    return JsonResponse([_with_money(r, "spending") for r in rows], safe=False)


@api_view(["GET"])
def clients_contributions(request):
    rows = client_contributions(limit=parse_int(request.GET.get("limit"), default=5))
    return JsonResponse([_with_money(r, "revenue", "percentage") for r in rows], safe=False)


@api_view(["GET"])
def supplier_detail(request, pk: int):
    supplier = Supplier.objects.filter(pk=pk).first()
    if supplier is None:
        return json_error("Supplier not found", status=404)
    data = _with_money(supplier_report(supplier), "totalSpent", "unpaidAmount")
    data["lastOrderDate"] = iso(data["lastOrderDate"])
    if data["averageDeliveryTime"] is not None:
        data["averageDeliveryTime"] = str(data["averageDeliveryTime"])
    return JsonResponse(data)


@api_view(["GET"])
def suppliers_products(request):
    return JsonResponse([_with_money(r, "avgPrice", "percentage") for r in supplier_products()], safe=False)

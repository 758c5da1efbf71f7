import logging
from decimal import Decimal

from django.db import IntegrityError
from django.db.models import Count, DecimalField, Max, OuterRef, Q, Subquery, Sum, Value
from django.db.models.functions import Coalesce
from django.http import JsonResponse

from backoffice.http import api_view, form_error_response, iso, json_error, money, parse_json_body
from billing.models import ClientInvoice, PaymentStatus
from quotes.models import ClientQuote, QuoteStatus
from .forms import ClientForm, SupplierForm
from .models import Client, Supplier

logger = logging.getLogger(__name__)

ZERO = Value(Decimal("0.00"), output_field=DecimalField(max_digits=14, decimal_places=2))


def _invoice_sum(**filters):
    """Correlated subquery: total of the outer client's invoices matching filters."""
    qs = (
        ClientInvoice.objects.filter(client=OuterRef("pk"), **filters)
        .order_by()
        .values("client")
        .annotate(s=Sum("total_amount"))
        .values("s")
    )
    return Coalesce(Subquery(qs, output_field=DecimalField(max_digits=14, decimal_places=2)), ZERO)


def _client_rows():
    # Subqueries keep invoice and quote counts from multiplying each other.
    invoice_count = (
        ClientInvoice.objects.filter(client=OuterRef("pk")).order_by()
        .values("client").annotate(c=Count("id")).values("c")
    )
    quote_count = (
        ClientQuote.objects.filter(client=OuterRef("pk")).order_by()
        .values("client").annotate(c=Count("id")).values("c")
    )
    last_order = (
        ClientInvoice.objects.filter(client=OuterRef("pk")).order_by()
        .values("client").annotate(m=Max("date_created")).values("m")
    )
    return Client.objects.annotate(
        invoice_count=Coalesce(Subquery(invoice_count), 0),
        quote_count=Coalesce(Subquery(quote_count), 0),
        total_spent=_invoice_sum(payment_status=PaymentStatus.PAID),
        unpaid_amount=_invoice_sum(payment_status=PaymentStatus.UNPAID),
        last_order_date=Subquery(last_order),
    )


def _serialize_client(c):
    return {
        "id": c.id,
        "name": c.name,
        "address": c.address,
        "email": c.email,
        "phoneNumber": c.phone_number,
        "iban": c.iban,
        "rib": c.rib,
        "createdAt": iso(c.created_at),
        "updatedAt": iso(c.updated_at),
    }


def _serialize_client_row(c):
    data = _serialize_client(c)
    data.update({
        "invoiceCount": c.invoice_count,
        "orderCount": c.invoice_count,
        "quoteCount": c.quote_count,
        "totalSpent": money(c.total_spent),
        "unpaidAmount": money(c.unpaid_amount),
        "lastOrderDate": iso(c.last_order_date),
    })
    return data


def _serialize_supplier(s):
    return {
        "id": s.id,
        "name": s.name,
        "contactName": s.contact_name,
        "address": s.address,
        "email": s.email,
        "phoneNumber": s.phone_number,
        "iban": s.iban,
        "rib": s.rib,
        "website": s.website,
        "createdAt": iso(s.created_at),
        "updatedAt": iso(s.updated_at),
    }


def _client_duplicate(cd, exclude_pk=None):
    qs = Client.objects.filter(
        Q(email=cd["email"]) | Q(name=cd["name"], phone_number=cd["phone_number"])
    )
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


# --- Clients ---


@api_view(["GET", "POST"])
def clients_collection(request):
    if request.method == "GET":
        qs = _client_rows()
        search = (request.GET.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(name__icontains=search) | Q(email__icontains=search) | Q(phone_number__icontains=search)
            )
        return JsonResponse([_serialize_client_row(c) for c in qs.order_by("name", "id")], safe=False)

    form = ClientForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)
    if _client_duplicate(form.cleaned_data):
        return json_error("Client with this email or name/phone already exists", status=409)
    try:
        client = form.save()
    except IntegrityError:
        return json_error("Client with this email or name/phone already exists", status=409)
    logger.info("Client %s created (id=%s)", client.name, client.id)
    return JsonResponse({"message": "Client created successfully", "id": client.id}, status=201)


@api_view(["GET", "PUT", "DELETE"])
def client_detail(request, pk: int):
    client = Client.objects.filter(pk=pk).first()
    if client is None:
        return json_error("Client not found", status=404)

    if request.method == "GET":
        return JsonResponse(_serialize_client(client))

    if request.method == "PUT":
        form = ClientForm.from_payload(parse_json_body(request), instance=client)
        if not form.is_valid():
            return form_error_response(form)
        if _client_duplicate(form.cleaned_data, exclude_pk=client.pk):
            return json_error("Client with this email or name/phone already exists", status=409)
        try:
            client = form.save()
        except IntegrityError:
            return json_error("Client with this email or name/phone already exists", status=409)
        return JsonResponse(_serialize_client(client))

    blocker = client.deletion_blocker()
    if blocker:
        logger.warning("Refused to delete client %s: %s", client.id, blocker)
        return json_error(blocker, status=400)
    client.delete()
    logger.info("Client %s deleted", pk)
    return JsonResponse({"message": "Client deleted successfully"})


@api_view(["GET"])
def client_stats(request, pk: int):
    client = _client_rows().filter(pk=pk).first()
    if client is None:
        return json_error("Client not found", status=404)
    converted = client.quotes.filter(status=QuoteStatus.CONVERTED).aggregate(
        s=Sum("total_amount", default=Decimal("0.00"))
    )["s"]
    return JsonResponse({
        "invoiceCount": client.invoice_count,
        "orderCount": client.invoice_count,
        "quoteCount": client.quote_count,
        "totalSpent": money(client.total_spent),
        "unpaidAmount": money(client.unpaid_amount),
        "convertedQuoteAmount": money(converted),
        "lastOrderDate": iso(client.last_order_date),
    })


# --- Suppliers ---


@api_view(["GET", "POST"])
def suppliers_collection(request):
    if request.method == "GET":
        qs = Supplier.objects.annotate(product_count=Count("products"))
        search = (request.GET.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(name__icontains=search) | Q(contact_name__icontains=search) | Q(email__icontains=search)
            )
        data = []
        for s in qs.order_by("name", "id"):
            row = _serialize_supplier(s)
            row["productCount"] = s.product_count
            data.append(row)
        return JsonResponse(data, safe=False)

    form = SupplierForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)
    supplier = form.save()
    logger.info("Supplier %s created (id=%s)", supplier.name, supplier.id)
    return JsonResponse({"message": "Supplier created successfully", "id": supplier.id}, status=201)


@api_view(["GET", "PUT", "DELETE"])
def supplier_detail(request, pk: int):
    supplier = Supplier.objects.filter(pk=pk).first()
    if supplier is None:
        return json_error("Supplier not found", status=404)

    if request.method == "GET":
        return JsonResponse(_serialize_supplier(supplier))

    if request.method == "PUT":
        form = SupplierForm.from_payload(parse_json_body(request), instance=supplier)
        if not form.is_valid():
            return form_error_response(form)
        supplier = form.save()
        return JsonResponse(_serialize_supplier(supplier))

    blocker = supplier.deletion_blocker()
    if blocker:
        logger.warning("Refused to delete supplier %s: %s", supplier.id, blocker)
        return json_error(blocker, status=400)
    supplier.delete()
    logger.info("Supplier %s deleted", pk)
    return JsonResponse({"message": "Supplier deleted successfully"})

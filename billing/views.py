import logging

from django.core.exceptions import ValidationError
from django.db.models import Count
from django.http import JsonResponse

from backoffice.http import (
    api_view, form_error_response, iso, json_error, money, parse_date, parse_int, parse_json_body,
)
from .forms import ClientInvoiceForm, InvoiceStatusForm, SupplierInvoiceForm, clean_line_items
from .services import INVOICE_MODELS, create_invoice, update_invoice_status

logger = logging.getLogger(__name__)

CREATE_FORMS = {
    "client": ClientInvoiceForm,
    "supplier": SupplierInvoiceForm,
}


def _serialize_item(item):
    return {
        "id": item.id,
        "invoiceId": item.invoice_id,
        "productId": item.product_id,
        "productName": item.product.name,
        "productReference": item.product.reference,
        "quantity": item.quantity,
        "unitPrice": money(item.unit_price),
        "totalPrice": money(item.total_price),
    }


def _serialize_invoice(invoice, side, with_items=False):
    party = getattr(invoice, side)
    source_quote = getattr(invoice, "source_quote", None)
    data = {
        "id": invoice.id,
        f"{side}Id": party.id,
        f"{side}Name": party.name,
        "quoteId": source_quote.id if source_quote else None,
        "totalAmount": money(invoice.total_amount),
        "dateCreated": iso(invoice.date_created),
        "deliveryDate": iso(invoice.delivery_date),
        "payment_status": invoice.payment_status,
        "delivery_status": invoice.delivery_status,
        "createdAt": iso(invoice.created_at),
        "updatedAt": iso(invoice.updated_at),
    }
    if with_items:
        data[f"{side}Email"] = party.email
        data[f"{side}Address"] = party.address
        items = invoice.items.select_related("product").order_by("id")
        data["items"] = [_serialize_item(i) for i in items]
    return data


@api_view(["GET", "POST"])
def invoices_collection(request, side):
    invoice_model, _ = INVOICE_MODELS[side]

    if request.method == "GET":
        qs = invoice_model.objects.select_related(side, "source_quote").annotate(item_count=Count("items"))
        party_id = parse_int(request.GET.get(f"{side}Id"))
        if party_id is not None:
            qs = qs.filter(**{f"{side}_id": party_id})
        payment_status = request.GET.get("payment_status")
        if payment_status and payment_status != "all":
            qs = qs.filter(payment_status=payment_status)
        delivery_status = request.GET.get("delivery_status")
        if delivery_status and delivery_status != "all":
            qs = qs.filter(delivery_status=delivery_status)
        start = parse_date(request.GET.get("startDate"))
        if start:
            qs = qs.filter(date_created__date__gte=start)
        end = parse_date(request.GET.get("endDate"))
        if end:
            qs = qs.filter(date_created__date__lte=end)

        data = []
        for invoice in qs.order_by("-date_created", "-id"):
            row = _serialize_invoice(invoice, side)
            row["itemCount"] = invoice.item_count
            data.append(row)
        return JsonResponse(data, safe=False)

    payload = parse_json_body(request)
    form = CREATE_FORMS[side].from_payload(payload)
    if not form.is_valid():
        return form_error_response(form)
    lines, item_errors = clean_line_items(payload.get("items"))
    if item_errors:
        field, messages = next(iter(item_errors.items()))
        return json_error(f"{field}: {messages[0]}", status=400, fields=item_errors)

    cd = form.cleaned_data
    try:
        invoice = create_invoice(
            side,
            cd[side],
            lines,
            delivery_date=cd["delivery_date"],
            payment_status=cd["payment_status"],
            delivery_status=cd["delivery_status"],
            update_stock=cd["update_stock"],
        )
    except ValidationError as e:
        return json_error("; ".join(e.messages), status=400)
    return JsonResponse({"message": "Invoice created successfully", "id": invoice.id}, status=201)


@api_view(["GET", "PUT"])
def invoice_detail(request, pk: int, side):
    invoice_model, _ = INVOICE_MODELS[side]
    invoice = invoice_model.objects.select_related(side).filter(pk=pk).first()
    if invoice is None:
        return json_error("Invoice not found", status=404)

    if request.method == "GET":
        return JsonResponse(_serialize_invoice(invoice, side, with_items=True))

    form = InvoiceStatusForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)
    invoice = update_invoice_status(
        invoice,
        payment_status=form.cleaned_data.get("payment_status"),
        delivery_status=form.cleaned_data.get("delivery_status"),
    )
    return JsonResponse(_serialize_invoice(invoice, side, with_items=True))

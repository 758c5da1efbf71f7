import logging

from django.core.exceptions import ValidationError
from django.db.models import Count, Q
from django.http import JsonResponse

from backoffice.http import (
    api_view, form_error_response, iso, json_error, money, parse_date, parse_int, parse_json_body,
)
from billing.forms import clean_line_items
from .forms import ClientQuoteForm, ConvertQuoteForm, QuoteStatusForm, SupplierQuoteForm
from .services.workflow import (
    QUOTE_MODELS, QuoteWorkflowError, change_status, convert_to_invoice, create_quote, update_quote,
)

logger = logging.getLogger(__name__)

HEADER_FORMS = {
    "client": ClientQuoteForm,
    "supplier": SupplierQuoteForm,
}


def _serialize_item(item, side):
    product = item.product
    # Compare the quoted price with the product's list price for that side.
    original = product.selling_price if side == "client" else product.supplier_price
    return {
        "id": item.id,
        "quoteId": item.quote_id,
        "productId": item.product_id,
        "productName": product.name,
        "productReference": product.reference,
        "originalPrice": money(original),
        "quantity": item.quantity,
        "unitPrice": money(item.unit_price),
        "totalPrice": money(item.total_price),
    }


def _serialize_quote(quote, side, with_items=False):
    party = getattr(quote, side)
    data = {
        "id": quote.id,
        f"{side}Id": party.id,
        f"{side}Name": party.name,
        "totalAmount": money(quote.total_amount),
        "dateCreated": iso(quote.date_created),
        "validUntil": iso(quote.valid_until),
        "status": quote.status,
        "notes": quote.notes,
        "convertedInvoiceId": quote.converted_invoice_id,
        "createdAt": iso(quote.created_at),
        "updatedAt": iso(quote.updated_at),
    }
    if with_items:
        items = quote.items.select_related("product").order_by("id")
        data["items"] = [_serialize_item(i, side) for i in items]
    return data


def _get_quote(side, pk):
    quote_model, _ = QUOTE_MODELS[side]
    return quote_model.objects.select_related(side).filter(pk=pk).first()


def _bind_quote_payload(side, payload, quote=None):
    """Validate header + items. Returns (header cleaned data, lines, error response)."""
    data = dict(payload)
    if quote is not None:
        # The party of an existing quote is fixed.
        data[f"{side}Id"] = getattr(quote, f"{side}_id")
    form = HEADER_FORMS[side].from_payload(data)
    header_ok = form.is_valid()
    lines, item_errors = clean_line_items(payload.get("items"))
    if not header_ok or item_errors:
        if not header_ok:
            response = form_error_response(form)
        else:
            field, messages = next(iter(item_errors.items()))
            response = json_error(f"{field}: {messages[0]}", status=400, fields=item_errors)
        return None, None, response
    return form.cleaned_data, lines, None


def _workflow_error(e):
    return json_error(str(e), status=e.status, **e.extra)


@api_view(["GET", "POST"])
def quotes_collection(request, side):
    quote_model, _ = QUOTE_MODELS[side]

    if request.method == "GET":
        qs = quote_model.objects.select_related(side).annotate(items_count=Count("items"))
        status = request.GET.get("status")
        if status and status != "all":
            qs = qs.filter(status=status)
        party_id = parse_int(request.GET.get(f"{side}Id"))
        if party_id is not None:
            qs = qs.filter(**{f"{side}_id": party_id})
        search = (request.GET.get("search") or "").strip()
        if search:
            cond = Q(**{f"{side}__name__icontains": search})
            if search.isdigit():
                cond |= Q(pk=int(search))
            qs = qs.filter(cond)
        date_from = parse_date(request.GET.get("dateFrom"))
        if date_from:
            qs = qs.filter(date_created__date__gte=date_from)
        date_to = parse_date(request.GET.get("dateTo"))
        if date_to:
            qs = qs.filter(date_created__date__lte=date_to)

        data = []
        for quote in qs.order_by("-date_created", "-id"):
            row = _serialize_quote(quote, side)
            row["itemsCount"] = quote.items_count
            data.append(row)
        return JsonResponse(data, safe=False)

    header, lines, error = _bind_quote_payload(side, parse_json_body(request))
    if error:
        return error
    try:
        quote = create_quote(
            side,
            header[side],
            lines,
            valid_until=header["valid_until"],
            notes=header["notes"],
        )
    except ValidationError as e:
        return json_error("; ".join(e.messages), status=400)
    return JsonResponse(_serialize_quote(quote, side, with_items=True), status=201)


@api_view(["GET", "PUT"])
def quote_detail(request, pk: int, side):
    quote = _get_quote(side, pk)
    if quote is None:
        return json_error("Quote not found", status=404)

    if request.method == "GET":
        return JsonResponse(_serialize_quote(quote, side, with_items=True))

    if not quote.is_editable:
        return json_error(f"Quote is {quote.status}; only DRAFT quotes can be edited", status=409)
    header, lines, error = _bind_quote_payload(side, parse_json_body(request), quote=quote)
    if error:
        return error
    try:
        quote = update_quote(quote, lines, valid_until=header["valid_until"], notes=header["notes"])
    except QuoteWorkflowError as e:
        return _workflow_error(e)
    except ValidationError as e:
        return json_error("; ".join(e.messages), status=400)
    return JsonResponse(_serialize_quote(quote, side, with_items=True))


@api_view(["PATCH"])
def quote_status(request, pk: int, side):
    form = QuoteStatusForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return json_error("Invalid status", status=400)
    quote = _get_quote(side, pk)
    if quote is None:
        return json_error("Quote not found", status=404)
    try:
        quote = change_status(quote, form.cleaned_data["status"])
    except QuoteWorkflowError as e:
        logger.warning("Refused status change on %s quote %s: %s", side, pk, e)
        return _workflow_error(e)
    return JsonResponse(_serialize_quote(quote, side))


@api_view(["POST"])
def quote_convert(request, pk: int, side):
    quote = _get_quote(side, pk)
    if quote is None:
        return json_error("Quote not found", status=404)
    form = ConvertQuoteForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return json_error(form.errors["delivery_date"][0], status=400)
    try:
        invoice = convert_to_invoice(quote, form.cleaned_data["delivery_date"])
    except QuoteWorkflowError as e:
        logger.warning("Refused conversion of %s quote %s: %s", side, pk, e)
        return _workflow_error(e)
    return JsonResponse({
        "success": True,
        "invoiceId": invoice.id,
        "message": "Quote successfully converted to invoice",
    })

"""
Quote lifecycle: DRAFT -> PENDING -> CONFIRMED/REJECTED -> APPROVED -> CONVERTED.

Edits are only allowed while DRAFT. REJECTED and CONVERTED are terminal.
CONVERTED is reached only through convert_to_invoice(), which links the quote
to exactly one invoice (converted_invoice is write-once).
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.db.models.functions import Greatest

from billing.models import DeliveryStatus, PaymentStatus
from billing.services import create_invoice
from inventory.models import Product
from ..models import ClientQuote, ClientQuoteItem, QuoteStatus, SupplierQuote, SupplierQuoteItem

logger = logging.getLogger(__name__)

# side -> (quote model, item model); the party field is named after the side.
QUOTE_MODELS = {
    "client": (ClientQuote, ClientQuoteItem),
    "supplier": (SupplierQuote, SupplierQuoteItem),
}

# Targets reachable through a status change (conversion has its own entry point).
ALLOWED_TRANSITIONS = {
    QuoteStatus.DRAFT: {QuoteStatus.PENDING, QuoteStatus.REJECTED},
    QuoteStatus.PENDING: {QuoteStatus.DRAFT, QuoteStatus.CONFIRMED, QuoteStatus.APPROVED, QuoteStatus.REJECTED},
    QuoteStatus.CONFIRMED: {QuoteStatus.APPROVED, QuoteStatus.REJECTED},
    QuoteStatus.APPROVED: {QuoteStatus.REJECTED},
    QuoteStatus.REJECTED: set(),
    QuoteStatus.CONVERTED: set(),
}

# Supplier quotes skip client confirmation: only internal approval converts them.
CONVERTIBLE_STATUSES = {
    "client": {QuoteStatus.CONFIRMED, QuoteStatus.APPROVED},
    "supplier": {QuoteStatus.APPROVED},
}


class QuoteWorkflowError(Exception):
    """A workflow rule refused the operation. status is the HTTP status to answer with."""
    status = 400

    def __init__(self, message, **extra):
        super().__init__(message)
        self.extra = extra


class QuoteNotEditable(QuoteWorkflowError):
    status = 409


class InvalidTransition(QuoteWorkflowError):
    status = 400


class NotConvertible(QuoteWorkflowError):
    status = 400


class AlreadyConverted(QuoteWorkflowError):
    status = 409


def side_of(quote):
    return "client" if isinstance(quote, ClientQuote) else "supplier"


def _add_items(side, quote, items):
    _, item_model = QUOTE_MODELS[side]
    for line in items:
        item_model.objects.create(
            quote=quote,
            product=line["product"],
            quantity=line["quantity"],
            unit_price=line["unit_price"],
        )


@transaction.atomic
def create_quote(side, party, items, valid_until=None, notes=""):
    """New quote in DRAFT. items: [{"product", "quantity", "unit_price"}]."""
    if not items:
        raise ValidationError("A quote needs at least one item.")
    quote_model, _ = QUOTE_MODELS[side]
    quote = quote_model(valid_until=valid_until, notes=notes or "", **{side: party})
    quote.save()
    _add_items(side, quote, items)
    quote.recompute_total()
    logger.info("%s quote %s created, total %s", side.capitalize(), quote.pk, quote.total_amount)
    return quote


@transaction.atomic
def update_quote(quote, items, valid_until=None, notes=""):
    """Replace header fields and the full item list of a DRAFT quote."""
    if not quote.is_editable:
        raise QuoteNotEditable(f"Quote is {quote.status}; only DRAFT quotes can be edited")
    if not items:
        raise ValidationError("A quote needs at least one item.")
    quote.valid_until = valid_until
    quote.notes = notes or ""
    quote.save(update_fields=["valid_until", "notes", "updated_at"])
    quote.items.all().delete()
    _add_items(side_of(quote), quote, items)
    quote.recompute_total()
    logger.info("Quote %s updated, total %s", quote.pk, quote.total_amount)
    return quote


def change_status(quote, new_status):
    """
    Move a quote to new_status if the transition table allows it.
    Re-applying the current status is a no-op.
    """
    if new_status not in QuoteStatus.values:
        raise InvalidTransition("Invalid status")
    if new_status == quote.status:
        return quote
    if new_status == QuoteStatus.CONVERTED:
        raise InvalidTransition("Use the conversion endpoint to convert a quote into an invoice")
    if new_status not in ALLOWED_TRANSITIONS[QuoteStatus(quote.status)]:
        raise InvalidTransition(f"Cannot change quote status from {quote.status} to {new_status}")

    old_status = quote.status
    quote.status = new_status
    quote.save(update_fields=["status", "updated_at"])
    logger.info("Quote %s status %s -> %s", quote.pk, old_status, new_status)
    return quote


@transaction.atomic
def convert_to_invoice(quote, delivery_date):
    """
    Copy the quote's items into a new UNPAID / IN_PROCESS invoice for the same
    party, adjust provisional stock and mark the quote CONVERTED.
    Returns the invoice.
    """
    side = side_of(quote)

    if quote.converted_invoice_id is not None:
        raise AlreadyConverted(
            "Quote has already been converted to an invoice",
            invoiceId=quote.converted_invoice_id,
        )
    if quote.status not in CONVERTIBLE_STATUSES[side]:
        allowed = " or ".join(sorted(s.lower() for s in CONVERTIBLE_STATUSES[side]))
        raise NotConvertible(f"Only {allowed} quotes can be converted to invoices")

    lines = [
        {"product": item.product, "quantity": item.quantity, "unit_price": item.unit_price}
        for item in quote.items.select_related("product").order_by("id")
    ]
    invoice = create_invoice(
        side,
        getattr(quote, side),
        lines,
        delivery_date=delivery_date,
        payment_status=PaymentStatus.UNPAID,
        delivery_status=DeliveryStatus.IN_PROCESS,
    )

    # Client quotes release what they promised out. Supplier invoices announce
    # their incoming goods themselves (create_invoice).
    if side == "client":
        for line in lines:
            Product.objects.filter(pk=line["product"].pk).update(
                provisional_stock=Greatest(F("provisional_stock") - line["quantity"], 0),
            )

    quote.status = QuoteStatus.CONVERTED
    quote.converted_invoice = invoice
    quote.save(update_fields=["status", "converted_invoice", "updated_at"])
    logger.info("%s quote %s converted to invoice %s", side.capitalize(), quote.pk, invoice.pk)
    return invoice

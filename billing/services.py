"""
Invoice writes: creation with server-side totals, status updates and the
stock movements they trigger.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.db.models.functions import Greatest
from django.utils import timezone

from inventory.models import Product
from .models import (
    ClientInvoice, ClientInvoiceItem, DeliveryStatus, PaymentStatus, SupplierInvoice, SupplierInvoiceItem,
)

logger = logging.getLogger(__name__)

# side -> (invoice model, item model); the party field is named after the side.
INVOICE_MODELS = {
    "client": (ClientInvoice, ClientInvoiceItem),
    "supplier": (SupplierInvoice, SupplierInvoiceItem),
}


@transaction.atomic
def create_invoice(
    side,
    party,
    items,
    delivery_date=None,
    payment_status=PaymentStatus.UNPAID,
    delivery_status=DeliveryStatus.IN_PROCESS,
    update_stock=False,
):
    """
    items: iterable of {"product": Product, "quantity": int, "unit_price": Decimal}.
    Line totals and the invoice total are computed here, never taken from input.
    update_stock (client side) takes the sold quantities off stock_quantity and
    refuses the whole invoice when a product does not have enough on hand.
    Supplier lines are announced as provisional stock until delivery.
    """
    invoice_model, item_model = INVOICE_MODELS[side]
    invoice = invoice_model(
        delivery_date=delivery_date,
        payment_status=payment_status,
        delivery_status=delivery_status,
        **{side: party},
    )
    invoice.save()

    for line in items:
        item_model.objects.create(
            invoice=invoice,
            product=line["product"],
            quantity=line["quantity"],
            unit_price=line["unit_price"],
        )
        products = Product.objects.filter(pk=line["product"].pk)
        if side == "supplier":
            products.update(provisional_stock=F("provisional_stock") + line["quantity"])
        elif update_stock:
            taken = products.filter(stock_quantity__gte=line["quantity"]).update(
                stock_quantity=F("stock_quantity") - line["quantity"],
            )
            if not taken:
                raise ValidationError(f"Insufficient stock for product {line['product'].reference}")

    invoice.recompute_total()

    if side == "supplier" and invoice.delivery_status == DeliveryStatus.DELIVERED:
        receive_stock(invoice)

    logger.info("%s invoice %s created, total %s", side.capitalize(), invoice.pk, invoice.total_amount)
    return invoice


@transaction.atomic
def update_invoice_status(invoice, payment_status=None, delivery_status=None):
    """Payment and delivery are independent; either or both may change."""
    fields = ["updated_at"]
    if payment_status:
        invoice.payment_status = payment_status
        fields.append("payment_status")
    if delivery_status:
        invoice.delivery_status = delivery_status
        fields.append("delivery_status")
    invoice.save(update_fields=fields)

    if (
        isinstance(invoice, SupplierInvoice)
        and invoice.delivery_status == DeliveryStatus.DELIVERED
        and invoice.stock_received_at is None
    ):
        receive_stock(invoice)

    logger.info(
        "Invoice %s status now payment=%s delivery=%s",
        invoice.pk, invoice.payment_status, invoice.delivery_status,
    )
    return invoice


def receive_stock(invoice):
    """Delivered supplier goods: provisional stock becomes real stock (once per invoice)."""
    for item in invoice.items.all():
        Product.objects.filter(pk=item.product_id).update(
            stock_quantity=F("stock_quantity") + item.quantity,
            provisional_stock=Greatest(F("provisional_stock") - item.quantity, 0),
        )
    invoice.stock_received_at = timezone.now()
    invoice.save(update_fields=["stock_received_at"])
    logger.info("Stock received for supplier invoice %s", invoice.pk)

"""
Tests for the quote workflow: totals, status transitions and conversion to invoices.
"""
import json
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase

from billing.models import ClientInvoice, DeliveryStatus, PaymentStatus, SupplierInvoice
from inventory.models import Product
from parties.models import Client, Supplier
from .models import ClientQuote, QuoteStatus, SupplierQuote
from .services.workflow import (
    AlreadyConverted, InvalidTransition, NotConvertible, change_status, convert_to_invoice, create_quote,
)


class QuoteFixtureMixin:
    @classmethod
    def setUpTestData(cls):
        cls.user = get_user_model().objects.create_user("clerk", "clerk@example.com", "pw")
        cls.supplier = Supplier.objects.create(
            name="Acme Supply", address="1 Dock Rd", email="acme@example.com", phone_number="555-0100",
        )
        cls.client_party = Client.objects.create(
            name="Blue Cafe", address="2 Main St", email="cafe@example.com", phone_number="555-0200",
        )
        cls.product = Product.objects.create(
            name="Shaker", reference="SHK-1", supplier=cls.supplier,
            supplier_price=Decimal("20.00"), selling_price=Decimal("30.00"),
            stock_quantity=50, provisional_stock=5,
        )

    def setUp(self):
        self.client.force_login(self.user)

    def _post(self, url, body):
        return self.client.post(url, data=json.dumps(body), content_type="application/json")

    def _put(self, url, body):
        return self.client.put(url, data=json.dumps(body), content_type="application/json")

    def _patch(self, url, body):
        return self.client.patch(url, data=json.dumps(body), content_type="application/json")

    def _client_quote(self, qty=2, price="30.00"):
        return create_quote(
            "client",
            self.client_party,
            [{"product": self.product, "quantity": qty, "unit_price": Decimal(price)}],
        )


class QuoteApiTests(QuoteFixtureMixin, TestCase):
    def test_create_computes_totals_and_ignores_sent_total_price(self):
        resp = self._post("/api/quotes/client", {
            "clientId": self.client_party.id,
            "validUntil": "2030-01-31",
            "items": [{"productId": self.product.id, "quantity": 2, "unitPrice": 30, "totalPrice": 999}],
        })
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["status"], "DRAFT")
        self.assertEqual(data["totalAmount"], "60.00")
        self.assertEqual(data["items"][0]["totalPrice"], "60.00")
        self.assertEqual(data["items"][0]["originalPrice"], "30.00")

    def test_create_requires_items(self):
        resp = self._post("/api/quotes/client", {"clientId": self.client_party.id, "items": []})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("error", resp.json())

    def test_create_rejects_unknown_product(self):
        resp = self._post("/api/quotes/client", {
            "clientId": self.client_party.id,
            "items": [{"productId": 9999, "quantity": 1, "unitPrice": 5}],
        })
        self.assertEqual(resp.status_code, 400)
        self.assertIn("items[0].product", resp.json()["fields"])

    def test_full_flow_to_invoice(self):
        resp = self._post("/api/quotes/client", {
            "clientId": self.client_party.id,
            "items": [{"productId": self.product.id, "quantity": 2, "unitPrice": 30}],
        })
        quote_id = resp.json()["id"]

        resp = self._patch(f"/api/quotes/client/{quote_id}/status", {"status": "PENDING"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "PENDING")
        resp = self._patch(f"/api/quotes/client/{quote_id}/status", {"status": "CONFIRMED"})
        self.assertEqual(resp.json()["status"], "CONFIRMED")

        resp = self._post(f"/api/quotes/client/{quote_id}/convert", {"deliveryDate": "2030-02-01"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])

        invoice = ClientInvoice.objects.get(pk=body["invoiceId"])
        self.assertEqual(invoice.payment_status, PaymentStatus.UNPAID)
        self.assertEqual(invoice.delivery_status, DeliveryStatus.IN_PROCESS)
        self.assertEqual(invoice.total_amount, Decimal("60.00"))
        items = list(invoice.items.all())
        self.assertEqual(len(items), 1)
        self.assertEqual((items[0].quantity, items[0].unit_price, items[0].total_price),
                         (2, Decimal("30.00"), Decimal("60.00")))

        quote = ClientQuote.objects.get(pk=quote_id)
        self.assertEqual(quote.status, QuoteStatus.CONVERTED)
        self.assertEqual(quote.converted_invoice_id, invoice.id)

        resp = self.client.get(f"/api/invoices/client/{invoice.id}")
        self.assertEqual(resp.json()["quoteId"], quote_id)

    def test_second_conversion_is_refused(self):
        quote = self._client_quote()
        change_status(quote, QuoteStatus.PENDING)
        change_status(quote, QuoteStatus.CONFIRMED)
        first = self._post(f"/api/quotes/client/{quote.id}/convert", {"deliveryDate": "2030-02-01"})
        invoice_id = first.json()["invoiceId"]

        second = self._post(f"/api/quotes/client/{quote.id}/convert", {"deliveryDate": "2030-02-01"})
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json()["invoiceId"], invoice_id)
        self.assertEqual(ClientInvoice.objects.count(), 1)

    def test_convert_requires_delivery_date(self):
        quote = self._client_quote()
        resp = self._post(f"/api/quotes/client/{quote.id}/convert", {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "deliveryDate is required")

    def test_convert_draft_is_refused(self):
        quote = self._client_quote()
        resp = self._post(f"/api/quotes/client/{quote.id}/convert", {"deliveryDate": "2030-02-01"})
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(ClientInvoice.objects.exists())

    def test_edit_only_in_draft(self):
        quote = self._client_quote()
        resp = self._put(f"/api/quotes/client/{quote.id}", {
            "items": [{"productId": self.product.id, "quantity": 3, "unitPrice": 10}],
        })
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["totalAmount"], "30.00")

        change_status(quote, QuoteStatus.PENDING)
        resp = self._put(f"/api/quotes/client/{quote.id}", {
            "items": [{"productId": self.product.id, "quantity": 1, "unitPrice": 10}],
        })
        self.assertEqual(resp.status_code, 409)
        quote.refresh_from_db()
        self.assertEqual(quote.total_amount, Decimal("30.00"))

    def test_invalid_status_value(self):
        quote = self._client_quote()
        resp = self._patch(f"/api/quotes/client/{quote.id}/status", {"status": "SHIPPED"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Invalid status")

    def test_status_on_missing_quote(self):
        resp = self._patch("/api/quotes/client/9999/status", {"status": "PENDING"})
        self.assertEqual(resp.status_code, 404)

    def test_list_filters_by_status_and_search(self):
        quote = self._client_quote()
        self._client_quote()
        change_status(quote, QuoteStatus.PENDING)
        resp = self.client.get("/api/quotes/client", {"status": "PENDING"})
        self.assertEqual([q["id"] for q in resp.json()], [quote.id])
        resp = self.client.get("/api/quotes/client", {"search": "blue"})
        self.assertEqual(len(resp.json()), 2)
        self.assertEqual(resp.json()[0]["itemsCount"], 1)

    def test_requires_login(self):
        self.client.logout()
        resp = self.client.get("/api/quotes/client")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "Authentication required")


class QuoteWorkflowTests(QuoteFixtureMixin, TestCase):
    def test_draft_cannot_jump_to_confirmed(self):
        quote = self._client_quote()
        with self.assertRaises(InvalidTransition):
            change_status(quote, QuoteStatus.CONFIRMED)

    def test_terminal_statuses(self):
        quote = self._client_quote()
        change_status(quote, QuoteStatus.REJECTED)
        with self.assertRaises(InvalidTransition):
            change_status(quote, QuoteStatus.PENDING)

    def test_converted_only_through_conversion(self):
        quote = self._client_quote()
        change_status(quote, QuoteStatus.PENDING)
        with self.assertRaises(InvalidTransition):
            change_status(quote, QuoteStatus.CONVERTED)

    def test_same_status_is_noop(self):
        quote = self._client_quote()
        change_status(quote, QuoteStatus.DRAFT)
        self.assertEqual(quote.status, QuoteStatus.DRAFT)

    def test_pending_back_to_draft(self):
        quote = self._client_quote()
        change_status(quote, QuoteStatus.PENDING)
        change_status(quote, QuoteStatus.DRAFT)
        self.assertTrue(quote.is_editable)

    def test_client_conversion_releases_provisional_stock(self):
        quote = self._client_quote(qty=8)
        change_status(quote, QuoteStatus.PENDING)
        change_status(quote, QuoteStatus.APPROVED)
        convert_to_invoice(quote, delivery_date=None)
        self.product.refresh_from_db()
        self.assertEqual(self.product.provisional_stock, 0)
        with self.assertRaises(AlreadyConverted):
            convert_to_invoice(quote, delivery_date=None)

    def test_supplier_quote_needs_approval(self):
        quote = create_quote(
            "supplier", self.supplier,
            [{"product": self.product, "quantity": 4, "unit_price": Decimal("20.00")}],
        )
        change_status(quote, QuoteStatus.PENDING)
        change_status(quote, QuoteStatus.CONFIRMED)
        with self.assertRaises(NotConvertible):
            convert_to_invoice(quote, delivery_date=None)

        change_status(quote, QuoteStatus.APPROVED)
        invoice = convert_to_invoice(quote, delivery_date=None)
        self.assertIsInstance(invoice, SupplierInvoice)
        self.assertEqual(SupplierQuote.objects.get(pk=quote.pk).status, QuoteStatus.CONVERTED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.provisional_stock, 9)


class RecomputeTotalsCommandTests(QuoteFixtureMixin, TestCase):
    def test_fixes_stale_totals(self):
        quote = self._client_quote()
        ClientQuote.objects.filter(pk=quote.pk).update(total_amount=Decimal("1.00"))

        out = StringIO()
        call_command("recompute_quote_totals", "--dry-run", stdout=out)
        self.assertIn("Documents with a wrong total: 1", out.getvalue())
        quote.refresh_from_db()
        self.assertEqual(quote.total_amount, Decimal("1.00"))

        call_command("recompute_quote_totals", stdout=StringIO())
        quote.refresh_from_db()
        self.assertEqual(quote.total_amount, Decimal("60.00"))

    def test_cent_prices_settle_after_one_run(self):
        create_quote(
            "client", self.client_party,
            [
                {"product": self.product, "quantity": 3, "unit_price": Decimal("0.10")},
                {"product": self.product, "quantity": 7, "unit_price": Decimal("0.70")},
            ],
        )
        for _ in range(2):
            out = StringIO()
            call_command("recompute_quote_totals", stdout=out)
            self.assertIn("Line items with a wrong total: 0", out.getvalue())
            self.assertIn("Documents with a wrong total: 0", out.getvalue())
            self.assertIn("All totals match their items.", out.getvalue())

    def test_fixes_stale_line_total(self):
        quote = self._client_quote(qty=3, price="0.10")
        item = quote.items.get()
        type(item).objects.filter(pk=item.pk).update(total_price=Decimal("9.99"))
        ClientQuote.objects.filter(pk=quote.pk).update(total_amount=Decimal("9.99"))

        call_command("recompute_quote_totals", stdout=StringIO())
        item.refresh_from_db()
        quote.refresh_from_db()
        self.assertEqual(item.total_price, Decimal("0.30"))
        self.assertEqual(quote.total_amount, Decimal("0.30"))

        out = StringIO()
        call_command("recompute_quote_totals", stdout=out)
        self.assertIn("All totals match their items.", out.getvalue())


class SupplierQuoteApiTests(QuoteFixtureMixin, TestCase):
    def _supplier_quote(self):
        resp = self._post("/api/quotes/supplier", {
            "supplierId": self.supplier.id,
            "items": [{"productId": self.product.id, "quantity": 4, "unitPrice": 20}],
        })
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["items"][0]["originalPrice"], "20.00")
        return resp.json()["id"]

    def test_status_and_convert_routes(self):
        quote_id = self._supplier_quote()
        url = f"/api/quotes/supplier/{quote_id}"

        self.assertEqual(self._patch(f"{url}/status", {"status": "PENDING"}).json()["status"], "PENDING")
        self.assertEqual(self._patch(f"{url}/status", {"status": "CONFIRMED"}).json()["status"], "CONFIRMED")
        resp = self._post(f"{url}/convert", {"deliveryDate": "2030-02-01"})
        self.assertEqual(resp.status_code, 400)

        self._patch(f"{url}/status", {"status": "APPROVED"})
        resp = self._post(f"{url}/convert", {"deliveryDate": "2030-02-01"})
        self.assertEqual(resp.status_code, 200)
        invoice = SupplierInvoice.objects.get(pk=resp.json()["invoiceId"])
        self.assertEqual(invoice.total_amount, Decimal("80.00"))
        self.assertEqual(str(invoice.delivery_date), "2030-02-01")
        self.assertEqual(SupplierQuote.objects.get(pk=quote_id).converted_invoice_id, invoice.id)

        resp = self._post(f"{url}/convert", {"deliveryDate": "2030-02-01"})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(SupplierInvoice.objects.count(), 1)

    def test_illegal_transition_over_http(self):
        quote_id = self._supplier_quote()
        resp = self._patch(f"/api/quotes/supplier/{quote_id}/status", {"status": "APPROVED"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Cannot change quote status from DRAFT to APPROVED")

    def test_malformed_delivery_date(self):
        quote_id = self._supplier_quote()
        self._patch(f"/api/quotes/supplier/{quote_id}/status", {"status": "PENDING"})
        self._patch(f"/api/quotes/supplier/{quote_id}/status", {"status": "APPROVED"})
        resp = self._post(f"/api/quotes/supplier/{quote_id}/convert", {"deliveryDate": "next tuesday"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "deliveryDate must be a date (YYYY-MM-DD)")
        self.assertFalse(SupplierInvoice.objects.exists())
        self.assertEqual(SupplierQuote.objects.get(pk=quote_id).status, QuoteStatus.APPROVED)

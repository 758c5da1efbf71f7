"""
Tests for invoices: direct creation, status updates and supplier stock receipt.
"""
import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from inventory.models import Product
from parties.models import Client, Supplier
from quotes.models import QuoteStatus
from quotes.services.workflow import change_status, convert_to_invoice, create_quote
from .models import ClientInvoice, DeliveryStatus, PaymentStatus, SupplierInvoice
from .services import create_invoice, update_invoice_status


class InvoiceTests(TestCase):
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
            name="Printer", reference="PRN-1", supplier=cls.supplier,
            supplier_price=Decimal("100.00"), selling_price=Decimal("150.00"),
            stock_quantity=10, provisional_stock=3,
        )

    def setUp(self):
        self.client.force_login(self.user)

    def _json(self, method, url, body):
        return getattr(self.client, method)(url, data=json.dumps(body), content_type="application/json")

    def test_create_client_invoice_with_stock_update(self):
        resp = self._json("post", "/api/invoices/client", {
            "clientId": self.client_party.id,
            "deliveryDate": "2030-03-01",
            "updateStock": True,
            "items": [{"productId": self.product.id, "quantity": 4, "unitPrice": "150.00", "totalPrice": 1}],
        })
        self.assertEqual(resp.status_code, 201)
        invoice = ClientInvoice.objects.get(pk=resp.json()["id"])
        self.assertEqual(invoice.total_amount, Decimal("600.00"))
        self.assertEqual(invoice.payment_status, PaymentStatus.UNPAID)
        self.assertEqual(invoice.delivery_status, DeliveryStatus.IN_PROCESS)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 6)

    def test_create_rejects_bad_status(self):
        resp = self._json("post", "/api/invoices/client", {
            "clientId": self.client_party.id,
            "payment_status": "MAYBE",
            "items": [{"productId": self.product.id, "quantity": 1, "unitPrice": 1}],
        })
        self.assertEqual(resp.status_code, 400)
        self.assertIn("payment_status", resp.json()["error"])

    def test_malformed_json(self):
        resp = self.client.post("/api/invoices/client", data="{nope", content_type="application/json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("error", resp.json())

    def test_status_update_requires_a_status(self):
        invoice = create_invoice(
            "client", self.client_party,
            [{"product": self.product, "quantity": 1, "unit_price": Decimal("150.00")}],
        )
        resp = self._json("put", f"/api/invoices/client/{invoice.id}", {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "No status provided to update.")

        resp = self._json("put", f"/api/invoices/client/{invoice.id}", {"payment_status": "PAID"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["payment_status"], "PAID")
        self.assertEqual(resp.json()["delivery_status"], "IN_PROCESS")

    def test_supplier_delivery_receives_stock_once(self):
        invoice = create_invoice(
            "supplier", self.supplier,
            [{"product": self.product, "quantity": 3, "unit_price": Decimal("100.00")}],
        )
        self.product.refresh_from_db()
        self.assertEqual(self.product.provisional_stock, 6)

        update_invoice_status(invoice, delivery_status=DeliveryStatus.DELIVERED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 13)
        # The 3 announced by other orders are still expected.
        self.assertEqual(self.product.provisional_stock, 3)

        update_invoice_status(invoice, delivery_status=DeliveryStatus.SENDING)
        update_invoice_status(invoice, delivery_status=DeliveryStatus.DELIVERED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 13)
        self.assertIsNotNone(SupplierInvoice.objects.get(pk=invoice.pk).stock_received_at)

    def test_delivery_keeps_other_orders_provisional_stock(self):
        quote = create_quote(
            "supplier", self.supplier,
            [{"product": self.product, "quantity": 5, "unit_price": Decimal("100.00")}],
        )
        change_status(quote, QuoteStatus.PENDING)
        change_status(quote, QuoteStatus.APPROVED)
        convert_to_invoice(quote, delivery_date=None)
        self.product.refresh_from_db()
        self.assertEqual(self.product.provisional_stock, 8)

        direct = create_invoice(
            "supplier", self.supplier,
            [{"product": self.product, "quantity": 3, "unit_price": Decimal("100.00")}],
        )
        update_invoice_status(direct, delivery_status=DeliveryStatus.DELIVERED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 13)
        self.assertEqual(self.product.provisional_stock, 8)

    def test_supplier_invoice_created_delivered(self):
        create_invoice(
            "supplier", self.supplier,
            [{"product": self.product, "quantity": 2, "unit_price": Decimal("100.00")}],
            delivery_status=DeliveryStatus.DELIVERED,
        )
        self.product.refresh_from_db()
        self.assertEqual((self.product.stock_quantity, self.product.provisional_stock), (12, 3))

    def test_oversell_is_refused(self):
        resp = self._json("post", "/api/invoices/client", {
            "clientId": self.client_party.id,
            "updateStock": True,
            "items": [{"productId": self.product.id, "quantity": 11, "unitPrice": "150.00"}],
        })
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Insufficient stock for product PRN-1")
        self.assertFalse(ClientInvoice.objects.exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 10)

        resp = self._json("put", f"/api/products/{self.product.id}", {"name": "Laser printer"})
        self.assertEqual(resp.status_code, 200)

    def test_oversell_without_stock_update_is_allowed(self):
        invoice = create_invoice(
            "client", self.client_party,
            [{"product": self.product, "quantity": 11, "unit_price": Decimal("150.00")}],
        )
        self.assertEqual(invoice.total_amount, Decimal("1650.00"))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 10)

    def test_list_filters(self):
        paid = create_invoice(
            "client", self.client_party,
            [{"product": self.product, "quantity": 1, "unit_price": Decimal("5.00")}],
            payment_status=PaymentStatus.PAID,
        )
        create_invoice(
            "client", self.client_party,
            [{"product": self.product, "quantity": 1, "unit_price": Decimal("5.00")}],
        )
        resp = self.client.get("/api/invoices/client", {"payment_status": "PAID"})
        self.assertEqual([row["id"] for row in resp.json()], [paid.id])
        self.assertEqual(resp.json()[0]["itemCount"], 1)

    def test_missing_invoice(self):
        resp = self.client.get("/api/invoices/supplier/4242")
        self.assertEqual(resp.status_code, 404)

    def test_wrong_method(self):
        resp = self.client.delete("/api/invoices/client/1")
        self.assertEqual(resp.status_code, 405)

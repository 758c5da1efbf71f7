"""
Tests for clients and suppliers: duplicates, stats and deletion guards.
"""
import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from billing.models import PaymentStatus
from billing.services import create_invoice
from inventory.models import Product
from quotes.services.workflow import create_quote
from .models import Client, Supplier


class PartyApiTests(TestCase):
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
        )

    def setUp(self):
        self.client.force_login(self.user)

    def _post(self, url, body):
        return self.client.post(url, data=json.dumps(body), content_type="application/json")

    def _line(self, qty, price):
        return [{"product": self.product, "quantity": qty, "unit_price": Decimal(price)}]

    def test_create_client(self):
        resp = self._post("/api/clients", {
            "name": "Red Bar", "address": "3 High St", "email": "bar@example.com", "phoneNumber": "555-0300",
        })
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(Client.objects.get(pk=resp.json()["id"]).phone_number, "555-0300")

    def test_duplicate_client_email(self):
        resp = self._post("/api/clients", {
            "name": "Other", "address": "x", "email": "cafe@example.com", "phoneNumber": "1",
        })
        self.assertEqual(resp.status_code, 409)

    def test_duplicate_client_name_and_phone(self):
        resp = self._post("/api/clients", {
            "name": "Blue Cafe", "address": "x", "email": "new@example.com", "phoneNumber": "555-0200",
        })
        self.assertEqual(resp.status_code, 409)

    def test_missing_required_fields(self):
        resp = self._post("/api/clients", {"name": "Nobody"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("address", resp.json()["fields"])

    def test_list_and_stats(self):
        create_invoice("client", self.client_party, self._line(2, "30.00"), payment_status=PaymentStatus.PAID)
        create_invoice("client", self.client_party, self._line(1, "15.00"))
        create_quote("client", self.client_party, self._line(1, "30.00"))

        row = self.client.get("/api/clients", {"search": "blue"}).json()[0]
        self.assertEqual(row["invoiceCount"], 2)
        self.assertEqual(row["quoteCount"], 1)
        self.assertEqual(row["totalSpent"], "60.00")
        self.assertEqual(row["unpaidAmount"], "15.00")
        self.assertIsNotNone(row["lastOrderDate"])

        stats = self.client.get(f"/api/clients/{self.client_party.id}/stats").json()
        self.assertEqual(stats["totalSpent"], "60.00")
        self.assertEqual(stats["convertedQuoteAmount"], "0.00")

    def test_client_delete_guard(self):
        create_quote("client", self.client_party, self._line(1, "30.00"))
        resp = self.client.delete(f"/api/clients/{self.client_party.id}")
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(Client.objects.filter(pk=self.client_party.pk).exists())

    def test_client_delete(self):
        resp = self.client.delete(f"/api/clients/{self.client_party.id}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.client.get(f"/api/clients/{self.client_party.id}").status_code, 404)

    def test_supplier_with_products_cannot_be_deleted(self):
        resp = self.client.delete(f"/api/suppliers/{self.supplier.id}")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Cannot delete supplier with associated products")

    def test_supplier_with_invoices_cannot_be_deleted(self):
        other = Supplier.objects.create(
            name="Bolt Parts", address="9 Quay", email="bolt@example.com", phone_number="555-0900",
        )
        create_invoice("supplier", other, self._line(1, "20.00"))
        resp = self.client.delete(f"/api/suppliers/{other.id}")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Cannot delete supplier with associated invoices")
        self.assertTrue(Supplier.objects.filter(pk=other.pk).exists())

    def test_supplier_with_quotes_cannot_be_deleted(self):
        other = Supplier.objects.create(
            name="Bolt Parts", address="9 Quay", email="bolt@example.com", phone_number="555-0900",
        )
        create_quote("supplier", other, self._line(1, "20.00"))
        resp = self.client.delete(f"/api/suppliers/{other.id}")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Cannot delete supplier with associated quotes")
        self.assertTrue(Supplier.objects.filter(pk=other.pk).exists())

    def test_client_with_invoices_cannot_be_deleted(self):
        create_invoice("client", self.client_party, self._line(1, "30.00"))
        resp = self.client.delete(f"/api/clients/{self.client_party.id}")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Cannot delete client with associated invoices")
        self.assertTrue(Client.objects.filter(pk=self.client_party.pk).exists())

    def test_supplier_update(self):
        resp = self.client.put(
            f"/api/suppliers/{self.supplier.id}",
            data=json.dumps({"contactName": "Jo", "website": "https://acme.example.com"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["contactName"], "Jo")
        self.assertEqual(resp.json()["name"], "Acme Supply")

"""
Tests for products and categories: CRUD, filters and deletion guards.
"""
import json
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.test import TestCase

from billing.services import create_invoice
from parties.models import Client, Supplier
from quotes.services.workflow import create_quote
from .forms import CategoryForm
from .models import Category, Product


class ProductApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = get_user_model().objects.create_user("clerk", "clerk@example.com", "pw")
        cls.supplier = Supplier.objects.create(
            name="Acme Supply", address="1 Dock Rd", email="acme@example.com", phone_number="555-0100",
        )
        cls.category = Category.objects.create(name="Kitchen")
        cls.product = Product.objects.create(
            name="Shaker", reference="SHK-1", supplier=cls.supplier, category=cls.category,
            supplier_price=Decimal("20.00"), selling_price=Decimal("25.00"), stock_quantity=4,
        )

    def setUp(self):
        self.client.force_login(self.user)

    def _json(self, method, url, body):
        return getattr(self.client, method)(url, data=json.dumps(body), content_type="application/json")

    def test_create_and_duplicate_reference(self):
        body = {
            "name": "Cup", "reference": "CUP-1", "supplierId": self.supplier.id,
            "supplierPrice": "2.00", "sellingPrice": "5.00", "stockQuantity": 30,
        }
        resp = self._json("post", "/api/products", body)
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(Product.objects.get(reference="CUP-1").reorder_level, 10)

        resp = self._json("post", "/api/products", body)
        self.assertEqual(resp.status_code, 409)

    def test_negative_price_rejected(self):
        resp = self._json("post", "/api/products", {
            "name": "Cup", "reference": "CUP-2", "supplierId": self.supplier.id,
            "supplierPrice": "-1", "sellingPrice": "5.00",
        })
        self.assertEqual(resp.status_code, 400)

    def test_detail_has_derived_fields(self):
        data = self.client.get(f"/api/products/{self.product.id}").json()
        self.assertEqual(data["profitMargin"], "20.00")
        self.assertTrue(data["lowStock"])
        self.assertEqual(data["supplierName"], "Acme Supply")
        self.assertEqual(data["categoryName"], "Kitchen")

    def test_partial_update_keeps_other_fields(self):
        resp = self._json("put", f"/api/products/{self.product.id}", {"sellingPrice": "40.00"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["sellingPrice"], "40.00")
        self.assertEqual(resp.json()["reference"], "SHK-1")

    def test_low_stock_filter_and_sort(self):
        Product.objects.create(
            name="Bottle", reference="BTL-1", supplier=self.supplier, stock_quantity=500,
        )
        resp = self.client.get("/api/products", {"stockLevel": "low"})
        self.assertEqual([p["reference"] for p in resp.json()], ["SHK-1"])
        resp = self.client.get("/api/products", {"sortBy": "stockQuantity", "sortOrder": "desc"})
        self.assertEqual(resp.json()[0]["reference"], "BTL-1")

    def test_check_reference(self):
        resp = self.client.get("/api/products/check-reference", {"reference": "SHK-1"})
        self.assertFalse(resp.json()["available"])
        resp = self.client.get(
            "/api/products/check-reference", {"reference": "SHK-1", "excludeId": self.product.id}
        )
        self.assertTrue(resp.json()["available"])

    def test_delete_guarded_by_quote_items(self):
        client = Client.objects.create(
            name="Blue Cafe", address="2 Main St", email="cafe@example.com", phone_number="555-0200",
        )
        create_quote("client", client, [{"product": self.product, "quantity": 1, "unit_price": Decimal("1")}])
        resp = self.client.delete(f"/api/products/{self.product.id}")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Cannot delete product as it is used in invoices or quotes")
        self.assertTrue(Product.objects.filter(pk=self.product.pk).exists())

    def test_delete_guarded_by_invoice_items(self):
        create_invoice(
            "supplier", self.supplier, [{"product": self.product, "quantity": 1, "unit_price": Decimal("1")}],
        )
        resp = self.client.delete(f"/api/products/{self.product.id}")
        self.assertEqual(resp.status_code, 400)

    def test_delete_unused_product(self):
        resp = self.client.delete(f"/api/products/{self.product.id}")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Product.objects.exists())


class CategoryApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = get_user_model().objects.create_user("clerk", "clerk@example.com", "pw")
        cls.supplier = Supplier.objects.create(
            name="Acme Supply", address="1 Dock Rd", email="acme@example.com", phone_number="555-0100",
        )
        cls.category = Category.objects.create(name="Kitchen")

    def setUp(self):
        self.client.force_login(self.user)

    def test_duplicate_name(self):
        resp = self.client.post("/api/categories", data=json.dumps({"name": "Kitchen"}),
                                content_type="application/json")
        self.assertEqual(resp.status_code, 409)

    def test_delete_guard_and_count(self):
        Product.objects.create(name="Pan", reference="PAN-1", supplier=self.supplier, category=self.category)
        rows = self.client.get("/api/categories").json()
        self.assertEqual(rows[0]["productCount"], 1)
        resp = self.client.delete(f"/api/categories/{self.category.id}")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Cannot delete category that contains products")
        self.assertTrue(Category.objects.filter(pk=self.category.pk).exists())

    def test_rename_to_existing_name(self):
        other = Category.objects.create(name="Garden")
        resp = self.client.put(f"/api/categories/{other.id}", data=json.dumps({"name": "Kitchen"}),
                               content_type="application/json")
        self.assertEqual(resp.status_code, 409)

    def test_rename_losing_a_race(self):
        with mock.patch.object(CategoryForm, "save", side_effect=IntegrityError):
            resp = self.client.put(f"/api/categories/{self.category.id}", data=json.dumps({"name": "Bar"}),
                                   content_type="application/json")
        self.assertEqual(resp.status_code, 409)
        self.category.refresh_from_db()
        self.assertEqual(self.category.name, "Kitchen")

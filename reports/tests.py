"""
Tests for dashboard and report aggregates.
"""
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from billing.models import ClientInvoice, PaymentStatus, SupplierInvoice
from billing.services import create_invoice
from inventory.models import Category, Product
from parties.models import Client, Supplier


class ReportTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = get_user_model().objects.create_user("clerk", "clerk@example.com", "pw")
        cls.supplier = Supplier.objects.create(
            name="Acme Supply", address="1 Dock Rd", email="acme@example.com", phone_number="555-0100",
        )
        cls.client_party = Client.objects.create(
            name="Blue Cafe", address="2 Main St", email="cafe@example.com", phone_number="555-0200",
        )
        cls.category = Category.objects.create(name="Kitchen")
        cls.shaker = Product.objects.create(
            name="Shaker", reference="SHK-1", supplier=cls.supplier, category=cls.category,
            supplier_price=Decimal("20.00"), selling_price=Decimal("30.00"), stock_quantity=0,
        )
        cls.cup = Product.objects.create(
            name="Cup", reference="CUP-1", supplier=cls.supplier,
            supplier_price=Decimal("2.00"), selling_price=Decimal("5.00"), stock_quantity=100,
        )

    def setUp(self):
        self.client.force_login(self.user)

    def _invoice(self, product, qty, price, **kwargs):
        return create_invoice(
            "client", self.client_party,
            [{"product": product, "quantity": qty, "unit_price": Decimal(price)}],
            **kwargs,
        )

    @override_settings(BACKOFFICE_CURRENCY="USD")
    def test_stats(self):
        self._invoice(self.cup, 10, "5.00", payment_status=PaymentStatus.PAID)
        self._invoice(self.cup, 1, "5.00")
        data = self.client.get("/api/dashboard/stats").json()
        self.assertEqual(data["totalProducts"], 2)
        self.assertEqual(data["lowStockProducts"], 1)
        self.assertEqual(data["totalRevenue"], "50.00")
        self.assertEqual(data["pendingOrders"], 1)
        self.assertEqual(data["currency"], "USD")

    def test_alerts_only_non_empty(self):
        ids = [a["id"] for a in self.client.get("/api/dashboard/alerts").json()]
        self.assertEqual(ids, ["low-stock", "out-of-stock"])

        old = self._invoice(self.cup, 1, "5.00")
        ClientInvoice.objects.filter(pk=old.pk).update(date_created=timezone.now() - timedelta(days=45))
        alerts = {a["id"]: a for a in self.client.get("/api/dashboard/alerts").json()}
        self.assertEqual(alerts["overdue-invoices"]["count"], 1)
        self.assertEqual(alerts["overdue-invoices"]["value"], "5.00")

    def test_top_selling_counts_paid_only(self):
        self._invoice(self.cup, 7, "5.00", payment_status=PaymentStatus.PAID)
        self._invoice(self.shaker, 50, "30.00")
        rows = self.client.get("/api/dashboard/top-selling-products").json()
        self.assertEqual([(r["reference"], r["sales"]) for r in rows], [("CUP-1", 7)])

    def test_category_distribution(self):
        rows = self.client.get("/api/dashboard/category-distribution").json()
        self.assertEqual(rows, [{"name": "Kitchen", "value": 1}, {"name": "Uncategorized", "value": 1}])

    def test_monthly_sales(self):
        year = timezone.now().year
        self._invoice(self.cup, 2, "5.00")
        rows = self.client.get("/api/reports/sales/monthly", {"year": year}).json()
        self.assertEqual(len(rows), 12)
        self.assertEqual(sum(r["orders"] for r in rows), 1)
        self.assertTrue(rows[0]["month"].startswith("Jan"))

    def test_top_clients_and_supplier_expenses(self):
        self._invoice(self.cup, 2, "5.00", payment_status=PaymentStatus.PAID)
        create_invoice(
            "supplier", self.supplier, [{"product": self.cup, "quantity": 10, "unit_price": Decimal("2.00")}],
        )
        top = self.client.get("/api/reports/clients/top").json()
        self.assertEqual(top[0]["totalSpent"], "10.00")
        self.assertEqual(top[0]["status"], "active")
        expenses = self.client.get("/api/reports/suppliers/expenses").json()
        self.assertEqual(expenses[0]["expenses"], "20.00")
        self.assertEqual(expenses[0]["products"], 2)

    def test_inventory_order(self):
        rows = self.client.get("/api/reports/products/inventory").json()
        self.assertEqual([r["status"] for r in rows], ["out-of-stock", "in-stock"])
        self.assertEqual(rows[1]["stockValue"], "200.00")

    def test_revenue_chart(self):
        self._invoice(self.cup, 2, "5.00")
        create_invoice(
            "supplier", self.supplier, [{"product": self.cup, "quantity": 3, "unit_price": Decimal("2.00")}],
        )
        rows = self.client.get("/api/dashboard/revenue-chart", {"year": timezone.now().year}).json()
        self.assertEqual([r["name"] for r in rows][:2], ["Jan", "Feb"])
        self.assertEqual(len(rows), 12)
        self.assertEqual(sum(Decimal(r["revenue"]) for r in rows), Decimal("10.00"))
        self.assertEqual(sum(Decimal(r["expenses"]) for r in rows), Decimal("6.00"))

    def test_recent_activity(self):
        invoice = self._invoice(self.cup, 2, "5.00")
        rows = self.client.get("/api/dashboard/recent-activity").json()
        self.assertEqual({r["type"] for r in rows}, {"product", "invoice", "client"})
        entry = next(r for r in rows if r["id"] == f"invoice-{invoice.id}")
        self.assertEqual(entry["value"], "10.00")
        self.assertEqual(entry["status"], PaymentStatus.UNPAID)
        self.assertEqual(len(self.client.get("/api/dashboard/recent-activity", {"limit": 2}).json()), 2)

    def test_stock_levels(self):
        for url in ("/api/dashboard/stock-levels", "/api/reports/products/stock-levels"):
            rows = self.client.get(url).json()
            self.assertEqual(
                rows, [{
                    "id": self.shaker.id, "name": "Shaker", "reference": "SHK-1",
                    "stock": 0, "category": "Kitchen", "status": "critical",
                }],
            )

    def test_supplier_report(self):
        paid = create_invoice(
            "supplier", self.supplier, [{"product": self.cup, "quantity": 10, "unit_price": Decimal("2.00")}],
            payment_status=PaymentStatus.PAID,
        )
        late = create_invoice(
            "supplier", self.supplier, [{"product": self.shaker, "quantity": 1, "unit_price": Decimal("20.00")}],
        )
        today = timezone.localdate()
        SupplierInvoice.objects.filter(pk=paid.pk).update(delivery_date=today + timedelta(days=2))
        SupplierInvoice.objects.filter(pk=late.pk).update(delivery_date=today + timedelta(days=5))

        data = self.client.get(f"/api/reports/suppliers/{self.supplier.id}").json()
        self.assertEqual(data["productCount"], 2)
        self.assertEqual(data["invoiceCount"], 2)
        self.assertEqual(data["totalSpent"], "20.00")
        self.assertEqual(data["unpaidAmount"], "20.00")
        self.assertEqual(data["averageDeliveryTime"], "3.5")

        resp = self.client.get("/api/reports/suppliers/999999")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "Supplier not found")

    def test_client_spending_and_contributions(self):
        self._invoice(self.cup, 2, "5.00", payment_status=PaymentStatus.PAID)
        self._invoice(self.cup, 1, "5.00")
        other = Client.objects.create(
            name="Red Bar", address="3 Side St", email="bar@example.com", phone_number="555-0300",
        )
        create_invoice(
            "client", other, [{"product": self.cup, "quantity": 6, "unit_price": Decimal("5.00")}],
            payment_status=PaymentStatus.PAID,
        )

        spending = self.client.get("/api/reports/clients/spending").json()
        self.assertEqual(len(spending), 1)
        self.assertEqual(spending[0]["spending"], "45.00")
        self.assertEqual(spending[0]["orders"], 3)

        shares = self.client.get("/api/reports/clients/contributions").json()
        self.assertEqual(
            [(r["name"], r["revenue"], r["percentage"]) for r in shares],
            [("Red Bar", "30.00", "75.00"), ("Blue Cafe", "10.00", "25.00")],
        )

    def test_supplier_products(self):
        Supplier.objects.create(name="Empty Co", address="4 Nowhere", email="empty@example.com", phone_number="1")
        rows = self.client.get("/api/reports/suppliers/products").json()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["totalProducts"], 2)
        self.assertEqual(rows[0]["avgPrice"], "17.50")
        self.assertEqual(rows[0]["percentage"], "100.00")

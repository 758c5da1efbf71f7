"""
Find quotes and invoices whose stored total_amount differs from the sum of
their items, and line items whose total_price differs from quantity * unit_price.
Fixes both (lines first, then headers) unless --dry-run is given.
Expected values are computed in Decimal and rounded to cents, so databases
that multiply in floating point (SQLite) do not report false mismatches.
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Prefetch

from billing.services import INVOICE_MODELS
from quotes.services.workflow import QUOTE_MODELS

TWO_PLACES = Decimal("0.01")


def _documents():
    for label, models in (("quote", QUOTE_MODELS), ("invoice", INVOICE_MODELS)):
        for side, (doc_model, item_model) in models.items():
            yield f"{side} {label}", doc_model, item_model


def expected_line_total(item):
    return (Decimal(item.quantity) * item.unit_price).quantize(TWO_PLACES)


class Command(BaseCommand):
    help = "Recompute quote/invoice totals from their items; report and fix mismatches."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report mismatches, do not write.",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        bad_lines = 0
        bad_docs = 0

        with transaction.atomic():
            for label, doc_model, item_model in _documents():
                docs = doc_model.objects.prefetch_related(
                    Prefetch("items", queryset=item_model.objects.order_by("id"))
                ).order_by("id")
                for doc in docs:
                    items_sum = Decimal("0.00")
                    for item in doc.items.all():
                        expected = expected_line_total(item)
                        if item.total_price != expected:
                            bad_lines += 1
                            self.stdout.write(
                                f"  {label} #{doc.id} line {item.id}: "
                                f"stored {item.total_price}, expected {expected}"
                            )
                            if not dry_run:
                                # LineItem.save() recomputes total_price.
                                item.save()
                        items_sum += expected

                    if doc.total_amount != items_sum:
                        bad_docs += 1
                        self.stdout.write(
                            f"  {label} #{doc.id}: stored total {doc.total_amount}, items sum {items_sum}"
                        )
                        if not dry_run:
                            doc.recompute_total()

        self.stdout.write(f"\nLine items with a wrong total: {bad_lines}")
        self.stdout.write(f"Documents with a wrong total: {bad_docs}")
        if dry_run:
            self.stdout.write(self.style.WARNING("Dry run: nothing written. Run without --dry-run to fix."))
        elif bad_lines or bad_docs:
            self.stdout.write(self.style.SUCCESS("Totals recomputed."))
        else:
            self.stdout.write(self.style.SUCCESS("All totals match their items."))

# products/management/commands/reconcile_stock.py

"""
RECONCILE MATERIALIZED STOCK WITH THE LEDGER

Purpose:
- Compare Product.current_stock with sum(IN) - sum(OUT) of its movements.
- Report every product that drifted.
- Repair drift by overwriting current_stock with the ledger value.

Rules:
- The ledger is the source of truth; movements are never touched.
- Idempotent: rerunning after a repair reports nothing.
- Supports --dry-run (report only).
"""

from __future__ import annotations

from django.core.management.base import BaseCommand

from products.services import stock_ledger


class Command(BaseCommand):
    help = "Recompute Product.current_stock from the stock movement ledger."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report drift without saving.",
        )

    def handle(self, *args, **options):
        dry_run = bool(options.get("dry_run"))

        self.stdout.write("Reconciling current_stock against the stock ledger...")
        if dry_run:
            self.stdout.write("DRY RUN: no database changes will be saved.\n")

        drift = stock_ledger.reconcile_all(repair=not dry_run)

        for item in drift:
            self.stdout.write(
                f"- {item.product_name} ({item.product_id}): "
                f"stored={item.materialized} ledger={item.ledger} delta={item.delta:+d}"
            )

        if not drift:
            self.stdout.write(self.style.SUCCESS("No drift found."))
        elif dry_run:
            self.stdout.write(self.style.WARNING(f"{len(drift)} product(s) drifted."))
        else:
            self.stdout.write(self.style.SUCCESS(f"Repaired {len(drift)} product(s)."))

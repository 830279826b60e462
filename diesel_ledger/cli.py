"""Command-line entrypoint for diesel ledger imports."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from diesel_ledger.application.use_cases import DieselImportContext, ProcessDieselImportUseCase
from diesel_ledger.domain.results import PlantBatch
from diesel_ledger.domain.services import DieselLedgerProcessor
from diesel_ledger.infrastructure.repositories.excel_repositories import SpreadsheetMovementRepository
from diesel_ledger.infrastructure.repositories.json_repositories import JsonAssetMeterRepository


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Classify and reconcile a diesel movement export")
    parser.add_argument("source", type=str, help="Path to the .xlsx, .xls or .csv export")
    parser.add_argument("--asset-meters", type=str, help="JSON file with the current meters per asset")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def print_batch(batch: PlantBatch) -> None:
    print(f"\nPlant {batch.plant_code} / warehouse {batch.warehouse_number} ({batch.batch_id})")
    print("=" * 60)
    start, end = batch.date_range.start, batch.date_range.end
    print(f"Rows: {batch.total_rows}  Dates: {start or '-'} to {end or '-'}")
    print(f"Initial inventory: {batch.initial_inventory}")
    print(f"Liters in: {batch.total_litros_in}  Liters out: {batch.total_litros_out}")
    print(f"Computed final: {batch.final_inventory_computed}  Provided final: {batch.final_inventory_provided}")
    print(f"Inventory discrepancy: {batch.inventory_discrepancy}")
    print(
        f"Receipts: {batch.fuel_receipts}  Consumptions: {batch.asset_consumptions}  "
        f"Unassigned: {batch.unassigned_consumptions}  Adjustments: {batch.adjustments}"
    )
    print(f"Assets needing mapping: {', '.join(batch.unmapped_assets) or '-'}")
    print(f"Warnings: {batch.validation_warnings}  Errors: {batch.validation_errors}")

    flagged = [r for r in batch.meter_readings if r.has_errors or r.has_warnings]
    for reading in flagged:
        for severity, message in reading.validation_issues:
            level = "ERROR" if severity == "error" else "WARN"
            print(f"- [{level}] {reading.asset_code} row {reading.original_row_number}: {message}")
    for conflict in batch.meter_conflicts:
        print(
            f"- [CONFLICT] {conflict.asset_code} row {conflict.diesel_row_number}: "
            f"horometer diff {conflict.horometer_diff}, km diff {conflict.kilometer_diff}"
        )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    context = DieselImportContext(
        movement_repository=SpreadsheetMovementRepository(Path(args.source)),
        processor=DieselLedgerProcessor(),
        asset_meter_repository=JsonAssetMeterRepository(Path(args.asset_meters)) if args.asset_meters else None,
    )
    response = ProcessDieselImportUseCase(context).execute()

    print("Import Summary")
    print("==============")
    print(f"File: {response.filename}  Import: {response.import_id}")
    print(f"Rows: {response.total_rows}  Batches: {len(response.batches)}")
    for batch in response.batches:
        print_batch(batch)

    if not response.has_issues():
        print("\nNo issues detected.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

"""Command line entry point for recording farm activity and running reports."""

import argparse
import json
import logging
import sys
from datetime import date
from typing import Optional

from pydantic import ValidationError

from farm_analytics import aggregator, data_handler, ledger, settings, utils
from farm_analytics.insights import InsightsClient, InsightsError, build_insight_request
from farm_analytics.logger import setup_logger
from farm_analytics.pipelines.ledger_export import LedgerExportPipeline
from farm_analytics.pipelines.profit import ProfitReportPipeline
from farm_analytics.schemas import AnalyticsData

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="farm-analytics",
        description="Track crop inventory, sales and expenses and report on farm profit.",
    )
    parser.add_argument("--owner", required=True, help="Owner (user) id of the analytics document")
    parser.add_argument(
        "--storage",
        choices=["local", "supabase"],
        default=None,
        help="Storage backend (default: STORAGE_BACKEND from the environment)",
    )

    sub = parser.add_subparsers(dest="command")

    # add-crop
    crop_parser = sub.add_parser("add-crop", help="Add a harvested crop to inventory")
    crop_parser.add_argument("crop")
    crop_parser.add_argument("quantity", type=float)
    crop_parser.add_argument("--unit", choices=settings.UNITS, default=settings.DEFAULT_UNIT)
    crop_parser.add_argument("--date", type=utils.parse_iso_date, default=None, help="YYYY-MM-DD")

    # sell
    sell_parser = sub.add_parser("sell", help="Log a sale against an inventory item")
    sell_parser.add_argument("inventory_id")
    sell_parser.add_argument("quantity", type=float)
    sell_parser.add_argument("price", type=float, help="Price per unit")
    sell_parser.add_argument("--unit", choices=settings.UNITS, default=None)
    sell_parser.add_argument("--date", type=utils.parse_iso_date, default=None, help="YYYY-MM-DD")

    # expense
    expense_parser = sub.add_parser("expense", help="Log a farm expense")
    expense_parser.add_argument("category", choices=settings.EXPENSE_CATEGORIES)
    expense_parser.add_argument("amount", type=float)
    expense_parser.add_argument("--date", type=utils.parse_iso_date, default=None, help="YYYY-MM-DD")

    # edit
    edit_parser = sub.add_parser("edit", help="Edit fields of a record")
    edit_parser.add_argument("collection", choices=list(ledger.COLLECTIONS))
    edit_parser.add_argument("record_id")
    edit_parser.add_argument(
        "--set",
        dest="changes",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Field to change, e.g. --set quantity=12 (repeatable)",
    )

    # delete
    delete_parser = sub.add_parser("delete", help="Delete a record")
    delete_parser.add_argument("collection", choices=list(ledger.COLLECTIONS))
    delete_parser.add_argument("record_id")

    # reset
    sub.add_parser("reset", help="Delete all analytics data for the owner")

    # report
    report_parser = sub.add_parser("report", help="Profit series and lifetime totals")
    report_parser.add_argument("--range", dest="time_range", choices=settings.TIME_RANGES, default="all")
    report_parser.add_argument(
        "--today", type=utils.parse_iso_date, default=None,
        help="Reference date for relative ranges (default: today)",
    )

    # export
    export_parser = sub.add_parser("export", help="Export one collection to CSV/JSON")
    export_parser.add_argument("collection", choices=list(ledger.COLLECTIONS))

    # insights
    insights_parser = sub.add_parser("insights", help="Ask Gemini for business insights")
    insights_parser.add_argument("--location", default=None)
    insights_parser.add_argument("--json", action="store_true", help="Print as JSON")

    return parser


def _parse_changes(pairs: list[str]) -> dict[str, str]:
    changes = {}
    for pair in pairs:
        field, sep, value = pair.partition("=")
        if not sep or not field:
            raise ledger.LedgerError(f"Expected FIELD=VALUE, got {pair!r}")
        changes[field.strip()] = value.strip()
    return changes


def _load(store: data_handler.AnalyticsStore, owner_id: str) -> AnalyticsData:
    return store.load(owner_id) or AnalyticsData()


def run(args: argparse.Namespace, store: data_handler.AnalyticsStore) -> None:
    owner = args.owner
    today = date.today()

    match args.command:
        case "add-crop":
            data, item = ledger.add_inventory_item(
                _load(store, owner), args.crop, args.quantity, args.unit, args.date or today
            )
            store.save(owner, data)
            print(item.id)

        case "sell":
            data, sale = ledger.log_sale(
                _load(store, owner),
                args.inventory_id,
                args.quantity,
                args.price,
                args.date or today,
                unit=args.unit,
            )
            store.save(owner, data)
            print(sale.id)

        case "expense":
            data, expense = ledger.log_expense(
                _load(store, owner), args.category, args.amount, args.date or today
            )
            store.save(owner, data)
            print(expense.id)

        case "edit":
            data = ledger.edit_record(
                _load(store, owner), args.collection, args.record_id, **_parse_changes(args.changes)
            )
            store.save(owner, data)

        case "delete":
            data = ledger.delete_record(_load(store, owner), args.collection, args.record_id)
            store.save(owner, data)

        case "reset":
            store.reset(owner)

        case "report":
            ProfitReportPipeline(owner, args.time_range, now=args.today, store=store).run()

        case "export":
            LedgerExportPipeline(owner, args.collection, store=store).run()

        case "insights":
            data = _load(store, owner)
            totals = aggregator.aggregate(data.sales, data.expenses, "all", today)
            request = build_insight_request(data, totals, location=args.location)
            insight = InsightsClient().get_insights(request)
            if args.json:
                print(json.dumps(insight.model_dump(by_alias=True), indent=2, ensure_ascii=False))
            else:
                print(f"Health: {insight.health_status} (margin {insight.profit_margin:.1f}%)")
                print(f"\n{insight.summary}\n")
                for i, recommendation in enumerate(insight.recommendations, 1):
                    print(f"{i}. {recommendation}")
                if insight.concerns:
                    print(f"\nConcerns: {insight.concerns}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    setup_logger()

    try:
        store = data_handler.create_store(args.storage)
        run(args, store)
    except (ledger.LedgerError, data_handler.StorageError, InsightsError) as e:
        logger.error(f"❌ {e}")
        sys.exit(1)
    except ValidationError as e:
        logger.error("❌ Data validation failed!")
        logger.error(e)
        sys.exit(1)


if __name__ == "__main__":
    main()

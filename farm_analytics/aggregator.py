import calendar
import logging
from datetime import date, datetime
from typing import Iterable, Optional

import pandas as pd

from . import settings
from .schemas import AggregateResult, ExpenseRecord, SaleRecord, SeriesPoint

logger = logging.getLogger(__name__)

SERIES_COLUMNS = ["Revenue", "Expenses"]


def _as_date(now: date | datetime) -> date:
    if isinstance(now, datetime):
        return now.date()
    return now


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month. Month numbers outside 1-12 roll into adjacent years."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def resolve_range(
    time_range: str, now: date | datetime
) -> tuple[Optional[date], Optional[date]]:
    """
    Resolves a named time range into inclusive (start, end) calendar dates
    relative to `now`. Returns (None, None) for "all".
    """
    if time_range not in settings.TIME_RANGES:
        raise ValueError(
            f"Unknown time range {time_range!r}. Expected one of {settings.TIME_RANGES}"
        )

    today = _as_date(now)

    if time_range == "this_month":
        return _month_bounds(today.year, today.month)

    if time_range == "last_month":
        return _month_bounds(today.year, today.month - 1)

    if time_range in ("current_quarter", "last_quarter"):
        # Quarters start in Jan/Apr/Jul/Oct
        first_month = (today.month - 1) // 3 * 3 + 1
        if time_range == "last_quarter":
            first_month -= 3
        start, _ = _month_bounds(today.year, first_month)
        _, end = _month_bounds(today.year, first_month + 2)
        return start, end

    if time_range == "current_fy":
        fy_month = settings.FISCAL_YEAR_START_MONTH
        fy_start_year = today.year if today.month >= fy_month else today.year - 1
        start, _ = _month_bounds(fy_start_year, fy_month)
        _, end = _month_bounds(fy_start_year, fy_month + 11)
        return start, end

    return None, None


def group_key(record_date: date, time_range: str) -> str:
    """Daily buckets (YYYY-MM-DD) for month ranges, monthly buckets (YYYY-MM) otherwise."""
    if time_range in settings.DAILY_RANGES:
        return record_date.isoformat()
    return record_date.strftime("%Y-%m")


def _ledger_frame(
    sales: Iterable[SaleRecord], expenses: Iterable[ExpenseRecord]
) -> pd.DataFrame:
    """
    Stacks sales and expenses into one long frame of (date, Revenue, Expenses).
    Each row carries a value for one side only; the other side is zero-filled.
    """
    rows = [
        {"date": sale.date, "Revenue": sale.total_sale, "Expenses": 0.0}
        for sale in sales
    ]
    rows += [
        {"date": expense.date, "Revenue": 0.0, "Expenses": expense.amount}
        for expense in expenses
    ]
    df = pd.DataFrame(rows, columns=["date"] + SERIES_COLUMNS)
    df[SERIES_COLUMNS] = df[SERIES_COLUMNS].astype(float)
    return df


def aggregate(
    sales: Iterable[SaleRecord],
    expenses: Iterable[ExpenseRecord],
    time_range: str,
    now: date | datetime,
) -> AggregateResult:
    """
    Builds lifetime totals and a revenue/expense/profit series for a time range.

    The totals always cover every record. The series only covers records dated
    inside the resolved range, grouped per day or per month and sorted by
    group key. A bounded range without any records still yields one zero point
    keyed by the range start, so charts never render blank.
    """
    start, end = resolve_range(time_range, now)
    ledger_df = _ledger_frame(sales, expenses)

    # --- 1. Lifetime totals (unfiltered) ---
    total_revenue = float(ledger_df["Revenue"].sum())
    total_expenses = float(ledger_df["Expenses"].sum())

    # --- 2. Filter to the selected window ---
    if start is not None and end is not None:
        in_window = (ledger_df["date"] >= start) & (ledger_df["date"] <= end)
        ledger_df = ledger_df[in_window]

    # --- 3. Group & Sum ---
    if ledger_df.empty:
        if start is None:
            series = []
        else:
            series = [
                SeriesPoint(group=group_key(start, time_range), revenue=0.0, expenses=0.0, profit=0.0)
            ]
    else:
        ledger_df = ledger_df.assign(
            group=ledger_df["date"].map(lambda d: group_key(d, time_range))
        )
        grouped = (
            ledger_df.groupby("group")[SERIES_COLUMNS]
            .sum()
            .reset_index()
            .sort_values("group")
        )
        # Profit is derived from the summed columns, never accumulated row by row.
        grouped["Profit"] = grouped["Revenue"] - grouped["Expenses"]

        series = [
            SeriesPoint(
                group=str(row["group"]),
                revenue=float(row["Revenue"]),
                expenses=float(row["Expenses"]),
                profit=float(row["Profit"]),
            )
            for row in grouped.to_dict("records")
        ]

    logger.debug(
        f"Aggregated {len(series)} '{time_range}' buckets between {start} and {end}."
    )

    return AggregateResult(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_profit=total_revenue - total_expenses,
        series=series,
    )

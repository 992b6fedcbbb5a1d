import logging
from datetime import date, datetime
from typing import Optional

from farm_analytics import aggregator, data_handler, utils
from farm_analytics.pipeline import DataPipeline
from farm_analytics.schemas import AggregateResult, AnalyticsData, SeriesPoint

logger = logging.getLogger(__name__)


class ProfitReportPipeline(DataPipeline):
    """Revenue / expense / profit series for one time range, plus lifetime totals."""

    def __init__(
        self,
        owner_id: str,
        time_range: str = "all",
        now: Optional[date | datetime] = None,
        store: Optional[data_handler.AnalyticsStore] = None,
    ):
        super().__init__("profit", owner_id, store=store)
        self.time_range = time_range
        # The reference date is fixed at construction so every step agrees on it.
        self.now = now if now is not None else date.today()
        self.result: Optional[AggregateResult] = None

    @property
    def report_name(self) -> str:
        return f"profit_{self.time_range}"

    def transform(self, data: AnalyticsData) -> list[SeriesPoint]:
        logger.info(f"\n--- Aggregating '{self.time_range}' (reference date {self.now}) ---")
        self.result = aggregator.aggregate(data.sales, data.expenses, self.time_range, self.now)
        return self.result.series

    def load(self, rows: list[SeriesPoint]):
        if self.result is not None:
            logger.info("\n--- Lifetime Totals ---")
            logger.info(f"Total Revenue:  {utils.format_money(self.result.total_revenue)}")
            logger.info(f"Total Expenses: {utils.format_money(self.result.total_expenses)}")
            logger.info(f"Net Profit:     {utils.format_money(self.result.net_profit)}")

            logger.info("\n--- Series ---")
            for point in rows:
                logger.info(
                    f"{point.group}: revenue {utils.format_money(point.revenue)}, "
                    f"expenses {utils.format_money(point.expenses)}, "
                    f"profit {utils.format_money(point.profit)}"
                )

        super().load(rows)

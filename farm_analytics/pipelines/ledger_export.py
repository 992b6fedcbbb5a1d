import logging
from typing import Optional

from pydantic import BaseModel

from farm_analytics import data_handler, ledger
from farm_analytics.pipeline import DataPipeline
from farm_analytics.schemas import AnalyticsData

logger = logging.getLogger(__name__)


class LedgerExportPipeline(DataPipeline):
    """Exports one raw collection (inventory, sales or expenses), ordered by date."""

    def __init__(
        self,
        owner_id: str,
        collection: str,
        store: Optional[data_handler.AnalyticsStore] = None,
    ):
        if collection not in ledger.COLLECTIONS:
            raise ledger.LedgerError(
                f"Unknown collection {collection!r}. Expected one of {list(ledger.COLLECTIONS)}"
            )
        super().__init__(collection, owner_id, store=store)
        self.collection = collection

    @property
    def report_name(self) -> str:
        return f"{self.collection}_export"

    def transform(self, data: AnalyticsData) -> list[BaseModel]:
        records = sorted(getattr(data, self.collection), key=lambda record: record.date)
        logger.info(f"Exporting {len(records)} {self.collection} records.")
        return records

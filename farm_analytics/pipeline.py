import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import ValidationError

from farm_analytics import data_handler
from farm_analytics.schemas import AnalyticsData

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for report pipelines (profit series, ledger exports).
    Follows an Extract -> Transform -> Load (ETL) pattern over one owner's
    analytics document.
    """

    def __init__(
        self,
        report_type: str,
        owner_id: str,
        store: Optional[data_handler.AnalyticsStore] = None,
    ):
        self.report_type = report_type
        self.owner_id = owner_id
        self.store = store if store is not None else data_handler.create_store()
        self.output_path = None

    def run(self) -> Optional[list[Any]]:
        """
        Orchestrates the pipeline execution. Returns the rows that were saved,
        or None if the owner's document failed validation.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} REPORT")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        try:
            data = self.extract()
        except ValidationError as e:
            logger.error(f"❌ Stored data for '{self.owner_id}' failed validation!")
            logger.error(e)
            return None

        # --- 2. TRANSFORM ---
        rows = self.transform(data)

        # --- 3. LOAD ---
        self.load(rows)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return rows

    def extract(self) -> AnalyticsData:
        """
        Loads the owner's document. Owners without a document yet get an
        empty ledger.
        """
        data = self.store.load(self.owner_id)
        if data is None:
            logger.warning(f"⚠️ No analytics data for '{self.owner_id}'. Using an empty ledger.")
            return AnalyticsData()
        logger.info(
            f"  > Loaded {len(data.inventory)} inventory, {len(data.sales)} sales, "
            f"{len(data.expenses)} expense records."
        )
        return data

    @abstractmethod
    def transform(self, data: AnalyticsData) -> list[Any]:
        """
        Turns the ledger into the validated rows this report saves.
        """
        pass

    @property
    @abstractmethod
    def report_name(self) -> str:
        """Base file name for the saved outputs."""
        pass

    def load(self, rows: list[Any]):
        """
        Saves rows to disk (CSV, plus JSON when enabled).
        """
        self.output_path = data_handler.save_outputs(rows, self.report_name)

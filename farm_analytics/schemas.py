import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from . import settings


class LedgerModel(BaseModel):
    """
    Shared configuration for everything stored in, or derived from, an owner's
    analytics document. Records are immutable; edits build a new record.
    """

    class Config:
        # Python code uses snake_case names, the persisted JSON uses the aliases.
        populate_by_name = True
        frozen = True


class InventoryItem(LedgerModel):
    id: str
    crop: str
    quantity: float = Field(..., ge=0)
    unit: str = settings.DEFAULT_UNIT
    date: dt.date

    @field_validator("unit")
    @classmethod
    def _known_unit(cls, value: str) -> str:
        if value not in settings.UNITS:
            raise ValueError(f"unknown unit {value!r}, expected one of {settings.UNITS}")
        return value


class SaleRecord(LedgerModel):
    """
    A sale of part of an inventory item. `total_sale` is persisted as entered
    and is the figure every report uses; it is not recomputed from quantity and
    price when aggregating.
    """

    id: str
    crop: str
    quantity: float = Field(..., ge=0)
    # Older documents were written before sales carried their own unit.
    unit: Optional[str] = None
    price_per_unit: float = Field(..., ge=0, alias="pricePerUnit")
    total_sale: float = Field(..., alias="totalSale")
    date: dt.date

    @field_validator("unit")
    @classmethod
    def _known_unit(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in settings.UNITS:
            raise ValueError(f"unknown unit {value!r}, expected one of {settings.UNITS}")
        return value


class ExpenseRecord(LedgerModel):
    id: str
    category: str
    amount: float = Field(..., ge=0)
    date: dt.date

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        if value not in settings.EXPENSE_CATEGORIES:
            raise ValueError(
                f"unknown expense category {value!r}, expected one of {settings.EXPENSE_CATEGORIES}"
            )
        return value


class AnalyticsData(LedgerModel):
    """The single JSON document persisted per owner."""

    inventory: list[InventoryItem] = Field(default_factory=list)
    sales: list[SaleRecord] = Field(default_factory=list)
    expenses: list[ExpenseRecord] = Field(default_factory=list)


class SeriesPoint(LedgerModel):
    """One bucket of the chart series, keyed by YYYY-MM-DD or YYYY-MM."""

    group: str
    revenue: float = Field(..., alias="Revenue")
    expenses: float = Field(..., alias="Expenses")
    profit: float = Field(..., alias="Profit")


class AggregateResult(LedgerModel):
    total_revenue: float = Field(..., alias="totalRevenue")
    total_expenses: float = Field(..., alias="totalExpenses")
    net_profit: float = Field(..., alias="netProfit")
    series: list[SeriesPoint] = Field(default_factory=list)


class InsightRequest(LedgerModel):
    """Figures sent to the insights service; also the cache key for its answers."""

    total_revenue: float = Field(..., alias="totalRevenue")
    total_expenses: float = Field(..., alias="totalExpenses")
    net_profit: float = Field(..., alias="netProfit")
    inventory_count: int = Field(default=0, ge=0, alias="inventoryCount")
    sales_count: int = Field(default=0, ge=0, alias="salesCount")
    expenses_count: int = Field(default=0, ge=0, alias="expensesCount")
    top_crops: list[str] = Field(default_factory=list, alias="topCrops")
    top_expense_categories: list[str] = Field(
        default_factory=list, alias="topExpenseCategories"
    )
    location: Optional[str] = None


class AIInsight(LedgerModel):
    summary: str = ""
    recommendations: list[str] = Field(default_factory=list)
    concerns: str = ""
    profit_margin: float = Field(default=0.0, alias="profitMargin")
    health_status: Literal["good", "warning", "critical"] = Field(
        default="good", alias="healthStatus"
    )

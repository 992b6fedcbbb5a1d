from datetime import date

import pytest

from farm_analytics import settings
from farm_analytics.data_handler import LocalFileStore
from farm_analytics.schemas import AnalyticsData, ExpenseRecord, InventoryItem, SaleRecord


def make_sale(total: float, on: str, crop: str = "Wheat", sale_id: str = None) -> SaleRecord:
    return SaleRecord(
        id=sale_id or f"sale_{crop}_{on}_{total}",
        crop=crop,
        quantity=1,
        unit="tons",
        price_per_unit=total,
        total_sale=total,
        date=date.fromisoformat(on),
    )


def make_expense(amount: float, on: str, category: str = "Fertilizer") -> ExpenseRecord:
    return ExpenseRecord(
        id=f"exp_{category}_{on}_{amount}",
        category=category,
        amount=amount,
        date=date.fromisoformat(on),
    )


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    out = tmp_path / "output"
    monkeypatch.setattr(settings, "OUTPUT_DIR", out)
    return out


@pytest.fixture
def store(tmp_path):
    return LocalFileStore(tmp_path / "data")


@pytest.fixture
def march_ledger():
    return AnalyticsData(
        inventory=[
            InventoryItem(id="inv_1", crop="Wheat", quantity=2, unit="tons", date=date(2024, 3, 1)),
        ],
        sales=[
            make_sale(1000, "2024-03-05"),
            make_sale(500, "2024-03-20"),
        ],
        expenses=[make_expense(300, "2024-03-10")],
    )

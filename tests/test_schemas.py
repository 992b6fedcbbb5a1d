"""Tests for the ledger document schemas."""

from datetime import date

import pytest
from pydantic import ValidationError

from farm_analytics.schemas import AnalyticsData, ExpenseRecord, InventoryItem, SaleRecord


class TestSaleRecord:
    def test_accepts_aliases(self):
        sale = SaleRecord.model_validate({
            "id": "sale_1",
            "crop": "Wheat",
            "quantity": 2,
            "pricePerUnit": 50,
            "totalSale": 100,
            "date": "2024-03-05",
        })
        assert sale.price_per_unit == 50
        assert sale.total_sale == 100
        assert sale.date == date(2024, 3, 5)

    def test_rejects_negative_price(self):
        with pytest.raises(ValidationError):
            SaleRecord(
                id="sale_1", crop="Wheat", quantity=1, price_per_unit=-1,
                total_sale=0, date=date(2024, 3, 5),
            )

    def test_records_are_immutable(self):
        sale = SaleRecord(
            id="sale_1", crop="Wheat", quantity=1, price_per_unit=10,
            total_sale=10, date=date(2024, 3, 5),
        )
        with pytest.raises(ValidationError):
            sale.total_sale = 20


class TestValidation:
    def test_rejects_malformed_date(self):
        with pytest.raises(ValidationError):
            ExpenseRecord(id="exp_1", category="Fuel", amount=10, date="March 5th")

    def test_rejects_negative_quantity(self):
        with pytest.raises(ValidationError):
            InventoryItem(id="inv_1", crop="Rice", quantity=-1, unit="kg", date=date(2024, 3, 1))

    def test_document_defaults_to_empty(self):
        data = AnalyticsData.model_validate({})
        assert data.inventory == []
        assert data.sales == []
        assert data.expenses == []

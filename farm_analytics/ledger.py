"""Record-level operations on an owner's analytics document.

Every operation takes an AnalyticsData document and returns a new one; the
input document is never modified. Persisting the result is up to the caller.
"""

import logging
import uuid
from datetime import date
from typing import Any, Optional

import pandas as pd

from . import units
from .schemas import AnalyticsData, ExpenseRecord, InventoryItem, SaleRecord

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "inventory": InventoryItem,
    "sales": SaleRecord,
    "expenses": ExpenseRecord,
}

ID_PREFIXES = {
    "inventory": "inv",
    "sales": "sale",
    "expenses": "exp",
}


class LedgerError(Exception):
    """Raised when an operation refers to a record or collection that does not exist."""


def new_id(prefix: str) -> str:
    """Returns a collision-resistant record id such as 'sale_3f2a...'."""
    return f"{prefix}_{uuid.uuid4().hex}"


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise LedgerError(
            f"Unknown collection {collection!r}. Expected one of {list(COLLECTIONS)}"
        )


def _find(records: list, record_id: str, collection: str):
    for record in records:
        if record.id == record_id:
            return record
    raise LedgerError(f"No record with id {record_id!r} in {collection}.")


def add_inventory_item(
    data: AnalyticsData, crop: str, quantity: float, unit: str, on: date
) -> tuple[AnalyticsData, InventoryItem]:
    item = InventoryItem(
        id=new_id(ID_PREFIXES["inventory"]),
        crop=crop,
        quantity=quantity,
        unit=unit,
        date=on,
    )
    logger.info(f"Added {quantity} {unit} of {crop} to inventory.")
    return data.model_copy(update={"inventory": [*data.inventory, item]}), item


def log_sale(
    data: AnalyticsData,
    inventory_id: str,
    quantity: float,
    price_per_unit: float,
    on: date,
    unit: Optional[str] = None,
) -> tuple[AnalyticsData, SaleRecord]:
    """
    Records a sale against an inventory item and deducts the sold quantity
    from its stock.

    The sale copies the crop name from the item and defaults to the item's
    unit. Mass units are converted before deducting (500 kg sold from a
    2 tons item leaves 1.5 tons); other unit pairs deduct 1:1. Stock never
    goes below zero.
    """
    item = _find(data.inventory, inventory_id, "inventory")
    sale_unit = unit or item.unit

    sale = SaleRecord(
        id=new_id(ID_PREFIXES["sales"]),
        crop=item.crop,
        quantity=quantity,
        unit=sale_unit,
        price_per_unit=price_per_unit,
        total_sale=quantity * price_per_unit,
        date=on,
    )

    remaining = units.deduct(item.quantity, item.unit, quantity, sale_unit)
    if remaining == 0 and units.convert_quantity(quantity, sale_unit, item.unit) > item.quantity:
        logger.warning(
            f"⚠️ Sale of {quantity} {sale_unit} exceeds stock of {item.crop} "
            f"({item.quantity} {item.unit}). Stock set to 0."
        )

    inventory = [
        record.model_copy(update={"quantity": remaining}) if record.id == inventory_id else record
        for record in data.inventory
    ]
    logger.info(f"Logged sale of {quantity} {sale_unit} {item.crop} for {sale.total_sale:.2f}.")
    return data.model_copy(update={"inventory": inventory, "sales": [*data.sales, sale]}), sale


def log_expense(
    data: AnalyticsData, category: str, amount: float, on: date
) -> tuple[AnalyticsData, ExpenseRecord]:
    expense = ExpenseRecord(
        id=new_id(ID_PREFIXES["expenses"]),
        category=category,
        amount=amount,
        date=on,
    )
    logger.info(f"Logged {category} expense of {amount:.2f}.")
    return data.model_copy(update={"expenses": [*data.expenses, expense]}), expense


def edit_record(
    data: AnalyticsData, collection: str, record_id: str, **changes: Any
) -> AnalyticsData:
    """
    Replaces a record with an edited copy. Changes use snake_case field names
    and are re-validated against the record's schema.

    For sales, a change of quantity or price recomputes total_sale unless the
    caller passes total_sale explicitly.
    """
    _check_collection(collection)
    records = getattr(data, collection)
    current = _find(records, record_id, collection)

    unknown = set(changes) - set(COLLECTIONS[collection].model_fields)
    if unknown:
        raise LedgerError(f"Unknown {collection} fields: {', '.join(sorted(unknown))}")

    fields = current.model_dump()
    fields.update(changes)
    fields["id"] = record_id

    edited = COLLECTIONS[collection].model_validate(fields)

    if collection == "sales" and "total_sale" not in changes:
        if "quantity" in changes or "price_per_unit" in changes:
            edited = edited.model_copy(
                update={"total_sale": edited.quantity * edited.price_per_unit}
            )

    updated = [edited if record.id == record_id else record for record in records]
    logger.info(f"Edited {collection} record {record_id}.")
    return data.model_copy(update={collection: updated})


def delete_record(data: AnalyticsData, collection: str, record_id: str) -> AnalyticsData:
    _check_collection(collection)
    records = getattr(data, collection)
    _find(records, record_id, collection)
    logger.info(f"Deleted {collection} record {record_id}.")
    return data.model_copy(
        update={collection: [record for record in records if record.id != record_id]}
    )


def top_crops(data: AnalyticsData, n: int = 3) -> list[str]:
    """Crops ranked by lifetime sales revenue."""
    if not data.sales:
        return []
    df = pd.DataFrame(
        [{"crop": sale.crop, "revenue": sale.total_sale} for sale in data.sales]
    )
    ranked = df.groupby("crop")["revenue"].sum().sort_values(ascending=False)
    return [str(crop) for crop in ranked.head(n).index]


def top_expense_categories(data: AnalyticsData, n: int = 3) -> list[str]:
    """Expense categories ranked by lifetime spend."""
    if not data.expenses:
        return []
    df = pd.DataFrame(
        [{"category": exp.category, "amount": exp.amount} for exp in data.expenses]
    )
    ranked = df.groupby("category")["amount"].sum().sort_values(ascending=False)
    return [str(category) for category in ranked.head(n).index]

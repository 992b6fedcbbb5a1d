"""Quantity conversion between the units crops are stocked and sold in."""

from . import settings


def convert_quantity(quantity: float, from_unit: str, to_unit: str) -> float:
    """Convert a quantity between units.

    Mass units (kg, quintals, tons) convert through their weight in kilograms.
    Any other pair, such as liters to units, has no known ratio and is
    returned unchanged (1:1).

    Args:
        quantity: Amount expressed in `from_unit`.
        from_unit: Unit the amount is given in, e.g. "kg".
        to_unit: Unit to express the amount in, e.g. "tons".
    """
    if from_unit == to_unit:
        return quantity

    from_kg = settings.MASS_UNITS_IN_KG.get(from_unit)
    to_kg = settings.MASS_UNITS_IN_KG.get(to_unit)
    if from_kg is None or to_kg is None:
        return quantity

    return quantity * from_kg / to_kg


def deduct(stock: float, stock_unit: str, sold: float, sold_unit: str) -> float:
    """Return the stock left after selling `sold` `sold_unit`, never below zero."""
    remaining = stock - convert_quantity(sold, sold_unit, stock_unit)
    return max(remaining, 0.0)

from datetime import date, datetime


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def parse_iso_date(value: str) -> date:
    """
    Parses a calendar date given as YYYY-MM-DD (the format used in the stored
    documents and on the command line).
    """
    return date.fromisoformat(value)


def format_money(amount: float) -> str:
    """Formats an amount with thousands separators and two decimals, e.g. '₹1,500.00'."""
    return f"₹{amount:,.2f}"

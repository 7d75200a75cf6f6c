"""
Formatting of numbers, amounts and dates as they appear on documents.

Amounts arrive already computed; these helpers only decide how they are
printed.
"""

from typing import Optional

from app.services.theme import Theme

MISSING_DATE = "___________"


def format_number(value: float) -> str:
    """Print a quantity without a spurious trailing `.0` (2.0 -> "2", 5.5 -> "5.5").

    Every other digit is kept: 1500000 stays "1500000", never "1.5e+06".
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_amount(value: float, theme: Theme) -> str:
    """Two decimals followed by the currency suffix: 1200 -> "1200.00 €"."""
    return f"{value:.2f} {theme.currency_suffix}"


def format_vat(amount: float, theme: Theme, exempt: bool = False) -> str:
    """The TVA value of a totals block, or the legal exemption notice."""
    if exempt or amount == 0:
        return theme.vat_exemption_notice
    return format_amount(amount, theme)


def format_rate(rate: float) -> str:
    """A line-item tax rate; a zero rate is an exemption, not "0%"."""
    if rate == 0:
        return "Exonéré"
    return f"{format_number(rate)}%"


def format_short_date(iso_date: str) -> str:
    """"2025-03-14" -> "14/03/2025"; anything else is returned as-is."""
    parts = iso_date.split("-")
    if len(parts) == 3:
        return f"{parts[2]}/{parts[1]}/{parts[0]}"
    return iso_date


def city_from_address(address: Optional[str]) -> Optional[str]:
    """Last comma-separated part of a "street, postcode city" address."""
    if not address:
        return None
    parts = [part.strip() for part in address.split(",") if part.strip()]
    return parts[-1] if parts else None

from typing import Optional

from partquote.utils.rounding import round_half_up

NBSP = "\u00a0"


def format_eur(amount: Optional[float]) -> str:
    """German-style euro amount, symbol first: ``format_eur(1234.5) == "€ 1.234,50"``."""
    value = round_half_up(float(amount or 0))
    text = f"{abs(value):,.2f}"  # 1,234.50
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if value < 0 and text.strip("0,.") else ""
    return f"€{NBSP}{sign}{text}"

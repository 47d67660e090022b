from decimal import Decimal, ROUND_HALF_UP

CENTS = 2
MILLIGRAMS = 3


def round_half_up(value: float, places: int = CENTS) -> float:
    """Round half away from zero on the exact binary value: ``round_half_up(14.625) == 14.63``."""
    step = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(step, rounding=ROUND_HALF_UP))

"""
Module: budget_kernel.db.types
Responsibility: Precision constants and the sanctioned percentage rounding
    shared by the domain and services.
Architecture position: Kernel > DB.  Imported by models/, domain/ and
    services/.  MUST NOT import from any of those layers.

CRITICAL: no floats anywhere in the kernel.  Amounts are Decimal with
explicit precision; execution rates are percentages with two places.
"""

from decimal import ROUND_HALF_UP, Decimal

# Scale of every Numeric(38, 9) money column
MONEY_DECIMAL_PLACES = 9
PERCENT_DECIMAL_PLACES = 2

ZERO = Decimal("0")


def round_percent(value: Decimal) -> Decimal:
    """Quantize a percentage to two places, ROUND_HALF_UP."""
    return value.quantize(
        Decimal(1).scaleb(-PERCENT_DECIMAL_PLACES), rounding=ROUND_HALF_UP
    )

"""
Core math modules

Aritmética decimal exata, formação de preço e tributos.
"""

# Precision
from src.core.math.precision import (
    DEFAULT_ENGINE,
    MIN_PRECISION,
    DecimalInput,
    InvalidDecimalError,
    PrecisionConfig,
    PrecisionEngine,
    abs_decimal,
    compare,
    divide,
    format_fixed,
    is_negative,
    is_positive,
    is_zero,
    max_decimal,
    min_decimal,
    multiply,
    percent_of,
    round_decimal,
    subtract,
    sum_decimals,
    to_decimal,
    to_money,
    to_number,
    to_percent,
    to_quantity,
)

# Pricing
from src.core.math.pricing import (
    StockValidation,
    calculate_margin,
    calculate_markup,
    validate_stock,
)

# Taxes
from src.core.math.taxes import (
    DEFAULT_COFINS_RATE,
    DEFAULT_IPI_RATE,
    DEFAULT_PIS_RATE,
    calculate_cofins,
    calculate_icms,
    calculate_invoice_tax_totals,
    calculate_ipi,
    calculate_item_tax_breakdown,
    calculate_pis,
    calculate_total_taxes,
)

__all__ = [
    # Precision: Config
    "DEFAULT_ENGINE",
    "MIN_PRECISION",
    "DecimalInput",
    "InvalidDecimalError",
    "PrecisionConfig",
    "PrecisionEngine",
    # Precision: Conversions
    "to_decimal",
    "to_number",
    "round_decimal",
    "to_money",
    "to_quantity",
    "to_percent",
    "format_fixed",
    # Precision: Arithmetic
    "sum_decimals",
    "subtract",
    "multiply",
    "divide",
    "percent_of",
    "abs_decimal",
    # Precision: Comparisons
    "is_positive",
    "is_negative",
    "is_zero",
    "compare",
    "max_decimal",
    "min_decimal",
    # Pricing
    "StockValidation",
    "validate_stock",
    "calculate_markup",
    "calculate_margin",
    # Taxes: Constants
    "DEFAULT_PIS_RATE",
    "DEFAULT_COFINS_RATE",
    "DEFAULT_IPI_RATE",
    # Taxes: Functions
    "calculate_icms",
    "calculate_ipi",
    "calculate_pis",
    "calculate_cofins",
    "calculate_total_taxes",
    "calculate_item_tax_breakdown",
    "calculate_invoice_tax_totals",
]

"""
Pricing — Markup, margem e validação de estoque

Fórmulas de formação de preço e a guarda canônica de baixa de estoque,
todas sobre o PrecisionEngine.

Convenções:
- Markup é sobre o custo: price = cost * (1 + markup/100)
- Margem é sobre o preço: price = cost / (1 - margin/100)
- Margem >= 100% é indefinida: retorna o custo sem alteração
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from src.core.math.precision import DEFAULT_ENGINE, DecimalInput, PrecisionEngine


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class StockValidation:
    """Resultado da validação de baixa de estoque."""

    valid: bool
    new_stock: Decimal
    error: Optional[str] = None


# =============================================================================
# ESTOQUE
# =============================================================================


def validate_stock(
    current_stock: DecimalInput,
    quantity: DecimalInput,
    allow_negative: bool = False,
    *,
    engine: PrecisionEngine = DEFAULT_ENGINE,
) -> StockValidation:
    """
    Guarda de baixa de estoque.

    new_stock = current_stock - quantity. Resultado negativo só é aceito
    com allow_negative=True. new_stock é sempre devolvido, válido ou não.

    Args:
        current_stock: Saldo atual
        quantity: Quantidade a baixar
        allow_negative: Permite saldo negativo (default: False)
        engine: Motor decimal

    Returns:
        StockValidation

    Examples:
        >>> validate_stock(10, 12.5).error
        'Estoque insuficiente. Disponível: 10.0000, Solicitado: 12.5000'
    """
    new_stock = engine.subtract(current_stock, quantity)

    if engine.is_negative(new_stock) and not allow_negative:
        places = engine.config.quantity_places
        return StockValidation(
            valid=False,
            new_stock=new_stock,
            error=(
                f"Estoque insuficiente. "
                f"Disponível: {engine.format_fixed(current_stock, places)}, "
                f"Solicitado: {engine.format_fixed(quantity, places)}"
            ),
        )

    return StockValidation(valid=True, new_stock=new_stock)


# =============================================================================
# PREÇO
# =============================================================================


def calculate_markup(
    cost: DecimalInput,
    markup_percent: DecimalInput,
    *,
    engine: PrecisionEngine = DEFAULT_ENGINE,
) -> Decimal:
    """price = cost * (1 + markup_percent / 100)"""
    factor = engine.sum_decimals(1, engine.divide(markup_percent, 100))
    return engine.multiply(cost, factor)


def calculate_margin(
    cost: DecimalInput,
    margin_percent: DecimalInput,
    *,
    engine: PrecisionEngine = DEFAULT_ENGINE,
) -> Decimal:
    """
    Preço a partir do custo com margem sobre o preço de venda.

    price = cost / (1 - margin_percent / 100)

    Com margem >= 100% o divisor é <= 0 e a fórmula não tem sentido;
    nesse caso o custo é devolvido sem alteração.

    Examples:
        >>> calculate_margin(70, 30) == 100
        True
        >>> calculate_margin(50, 100)
        Decimal('50')
    """
    divisor = engine.subtract(1, engine.divide(margin_percent, 100))

    if not engine.is_positive(divisor):
        return engine.to_decimal(cost)

    return engine.divide(cost, divisor)

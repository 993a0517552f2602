"""
Precision — Aritmética decimal exata para valores monetários

Todo valor monetário, de quantidade ou percentual do ERP passa por este
módulo antes de ser persistido ou exibido. Nada de float binário no meio
do cálculo: float só aparece na borda final (to_money/to_quantity/
to_percent/to_number).

Configuração:
- PrecisionConfig é imutável e injetada no PrecisionEngine
- Cada operação usa um decimal.Context novo derivado da config
- DEFAULT_ENGINE é a instância padrão (precisão 20, ROUND_HALF_UP)

INVARIANTES CRÍTICOS:
1. 0.1 + 0.2 == 0.3 exatamente
2. Divisão por zero retorna Decimal(0), nunca lança exceção
3. round_decimal é idempotente
4. Todas as operações são puras e retornam novos valores
"""

from dataclasses import dataclass
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    InvalidOperation,
)
from typing import Final, Union

# =============================================================================
# PARÂMETROS
# =============================================================================

# Precisão mínima (dígitos significativos)
MIN_PRECISION: Final[int] = 20

DEFAULT_PRECISION: Final[int] = 20
MONEY_PLACES: Final[int] = 2
QUANTITY_PLACES: Final[int] = 4
PERCENT_PLACES: Final[int] = 2

DecimalInput = Union[Decimal, int, float, str, None]

_ZERO: Final[Decimal] = Decimal(0)
_ONE: Final[Decimal] = Decimal(1)
_HUNDRED: Final[Decimal] = Decimal(100)


class InvalidDecimalError(ValueError):
    """Valor não pode ser interpretado como decimal finito."""


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class PrecisionConfig:
    """Configuração do motor decimal.

    precision é em dígitos significativos, não em casas decimais.
    """

    precision: int = DEFAULT_PRECISION
    rounding: str = ROUND_HALF_UP

    # Casas decimais na borda de saída
    money_places: int = MONEY_PLACES
    quantity_places: int = QUANTITY_PLACES
    percent_places: int = PERCENT_PLACES

    def __post_init__(self) -> None:
        if self.precision < MIN_PRECISION:
            raise ValueError(
                f"precision must be >= {MIN_PRECISION}, got {self.precision}"
            )
        for name in ("money_places", "quantity_places", "percent_places"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    def context(self) -> Context:
        """Novo decimal.Context com a precisão e o arredondamento configurados."""
        return Context(prec=self.precision, rounding=self.rounding)


# =============================================================================
# ENGINE
# =============================================================================


class PrecisionEngine:
    """Motor de aritmética decimal.

    Stateless entre chamadas: a única coisa guardada é a config imutável.
    Seguro para uso concorrente sem locks.
    """

    def __init__(self, config: PrecisionConfig | None = None):
        self.config = config or PrecisionConfig()

    # -------------------------------------------------------------------------
    # Conversões
    # -------------------------------------------------------------------------

    def to_decimal(self, value: DecimalInput) -> Decimal:
        """
        Converte number/string/Decimal para Decimal.

        None vira zero. float é convertido pela representação decimal mais
        curta (repr), então 0.1 vira Decimal("0.1") e não o binário exato.

        Args:
            value: Valor de entrada

        Returns:
            Decimal finito

        Raises:
            InvalidDecimalError: String malformada, NaN ou Infinity
            TypeError: Tipo não suportado (erro de programação)
        """
        if value is None:
            return _ZERO

        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, bool):
            raise TypeError("bool is not a numeric value")
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            result = Decimal(repr(value))
        elif isinstance(value, str):
            try:
                result = Decimal(value.strip())
            except InvalidOperation:
                raise InvalidDecimalError(f"Invalid decimal value: {value!r}") from None
        else:
            raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")

        if not result.is_finite():
            raise InvalidDecimalError(f"Decimal value must be finite, got {value!r}")

        return result

    def to_number(self, value: DecimalInput) -> float:
        """
        Conversão leniente para float, só para renderização.

        Falha de parse retorna 0.0.
        """
        try:
            return float(self.to_decimal(value))
        except InvalidDecimalError:
            return 0.0

    def round_decimal(self, value: DecimalInput, decimals: int = 2) -> Decimal:
        """
        Arredonda para `decimals` casas (half-up por padrão).

        Args:
            value: Valor a arredondar
            decimals: Número de casas decimais (default: 2)

        Returns:
            Decimal com exatamente `decimals` casas

        Examples:
            >>> DEFAULT_ENGINE.round_decimal("2.345")
            Decimal('2.35')
            >>> DEFAULT_ENGINE.round_decimal("-2.345")
            Decimal('-2.35')
        """
        d = self.to_decimal(value)
        ctx = self.config.context()
        # quantize falha se o coeficiente resultante exceder a precisão
        ctx.prec = max(ctx.prec, d.adjusted() + decimals + 2)
        return d.quantize(_ONE.scaleb(-decimals), rounding=self.config.rounding, context=ctx)

    def to_money(self, value: DecimalInput) -> float:
        return float(self.round_decimal(value, self.config.money_places))

    def to_quantity(self, value: DecimalInput) -> float:
        return float(self.round_decimal(value, self.config.quantity_places))

    def to_percent(self, value: DecimalInput) -> float:
        return float(self.round_decimal(value, self.config.percent_places))

    def format_fixed(self, value: DecimalInput, places: int = 2) -> str:
        """
        Formato de ponto fixo usado nos campos numéricos da NF-e.

        Examples:
            >>> DEFAULT_ENGINE.format_fixed(1234.5)
            '1234.50'
        """
        return f"{self.round_decimal(value, places):f}"

    # -------------------------------------------------------------------------
    # Aritmética
    # -------------------------------------------------------------------------

    def sum_decimals(self, *values: DecimalInput) -> Decimal:
        """Soma exata; None conta como zero, lista vazia retorna zero."""
        decimals = [self.to_decimal(value) for value in values]
        ctx = self.config.context()
        nonzero = [d for d in decimals if not d.is_zero()]
        if nonzero:
            # Dígitos entre a maior ordem e a menor casa, mais o vai-um
            span = max(d.adjusted() for d in nonzero) - min(d.as_tuple().exponent for d in nonzero) + 1
            ctx.prec = max(ctx.prec, span + len(str(len(nonzero))))
        total = _ZERO
        for d in decimals:
            total = ctx.add(total, d)
        return total

    def subtract(self, a: DecimalInput, b: DecimalInput) -> Decimal:
        return self.config.context().subtract(self.to_decimal(a), self.to_decimal(b))

    def multiply(self, a: DecimalInput, b: DecimalInput) -> Decimal:
        return self.config.context().multiply(self.to_decimal(a), self.to_decimal(b))

    def divide(self, dividend: DecimalInput, divisor: DecimalInput) -> Decimal:
        """
        Divisão segura.

        Divisor zero retorna Decimal(0): nunca lança exceção, nunca
        NaN/Infinity. Quem chama não deve usar a divisão para detectar zero.
        """
        divisor_d = self.to_decimal(divisor)
        if divisor_d.is_zero():
            return _ZERO
        return self.config.context().divide(self.to_decimal(dividend), divisor_d)

    def percent_of(self, value: DecimalInput, percent: DecimalInput) -> Decimal:
        """value * (percent / 100)"""
        ctx = self.config.context()
        return ctx.multiply(
            self.to_decimal(value),
            ctx.divide(self.to_decimal(percent), _HUNDRED),
        )

    def abs_decimal(self, value: DecimalInput) -> Decimal:
        return abs(self.to_decimal(value))

    # -------------------------------------------------------------------------
    # Comparações
    # -------------------------------------------------------------------------

    def is_positive(self, value: DecimalInput) -> bool:
        """Estritamente maior que zero (zero NÃO é positivo)."""
        return self.to_decimal(value) > _ZERO

    def is_negative(self, value: DecimalInput) -> bool:
        return self.to_decimal(value) < _ZERO

    def is_zero(self, value: DecimalInput) -> bool:
        return self.to_decimal(value).is_zero()

    def compare(self, a: DecimalInput, b: DecimalInput) -> int:
        """
        Comparação de três vias.

        Returns:
            -1 se a < b, 0 se a == b, 1 se a > b
        """
        return int(self.to_decimal(a).compare(self.to_decimal(b)))

    def max_decimal(self, *values: DecimalInput) -> Decimal:
        if not values:
            raise ValueError("max_decimal requires at least one value")
        return max(self.to_decimal(v) for v in values)

    def min_decimal(self, *values: DecimalInput) -> Decimal:
        if not values:
            raise ValueError("min_decimal requires at least one value")
        return min(self.to_decimal(v) for v in values)


# =============================================================================
# INSTÂNCIA PADRÃO
# =============================================================================

DEFAULT_ENGINE: Final[PrecisionEngine] = PrecisionEngine()

# API de módulo: métodos ligados ao motor padrão
to_decimal = DEFAULT_ENGINE.to_decimal
to_number = DEFAULT_ENGINE.to_number
round_decimal = DEFAULT_ENGINE.round_decimal
to_money = DEFAULT_ENGINE.to_money
to_quantity = DEFAULT_ENGINE.to_quantity
to_percent = DEFAULT_ENGINE.to_percent
format_fixed = DEFAULT_ENGINE.format_fixed
sum_decimals = DEFAULT_ENGINE.sum_decimals
subtract = DEFAULT_ENGINE.subtract
multiply = DEFAULT_ENGINE.multiply
divide = DEFAULT_ENGINE.divide
percent_of = DEFAULT_ENGINE.percent_of
abs_decimal = DEFAULT_ENGINE.abs_decimal
is_positive = DEFAULT_ENGINE.is_positive
is_negative = DEFAULT_ENGINE.is_negative
is_zero = DEFAULT_ENGINE.is_zero
compare = DEFAULT_ENGINE.compare
max_decimal = DEFAULT_ENGINE.max_decimal
min_decimal = DEFAULT_ENGINE.min_decimal

"""
Taxes — ICMS, IPI, PIS e COFINS

Cada tributo é round(base * alíquota / 100, 2). Totais SEMPRE somam os
valores já arredondados linha a linha, nunca arredondam a soma bruta:
é assim que os valores aparecem na NF-e e é assim que a SEFAZ confere.

Alíquotas padrão (regime não cumulativo):
- PIS: 1.65%
- COFINS: 7.6%
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Final

from src.core.domain.tax import InvoiceTaxTotals, ItemTaxBreakdown, TaxBreakdown
from src.core.math.precision import DEFAULT_ENGINE, DecimalInput, PrecisionEngine

# =============================================================================
# ALÍQUOTAS PADRÃO
# =============================================================================

DEFAULT_PIS_RATE: Final[Decimal] = Decimal("1.65")
DEFAULT_COFINS_RATE: Final[Decimal] = Decimal("7.6")
DEFAULT_IPI_RATE: Final[Decimal] = Decimal(0)

TAX_PLACES: Final[int] = 2


# =============================================================================
# TRIBUTOS INDIVIDUAIS
# =============================================================================


def _tax(base: DecimalInput, rate: DecimalInput, engine: PrecisionEngine) -> Decimal:
    return engine.round_decimal(engine.percent_of(base, rate), TAX_PLACES)


def calculate_icms(
    base: DecimalInput, rate: DecimalInput, *, engine: PrecisionEngine = DEFAULT_ENGINE
) -> Decimal:
    return _tax(base, rate, engine)


def calculate_ipi(
    base: DecimalInput, rate: DecimalInput, *, engine: PrecisionEngine = DEFAULT_ENGINE
) -> Decimal:
    return _tax(base, rate, engine)


def calculate_pis(
    base: DecimalInput,
    rate: DecimalInput = DEFAULT_PIS_RATE,
    *,
    engine: PrecisionEngine = DEFAULT_ENGINE,
) -> Decimal:
    return _tax(base, rate, engine)


def calculate_cofins(
    base: DecimalInput,
    rate: DecimalInput = DEFAULT_COFINS_RATE,
    *,
    engine: PrecisionEngine = DEFAULT_ENGINE,
) -> Decimal:
    return _tax(base, rate, engine)


# =============================================================================
# TOTAIS
# =============================================================================


def calculate_total_taxes(
    base: DecimalInput,
    icms_rate: DecimalInput,
    ipi_rate: DecimalInput = DEFAULT_IPI_RATE,
    pis_rate: DecimalInput = DEFAULT_PIS_RATE,
    cofins_rate: DecimalInput = DEFAULT_COFINS_RATE,
    *,
    engine: PrecisionEngine = DEFAULT_ENGINE,
) -> TaxBreakdown:
    """
    Calcula os quatro tributos e o total.

    Cada tributo é arredondado a 2 casas individualmente; total é a soma
    desses valores arredondados.

    Examples:
        >>> calculate_total_taxes(1000, 18, 10, 1.65, 7.6).total
        Decimal('372.50')
    """
    icms = calculate_icms(base, icms_rate, engine=engine)
    ipi = calculate_ipi(base, ipi_rate, engine=engine)
    pis = calculate_pis(base, pis_rate, engine=engine)
    cofins = calculate_cofins(base, cofins_rate, engine=engine)

    return TaxBreakdown(
        icms=icms,
        ipi=ipi,
        pis=pis,
        cofins=cofins,
        total=engine.sum_decimals(icms, ipi, pis, cofins),
    )


def calculate_item_tax_breakdown(
    total_price: DecimalInput,
    icms_rate: DecimalInput,
    ipi_rate: DecimalInput,
    pis_rate: DecimalInput,
    cofins_rate: DecimalInput,
    *,
    engine: PrecisionEngine = DEFAULT_ENGINE,
) -> ItemTaxBreakdown:
    """
    Tributos de um item de nota com alíquota efetiva.

    effective_tax_rate = total_tax / total_price * 100, arredondado a
    2 casas; preço zero resulta em alíquota efetiva zero.
    """
    taxes = calculate_total_taxes(
        total_price, icms_rate, ipi_rate, pis_rate, cofins_rate, engine=engine
    )
    effective_rate = engine.round_decimal(
        engine.multiply(engine.divide(taxes.total, total_price), 100),
        engine.config.percent_places,
    )

    return ItemTaxBreakdown(
        total_price=engine.to_decimal(total_price),
        icms_rate=engine.to_decimal(icms_rate),
        icms_value=taxes.icms,
        ipi_rate=engine.to_decimal(ipi_rate),
        ipi_value=taxes.ipi,
        pis_rate=engine.to_decimal(pis_rate),
        pis_value=taxes.pis,
        cofins_rate=engine.to_decimal(cofins_rate),
        cofins_value=taxes.cofins,
        total_tax=taxes.total,
        effective_tax_rate=effective_rate,
    )


def calculate_invoice_tax_totals(
    items: Iterable[Mapping[str, DecimalInput]],
    *,
    engine: PrecisionEngine = DEFAULT_ENGINE,
) -> InvoiceTaxTotals:
    """
    Totaliza os tributos dos itens de uma nota.

    Cada item é um mapping com total_price e, opcionalmente, icms_rate,
    icms_value, ipi_value, pis_value e cofins_value (ausente = 0).
    Itens com alíquota de ICMS zero não entram na base do ICMS.

    Returns:
        InvoiceTaxTotals; total_invoice = total_products + ipi_value
    """
    total_products: list[DecimalInput] = []
    icms_base: list[DecimalInput] = []
    icms_value: list[DecimalInput] = []
    ipi_value: list[DecimalInput] = []
    pis_value: list[DecimalInput] = []
    cofins_value: list[DecimalInput] = []

    for item in items:
        price = item.get("total_price")
        total_products.append(price)
        if engine.is_positive(item.get("icms_rate")):
            icms_base.append(price)
        icms_value.append(item.get("icms_value"))
        ipi_value.append(item.get("ipi_value"))
        pis_value.append(item.get("pis_value"))
        cofins_value.append(item.get("cofins_value"))

    products = engine.sum_decimals(*total_products)
    ipi = engine.sum_decimals(*ipi_value)

    return InvoiceTaxTotals(
        total_products=products,
        icms_base=engine.sum_decimals(*icms_base),
        icms_value=engine.sum_decimals(*icms_value),
        icms_st_base=Decimal(0),
        icms_st_value=Decimal(0),
        ipi_value=ipi,
        pis_value=engine.sum_decimals(*pis_value),
        cofins_value=engine.sum_decimals(*cofins_value),
        total_invoice=engine.sum_decimals(products, ipi),
    )

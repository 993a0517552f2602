"""
Testes do cálculo de tributos (ICMS, IPI, PIS, COFINS)

Verifica:
1. Tributos individuais arredondados a 2 casas (half-up)
2. Alíquotas padrão de PIS/COFINS
3. Total = soma dos componentes arredondados
4. Alíquota efetiva por item
5. Totais da nota (ICMSTot)
"""

from decimal import Decimal

import pytest

from src.core.domain import InvoiceTaxTotals, ItemTaxBreakdown, TaxBreakdown
from src.core.math.taxes import (
    DEFAULT_COFINS_RATE,
    DEFAULT_PIS_RATE,
    calculate_cofins,
    calculate_icms,
    calculate_invoice_tax_totals,
    calculate_ipi,
    calculate_item_tax_breakdown,
    calculate_pis,
    calculate_total_taxes,
)

# =============================================================================
# TRIBUTOS INDIVIDUAIS
# =============================================================================


class TestIndividualTaxes:
    """Testes dos tributos individuais"""

    def test_icms(self) -> None:
        assert calculate_icms(1000, 18) == Decimal("180.00")
        assert str(calculate_icms(1000, 18)) == "180.00"

    def test_ipi(self) -> None:
        assert calculate_ipi(1000, 10) == Decimal("100.00")
        assert calculate_ipi(1000, 0) == Decimal(0)

    def test_pis_default_rate(self) -> None:
        assert DEFAULT_PIS_RATE == Decimal("1.65")
        assert calculate_pis(1000) == Decimal("16.50")

    def test_cofins_default_rate(self) -> None:
        assert DEFAULT_COFINS_RATE == Decimal("7.6")
        assert calculate_cofins(1000) == Decimal("76.00")

    def test_half_up_rounding(self) -> None:
        """0.25 * 18% = 0.045 → 0.05"""
        assert calculate_icms("0.25", 18) == Decimal("0.05")
        assert calculate_icms("10.05", 18) == Decimal("1.81")

    def test_float_inputs_are_exact(self) -> None:
        assert calculate_icms(19.99, 18) == Decimal("3.60")


# =============================================================================
# TOTAIS
# =============================================================================


class TestTotalTaxes:
    """Testes para calculate_total_taxes"""

    def test_breakdown(self) -> None:
        result = calculate_total_taxes(1000, 18, 10, 1.65, 7.6)

        assert isinstance(result, TaxBreakdown)
        assert result.icms == Decimal("180")
        assert result.ipi == Decimal("100")
        assert result.pis == Decimal("16.5")
        assert result.cofins == Decimal("76")
        assert result.total == Decimal("372.5")

    def test_defaults(self) -> None:
        result = calculate_total_taxes(1000, 18)
        assert result.ipi == 0
        assert result.total == Decimal("272.50")

    def test_total_sums_rounded_components(self) -> None:
        """Total é a soma dos valores arredondados, não o arredondamento da soma"""
        result = calculate_total_taxes("10.10", 18, 0, "1.65", "7.6")
        components = result.icms + result.ipi + result.pis + result.cofins
        assert result.total == components

        # soma bruta 1.818 + 0.16665 + 0.7676 = 2.75225 daria 2.75
        assert result.icms == Decimal("1.82")
        assert result.pis == Decimal("0.17")
        assert result.cofins == Decimal("0.77")
        assert result.total == Decimal("2.76")

    def test_zero_base(self) -> None:
        result = calculate_total_taxes(0, 18, 10)
        assert result.total == 0

    def test_total_beyond_context_precision(self) -> None:
        """Total com mais de 20 dígitos continua igual à soma dos componentes"""
        result = calculate_total_taxes("3000000000000000000.1", 18, 10, "1.65", "7.6")

        assert result.total == Decimal("1117500000000000000.04")
        assert result.total == result.icms + result.ipi + result.pis + result.cofins


class TestItemTaxBreakdown:
    """Testes para calculate_item_tax_breakdown"""

    def test_effective_rate(self) -> None:
        result = calculate_item_tax_breakdown(1000, 18, 5, 1.65, 7.6)

        assert isinstance(result, ItemTaxBreakdown)
        assert result.total_price == Decimal(1000)
        assert result.icms_value == Decimal("180")
        assert result.ipi_value == Decimal("50")
        assert result.total_tax == Decimal("322.5")
        assert result.effective_tax_rate == Decimal("32.25")

    def test_rates_are_kept(self) -> None:
        result = calculate_item_tax_breakdown(200, 12, 0, 1.65, 7.6)
        assert result.icms_rate == Decimal(12)
        assert result.pis_rate == Decimal("1.65")
        assert result.cofins_rate == Decimal("7.6")

    def test_zero_price_effective_rate_is_zero(self) -> None:
        result = calculate_item_tax_breakdown(0, 18, 5, 1.65, 7.6)
        assert result.total_tax == 0
        assert result.effective_tax_rate == 0


class TestInvoiceTaxTotals:
    """Testes para calculate_invoice_tax_totals"""

    @pytest.fixture
    def items(self) -> list[dict]:
        return [
            {
                "total_price": 1000,
                "icms_rate": 18,
                "icms_value": 180,
                "ipi_value": 50,
                "pis_value": 16.5,
                "cofins_value": 76,
            },
            {
                "total_price": 500,
                "icms_rate": 18,
                "icms_value": 90,
                "ipi_value": 25,
                "pis_value": 8.25,
                "cofins_value": 38,
            },
        ]

    def test_totals(self, items: list[dict]) -> None:
        result = calculate_invoice_tax_totals(items)

        assert isinstance(result, InvoiceTaxTotals)
        assert result.total_products == Decimal(1500)
        assert result.icms_base == Decimal(1500)
        assert result.icms_value == Decimal(270)
        assert result.ipi_value == Decimal(75)
        assert result.pis_value == Decimal("24.75")
        assert result.cofins_value == Decimal(114)
        assert result.total_invoice == Decimal(1575)

    def test_st_fields_are_zero(self, items: list[dict]) -> None:
        result = calculate_invoice_tax_totals(items)
        assert result.icms_st_base == 0
        assert result.icms_st_value == 0

    def test_items_without_icms_excluded_from_base(self) -> None:
        items = [
            {"total_price": 100, "icms_rate": 18, "icms_value": 18},
            {"total_price": 50, "icms_rate": 0},
            {"total_price": 25},
        ]
        result = calculate_invoice_tax_totals(items)

        assert result.total_products == Decimal(175)
        assert result.icms_base == Decimal(100)
        assert result.icms_value == Decimal(18)
        assert result.pis_value == 0

    def test_empty_invoice(self) -> None:
        result = calculate_invoice_tax_totals([])
        assert result.total_products == 0
        assert result.total_invoice == 0

    def test_from_item_breakdowns(self) -> None:
        """Totais a partir dos resultados de calculate_item_tax_breakdown"""
        breakdowns = [
            calculate_item_tax_breakdown(1000, 18, 5, 1.65, 7.6),
            calculate_item_tax_breakdown(500, 18, 5, 1.65, 7.6),
        ]
        result = calculate_invoice_tax_totals(b.model_dump() for b in breakdowns)

        assert result.icms_value == Decimal(270)
        assert result.ipi_value == Decimal(75)
        assert result.total_invoice == Decimal(1575)

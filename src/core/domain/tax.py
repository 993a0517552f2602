"""
Tax — Modelos de resultado de cálculo de tributos

Modelos Pydantic imutáveis (frozen=True) para os resultados de
ICMS/IPI/PIS/COFINS. Todos os valores já chegam arredondados a 2 casas;
os totais são somas dos componentes arredondados.
"""

from decimal import Decimal, localcontext

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# TAX BREAKDOWN
# =============================================================================


def _exact_sum(*values: Decimal) -> Decimal:
    digits = max(v.adjusted() for v in values) - min(v.as_tuple().exponent for v in values) + 2
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, digits)
        return sum(values, Decimal(0))


class TaxBreakdown(BaseModel):
    """
    Tributos de uma base de cálculo.

    total é a soma exata dos quatro componentes, cada um arredondado
    individualmente antes da soma (prática da documentação fiscal).
    """

    icms: Decimal = Field(..., description="Valor do ICMS")
    ipi: Decimal = Field(..., description="Valor do IPI")
    pis: Decimal = Field(..., description="Valor do PIS")
    cofins: Decimal = Field(..., description="Valor da COFINS")
    total: Decimal = Field(..., description="icms + ipi + pis + cofins")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_total(self) -> "TaxBreakdown":
        expected = _exact_sum(self.icms, self.ipi, self.pis, self.cofins)
        if self.total != expected:
            raise ValueError(f"total {self.total} differs from sum of components {expected}")
        return self


# =============================================================================
# ITEM
# =============================================================================


class ItemTaxBreakdown(BaseModel):
    """Tributos de um item de nota, com as alíquotas usadas."""

    total_price: Decimal = Field(..., description="Valor total do item (base)")

    icms_rate: Decimal
    icms_value: Decimal
    ipi_rate: Decimal
    ipi_value: Decimal
    pis_rate: Decimal
    pis_value: Decimal
    cofins_rate: Decimal
    cofins_value: Decimal

    total_tax: Decimal = Field(..., description="Soma dos quatro tributos")
    effective_tax_rate: Decimal = Field(
        ..., description="total_tax / total_price * 100 (0 quando o preço é 0)"
    )

    model_config = {"frozen": True}


# =============================================================================
# INVOICE
# =============================================================================


class InvoiceTaxTotals(BaseModel):
    """Totais de tributos de uma nota (grupo ICMSTot)."""

    total_products: Decimal = Field(..., description="vProd")
    icms_base: Decimal = Field(..., description="vBC: soma dos itens com alíquota de ICMS > 0")
    icms_value: Decimal = Field(..., description="vICMS")
    icms_st_base: Decimal = Field(default=Decimal(0), description="vBCST")
    icms_st_value: Decimal = Field(default=Decimal(0), description="vST")
    ipi_value: Decimal = Field(..., description="vIPI")
    pis_value: Decimal = Field(..., description="vPIS")
    cofins_value: Decimal = Field(..., description="vCOFINS")
    total_invoice: Decimal = Field(..., description="vNF = vProd + vIPI")

    model_config = {"frozen": True}

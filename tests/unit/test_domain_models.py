"""
Testes dos modelos de domínio: TaxBreakdown, ItemTaxBreakdown, InvoiceTaxTotals, CertificateInfo

Verifica:
1. Criação e validação dos modelos Pydantic
2. Consistência do total de tributos
3. Imutabilidade (frozen=True)
4. Serialização/desserialização JSON
5. Janela de validade e formato do certificado
"""

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.domain import CertificateInfo, InvoiceTaxTotals, ItemTaxBreakdown, TaxBreakdown

# =============================================================================
# TAX BREAKDOWN
# =============================================================================


class TestTaxBreakdown:
    """Testes para o modelo TaxBreakdown"""

    @pytest.fixture
    def breakdown(self) -> TaxBreakdown:
        return TaxBreakdown(
            icms=Decimal("180.00"),
            ipi=Decimal("100.00"),
            pis=Decimal("16.50"),
            cofins=Decimal("76.00"),
            total=Decimal("372.50"),
        )

    def test_create(self, breakdown: TaxBreakdown) -> None:
        assert breakdown.total == Decimal("372.5")

    def test_total_with_many_digits(self) -> None:
        breakdown = TaxBreakdown(
            icms="123456789012345678901234567.01",
            ipi="0.01",
            pis="0.00",
            cofins="0.00",
            total="123456789012345678901234567.02",
        )
        assert breakdown.total == Decimal("123456789012345678901234567.02")

    def test_total_must_match_components(self) -> None:
        with pytest.raises(ValidationError, match="differs from sum of components"):
            TaxBreakdown(
                icms=Decimal("180.00"),
                ipi=Decimal("100.00"),
                pis=Decimal("16.50"),
                cofins=Decimal("76.00"),
                total=Decimal("372.49"),
            )

    def test_frozen(self, breakdown: TaxBreakdown) -> None:
        with pytest.raises(ValidationError):
            breakdown.icms = Decimal(0)  # type: ignore[misc]

    def test_accepts_strings(self) -> None:
        breakdown = TaxBreakdown(icms="1.00", ipi="0", pis="0.02", cofins="0.08", total="1.10")
        assert breakdown.pis == Decimal("0.02")

    def test_json_roundtrip(self, breakdown: TaxBreakdown) -> None:
        restored = TaxBreakdown.model_validate_json(breakdown.model_dump_json())
        assert restored == breakdown

    def test_json_keeps_decimal_as_string(self, breakdown: TaxBreakdown) -> None:
        data = json.loads(breakdown.model_dump_json())
        assert data["pis"] == "16.50"


# =============================================================================
# ITEM / INVOICE
# =============================================================================


class TestItemTaxBreakdown:
    """Testes para o modelo ItemTaxBreakdown"""

    def test_missing_field(self) -> None:
        with pytest.raises(ValidationError):
            ItemTaxBreakdown(total_price=Decimal(100))  # type: ignore[call-arg]

    def test_frozen(self) -> None:
        item = ItemTaxBreakdown(
            total_price=100,
            icms_rate=18,
            icms_value="18.00",
            ipi_rate=0,
            ipi_value="0.00",
            pis_rate="1.65",
            pis_value="1.65",
            cofins_rate="7.6",
            cofins_value="7.60",
            total_tax="27.25",
            effective_tax_rate="27.25",
        )
        with pytest.raises(ValidationError):
            item.total_tax = Decimal(0)  # type: ignore[misc]


class TestInvoiceTaxTotals:
    """Testes para o modelo InvoiceTaxTotals"""

    def test_st_defaults_to_zero(self) -> None:
        totals = InvoiceTaxTotals(
            total_products=100,
            icms_base=100,
            icms_value=18,
            ipi_value=0,
            pis_value="1.65",
            cofins_value="7.60",
            total_invoice=100,
        )
        assert totals.icms_st_base == 0
        assert totals.icms_st_value == 0

    def test_invalid_decimal(self) -> None:
        with pytest.raises(ValidationError):
            InvoiceTaxTotals(
                total_products="abc",
                icms_base=0,
                icms_value=0,
                ipi_value=0,
                pis_value=0,
                cofins_value=0,
                total_invoice=0,
            )


# =============================================================================
# CERTIFICATE INFO
# =============================================================================


class TestCertificateInfo:
    """Testes para o modelo CertificateInfo"""

    NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)

    @pytest.fixture
    def info(self) -> CertificateInfo:
        return CertificateInfo(
            subject="CN=EMPRESA TESTE LTDA,C=BR",
            issuer="CN=AC TESTE,C=BR",
            valid_from=self.NOW - timedelta(days=30),
            valid_until=self.NOW + timedelta(days=335),
            serial_number="1A2B3C",
            thumbprint="0123456789ABCDEF0123456789ABCDEF01234567",
        )

    def test_is_valid_at(self, info: CertificateInfo) -> None:
        assert info.is_valid_at(self.NOW)
        assert info.is_valid_at(info.valid_from)
        assert info.is_valid_at(info.valid_until)
        assert not info.is_valid_at(info.valid_until + timedelta(seconds=1))
        assert not info.is_valid_at(info.valid_from - timedelta(seconds=1))

    def test_window_must_be_ordered(self) -> None:
        with pytest.raises(ValidationError, match="before valid_from"):
            CertificateInfo(
                subject="CN=X",
                issuer="CN=X",
                valid_from=self.NOW,
                valid_until=self.NOW - timedelta(days=1),
                serial_number="01",
                thumbprint="0" * 40,
            )

    @pytest.mark.parametrize(
        "thumbprint",
        ["0123456789abcdef0123456789abcdef01234567", "ABC", "G" * 40, "0" * 41],
    )
    def test_thumbprint_format(self, info: CertificateInfo, thumbprint: str) -> None:
        data = info.model_dump()
        data["thumbprint"] = thumbprint
        with pytest.raises(ValidationError):
            CertificateInfo(**data)

    def test_serial_number_hex_uppercase(self, info: CertificateInfo) -> None:
        data = info.model_dump()
        data["serial_number"] = "1a2b"
        with pytest.raises(ValidationError):
            CertificateInfo(**data)

    def test_empty_subject(self, info: CertificateInfo) -> None:
        data = info.model_dump()
        data["subject"] = ""
        with pytest.raises(ValidationError):
            CertificateInfo(**data)

    def test_frozen(self, info: CertificateInfo) -> None:
        with pytest.raises(ValidationError):
            info.subject = "CN=OUTRO"  # type: ignore[misc]

    def test_json_roundtrip(self, info: CertificateInfo) -> None:
        restored = CertificateInfo.model_validate_json(info.model_dump_json())
        assert restored == info

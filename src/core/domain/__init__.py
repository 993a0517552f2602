"""
Domain models and value objects.

Resultados de tributos e metadados de certificado.
"""

from src.core.domain.certificate import CertificateInfo
from src.core.domain.tax import InvoiceTaxTotals, ItemTaxBreakdown, TaxBreakdown

__all__ = [
    "CertificateInfo",
    "TaxBreakdown",
    "ItemTaxBreakdown",
    "InvoiceTaxTotals",
]

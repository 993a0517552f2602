"""
Contract Validation Module

JSON Schema dos resultados fiscais serializados.
"""

from .validators import (
    MODEL_CONTRACTS,
    SCHEMA_DIR,
    ContractValidator,
    SchemaLoader,
    contract_errors,
    is_valid_contract,
    validate_certificate_info,
    validate_invoice_tax_totals,
    validate_item_tax_breakdown,
    validate_model,
    validate_tax_breakdown,
)

__all__ = [
    # Constants
    "MODEL_CONTRACTS",
    "SCHEMA_DIR",
    # Classes
    "SchemaLoader",
    "ContractValidator",
    # Functions
    "validate_model",
    "contract_errors",
    "is_valid_contract",
    "validate_tax_breakdown",
    "validate_item_tax_breakdown",
    "validate_invoice_tax_totals",
    "validate_certificate_info",
]

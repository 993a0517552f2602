"""
Contratos JSON dos resultados fiscais

Os resultados de cálculo (TaxBreakdown, ItemTaxBreakdown, InvoiceTaxTotals)
e os metadados de certificado (CertificateInfo) são persistidos e trocados
com outros serviços na forma model_dump(mode="json"). Cada modelo tem um
JSON Schema Draft 2020-12 em schema/<nome>.json:

    TaxBreakdown      → tax_breakdown.json
    ItemTaxBreakdown  → item_tax_breakdown.json
    InvoiceTaxTotals  → invoice_tax_totals.json
    CertificateInfo   → certificate_info.json

Valores Decimal trafegam como string para não perder precisão; datas de
certificado são RFC 3339 e o "format": "date-time" é verificado.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Final, List, Mapping, Type

import jsonschema
from jsonschema import Draft202012Validator
from pydantic import BaseModel

from src.core.domain import CertificateInfo, InvoiceTaxTotals, ItemTaxBreakdown, TaxBreakdown

logger = logging.getLogger(__name__)

SCHEMA_DIR: Final[Path] = Path(__file__).parent / "schema"

# Modelo → nome do contrato (arquivo sem extensão)
MODEL_CONTRACTS: Final[Mapping[Type[BaseModel], str]] = MappingProxyType(
    {
        TaxBreakdown: "tax_breakdown",
        ItemTaxBreakdown: "item_tax_breakdown",
        InvoiceTaxTotals: "invoice_tax_totals",
        CertificateInfo: "certificate_info",
    }
)


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """Lê e meta-valida os schemas de um diretório, com cache por nome."""

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or SCHEMA_DIR
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Raises:
            FileNotFoundError: Schema inexistente
            ValueError: Schema não é um Draft 2020-12 válido
        """
        cached = self._schemas.get(schema_name)
        if cached is not None:
            return cached

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e.message}") from e

        self._schemas[schema_name] = schema
        return schema


# =============================================================================
# CONTRACTS
# =============================================================================


class ContractValidator:
    """
    Validador de um contrato, com verificação de "format".

    Os validadores são criados sob demanda e reaproveitados: o mesmo schema
    não é relido nem recompilado a cada chamada.
    """

    def __init__(self, loader: SchemaLoader | None = None):
        self._loader = loader or SchemaLoader()
        self._validators: Dict[str, Draft202012Validator] = {}

    def validator_for(self, schema_name: str) -> Draft202012Validator:
        validator = self._validators.get(schema_name)
        if validator is None:
            validator = Draft202012Validator(
                self._loader.load_schema(schema_name),
                format_checker=Draft202012Validator.FORMAT_CHECKER,
            )
            self._validators[schema_name] = validator
        return validator

    def validate(self, schema_name: str, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: Dados fora do contrato (primeiro erro)
        """
        self.validator_for(schema_name).validate(data)

    def errors(self, schema_name: str, data: Dict[str, Any]) -> List[str]:
        """Todos os erros como "caminho: mensagem", ordenados pelo caminho."""
        found = sorted(
            self.validator_for(schema_name).iter_errors(data),
            key=lambda error: [str(part) for part in error.absolute_path],
        )
        return [f"{error.json_path}: {error.message}" for error in found]

    def is_valid(self, schema_name: str, data: Dict[str, Any]) -> bool:
        return self.validator_for(schema_name).is_valid(data)

    def validate_model(self, model: BaseModel) -> None:
        """
        Valida o modelo na forma serializada (model_dump(mode="json")).

        Raises:
            KeyError: Modelo sem contrato registrado
            jsonschema.ValidationError: Serialização fora do contrato
        """
        schema_name = MODEL_CONTRACTS.get(type(model))
        if schema_name is None:
            raise KeyError(f"No contract registered for {type(model).__name__}")

        data = model.model_dump(mode="json")
        try:
            self.validate(schema_name, data)
        except jsonschema.ValidationError as e:
            logger.warning("%s violates contract %s: %s", type(model).__name__, schema_name, e.message)
            raise


_DEFAULT_CONTRACTS = ContractValidator()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_model(model: BaseModel) -> None:
    _DEFAULT_CONTRACTS.validate_model(model)


def contract_errors(schema_name: str, data: Dict[str, Any]) -> List[str]:
    return _DEFAULT_CONTRACTS.errors(schema_name, data)


def is_valid_contract(schema_name: str, data: Dict[str, Any]) -> bool:
    return _DEFAULT_CONTRACTS.is_valid(schema_name, data)


def validate_tax_breakdown(data: Dict[str, Any]) -> None:
    _DEFAULT_CONTRACTS.validate("tax_breakdown", data)


def validate_item_tax_breakdown(data: Dict[str, Any]) -> None:
    _DEFAULT_CONTRACTS.validate("item_tax_breakdown", data)


def validate_invoice_tax_totals(data: Dict[str, Any]) -> None:
    _DEFAULT_CONTRACTS.validate("invoice_tax_totals", data)


def validate_certificate_info(data: Dict[str, Any]) -> None:
    _DEFAULT_CONTRACTS.validate("certificate_info", data)

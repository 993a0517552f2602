"""
CertificateInfo — Metadados do certificado digital A1

Extraídos do X.509 no carregamento; o certificado em si não tem ciclo de
vida no processo (carregado por assinatura e descartado).
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class CertificateInfo(BaseModel):
    """
    Dados de identificação de um certificado.

    Modelo imutável (frozen=True).
    """

    subject: str = Field(..., min_length=1, description="Subject DN (RFC 4514)")
    issuer: str = Field(..., min_length=1, description="Issuer DN (RFC 4514)")
    valid_from: datetime = Field(..., description="Início da validade (UTC)")
    valid_until: datetime = Field(..., description="Fim da validade (UTC)")
    serial_number: str = Field(..., pattern=r"^[0-9A-F]+$", description="Serial em hex maiúsculo")
    thumbprint: str = Field(
        ..., pattern=r"^[0-9A-F]{40}$", description="SHA-1 do DER em hex maiúsculo"
    )

    model_config = {"frozen": True}

    @field_validator("valid_until")
    @classmethod
    def validate_window(cls, v: datetime, info) -> datetime:
        valid_from = info.data.get("valid_from")
        if valid_from is not None and v < valid_from:
            raise ValueError(f"valid_until {v.isoformat()} before valid_from {valid_from.isoformat()}")
        return v

    def is_valid_at(self, moment: datetime) -> bool:
        """True se moment está dentro da janela de validade."""
        return self.valid_from <= moment <= self.valid_until

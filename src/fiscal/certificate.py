"""
Certificate — Carregamento de certificado A1 (PEM) e thumbprint

O material chega já em PEM (extraído do PKCS#12 fora daqui). O
carregamento confere os envelopes PEM, faz o parse real do X.509 com
cryptography e exige que a chave privada seja RSA e corresponda ao
certificado.
"""

import base64
import hashlib
import logging
import re
from dataclasses import dataclass
from typing import Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from src.core.domain.certificate import CertificateInfo

logger = logging.getLogger(__name__)

PRIVATE_KEY_MARKER = re.compile(r"-----BEGIN (?:[A-Z0-9]+ )*PRIVATE KEY-----")
CERTIFICATE_MARKER = "-----BEGIN CERTIFICATE-----"

_PEM_BLOCK = re.compile(r"-----BEGIN [A-Z0-9 ]+-----(.*?)-----END [A-Z0-9 ]+-----", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class LoadedCertificate:
    """Par chave/certificado pronto para assinatura."""

    private_key_pem: str
    certificate_pem: str
    info: CertificateInfo


@dataclass(frozen=True)
class CertificateLoadResult:
    success: bool
    certificate: Optional[LoadedCertificate] = None
    error: Optional[str] = None


# =============================================================================
# PEM
# =============================================================================


def strip_pem(pem: str) -> str:
    """
    Conteúdo base64 do primeiro bloco PEM, sem BEGIN/END e sem espaços.

    Texto fora do envelope (ex.: "Bag Attributes" do openssl) é ignorado.
    """
    match = _PEM_BLOCK.search(pem)
    body = match.group(1) if match else pem
    return _WHITESPACE.sub("", body)


def get_certificate_thumbprint(certificate_pem: str) -> str:
    """
    Thumbprint SHA-1 do certificado.

    SHA-1 sobre os bytes DER (base64 do PEM decodificado), em hex
    maiúsculo de 40 caracteres. Determinístico.

    Raises:
        ValueError: Conteúdo não é base64 válido
    """
    der = base64.b64decode(strip_pem(certificate_pem), validate=True)
    return hashlib.sha1(der).hexdigest().upper()


# =============================================================================
# LOAD
# =============================================================================


def _certificate_info(certificate: x509.Certificate) -> CertificateInfo:
    return CertificateInfo(
        subject=certificate.subject.rfc4514_string(),
        issuer=certificate.issuer.rfc4514_string(),
        valid_from=certificate.not_valid_before_utc,
        valid_until=certificate.not_valid_after_utc,
        serial_number=format(certificate.serial_number, "X"),
        thumbprint=certificate.fingerprint(hashes.SHA1()).hex().upper(),
    )


def load_certificate(
    private_key_pem: str,
    certificate_pem: str,
    password: Optional[bytes] = None,
) -> CertificateLoadResult:
    """
    Carrega e confere um par chave privada / certificado PEM.

    Ordem de verificação:
    1. Envelopes PEM presentes
    2. Parse do certificado X.509
    3. Parse da chave privada (RSA)
    4. Chave corresponde à chave pública do certificado

    Args:
        private_key_pem: Chave privada PEM (PKCS#8 ou PKCS#1)
        certificate_pem: Certificado X.509 PEM
        password: Senha da chave, se cifrada

    Returns:
        CertificateLoadResult; falhas esperadas nunca lançam exceção
    """
    if not isinstance(private_key_pem, str) or not isinstance(certificate_pem, str):
        raise TypeError("private_key_pem and certificate_pem must be str")

    if not PRIVATE_KEY_MARKER.search(private_key_pem):
        return CertificateLoadResult(success=False, error="Chave privada PEM inválida")

    if CERTIFICATE_MARKER not in certificate_pem:
        return CertificateLoadResult(success=False, error="Certificado PEM inválido")

    try:
        certificate = x509.load_pem_x509_certificate(certificate_pem.encode("ascii"))
    except ValueError as exc:
        logger.debug("certificate parse failed: %s", exc)
        return CertificateLoadResult(success=False, error=f"Erro ao carregar certificado: {exc}")

    try:
        private_key = serialization.load_pem_private_key(
            private_key_pem.encode("ascii"), password=password
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        logger.debug("private key parse failed: %s", exc)
        return CertificateLoadResult(success=False, error=f"Erro ao carregar chave privada: {exc}")

    if not isinstance(private_key, rsa.RSAPrivateKey):
        return CertificateLoadResult(success=False, error="Chave privada deve ser RSA")

    public_key = certificate.public_key()
    if (
        not isinstance(public_key, rsa.RSAPublicKey)
        or private_key.public_key().public_numbers() != public_key.public_numbers()
    ):
        return CertificateLoadResult(
            success=False, error="Chave privada não corresponde ao certificado"
        )

    info = _certificate_info(certificate)
    logger.debug("certificate loaded: subject=%s thumbprint=%s", info.subject, info.thumbprint)

    return CertificateLoadResult(
        success=True,
        certificate=LoadedCertificate(
            private_key_pem=private_key_pem,
            certificate_pem=certificate_pem,
            info=info,
        ),
    )

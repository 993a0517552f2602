"""
Fixtures de certificado A1 de teste

Par RSA 2048 + certificado autoassinado gerados uma vez por sessão.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID


@dataclass(frozen=True)
class PemPair:
    private_key: str
    certificate: str


def _build_certificate(private_key, common_name: str) -> x509.Certificate:
    name = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "BR"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .sign(private_key, hashes.SHA256())
    )


def _pem_pair(private_key, common_name: str) -> PemPair:
    certificate = _build_certificate(private_key, common_name)
    return PemPair(
        private_key=private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii"),
        certificate=certificate.public_bytes(serialization.Encoding.PEM).decode("ascii"),
    )


@pytest.fixture(scope="session")
def rsa_pair() -> PemPair:
    """Chave RSA e certificado correspondente"""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _pem_pair(key, "EMPRESA TESTE LTDA:12345678000199")


@pytest.fixture(scope="session")
def other_rsa_pair() -> PemPair:
    """Segundo par RSA, independente do primeiro"""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _pem_pair(key, "OUTRA EMPRESA LTDA:98765432000110")


@pytest.fixture(scope="session")
def ec_pair() -> PemPair:
    """Par EC (não aceito para assinatura NF-e)"""
    key = ec.generate_private_key(ec.SECP256R1())
    return _pem_pair(key, "EMPRESA EC LTDA")

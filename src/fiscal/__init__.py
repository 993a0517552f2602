"""
Fiscal documents: chave de acesso, certificado A1 e assinatura XML-DSig.
"""

from .access_key import (
    UF_CODES,
    AccessKeyError,
    access_key_check_digit,
    generate_access_key,
    is_valid_access_key,
)
from .certificate import (
    CertificateLoadResult,
    LoadedCertificate,
    get_certificate_thumbprint,
    load_certificate,
    strip_pem,
)
from .xml_signer import (
    DEFAULT_PARENT_TAGS,
    SignatureResult,
    SignatureValidation,
    SignerConfig,
    SigningStage,
    XmlSigner,
    canonicalize,
    compute_digest,
    sign_xml,
    validate_signature,
    verify_signature,
)

__all__ = [
    # Access key
    "UF_CODES",
    "AccessKeyError",
    "access_key_check_digit",
    "generate_access_key",
    "is_valid_access_key",
    # Certificate
    "CertificateLoadResult",
    "LoadedCertificate",
    "get_certificate_thumbprint",
    "load_certificate",
    "strip_pem",
    # XML signature
    "DEFAULT_PARENT_TAGS",
    "SignatureResult",
    "SignatureValidation",
    "SignerConfig",
    "SigningStage",
    "XmlSigner",
    "canonicalize",
    "compute_digest",
    "sign_xml",
    "validate_signature",
    "verify_signature",
]

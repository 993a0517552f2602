"""
XML Signer — Assinatura XML-DSig envelopada para NF-e / CT-e

Pipeline de assinatura (sem estado entre chamadas):
    parse → localizar tag → extrair Id → localizar pai → digest
    → SignedInfo → assinar (RSA-SHA1) → embutir certificado → inserir

Qualquer etapa que falha encerra a assinatura com SignatureResult de erro;
não existe estado parcial.

LIMITAÇÕES CONHECIDAS:
1. canonicalize() NÃO é Canonical XML 1.0: só remove a declaração XML e o
   espaço entre tags. Validadores estritos podem divergir no digest.
   Não trocar por C14N completo sem validar contra a SEFAZ: os digests
   mudam.
2. O digest cobre o TEXTO-FONTE do fragmento assinado, como veio no
   documento (aspas, entidades e prefixos preservados), e a Signature é
   inserida por texto antes do fechamento da tag pai. O restante do
   documento não é reserializado.
3. validate_signature() é estrutural. Não recalcula digest nem verifica a
   assinatura. Para a verificação criptográfica use verify_signature(),
   que cobre documentos assinados neste perfil (rsa-sha1/sha1).
"""

import base64
import hashlib
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping, Optional

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from lxml import etree

from src.fiscal.certificate import strip_pem

logger = logging.getLogger(__name__)

# =============================================================================
# ALGORITMOS
# =============================================================================

DS_NS: Final[str] = "http://www.w3.org/2000/09/xmldsig#"
C14N_ALGORITHM: Final[str] = "http://www.w3.org/TR/2001/REC-xml-c14n-20010315"
RSA_SHA1_ALGORITHM: Final[str] = DS_NS + "rsa-sha1"
SHA1_DIGEST_ALGORITHM: Final[str] = DS_NS + "sha1"
ENVELOPED_SIGNATURE_TRANSFORM: Final[str] = DS_NS + "enveloped-signature"

DEFAULT_TAG_TO_SIGN: Final[str] = "infNFe"

# Tag assinada → tag pai que recebe a Signature
DEFAULT_PARENT_TAGS: Final[Mapping[str, str]] = MappingProxyType(
    {"infNFe": "NFe", "infCTe": "CTe"}
)

_LEADING_DECLARATION = re.compile(r"^\s*<\?xml\s[^>]*\?>")
_DECLARATION = re.compile(r"<\?xml\s[^>]*\?>")
_ID_ATTRIBUTE = re.compile(r"""(?<![\w:.-])Id\s*=\s*(["'])(.*?)\1""", re.DOTALL)
_SIGNATURE_BLOCK = re.compile(
    r"<(?:[\w.-]+:)?Signature(?=[\s/>])[^>]*>.*?</(?:[\w.-]+:)?Signature\s*>", re.DOTALL
)
_INTER_TAG_WHITESPACE = re.compile(r">\s+<")
_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# CONFIG / RESULTS
# =============================================================================


@dataclass(frozen=True)
class SignerConfig:
    """Configuração do assinador.

    parent_tags: quando a tag assinada está mapeada, a Signature vai para o
    ancestral mais próximo com o nome mapeado; sem mapeamento, vai para o
    pai direto do elemento assinado.
    """

    parent_tags: Mapping[str, str] = field(default_factory=lambda: DEFAULT_PARENT_TAGS)

    def parent_tag_for(self, tag_to_sign: str) -> Optional[str]:
        wanted = tag_to_sign.lower()
        for tag, parent in self.parent_tags.items():
            if tag.lower() == wanted:
                return parent
        return None


class SigningStage(str, Enum):
    """Etapas do pipeline de assinatura"""

    PARSE = "parse"
    LOCATE_TAG = "locate_tag"
    EXTRACT_ID = "extract_id"
    LOCATE_PARENT = "locate_parent"
    DIGEST = "digest"
    SIGN = "sign"
    EMBED_CERTIFICATE = "embed_certificate"
    SPLICE = "splice"


@dataclass(frozen=True)
class SignatureResult:
    """Resultado de sign_xml."""

    success: bool
    signed_xml: Optional[str] = None
    error: Optional[str] = None

    # Etapa em que a assinatura parou (None em caso de sucesso)
    failed_stage: Optional[SigningStage] = None


@dataclass(frozen=True)
class SignatureValidation:
    """Resultado de validate_signature / verify_signature."""

    valid: bool
    error: Optional[str] = None


# =============================================================================
# PRIMITIVAS
# =============================================================================


def canonicalize(xml: str) -> str:
    """
    Canonicalização simplificada.

    Remove declarações XML, colapsa espaço entre tags e apara as pontas.
    NÃO é C14N 1.0 (ver limitações no topo do módulo).

    Examples:
        >>> canonicalize('<?xml version="1.0"?>\\n<a>\\n  <b>x</b>\\n</a>\\n')
        '<a><b>x</b></a>'
    """
    without_declaration = _DECLARATION.sub("", xml)
    return _INTER_TAG_WHITESPACE.sub("><", without_declaration).strip()


def compute_digest(canonical_xml: str) -> str:
    """base64(SHA-1(texto canonicalizado em UTF-8))"""
    return base64.b64encode(hashlib.sha1(canonical_xml.encode("utf-8")).digest()).decode("ascii")


def _ds(name: str) -> str:
    return f"{{{DS_NS}}}{name}"


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _parse_document(xml: str) -> etree._Element:
    """Parse do documento sem a declaração XML (lxml recusa str com encoding)."""
    match = _LEADING_DECLARATION.match(xml)
    body = xml[match.end():] if match else xml

    parser = etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)
    return etree.fromstring(body, parser=parser)


def _tag_name_pattern(local_name: str) -> str:
    return rf"(?:[\w.-]+:)?{re.escape(local_name)}"


def locate_fragment(xml: str, local_name: str, element_id: str) -> Optional[re.Match]:
    """
    Localiza no texto-fonte o primeiro <local_name ...>...</local_name>
    (sem diferenciar maiúsculas, não guloso) cujo atributo Id é element_id.

    O match cobre o fragmento exatamente como escrito no documento; é esse
    texto que entra no digest.
    """
    name = _tag_name_pattern(local_name)
    pattern = re.compile(
        rf"<{name}(?P<attrs>(?:\s[^>]*?)?)(?:/>|>.*?</{name}\s*>)",
        re.IGNORECASE | re.DOTALL,
    )

    position = 0
    while True:
        match = pattern.search(xml, position)
        if match is None:
            return None
        id_match = _ID_ATTRIBUTE.search(match.group("attrs"))
        if id_match is not None and id_match.group(2) == element_id:
            return match
        # Próxima abertura, inclusive dentro do fragmento recusado
        position = match.start() + 1


def _closing_tag_offset(xml: str, local_name: str, start: int) -> Optional[int]:
    """Posição do fechamento do elemento local_name aberto antes de start."""
    tag = re.compile(
        rf"<(/?){_tag_name_pattern(local_name)}(?=[\s/>])[^>]*?(/?)>", re.IGNORECASE
    )
    depth = 0
    for match in tag.finditer(xml, start):
        closing, self_closing = match.group(1), match.group(2)
        if self_closing:
            continue
        if not closing:
            depth += 1
        elif depth == 0:
            return match.start()
        else:
            depth -= 1
    return None


def _first_by_local_name(root: etree._Element, name: str) -> Optional[etree._Element]:
    wanted = name.lower()
    for element in root.iter():
        if isinstance(element.tag, str) and _local_name(element).lower() == wanted:
            return element
    return None


def _serialize_fragment(element: etree._Element) -> str:
    return etree.tostring(element, encoding="unicode", with_tail=False)


def _build_signed_info(
    parent: Optional[etree._Element], reference_uri: str, digest_value: str
) -> etree._Element:
    if parent is None:
        signed_info = etree.Element(_ds("SignedInfo"), nsmap={None: DS_NS})
    else:
        signed_info = etree.SubElement(parent, _ds("SignedInfo"))

    etree.SubElement(signed_info, _ds("CanonicalizationMethod"), Algorithm=C14N_ALGORITHM)
    etree.SubElement(signed_info, _ds("SignatureMethod"), Algorithm=RSA_SHA1_ALGORITHM)

    reference = etree.SubElement(signed_info, _ds("Reference"), URI=reference_uri)
    transforms = etree.SubElement(reference, _ds("Transforms"))
    etree.SubElement(transforms, _ds("Transform"), Algorithm=ENVELOPED_SIGNATURE_TRANSFORM)
    etree.SubElement(transforms, _ds("Transform"), Algorithm=C14N_ALGORITHM)
    etree.SubElement(reference, _ds("DigestMethod"), Algorithm=SHA1_DIGEST_ALGORITHM)
    etree.SubElement(reference, _ds("DigestValue")).text = digest_value

    return signed_info


def canonical_signed_info(reference_uri: str, digest_value: str) -> str:
    """
    SignedInfo canonicalizado que é efetivamente assinado.

    Construído a partir do URI e do digest com algoritmos fixos, de forma
    que assinatura e verificação produzem exatamente o mesmo texto.
    """
    signed_info = _build_signed_info(None, reference_uri, digest_value)
    return canonicalize(_serialize_fragment(signed_info))


# =============================================================================
# ASSINATURA
# =============================================================================


class XmlSigner:
    """Assinador XML-DSig envelopado (RSA-SHA1).

    Stateless: a config é a única coisa guardada; cada sign() é independente.
    """

    def __init__(self, config: SignerConfig | None = None):
        self.config = config or SignerConfig()

    def _fail(self, stage: SigningStage, error: str) -> SignatureResult:
        logger.debug("xml signing failed at %s: %s", stage.value, error)
        return SignatureResult(success=False, error=error, failed_stage=stage)

    def _locate_parent(
        self, element: etree._Element, tag_to_sign: str
    ) -> tuple[Optional[etree._Element], str]:
        mapped = self.config.parent_tag_for(tag_to_sign)
        if mapped is None:
            parent = element.getparent()
            return parent, (_local_name(parent) if parent is not None else "")

        for ancestor in element.iterancestors():
            if _local_name(ancestor).lower() == mapped.lower():
                return ancestor, mapped
        return None, mapped

    def sign(
        self,
        xml: str,
        private_key: str,
        certificate: str,
        tag_to_sign: str = DEFAULT_TAG_TO_SIGN,
        password: Optional[bytes] = None,
    ) -> SignatureResult:
        """
        Assina o primeiro elemento `tag_to_sign` do documento.

        Args:
            xml: Documento XML sem assinatura
            private_key: Chave privada RSA em PEM
            certificate: Certificado X.509 em PEM
            tag_to_sign: Tag a assinar (busca sem diferenciar maiúsculas)
            password: Senha da chave, se cifrada

        Returns:
            SignatureResult com signed_xml ou error; falhas esperadas
            nunca lançam exceção

        Raises:
            TypeError: Argumento que deveria ser str não é (erro de programação)
        """
        for name, value in (
            ("xml", xml),
            ("private_key", private_key),
            ("certificate", certificate),
            ("tag_to_sign", tag_to_sign),
        ):
            if not isinstance(value, str):
                raise TypeError(f"{name} must be str, got {type(value).__name__}")

        try:
            root = _parse_document(xml)
        except (etree.XMLSyntaxError, ValueError) as exc:
            return self._fail(SigningStage.PARSE, f"XML inválido: {exc}")

        stage = SigningStage.LOCATE_TAG
        try:
            # 1. Tag
            element = _first_by_local_name(root, tag_to_sign)
            if element is None:
                return self._fail(stage, f"Tag <{tag_to_sign}> não encontrada no XML")

            # 2. Id → Reference URI
            stage = SigningStage.EXTRACT_ID
            element_id = element.get("Id")
            if not element_id:
                return self._fail(stage, f"Atributo Id não encontrado na tag <{tag_to_sign}>")
            reference_uri = f"#{element_id}"

            stage = SigningStage.LOCATE_PARENT
            parent, parent_name = self._locate_parent(element, tag_to_sign)
            if parent is None:
                label = f"Tag pai <{parent_name}>" if parent_name else "Tag pai"
                return self._fail(stage, f"{label} não encontrada para <{tag_to_sign}>")

            # 3-4. Canonicalização + digest
            stage = SigningStage.DIGEST
            fragment = locate_fragment(xml, _local_name(element), element_id)
            if fragment is None:
                return self._fail(
                    stage, f"Fragmento <{tag_to_sign} Id=\"{element_id}\"> não localizado no XML"
                )
            digest_value = compute_digest(canonicalize(fragment.group(0)))

            # 5-6. SignedInfo + RSA-SHA1
            stage = SigningStage.SIGN
            key = serialization.load_pem_private_key(private_key.encode("ascii"), password=password)
            if not isinstance(key, rsa.RSAPrivateKey):
                return self._fail(stage, "Chave privada deve ser RSA")
            signature_bytes = key.sign(
                canonical_signed_info(reference_uri, digest_value).encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA1(),
            )

            # 7. Certificado sem envelope PEM
            stage = SigningStage.EMBED_CERTIFICATE
            certificate_b64 = strip_pem(certificate)
            if not certificate_b64:
                return self._fail(stage, "Certificado vazio")

            # 8. Signature
            signature = etree.Element(_ds("Signature"), nsmap={None: DS_NS})
            _build_signed_info(signature, reference_uri, digest_value)
            etree.SubElement(signature, _ds("SignatureValue")).text = (
                base64.b64encode(signature_bytes).decode("ascii")
            )
            key_info = etree.SubElement(signature, _ds("KeyInfo"))
            x509_data = etree.SubElement(key_info, _ds("X509Data"))
            etree.SubElement(x509_data, _ds("X509Certificate")).text = certificate_b64

            # 9. Signature como último filho do pai (antes do fechamento)
            stage = SigningStage.SPLICE
            offset = _closing_tag_offset(xml, _local_name(parent), fragment.end())
            if offset is None:
                return self._fail(
                    stage, f"Fechamento da tag pai <{_local_name(parent)}> não encontrado"
                )
            signed_xml = xml[:offset] + _serialize_fragment(signature) + xml[offset:]
        except Exception as exc:  # noqa: BLE001
            return self._fail(stage, f"Erro ao assinar XML: {exc}")

        logger.debug("xml signed: reference=%s", reference_uri)
        return SignatureResult(success=True, signed_xml=signed_xml)


def sign_xml(
    xml: str,
    private_key: str,
    certificate: str,
    tag_to_sign: str = DEFAULT_TAG_TO_SIGN,
    *,
    config: SignerConfig | None = None,
    password: Optional[bytes] = None,
) -> SignatureResult:
    """Atalho para XmlSigner(config).sign(...)."""
    return XmlSigner(config).sign(xml, private_key, certificate, tag_to_sign, password=password)


# =============================================================================
# VALIDAÇÃO
# =============================================================================


def validate_signature(signed_xml: str) -> SignatureValidation:
    """
    Validação ESTRUTURAL da assinatura.

    Confere, nesta ordem: Signature, SignatureValue, X509Certificate,
    DigestValue e Reference URI="#...". O erro nomeia o primeiro item
    ausente.

    Não recalcula o digest nem verifica a assinatura contra o
    certificado: um documento adulterado com estrutura completa passa.
    Use verify_signature() para a verificação criptográfica.
    """
    if not isinstance(signed_xml, str):
        raise TypeError(f"signed_xml must be str, got {type(signed_xml).__name__}")

    try:
        root = _parse_document(signed_xml)
    except (etree.XMLSyntaxError, ValueError) as exc:
        return SignatureValidation(valid=False, error=f"XML inválido: {exc}")

    signature = _first_by_local_name(root, "Signature")
    if signature is None:
        return SignatureValidation(valid=False, error="Elemento Signature não encontrado")

    for name in ("SignatureValue", "X509Certificate", "DigestValue"):
        element = _first_by_local_name(signature, name)
        if element is None or not (element.text or "").strip():
            return SignatureValidation(valid=False, error=f"Elemento {name} não encontrado")

    reference = _first_by_local_name(signature, "Reference")
    uri = reference.get("URI", "") if reference is not None else ""
    if len(uri) < 2 or not uri.startswith("#"):
        return SignatureValidation(valid=False, error='Atributo Reference URI="#..." não encontrado')

    return SignatureValidation(valid=True)


def verify_signature(signed_xml: str) -> SignatureValidation:
    """
    Verificação criptográfica da assinatura.

    Além da validação estrutural:
    1. Recalcula o digest do elemento referenciado (sem a Signature)
    2. Reconstrói o SignedInfo e verifica o SignatureValue (RSA-SHA1)
       com a chave pública do X509Certificate embutido

    Não valida cadeia de certificação nem revogação.
    """
    structural = validate_signature(signed_xml)
    if not structural.valid:
        return structural

    root = _parse_document(signed_xml)
    signature = _first_by_local_name(root, "Signature")

    signature_method = _first_by_local_name(signature, "SignatureMethod")
    algorithm = signature_method.get("Algorithm") if signature_method is not None else None
    if algorithm != RSA_SHA1_ALGORITHM:
        return SignatureValidation(
            valid=False, error=f"Algoritmo de assinatura não suportado: {algorithm}"
        )

    uri = _first_by_local_name(signature, "Reference").get("URI")
    digest_value = _first_by_local_name(signature, "DigestValue").text.strip()
    signature_value = _WHITESPACE.sub("", _first_by_local_name(signature, "SignatureValue").text)
    certificate_b64 = _WHITESPACE.sub("", _first_by_local_name(signature, "X509Certificate").text)

    target = next(
        (
            element
            for element in root.iter()
            if isinstance(element.tag, str) and element.get("Id") == uri[1:]
        ),
        None,
    )
    fragment = (
        locate_fragment(signed_xml, _local_name(target), uri[1:]) if target is not None else None
    )
    if fragment is None:
        return SignatureValidation(valid=False, error=f"Elemento referenciado {uri} não encontrado")

    content = fragment.group(0)
    # Transform enveloped-signature
    if any(element is signature for element in target.iter()):
        content = _SIGNATURE_BLOCK.sub("", content)

    if compute_digest(canonicalize(content)) != digest_value:
        return SignatureValidation(
            valid=False, error="DigestValue não confere com o conteúdo assinado"
        )

    try:
        certificate = x509.load_der_x509_certificate(
            base64.b64decode(certificate_b64, validate=True)
        )
        signature_bytes = base64.b64decode(signature_value, validate=True)
    except ValueError as exc:
        return SignatureValidation(valid=False, error=f"X509Certificate inválido: {exc}")

    public_key = certificate.public_key()
    if not isinstance(public_key, rsa.RSAPublicKey):
        return SignatureValidation(valid=False, error="Certificado deve conter chave RSA")

    try:
        public_key.verify(
            signature_bytes,
            canonical_signed_info(uri, digest_value).encode("utf-8"),
            padding.PKCS1v15(),
            hashes.SHA1(),
        )
    except InvalidSignature:
        return SignatureValidation(
            valid=False, error="SignatureValue inválido para o certificado"
        )

    return SignatureValidation(valid=True)

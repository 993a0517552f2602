"""
Chave de acesso da NF-e / NFC-e (44 dígitos)

Formato: cUF(2) + AAMM(4) + CNPJ(14) + mod(2) + série(3) + nNF(9)
         + tpEmis(1) + cNF(8) + cDV(1)

O Id do infNFe assinado é "NFe" + chave.

Dígito verificador (módulo 11):
1. Pesos 2..9 aplicados da direita para a esquerda, ciclicamente
2. resto = soma % 11
3. resto < 2 → DV = 0, senão DV = 11 - resto
"""

import re
import secrets
from datetime import date
from typing import Final, Optional

# =============================================================================
# CONSTANTES
# =============================================================================

ACCESS_KEY_LENGTH: Final[int] = 44

MOD11_WEIGHTS: Final[tuple[int, ...]] = (2, 3, 4, 5, 6, 7, 8, 9)
MOD11_DIVISOR: Final[int] = 11
MOD11_MIN_REMAINDER: Final[int] = 2

NFE_MODELS: Final[frozenset[str]] = frozenset({"55", "65"})

# Códigos IBGE das UFs
UF_CODES: Final[dict[str, str]] = {
    "AC": "12", "AL": "27", "AP": "16", "AM": "13", "BA": "29",
    "CE": "23", "DF": "53", "ES": "32", "GO": "52", "MA": "21",
    "MT": "51", "MS": "50", "MG": "31", "PA": "15", "PB": "25",
    "PR": "41", "PE": "26", "PI": "22", "RJ": "33", "RN": "24",
    "RS": "43", "RO": "11", "RR": "14", "SC": "42", "SP": "35",
    "SE": "28", "TO": "17",
}

_NON_DIGITS = re.compile(r"[^0-9]")
_DIGITS = re.compile(r"[0-9]+")
_ACCESS_KEY = re.compile(rf"[0-9]{{{ACCESS_KEY_LENGTH}}}")


class AccessKeyError(ValueError):
    """Parâmetro inválido para geração da chave de acesso."""


# =============================================================================
# DÍGITO VERIFICADOR
# =============================================================================


def access_key_check_digit(key_without_dv: str) -> str:
    """
    Dígito verificador módulo 11 da chave de acesso.

    Args:
        key_without_dv: Chave sem o DV (43 dígitos)

    Returns:
        DV como string de 1 dígito
    """
    if not _DIGITS.fullmatch(key_without_dv):
        raise AccessKeyError(f"Chave deve conter apenas dígitos: {key_without_dv!r}")

    total = 0
    for index, digit in enumerate(reversed(key_without_dv)):
        total += int(digit) * MOD11_WEIGHTS[index % len(MOD11_WEIGHTS)]

    remainder = total % MOD11_DIVISOR
    dv = 0 if remainder < MOD11_MIN_REMAINDER else MOD11_DIVISOR - remainder
    return str(dv)


def is_valid_access_key(key: str) -> bool:
    """True se a chave tem 44 dígitos e o DV confere."""
    if not _ACCESS_KEY.fullmatch(key):
        return False
    return access_key_check_digit(key[:-1]) == key[-1]


# =============================================================================
# GERAÇÃO
# =============================================================================


def _validate_parameters(uf: str, cnpj_digits: str, model: str, series: str, number: int) -> None:
    if uf.upper() not in UF_CODES:
        raise AccessKeyError(f"UF inválida: {uf}. Use sigla de 2 letras (ex: SP, RJ, MG)")

    if len(cnpj_digits) != 14:
        raise AccessKeyError(
            f"CNPJ inválido: deve ter 14 dígitos. Recebido: {len(cnpj_digits)} dígitos"
        )

    if model not in NFE_MODELS:
        raise AccessKeyError(f"Modelo inválido: {model}. Use 55 (NF-e) ou 65 (NFC-e)")

    if not _DIGITS.fullmatch(series) or not 0 <= int(series) <= 999:
        raise AccessKeyError(f"Série inválida: {series}. Use valor entre 0 e 999")

    if not 1 <= number <= 999_999_999:
        raise AccessKeyError(f"Número inválido: {number}. Use valor entre 1 e 999999999")


def generate_numeric_code() -> str:
    """Código numérico aleatório (cNF) de 8 dígitos."""
    return f"{secrets.randbelow(100_000_000):08d}"


def generate_access_key(
    uf: str,
    issued_at: date,
    cnpj: str,
    model: str,
    series: str,
    number: int,
    emission_type: str = "1",
    numeric_code: Optional[str] = None,
) -> str:
    """
    Gera a chave de acesso de 44 dígitos.

    Args:
        uf: Sigla da UF do emitente
        issued_at: Data de emissão (usa ano e mês)
        cnpj: CNPJ do emitente, com ou sem máscara
        model: 55 (NF-e) ou 65 (NFC-e)
        series: Série (0-999)
        number: Número da nota (1-999999999)
        emission_type: tpEmis (1 = normal)
        numeric_code: cNF de 8 dígitos; gerado aleatoriamente se ausente

    Returns:
        Chave com 44 dígitos

    Raises:
        AccessKeyError: Parâmetro inválido
    """
    cnpj_digits = _NON_DIGITS.sub("", cnpj)
    _validate_parameters(uf, cnpj_digits, model, series, number)

    if numeric_code is None:
        numeric_code = generate_numeric_code()
    elif len(numeric_code) != 8 or not _DIGITS.fullmatch(numeric_code):
        raise AccessKeyError(f"Código numérico inválido: {numeric_code}. Use 8 dígitos")

    if len(emission_type) != 1 or not _DIGITS.fullmatch(emission_type):
        raise AccessKeyError(f"Tipo de emissão inválido: {emission_type}")

    key_without_dv = (
        f"{UF_CODES[uf.upper()]}"
        f"{issued_at:%y%m}"
        f"{cnpj_digits}"
        f"{model}"
        f"{int(series):03d}"
        f"{number:09d}"
        f"{emission_type}"
        f"{numeric_code}"
    )
    return key_without_dv + access_key_check_digit(key_without_dv)

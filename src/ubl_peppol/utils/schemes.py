"""Schémas d'identifiants Peppol.

FR: Table pays ISO 3166 → schéma Peppol (ICD) et dérivation de
    l'identifiant d'adressage à partir du numéro de TVA.
EN: ISO 3166 country → Peppol scheme (ICD) table and derivation of the
    endpoint identifier from the VAT number.
"""

import re

from ubl_peppol.models.party import Party

COUNTRY_SCHEMES: dict[str, str] = {
    "AT": "9915",
    "BE": "0208",
    "BG": "9926",
    "CY": "9928",
    "CZ": "9929",
    "DE": "0204",
    "DK": "0096",
    "EE": "9931",
    "ES": "9920",
    "FI": "0037",
    "FR": "0009",
    "GR": "9933",
    "HR": "9934",
    "HU": "9910",
    "IE": "9935",
    "IT": "0201",
    "LT": "9937",
    "LU": "9938",
    "LV": "9939",
    "MT": "9943",
    "NL": "0106",
    "PL": "9945",
    "PT": "9946",
    "RO": "9947",
    "SE": "0007",
    "SI": "9949",
    "SK": "9950",
}

# GLN (GS1)
DEFAULT_SCHEME = "0088"

_COUNTRY_PREFIX = re.compile(r"^[A-Za-z]{2}")
_NON_DIGITS = re.compile(r"\D")


def infer_scheme(country: str | None) -> str:
    """Schéma Peppol pour un pays, "0088" si inconnu.

    >>> infer_scheme("BE")
    '0208'
    >>> infer_scheme("US")
    '0088'
    """
    if not country:
        return DEFAULT_SCHEME
    return COUNTRY_SCHEMES.get(country.strip().upper(), DEFAULT_SCHEME)


def party_scheme(party: Party) -> str:
    """Schéma explicite de la partie, sinon déduit de son pays."""
    if party.scheme:
        return party.scheme
    return infer_scheme(party.country)


def vat_digits(vat: str | None) -> str:
    """Partie numérique d'un numéro de TVA (préfixe pays et séparateurs retirés).

    >>> vat_digits("BE 0123.456.749")
    '0123456749'
    """
    if not vat:
        return ""
    return _NON_DIGITS.sub("", _COUNTRY_PREFIX.sub("", vat.strip()))


def customer_endpoint_id(party: Party) -> str:
    """Identifiant d'adressage du client, à défaut dérivé de sa TVA.

    FR: Cette dérivation ne concerne que l'élément EndpointID ; le numéro
        de TVA lui-même est toujours émis tel quel.
    EN: Only used for the EndpointID element; the VAT number itself is
        always emitted verbatim.
    """
    if party.endpoint_id:
        return party.endpoint_id
    return vat_digits(party.vat)

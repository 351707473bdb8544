"""Utilitaires pour la manipulation XML."""

import re

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^?]*\?>\s*")


def local_name(tag: str) -> str:
    """Nom local d'un tag, sans namespace ni préfixe.

    Accepte la notation lxml `{uri}Name` comme un QName `prefix:Name`.
    """
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag.rsplit(":", 1)[-1]


def strip_xml_declaration(xml: str) -> str:
    """Retire la déclaration XML (prologue) en tête de texte."""
    return _XML_DECLARATION.sub("", xml, count=1)


def to_xml_bytes(xml: str | bytes) -> bytes:
    """Convertit un XML texte en octets UTF-8 acceptés par lxml.

    FR: lxml refuse une chaîne Python portant une déclaration d'encodage ;
        la déclaration est retirée avant encodage en UTF-8.
    EN: lxml rejects str input carrying an encoding declaration, so the
        declaration is dropped before encoding to UTF-8.
    """
    if isinstance(xml, bytes):
        return xml
    return strip_xml_declaration(xml).encode("utf-8")

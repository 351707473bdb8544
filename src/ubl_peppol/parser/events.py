"""Source d'événements XML (tokenisation déléguée à lxml).

FR: Transforme un texte XML en une suite linéaire d'événements
    start/end, avec noms locaux (préfixes et namespaces retirés).
    Les éléments déjà traités sont libérés au fil de la lecture.
EN: Turns XML text into a linear stream of start/end events carrying
    local names (prefixes and namespaces stripped). Processed elements
    are released while reading.
"""

from collections.abc import Iterator
from typing import NamedTuple

from lxml import etree

from ubl_peppol.errors import TokenizationError
from ubl_peppol.utils.xml_helpers import local_name, to_xml_bytes

START = "start"
END = "end"


class XMLEvent(NamedTuple):
    """Événement structurel : début ou fin d'élément."""

    kind: str
    name: str
    attributes: dict[str, str]
    text: str


def iter_events(xml: str | bytes) -> Iterator[XMLEvent]:
    """Produit les événements start/end d'un document XML.

    Les attributs sont fournis à l'ouverture, le texte (nettoyé des
    espaces de bord) à la fermeture.

    Raises:
        TokenizationError: Si l'entrée n'est pas un XML bien formé.
    """
    data = to_xml_bytes(xml)
    if not data.strip():
        msg = "Document XML vide"
        raise TokenizationError(msg)

    pull = etree.XMLPullParser(
        events=(START, END),
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
        remove_comments=True,
        remove_pis=True,
    )
    try:
        pull.feed(data)
        yield from _drain(pull)
        pull.close()
    except etree.XMLSyntaxError as exc:
        msg = f"Erreur de syntaxe XML : {exc}"
        raise TokenizationError(msg) from exc
    yield from _drain(pull)


def _drain(pull: etree.XMLPullParser) -> Iterator[XMLEvent]:
    for kind, element in pull.read_events():
        if not isinstance(element.tag, str):
            continue
        name = local_name(element.tag)
        if kind == START:
            attributes = {local_name(key): value for key, value in element.attrib.items()}
            yield XMLEvent(START, name, attributes, "")
        else:
            yield XMLEvent(END, name, {}, (element.text or "").strip())
            element.clear(keep_tail=True)

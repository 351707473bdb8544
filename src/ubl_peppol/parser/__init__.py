"""Parseur UBL en flux (Invoice, CreditNote, ApplicationResponse).

FR: Lecture en un seul passage, tolérante aux préfixes et aux
    namespaces, avec déballage transparent d'une enveloppe SBDH.
EN: Single-pass, prefix and namespace agnostic reader that transparently
    unwraps an SBDH envelope.
"""

import logging

from ubl_peppol.models.document import DocumentRecord
from ubl_peppol.parser.events import iter_events
from ubl_peppol.parser.handler import UBLHandler

logger = logging.getLogger(__name__)

__all__ = ["UBLHandler", "parse"]


def parse(xml: str | bytes) -> DocumentRecord:
    """Lit un document UBL et retourne son enregistrement canonique.

    Args:
        xml: Le document XML, nu ou enveloppé dans un SBDH.

    Returns:
        Un Invoice, CreditNote ou ApplicationResponse.

    Raises:
        TokenizationError: Si l'entrée n'est pas un XML bien formé.
        UnrecognizedDocumentError: Si aucune racine connue n'est trouvée.
    """
    handler = UBLHandler()
    for event in iter_events(xml):
        handler.feed(event)
    record = handler.end_document()
    logger.debug("Document %s lu (enveloppe SBDH : %s)", record.type, handler.in_envelope)
    return record

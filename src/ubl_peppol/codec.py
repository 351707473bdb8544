"""Point d'entrée du codec : lecture, génération, enveloppe SBDH.

FR: Aiguille vers le parseur ou vers le générateur du type de document.
    Les enregistrements peuvent être fournis sous forme de modèle ou de
    dictionnaire (par exemple issu d'un JSON).
EN: Dispatches to the parser or to the generator for the document type.
    Records may be given as models or as plain mappings (e.g. from JSON).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import InvalidOperation, getcontext

from pydantic import BaseModel, ValidationError

from ubl_peppol.errors import InvalidDocumentRecordError
from ubl_peppol.generators.application_response import ApplicationResponseGenerator
from ubl_peppol.generators.base import BaseGenerator
from ubl_peppol.generators.sbdh import wrap
from ubl_peppol.generators.ubl import CreditNoteGenerator, InvoiceGenerator
from ubl_peppol.models.document import DOCUMENT_RECORD_ADAPTER, DocumentRecord
from ubl_peppol.models.enums import DocumentType
from ubl_peppol.parser import parse

logger = logging.getLogger(__name__)

__all__ = ["GENERATORS", "generate", "generate_with_sbdh", "parse", "to_record"]

GENERATORS: dict[DocumentType, type[BaseGenerator]] = {
    DocumentType.INVOICE: InvoiceGenerator,
    DocumentType.CREDIT: CreditNoteGenerator,
    DocumentType.APPLICATION_RESPONSE: ApplicationResponseGenerator,
}


def to_record(record: DocumentRecord | Mapping[str, object]) -> DocumentRecord:
    """Valide un enregistrement fourni en modèle ou en dictionnaire.

    Raises:
        InvalidDocumentRecordError: Si `type` est absent ou inconnu, ou si
            les valeurs ne peuvent pas être converties.
    """
    if isinstance(record, BaseModel):
        data = record.model_dump()
    elif isinstance(record, Mapping):
        data = dict(record)
    else:
        msg = f"Enregistrement non pris en charge : {type(record).__name__}"
        raise InvalidDocumentRecordError(msg)

    raw_type = data.get("type")
    if raw_type is None or raw_type == "":
        msg = "Missing type: l'enregistrement n'a pas de champ `type`"
        raise InvalidDocumentRecordError(msg)

    type_name = str(raw_type)
    if type_name not in {member.value for member in DocumentType}:
        msg = (
            f"Type de document inconnu : {type_name!r}. "
            f"Types disponibles : {', '.join(DocumentType)}"
        )
        raise InvalidDocumentRecordError(msg)
    data["type"] = type_name

    try:
        return DOCUMENT_RECORD_ADAPTER.validate_python(data)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        msg = f"Enregistrement {type_name} invalide ({len(errors)} erreur(s))"
        raise InvalidDocumentRecordError(msg, errors=errors) from exc


def generate(record: DocumentRecord | Mapping[str, object]) -> bytes:
    """Génère le XML UBL d'un enregistrement.

    Args:
        record: Un Invoice, CreditNote ou ApplicationResponse, ou un
            dictionnaire équivalent portant le champ `type`.

    Returns:
        Le document XML en bytes (UTF-8, avec déclaration).

    Raises:
        InvalidDocumentRecordError: Si l'enregistrement est inutilisable,
            y compris lorsqu'un montant dépasse la précision décimale.
    """
    validated = to_record(record)
    generator = GENERATORS[DocumentType(validated.type)]()
    try:
        result = generator.generate(validated)
    except InvalidOperation as exc:
        msg = (
            f"Enregistrement {validated.type} invalide : montant ou quantité "
            f"hors de la précision décimale ({getcontext().prec} chiffres)"
        )
        raise InvalidDocumentRecordError(msg) from exc
    logger.debug("Document %s généré (%d octets)", result.document_type, len(result.xml_bytes))
    return result.xml_bytes


def generate_with_sbdh(
    record: DocumentRecord | Mapping[str, object],
    now: datetime | None = None,
) -> bytes:
    """Génère le XML UBL puis l'enveloppe dans un SBDH Peppol."""
    validated = to_record(record)
    return wrap(generate(validated), validated, now=now)

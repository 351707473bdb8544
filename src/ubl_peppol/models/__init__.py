"""Modèles de données Pydantic pour les documents UBL Peppol."""

from ubl_peppol.models.document import (
    DOCUMENT_RECORD_ADAPTER,
    ApplicationResponse,
    Attachment,
    CreditNote,
    DocumentRecord,
    Invoice,
    LineItem,
    TaxSubtotal,
)
from ubl_peppol.models.enums import DocumentType, TaxCategory
from ubl_peppol.models.party import Party

__all__ = [
    "DOCUMENT_RECORD_ADAPTER",
    "ApplicationResponse",
    "Attachment",
    "CreditNote",
    "DocumentRecord",
    "DocumentType",
    "Invoice",
    "LineItem",
    "Party",
    "TaxCategory",
    "TaxSubtotal",
]

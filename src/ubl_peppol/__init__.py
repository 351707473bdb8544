"""Codec UBL 2.1 / Peppol BIS Billing 3.0.

FR: Lecture et génération de factures, d'avoirs et de réponses
    applicatives UBL, avec enveloppe SBDH optionnelle.
EN: Reads and writes UBL invoices, credit notes and application
    responses, with optional SBDH envelope.
"""

from ubl_peppol.codec import generate, generate_with_sbdh, parse, to_record
from ubl_peppol.errors import (
    InvalidDocumentRecordError,
    ParseError,
    TokenizationError,
    UBLError,
    UnrecognizedDocumentError,
    ValidationServiceError,
)
from ubl_peppol.models import (
    ApplicationResponse,
    Attachment,
    CreditNote,
    DocumentRecord,
    DocumentType,
    Invoice,
    LineItem,
    Party,
    TaxCategory,
)

__version__ = "0.1.0"

__all__ = [
    "ApplicationResponse",
    "Attachment",
    "CreditNote",
    "DocumentRecord",
    "DocumentType",
    "InvalidDocumentRecordError",
    "Invoice",
    "LineItem",
    "ParseError",
    "Party",
    "TaxCategory",
    "TokenizationError",
    "UBLError",
    "UnrecognizedDocumentError",
    "ValidationServiceError",
    "generate",
    "generate_with_sbdh",
    "parse",
    "to_record",
]

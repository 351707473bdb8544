"""Générateurs de documents UBL (facture, avoir, réponse applicative, SBDH)."""

from ubl_peppol.generators.application_response import ApplicationResponseGenerator
from ubl_peppol.generators.base import BaseGenerator, GenerationResult
from ubl_peppol.generators.sbdh import SBDHWrapper, unwrap, wrap
from ubl_peppol.generators.ubl import CreditNoteGenerator, InvoiceGenerator

__all__ = [
    "ApplicationResponseGenerator",
    "BaseGenerator",
    "CreditNoteGenerator",
    "GenerationResult",
    "InvoiceGenerator",
    "SBDHWrapper",
    "unwrap",
    "wrap",
]

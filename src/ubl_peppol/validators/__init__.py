"""Validation des documents UBL auprès du service Peppol."""

from ubl_peppol.validators.peppol import ValidationReport, validate_peppol

__all__ = ["ValidationReport", "validate_peppol"]

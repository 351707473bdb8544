"""Énumérations pour les documents UBL Peppol.

FR: Types de documents pris en charge et catégories de TVA Peppol BIS 3.0
    (UNTDID 5305), avec la table de correspondance catégorie ↔ code.
EN: Supported document types and Peppol BIS 3.0 VAT categories
    (UNTDID 5305), with the category ↔ code lookup table.
"""

from decimal import Decimal
from enum import StrEnum


class DocumentType(StrEnum):
    """Type de document (discriminant de l'enregistrement).

    FR: Valeur du champ `type` d'un DocumentRecord.
    EN: Value of the `type` field of a DocumentRecord.
    """

    INVOICE = "invoice"
    """Facture / Invoice"""

    CREDIT = "credit"
    """Avoir / Credit note"""

    APPLICATION_RESPONSE = "application_response"
    """Réponse applicative (accusé de réception) / Application response"""


class TaxCategory(StrEnum):
    """Catégorie de TVA d'une ligne.

    FR: Sept catégories Peppol BIS 3.0. Le code UNTDID 5305 associé est
        donné par la propriété `code`.
    EN: The seven Peppol BIS 3.0 categories. The matching UNTDID 5305
        code is exposed by the `code` property.
    """

    STANDARD = "standard"
    """Taux normal / Standard rate (S)"""

    ZERO_RATED = "zero_rated"
    """Taux zéro / Zero rated (Z)"""

    EXEMPT = "exempt"
    """Exonéré / Exempt (E)"""

    REVERSE_CHARGE = "reverse_charge"
    """Autoliquidation / Reverse charge (AE)"""

    INTRA_COMMUNITY = "intra_community"
    """Livraison intracommunautaire / Intra-community supply (K)"""

    EXPORT = "export"
    """Export hors UE / Export outside EU (G)"""

    OUTSIDE_SCOPE = "outside_scope"
    """Hors champ de la TVA / Outside the scope of VAT (O)"""

    @property
    def code(self) -> str:
        """Code Peppol (S, Z, E, AE, K, G, O)."""
        return TAX_CATEGORY_CODES[self]

    @classmethod
    def from_code(cls, code: str | None) -> "TaxCategory":
        """Catégorie correspondant à un code Peppol.

        Les codes inconnus ou absents donnent STANDARD.
        """
        return _CODE_TO_TAX_CATEGORY.get((code or "").strip(), cls.STANDARD)

    @classmethod
    def default_for(cls, vat: Decimal) -> "TaxCategory":
        """Catégorie implicite : ZERO_RATED si le taux est nul, sinon STANDARD."""
        return cls.ZERO_RATED if vat == 0 else cls.STANDARD


TAX_CATEGORY_CODES: dict[TaxCategory, str] = {
    TaxCategory.STANDARD: "S",
    TaxCategory.ZERO_RATED: "Z",
    TaxCategory.EXEMPT: "E",
    TaxCategory.REVERSE_CHARGE: "AE",
    TaxCategory.INTRA_COMMUNITY: "K",
    TaxCategory.EXPORT: "G",
    TaxCategory.OUTSIDE_SCOPE: "O",
}

_CODE_TO_TAX_CATEGORY: dict[str, TaxCategory] = {
    code: category for category, code in TAX_CATEGORY_CODES.items()
}

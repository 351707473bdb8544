"""Modèles des documents UBL (facture, avoir, réponse applicative).

FR: Enregistrement canonique produit par le parseur et consommé par les
    générateurs. Union discriminée par le champ `type`.
    Tous les montants sont des Decimal : jamais de flottants binaires.
EN: Canonical record produced by the parser and consumed by the
    generators. Discriminated union on the `type` field.
    All amounts are Decimal values, never binary floats.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from ubl_peppol.models.enums import TaxCategory
from ubl_peppol.models.party import Party


class LineItem(BaseModel):
    """Ligne de facture ou d'avoir.

    FR: Quantité, prix unitaire, taux de TVA et remise en pourcentage.
        La catégorie de TVA est optionnelle : par défaut ZERO_RATED si le
        taux est nul, STANDARD sinon. Le parseur l'omet lorsqu'elle est
        égale à ce défaut.
    EN: Quantity, unit price, VAT rate and percentage discount.
        The tax category defaults to ZERO_RATED for a zero rate and
        STANDARD otherwise; the parser omits it when equal to that default.
    """

    name: str | None = Field(default=None, description="Désignation / Item name")
    quantity: Decimal = Field(default=Decimal("0"), description="Quantité / Quantity")
    price: Decimal = Field(
        default=Decimal("0"),
        description="Prix unitaire HT / Unit price excl. tax",
    )
    vat: Decimal = Field(default=Decimal("0"), description="Taux de TVA en % / VAT rate in %")
    discount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        description="Remise en % (0 = aucune, 100 inclus) / Discount in % (0..100)",
    )
    tax_category: TaxCategory | None = Field(
        default=None,
        description="Catégorie de TVA explicite / Explicit VAT category",
    )
    tax_exemption_reason_code: str | None = Field(
        default=None,
        description="Code motif d'exonération (VATEX) / VAT exemption reason code",
    )
    tax_exemption_reason: str | None = Field(
        default=None,
        description="Motif d'exonération / VAT exemption reason text",
    )
    note: str | None = Field(default=None, description="Note de ligne / Line note")

    @property
    def effective_tax_category(self) -> TaxCategory:
        """Catégorie explicite, ou catégorie implicite déduite du taux."""
        return self.tax_category or TaxCategory.default_for(self.vat)


class Attachment(BaseModel):
    """Pièce jointe embarquée (AdditionalDocumentReference).

    FR: Le contenu est conservé en base64 sans être décodé.
    EN: Content is kept as opaque base64 text.
    """

    filename: str | None = None
    mime_type: str | None = None
    data: str


class TaxSubtotal(BaseModel):
    """Sous-total de TVA par (taux, catégorie).

    FR: Calculé par le générateur ; les champs d'exonération sont ceux de
        la première ligne du groupe qui les porte.
    EN: Computed by the generator; exemption fields are the first ones
        seen in the group.
    """

    tax_category: TaxCategory
    vat: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    tax_exemption_reason_code: str | None = None
    tax_exemption_reason: str | None = None


class _CommercialDocument(BaseModel):
    """Champs communs aux factures et aux avoirs."""

    number: str | None = Field(default=None, description="Numéro / Document number")
    date: Date | None = Field(default=None, description="Date d'émission / Issue date")
    currency: str | None = Field(
        default=None,
        description="Code devise ISO 4217 / Currency code",
    )
    order_reference: str | None = Field(
        default=None,
        description="Référence de commande / Order reference",
    )
    payment_id: str | None = Field(
        default=None,
        description="Communication de paiement / Payment reference",
    )
    payment_means_code: str | None = Field(
        default=None,
        description="Code moyen de paiement (UNTDID 4461) / Payment means code",
    )
    supplier: Party | None = Field(default=None, description="Fournisseur / Supplier")
    customer: Party | None = Field(default=None, description="Client / Customer")
    details: list[LineItem] = Field(
        default_factory=list,
        description="Lignes, dans l'ordre du document / Lines, in document order",
    )
    attachments: list[Attachment] = Field(
        default_factory=list,
        description="Pièces jointes / Embedded attachments",
    )
    note: str | None = Field(default=None, description="Note libre / Free text note")
    payment_terms: str | None = Field(
        default=None,
        description="Conditions de paiement / Payment terms",
    )

    # --- Totaux lus (non utilisés par les générateurs) ---
    tax_amount: Decimal | None = None
    line_extension_amount: Decimal | None = None
    tax_exclusive_amount: Decimal | None = None
    tax_inclusive_amount: Decimal | None = None
    allowance_total_amount: Decimal | None = None
    charge_total_amount: Decimal | None = None
    prepaid_amount: Decimal | None = None
    payable_amount: Decimal | None = None


class Invoice(_CommercialDocument):
    """Facture UBL (Invoice-2)."""

    type: Literal["invoice"] = "invoice"
    expires: Date | None = Field(
        default=None,
        description="Date d'échéance / Payment due date",
    )


class CreditNote(_CommercialDocument):
    """Avoir UBL (CreditNote-2).

    FR: Référence les factures créditées, dans l'ordre, via
        `billing_references`.
    EN: References the credited invoices, in order, through
        `billing_references`.
    """

    type: Literal["credit"] = "credit"
    billing_references: list[str] = Field(
        default_factory=list,
        description="Numéros des factures créditées / Credited invoice numbers",
    )


class ApplicationResponse(BaseModel):
    """Réponse applicative Peppol (accusé de traitement d'une facture).

    FR: Codes de réponse usuels : AB (reçu), AP (accepté), RE (rejeté),
        IP (en cours), UQ (en question), CA (accepté sous condition),
        PD (payé).
    EN: Usual response codes: AB, AP, RE, IP, UQ, CA, PD.
    """

    type: Literal["application_response"] = "application_response"
    id: str | None = Field(default=None, description="Identifiant / Response identifier")
    date: Date | None = Field(default=None, description="Date d'émission / Issue date")
    response_code: str | None = Field(
        default=None,
        description="Code de réponse (UNCL4343) / Response code",
    )
    document_reference: str | None = Field(
        default=None,
        description="Numéro du document acquitté / Acknowledged document number",
    )
    status_reason: str | None = Field(default=None, description="Motif / Status reason")
    note: str | None = Field(default=None, description="Note libre / Free text note")
    sender: Party | None = Field(default=None, description="Émetteur / Sender")
    receiver: Party | None = Field(default=None, description="Destinataire / Receiver")


DocumentRecord = Annotated[
    Invoice | CreditNote | ApplicationResponse,
    Field(discriminator="type"),
]
"""Enregistrement canonique : union discriminée par `type`."""

DOCUMENT_RECORD_ADAPTER: TypeAdapter[Invoice | CreditNote | ApplicationResponse] = (
    TypeAdapter(DocumentRecord)
)

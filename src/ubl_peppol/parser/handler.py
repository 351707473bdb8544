"""Machine à états du parseur UBL en flux.

FR: Reçoit les événements start/end et construit directement
    l'enregistrement canonique, sans XPath ni arbre intermédiaire.
    L'état est propre à chaque instance : pile des noms d'éléments
    ouverts, entités en cours (ligne, partie, pièce jointe, sous-total
    de TVA) et listes ordonnées des éléments terminés.
EN: Receives start/end events and builds the canonical record directly,
    without XPath or an intermediate tree. All state is per instance:
    open element stack, in-progress entities and ordered lists of
    completed items.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from ubl_peppol.errors import ParseError, UnrecognizedDocumentError
from ubl_peppol.models.document import DOCUMENT_RECORD_ADAPTER, DocumentRecord
from ubl_peppol.models.enums import DocumentType, TaxCategory
from ubl_peppol.parser.events import START, XMLEvent
from ubl_peppol.utils.amounts import HUNDRED, ZERO, round2, to_decimal

logger = logging.getLogger(__name__)

ROOT_ELEMENTS: dict[str, DocumentType] = {
    "Invoice": DocumentType.INVOICE,
    "CreditNote": DocumentType.CREDIT,
    "ApplicationResponse": DocumentType.APPLICATION_RESPONSE,
}

ENVELOPE_ELEMENT = "StandardBusinessDocument"

_LINE_ELEMENTS = {"InvoiceLine", "CreditNoteLine"}
_QUANTITY_ELEMENTS = {"InvoicedQuantity", "CreditedQuantity"}

_PARTY_ROLES: dict[str, str] = {
    "AccountingSupplierParty": "supplier",
    "AccountingCustomerParty": "customer",
    "SenderParty": "sender",
    "ReceiverParty": "receiver",
}

_MONETARY_TOTALS: dict[str, str] = {
    "LineExtensionAmount": "line_extension_amount",
    "TaxExclusiveAmount": "tax_exclusive_amount",
    "TaxInclusiveAmount": "tax_inclusive_amount",
    "AllowanceTotalAmount": "allowance_total_amount",
    "ChargeTotalAmount": "charge_total_amount",
    "PrepaidAmount": "prepaid_amount",
    "PayableAmount": "payable_amount",
}

_PARTY_TEXT_FIELDS: dict[tuple[str, str], str] = {
    ("Name", "PartyName"): "name",
    ("CityName", "PostalAddress"): "city",
    ("PostalZone", "PostalAddress"): "zipcode",
    ("IdentificationCode", "Country"): "country",
    ("CompanyID", "PartyTaxScheme"): "vat",
    ("ElectronicMail", "Contact"): "email",
}

_STREET_NUMBER = re.compile(r"^(\D+?)\s*(\d.*)$")


def last_token(identifier: str) -> str:
    """Dernier segment d'un identifiant de la forme `préfixe/numéro`."""
    tokens = [token for token in identifier.split("/") if token]
    return tokens[-1] if tokens else identifier


def split_street(text: str) -> tuple[str, str]:
    """Sépare rue et numéro au premier chiffre.

    >>> split_street("Rue de la Loi 16 bte 2")
    ('Rue de la Loi', '16 bte 2')
    >>> split_street("Grand-Place")
    ('Grand-Place', '')
    """
    match = _STREET_NUMBER.match(text)
    if match is None:
        return text, ""
    return match.group(1).strip(), match.group(2).strip()


def derive_discount(quantity: Decimal, price: Decimal, net: Decimal) -> Decimal:
    """Reconstruit la remise en % à partir de son effet sur le montant net."""
    base = quantity * price
    if base > net and base > 0:
        return min(round2((base - net) / base * HUNDRED), HUNDRED)
    return ZERO


def _parse_date(text: str) -> date | None:
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        logger.warning("Date illisible : %r", text)
        return None


class _Entity:
    """Entité en cours de construction, fermée à sa profondeur d'ouverture."""

    __slots__ = ("data", "depth", "role")

    def __init__(self, depth: int, role: str = "") -> None:
        self.depth = depth
        self.role = role
        self.data: dict[str, object] = {}


class UBLHandler:
    """Gestionnaire d'événements produisant un DocumentRecord.

    FR: Une instance par document. L'enveloppe SBDH éventuelle est
        ignorée jusqu'à la première racine reconnue ; seul ce sous-arbre
        alimente l'enregistrement.
    EN: One instance per document. An SBDH envelope is skipped up to the
        first recognised root; only that subtree feeds the record.
    """

    def __init__(self) -> None:
        self.document_type: DocumentType | None = None
        self.result: dict[str, object] = {}
        self.path: list[str] = []
        self.in_envelope = False
        self.finished = False
        self._started = False

        self.line: _Entity | None = None
        self.party: _Entity | None = None
        self.attachment: _Entity | None = None
        self.tax_subtotal: _Entity | None = None

        self.line_items: list[dict[str, object]] = []
        self.attachments: list[dict[str, object]] = []
        self.billing_references: list[str] = []
        self.tax_exemptions: dict[tuple[Decimal, TaxCategory], dict[str, str]] = {}
        self.in_payment_means = False
        self.payee_iban: str | None = None

    # --- Événements ---

    def feed(self, event: XMLEvent) -> None:
        """Traite un événement de la source XML."""
        if event.kind == START:
            self.start_element(event.name, event.attributes)
        else:
            self.end_element(event.name, event.text)

    def start_element(self, name: str, attributes: dict[str, str]) -> None:
        """Ouverture d'un élément."""
        if self.finished:
            return
        if self.document_type is None:
            self._start_outside_document(name)
            return

        self.path.append(name)
        depth = len(self.path)
        parent = self.path[-2]
        at_root = depth == 2

        if name in _LINE_ELEMENTS and at_root:
            self.line = _Entity(depth)
        elif name == "Party" and parent in ("AccountingSupplierParty", "AccountingCustomerParty"):
            self.party = _Entity(depth, _PARTY_ROLES[parent])
        elif name in ("SenderParty", "ReceiverParty") and at_root:
            self.party = _Entity(depth, _PARTY_ROLES[name])
        elif name == "AdditionalDocumentReference" and at_root:
            self.attachment = _Entity(depth)
        elif name == "TaxSubtotal" and parent == "TaxTotal" and depth == 3:
            self.tax_subtotal = _Entity(depth)
        elif name == "PaymentMeans" and at_root:
            self.in_payment_means = True
        elif name == "EndpointID" and self.party is not None:
            scheme = attributes.get("schemeID")
            if scheme:
                self.party.data["scheme"] = scheme
        elif name == "EmbeddedDocumentBinaryObject" and self.attachment is not None:
            mime_type = attributes.get("mimeCode")
            if mime_type:
                self.attachment.data["mime_type"] = mime_type
            if attributes.get("filename"):
                self.attachment.data["filename_attribute"] = attributes["filename"]

    def end_element(self, name: str, text: str) -> None:
        """Fermeture d'un élément, avec son texte."""
        if self.document_type is None or self.finished:
            return

        if self.line is not None:
            self._end_line_element(name, text)
        elif self.party is not None:
            self._end_party_element(name, text)
        elif self.tax_subtotal is not None:
            self._end_tax_subtotal_element(name, text)
        elif self.attachment is not None:
            self._end_attachment_element(name, text)
        else:
            self._end_document_element(name, text)

        self.path.pop()
        if not self.path:
            self.finished = True

    def end_document(self) -> DocumentRecord:
        """Fin du flux : applique les exonérations et valide l'enregistrement.

        Raises:
            UnrecognizedDocumentError: Si aucune racine reconnue n'a été lue.
            ParseError: Si l'enregistrement construit est invalide.
        """
        if self.document_type is None:
            msg = (
                "Document UBL non reconnu : aucune racine Invoice, CreditNote "
                "ou ApplicationResponse"
            )
            raise UnrecognizedDocumentError(msg, root=ENVELOPE_ELEMENT if self.in_envelope else None)

        if self.line_items:
            self.result["details"] = self._apply_tax_exemptions()
        if self.attachments:
            self.result["attachments"] = self.attachments
        if self.billing_references:
            self.result["billing_references"] = self.billing_references

        supplier = self.result.get("supplier")
        if self.payee_iban and isinstance(supplier, dict):
            supplier["iban"] = self.payee_iban

        try:
            return DOCUMENT_RECORD_ADAPTER.validate_python(self.result)
        except ValidationError as exc:
            msg = f"Enregistrement {self.document_type} invalide : {exc}"
            raise ParseError(msg) from exc

    # --- Racine et enveloppe ---

    def _start_outside_document(self, name: str) -> None:
        first = not self._started
        self._started = True

        if name in ROOT_ELEMENTS:
            self._open_document(name)
        elif first and name == ENVELOPE_ELEMENT:
            self.in_envelope = True
        elif not self.in_envelope:
            msg = f"Document UBL non reconnu : racine {name!r}"
            raise UnrecognizedDocumentError(msg, root=name)

    def _open_document(self, name: str) -> None:
        self.document_type = ROOT_ELEMENTS[name]
        self.result["type"] = self.document_type.value
        if self.document_type == DocumentType.INVOICE:
            self.result["expires"] = None
        self.path = [name]

    # --- Lignes ---

    def _end_line_element(self, name: str, text: str) -> None:
        line = self.line
        assert line is not None
        depth = len(self.path)
        parent = self.path[-2]

        if depth == line.depth:
            self._close_line()
        elif name == "Name" and parent == "Item":
            line.data["name"] = text
        elif name in _QUANTITY_ELEMENTS and depth == line.depth + 1:
            line.data["quantity"] = text
        elif name == "LineExtensionAmount" and depth == line.depth + 1:
            line.data["net"] = text
        elif name == "Note" and depth == line.depth + 1:
            line.data["note"] = text
        elif name == "PriceAmount" and parent == "Price":
            line.data["price"] = text
        elif name == "Percent" and parent == "ClassifiedTaxCategory":
            line.data["vat"] = text
        elif name == "ID" and parent == "ClassifiedTaxCategory":
            line.data["tax_category_code"] = text

    def _close_line(self) -> None:
        assert self.line is not None
        data = self.line.data
        quantity = to_decimal(data.get("quantity"), "quantity")  # type: ignore[arg-type]
        price = to_decimal(data.get("price"), "price")  # type: ignore[arg-type]
        vat = to_decimal(data.get("vat"), "vat")  # type: ignore[arg-type]
        net = to_decimal(data.get("net"), "line_extension_amount")  # type: ignore[arg-type]

        item: dict[str, object] = {
            "quantity": quantity,
            "price": price,
            "vat": vat,
            "discount": derive_discount(quantity, price, net),
        }
        if data.get("name"):
            item["name"] = data["name"]
        if data.get("note"):
            item["note"] = data["note"]
        if "tax_category_code" in data:
            category = TaxCategory.from_code(data["tax_category_code"])  # type: ignore[arg-type]
            if category != TaxCategory.default_for(vat):
                item["tax_category"] = category

        self.line_items.append(item)
        self.line = None

    # --- Parties ---

    def _end_party_element(self, name: str, text: str) -> None:
        party = self.party
        assert party is not None
        depth = len(self.path)
        parent = self.path[-2]

        if depth == party.depth:
            self._close_party()
            return
        if not text:
            return

        if name == "EndpointID":
            party.data["endpoint_id"] = text
        elif name == "RegistrationName":
            party.data.setdefault("name", text)
        elif name == "StreetName" and parent == "PostalAddress":
            if party.role == "customer":
                street, housenumber = split_street(text)
                party.data["street"] = street
                party.data["housenumber"] = housenumber
            else:
                party.data["street"] = text
        elif (name, parent) in _PARTY_TEXT_FIELDS:
            party.data[_PARTY_TEXT_FIELDS[(name, parent)]] = text

    def _close_party(self) -> None:
        assert self.party is not None
        cleaned = {key: value for key, value in self.party.data.items() if value not in (None, "")}
        self.result[self.party.role] = cleaned
        self.party = None

    # --- Sous-totaux de TVA ---

    def _end_tax_subtotal_element(self, name: str, text: str) -> None:
        subtotal = self.tax_subtotal
        assert subtotal is not None
        depth = len(self.path)
        parent = self.path[-2]

        if depth == subtotal.depth:
            self._close_tax_subtotal()
        elif parent == "TaxCategory":
            if name == "ID":
                subtotal.data["code"] = text
            elif name == "Percent":
                subtotal.data["vat"] = text
            elif name == "TaxExemptionReasonCode" and text:
                subtotal.data["tax_exemption_reason_code"] = text
            elif name == "TaxExemptionReason" and text:
                subtotal.data["tax_exemption_reason"] = text

    def _close_tax_subtotal(self) -> None:
        assert self.tax_subtotal is not None
        data = self.tax_subtotal.data
        self.tax_subtotal = None
        if "code" not in data or "vat" not in data:
            return

        key = (
            to_decimal(data["vat"], "tax_subtotal_percent"),  # type: ignore[arg-type]
            TaxCategory.from_code(data["code"]),  # type: ignore[arg-type]
        )
        self.tax_exemptions[key] = {
            field: data[field]  # type: ignore[misc]
            for field in ("tax_exemption_reason_code", "tax_exemption_reason")
            if field in data
        }

    def _apply_tax_exemptions(self) -> list[dict[str, object]]:
        for item in self.line_items:
            vat: Decimal = item["vat"]  # type: ignore[assignment]
            category = item.get("tax_category") or TaxCategory.default_for(vat)
            exemption = self.tax_exemptions.get((vat, category))  # type: ignore[arg-type]
            if exemption:
                item.update(exemption)
        return self.line_items

    # --- Pièces jointes ---

    def _end_attachment_element(self, name: str, text: str) -> None:
        attachment = self.attachment
        assert attachment is not None
        depth = len(self.path)

        if depth == attachment.depth:
            self._close_attachment()
        elif name == "ID" and depth == attachment.depth + 1:
            attachment.data["filename"] = text
        elif name == "EmbeddedDocumentBinaryObject":
            attachment.data["data"] = text

    def _close_attachment(self) -> None:
        assert self.attachment is not None
        data = self.attachment.data
        self.attachment = None

        content = "".join(str(data.get("data") or "").split())
        if not content:
            return
        try:
            base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError):
            logger.debug("Pièce jointe %r ignorée : contenu base64 invalide", data.get("filename"))
            return

        filename = data.get("filename") or data.get("filename_attribute")
        attachment: dict[str, object] = {"data": content}
        if filename:
            attachment["filename"] = filename
        if data.get("mime_type"):
            attachment["mime_type"] = data["mime_type"]
        self.attachments.append(attachment)

    # --- Champs de niveau document ---

    def _end_document_element(self, name: str, text: str) -> None:
        depth = len(self.path)
        parent = self.path[-2] if depth > 1 else ""

        if depth == 2:
            self._end_root_child(name, text)
        elif self.in_payment_means:
            self._end_payment_means_child(name, text, parent)
        elif name == "ID" and parent == "OrderReference" and text:
            self.result["order_reference"] = text
        elif name == "ID" and parent == "InvoiceDocumentReference" and "BillingReference" in self.path:
            if text:
                self.billing_references.append(last_token(text))
        elif name == "ID" and parent == "DocumentReference":
            if self.document_type == DocumentType.APPLICATION_RESPONSE and text:
                self.result["document_reference"] = last_token(text)
        elif name == "ResponseCode" and text:
            self.result["response_code"] = text
        elif name == "StatusReason" and text:
            self.result["status_reason"] = text
        elif name == "Note" and parent == "PaymentTerms" and text:
            self.result["payment_terms"] = text
        elif name == "TaxAmount" and parent == "TaxTotal" and depth == 3:
            self.result.setdefault("tax_amount", to_decimal(text, "tax_amount"))
        elif parent == "LegalMonetaryTotal" and name in _MONETARY_TOTALS:
            self.result[_MONETARY_TOTALS[name]] = to_decimal(text, _MONETARY_TOTALS[name])

    def _end_root_child(self, name: str, text: str) -> None:
        if name == "PaymentMeans":
            self.in_payment_means = False
        elif not text:
            return
        elif name == "ID":
            key = "id" if self.document_type == DocumentType.APPLICATION_RESPONSE else "number"
            self.result[key] = last_token(text)
        elif name == "IssueDate":
            self.result["date"] = _parse_date(text)
        elif name == "DueDate" and self.document_type == DocumentType.INVOICE:
            self.result["expires"] = _parse_date(text)
        elif name == "Note":
            self.result.setdefault("note", text)
        elif name == "DocumentCurrencyCode":
            self.result["currency"] = text

    def _end_payment_means_child(self, name: str, text: str, parent: str) -> None:
        if not text:
            return
        if name == "PaymentMeansCode":
            self.result.setdefault("payment_means_code", text)
        elif name == "PaymentID":
            self.result.setdefault("payment_id", text)
        elif name == "ID" and parent == "PayeeFinancialAccount":
            self.payee_iban = self.payee_iban or text

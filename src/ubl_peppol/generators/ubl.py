"""Générateurs UBL 2.1 pour factures et avoirs (Peppol BIS Billing 3.0).

FR: Produit un XML conforme au standard OASIS UBL 2.1, dans l'ordre du
    schéma, compatible Peppol BIS Billing 3.0. Les totaux et les
    sous-totaux de TVA sont recalculés à partir des lignes.
EN: Produces schema-ordered OASIS UBL 2.1 XML, compatible with Peppol
    BIS Billing 3.0. Totals and VAT subtotals are recomputed from the
    lines.
"""

import logging

from lxml import etree

from ubl_peppol.conf import get_settings
from ubl_peppol.generators.base import CAC, CBC, BaseGenerator, _cac, _cbc, _fmt_date
from ubl_peppol.generators.totals import (
    document_totals,
    line_allowance,
    line_base,
    line_net,
    tax_subtotals,
)
from ubl_peppol.models.document import CreditNote, Invoice, LineItem, TaxSubtotal
from ubl_peppol.models.enums import DocumentType
from ubl_peppol.models.party import Party
from ubl_peppol.utils.amounts import format_amount, format_price, format_quantity
from ubl_peppol.utils.schemes import customer_endpoint_id, party_scheme, vat_digits

logger = logging.getLogger(__name__)

# --- Namespaces UBL 2.1 ---
INV_NS = "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
CN_NS = "urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2"

# --- Identifiants Peppol BIS Billing 3.0 ---
BILLING_CUSTOMIZATION_ID = (
    "urn:cen.eu:en16931:2017#compliant#urn:fdc:peppol.eu:2017:poacc:billing:3.0"
)
BILLING_PROFILE_ID = "urn:fdc:peppol.eu:2017:poacc:billing:01:1.0"

INVOICE_TYPE_CODE = "380"
CREDIT_NOTE_TYPE_CODE = "381"

# UNTDID 4461 : 58 = virement SEPA, 1 = non défini
SEPA_CREDIT_TRANSFER = "58"
UNDEFINED_PAYMENT_MEANS = "1"

# UNECE Rec 20 : unité (pièce)
UNIT_CODE = "C62"

# UNTDID 5189 : 95 = remise
DISCOUNT_REASON_CODE = "95"


class _CommercialDocumentGenerator(BaseGenerator):
    """Base commune aux factures et aux avoirs.

    FR: Les sous-classes fixent la racine, le namespace et les noms des
        éléments qui diffèrent (code type, ligne, quantité).
    EN: Subclasses set the root, namespace and the element names that
        differ (type code, line, quantity).
    """

    root_tag = ""
    namespace = ""
    type_code_tag = ""
    type_code = ""
    line_tag = ""
    quantity_tag = ""

    def generate_xml(self, record: Invoice | CreditNote) -> bytes:  # type: ignore[override]
        """Génère le XML UBL du document."""
        currency = record.currency or get_settings().default_currency
        root = self._build_root()
        self._build_header(root, record, currency)
        self._build_references(root, record)
        self._build_attachments(root, record)
        self._build_supplier_party(root, record)
        self._build_customer_party(root, record)
        self._build_delivery(root, record)
        self._build_payment_means(root, record)
        self._build_payment_terms(root, record)
        self._build_tax_total(root, record, currency)
        self._build_legal_monetary_total(root, record, currency)
        for idx, line in enumerate(record.details, start=1):
            self._build_line(root, line, idx, currency)

        logger.debug(
            "%s %s généré (%d lignes)",
            self.root_tag,
            record.number,
            len(record.details),
        )
        return self._serialize(root)

    # --- Construction de l'arbre XML ---

    def _build_root(self) -> etree._Element:
        """Construit l'élément racine."""
        nsmap = {None: self.namespace, "cac": CAC, "cbc": CBC}
        return etree.Element(f"{{{self.namespace}}}{self.root_tag}", nsmap=nsmap)

    def _build_header(
        self, root: etree._Element, record: Invoice | CreditNote, currency: str
    ) -> None:
        """Construit les éléments d'en-tête (ID, dates, type, note, devise)."""
        etree.SubElement(root, _cbc("CustomizationID")).text = BILLING_CUSTOMIZATION_ID
        etree.SubElement(root, _cbc("ProfileID")).text = BILLING_PROFILE_ID
        etree.SubElement(root, _cbc("ID")).text = record.number or ""

        if record.date:
            etree.SubElement(root, _cbc("IssueDate")).text = _fmt_date(record.date)

        self._build_due_date(root, record)

        etree.SubElement(root, _cbc(self.type_code_tag)).text = self.type_code

        if record.note:
            etree.SubElement(root, _cbc("Note")).text = record.note

        etree.SubElement(root, _cbc("DocumentCurrencyCode")).text = currency

    def _build_due_date(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """DueDate : factures uniquement."""

    def _build_references(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit OrderReference (si renseignée)."""
        if record.order_reference:
            self._build_order_reference(root, record.order_reference)

    @staticmethod
    def _build_order_reference(root: etree._Element, reference: str) -> None:
        order_ref = etree.SubElement(root, _cac("OrderReference"))
        etree.SubElement(order_ref, _cbc("ID")).text = reference

    def _build_attachments(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit un AdditionalDocumentReference par pièce jointe, dans l'ordre."""
        for idx, attachment in enumerate(record.attachments, start=1):
            filename = attachment.filename or f"attachment-{idx}"
            doc_ref = etree.SubElement(root, _cac("AdditionalDocumentReference"))
            etree.SubElement(doc_ref, _cbc("ID")).text = filename
            etree.SubElement(doc_ref, _cbc("DocumentDescription")).text = filename
            embedded = etree.SubElement(doc_ref, _cac("Attachment"))
            binary = etree.SubElement(embedded, _cbc("EmbeddedDocumentBinaryObject"))
            if attachment.mime_type:
                binary.set("mimeCode", attachment.mime_type)
            binary.set("filename", filename)
            binary.text = attachment.data

    # --- Parties ---

    def _build_supplier_party(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit AccountingSupplierParty (fournisseur)."""
        supplier = record.supplier or Party()
        wrapper = etree.SubElement(root, _cac("AccountingSupplierParty"))
        self._build_party(
            wrapper,
            supplier,
            endpoint_id=supplier.endpoint_id,
            legal_id=supplier.endpoint_id,
        )

    def _build_customer_party(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit AccountingCustomerParty (client)."""
        customer = record.customer or Party()
        wrapper = etree.SubElement(root, _cac("AccountingCustomerParty"))
        self._build_party(
            wrapper,
            customer,
            endpoint_id=customer_endpoint_id(customer),
            legal_id=vat_digits(customer.vat),
        )

    def _build_party(
        self,
        parent: etree._Element,
        party: Party,
        endpoint_id: str | None,
        legal_id: str | None,
    ) -> None:
        """Construit un élément Party (endpoint, nom, adresse, TVA, entité légale)."""
        party_el = etree.SubElement(parent, _cac("Party"))

        if endpoint_id:
            endpoint = etree.SubElement(party_el, _cbc("EndpointID"))
            endpoint.set("schemeID", party_scheme(party))
            endpoint.text = endpoint_id

        if party.name:
            party_name = etree.SubElement(party_el, _cac("PartyName"))
            etree.SubElement(party_name, _cbc("Name")).text = party.name

        self._build_postal_address(party_el, party, "PostalAddress")

        # TVA émise telle quelle, jamais reconstruite depuis le pays
        if party.vat:
            tax_scheme_wrapper = etree.SubElement(party_el, _cac("PartyTaxScheme"))
            etree.SubElement(tax_scheme_wrapper, _cbc("CompanyID")).text = party.vat
            tax_scheme = etree.SubElement(tax_scheme_wrapper, _cac("TaxScheme"))
            etree.SubElement(tax_scheme, _cbc("ID")).text = "VAT"

        legal_entity = etree.SubElement(party_el, _cac("PartyLegalEntity"))
        etree.SubElement(legal_entity, _cbc("RegistrationName")).text = party.name or ""
        if legal_id:
            etree.SubElement(legal_entity, _cbc("CompanyID")).text = legal_id

        if party.email:
            contact = etree.SubElement(party_el, _cac("Contact"))
            etree.SubElement(contact, _cbc("ElectronicMail")).text = party.email

    @staticmethod
    def _build_postal_address(parent: etree._Element, party: Party, tag: str) -> None:
        """Construit PostalAddress (ou Address pour la livraison)."""
        addr = etree.SubElement(parent, _cac(tag))
        if party.street_line:
            etree.SubElement(addr, _cbc("StreetName")).text = party.street_line
        if party.city:
            etree.SubElement(addr, _cbc("CityName")).text = party.city
        if party.zipcode:
            etree.SubElement(addr, _cbc("PostalZone")).text = party.zipcode
        country = etree.SubElement(addr, _cac("Country"))
        etree.SubElement(country, _cbc("IdentificationCode")).text = party.country or ""

    def _build_delivery(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Delivery : factures uniquement."""

    # --- Paiement ---

    def _build_payment_means(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit PaymentMeans (virement si l'IBAN du fournisseur est connu)."""
        iban = record.supplier.iban if record.supplier else None
        code = record.payment_means_code or (
            SEPA_CREDIT_TRANSFER if iban else UNDEFINED_PAYMENT_MEANS
        )
        means = etree.SubElement(root, _cac("PaymentMeans"))
        etree.SubElement(means, _cbc("PaymentMeansCode")).text = code

        if record.payment_id:
            etree.SubElement(means, _cbc("PaymentID")).text = record.payment_id

        if iban:
            account = etree.SubElement(means, _cac("PayeeFinancialAccount"))
            etree.SubElement(account, _cbc("ID")).text = iban

    def _build_payment_terms(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit PaymentTerms (si renseignées)."""
        if not record.payment_terms:
            return
        terms = etree.SubElement(root, _cac("PaymentTerms"))
        etree.SubElement(terms, _cbc("Note")).text = record.payment_terms

    # --- TVA ---

    def _build_tax_total(
        self, root: etree._Element, record: Invoice | CreditNote, currency: str
    ) -> None:
        """Construit TaxTotal avec un TaxSubtotal par (taux, catégorie)."""
        totals = document_totals(record.details)
        tax_total = etree.SubElement(root, _cac("TaxTotal"))
        _amount(tax_total, "TaxAmount", totals.vat, currency)

        for summary in tax_subtotals(record.details):
            self._build_tax_subtotal(tax_total, summary, currency)

    @staticmethod
    def _build_tax_subtotal(
        parent: etree._Element, summary: TaxSubtotal, currency: str
    ) -> None:
        """Construit un bloc TaxSubtotal."""
        subtotal = etree.SubElement(parent, _cac("TaxSubtotal"))
        _amount(subtotal, "TaxableAmount", summary.taxable_amount, currency)
        _amount(subtotal, "TaxAmount", summary.tax_amount, currency)

        tax_cat = etree.SubElement(subtotal, _cac("TaxCategory"))
        etree.SubElement(tax_cat, _cbc("ID")).text = summary.tax_category.code
        etree.SubElement(tax_cat, _cbc("Percent")).text = format_amount(summary.vat)
        if summary.tax_exemption_reason_code:
            etree.SubElement(
                tax_cat, _cbc("TaxExemptionReasonCode")
            ).text = summary.tax_exemption_reason_code
        if summary.tax_exemption_reason:
            etree.SubElement(
                tax_cat, _cbc("TaxExemptionReason")
            ).text = summary.tax_exemption_reason
        tax_scheme = etree.SubElement(tax_cat, _cac("TaxScheme"))
        etree.SubElement(tax_scheme, _cbc("ID")).text = "VAT"

    # --- Totaux monétaires ---

    def _build_legal_monetary_total(
        self, root: etree._Element, record: Invoice | CreditNote, currency: str
    ) -> None:
        """Construit LegalMonetaryTotal."""
        totals = document_totals(record.details)
        monetary = etree.SubElement(root, _cac("LegalMonetaryTotal"))
        _amount(monetary, "LineExtensionAmount", totals.subtotal, currency)
        _amount(monetary, "TaxExclusiveAmount", totals.subtotal, currency)
        _amount(monetary, "TaxInclusiveAmount", totals.grand_total, currency)
        _amount(monetary, "PayableAmount", totals.grand_total, currency)

    # --- Lignes ---

    def _build_line(
        self,
        root: etree._Element,
        line: LineItem,
        idx: int,
        currency: str,
    ) -> None:
        """Construit InvoiceLine ou CreditNoteLine."""
        line_el = etree.SubElement(root, _cac(self.line_tag))
        etree.SubElement(line_el, _cbc("ID")).text = str(idx)

        if line.note:
            etree.SubElement(line_el, _cbc("Note")).text = line.note

        qty = etree.SubElement(line_el, _cbc(self.quantity_tag))
        qty.set("unitCode", UNIT_CODE)
        qty.text = format_quantity(line.quantity)

        _amount(line_el, "LineExtensionAmount", line_net(line), currency)

        if line.discount > 0:
            self._build_line_allowance(line_el, line, currency)

        item = etree.SubElement(line_el, _cac("Item"))
        etree.SubElement(item, _cbc("Name")).text = line.name or ""

        tax_cat = etree.SubElement(item, _cac("ClassifiedTaxCategory"))
        etree.SubElement(tax_cat, _cbc("ID")).text = line.effective_tax_category.code
        etree.SubElement(tax_cat, _cbc("Percent")).text = format_amount(line.vat)
        tax_scheme = etree.SubElement(tax_cat, _cac("TaxScheme"))
        etree.SubElement(tax_scheme, _cbc("ID")).text = "VAT"

        price = etree.SubElement(line_el, _cac("Price"))
        price_amount = etree.SubElement(price, _cbc("PriceAmount"))
        price_amount.set("currencyID", currency)
        price_amount.text = format_price(line.price)

    @staticmethod
    def _build_line_allowance(
        line_el: etree._Element, line: LineItem, currency: str
    ) -> None:
        """Construit la remise de ligne (AllowanceCharge)."""
        allowance = etree.SubElement(line_el, _cac("AllowanceCharge"))
        etree.SubElement(allowance, _cbc("ChargeIndicator")).text = "false"
        etree.SubElement(
            allowance, _cbc("AllowanceChargeReasonCode")
        ).text = DISCOUNT_REASON_CODE
        etree.SubElement(allowance, _cbc("AllowanceChargeReason")).text = "Discount"
        etree.SubElement(
            allowance, _cbc("MultiplierFactorNumeric")
        ).text = format_amount(line.discount)
        _amount(allowance, "Amount", line_allowance(line), currency)
        _amount(allowance, "BaseAmount", line_base(line), currency)


class InvoiceGenerator(_CommercialDocumentGenerator):
    """Générateur de factures UBL (Invoice-2, type 380).

    FR: Émet la date d'échéance et une référence de commande "NA" à
        défaut, ainsi qu'un bloc Delivery reprenant l'adresse du client.
    EN: Emits the due date, defaults the order reference to "NA" and
        emits a Delivery block with the customer address.
    """

    document_type = DocumentType.INVOICE
    root_tag = "Invoice"
    namespace = INV_NS
    type_code_tag = "InvoiceTypeCode"
    type_code = INVOICE_TYPE_CODE
    line_tag = "InvoiceLine"
    quantity_tag = "InvoicedQuantity"

    def _build_due_date(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit DueDate (si échéance)."""
        expires = getattr(record, "expires", None)
        if expires:
            etree.SubElement(root, _cbc("DueDate")).text = _fmt_date(expires)

    def _build_references(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit OrderReference, "NA" si absente."""
        self._build_order_reference(root, record.order_reference or "NA")

    def _build_delivery(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit Delivery avec l'adresse du client."""
        customer = record.customer
        if customer is None or not (customer.street_line or customer.city or customer.country):
            return
        delivery = etree.SubElement(root, _cac("Delivery"))
        location = etree.SubElement(delivery, _cac("DeliveryLocation"))
        self._build_postal_address(location, customer, "Address")


class CreditNoteGenerator(_CommercialDocumentGenerator):
    """Générateur d'avoirs UBL (CreditNote-2, type 381).

    FR: Un BillingReference par facture créditée ; pas de date d'échéance.
    EN: One BillingReference per credited invoice; no due date.
    """

    document_type = DocumentType.CREDIT
    root_tag = "CreditNote"
    namespace = CN_NS
    type_code_tag = "CreditNoteTypeCode"
    type_code = CREDIT_NOTE_TYPE_CODE
    line_tag = "CreditNoteLine"
    quantity_tag = "CreditedQuantity"

    def _build_references(self, root: etree._Element, record: Invoice | CreditNote) -> None:
        """Construit OrderReference puis un BillingReference par facture créditée."""
        super()._build_references(root, record)
        for reference in getattr(record, "billing_references", []):
            billing_ref = etree.SubElement(root, _cac("BillingReference"))
            inv_doc_ref = etree.SubElement(billing_ref, _cac("InvoiceDocumentReference"))
            etree.SubElement(inv_doc_ref, _cbc("ID")).text = reference


def _amount(parent: etree._Element, tag: str, value: object, currency: str) -> etree._Element:
    """Ajoute un montant CBC avec son attribut currencyID."""
    element = etree.SubElement(parent, _cbc(tag))
    element.set("currencyID", currency)
    element.text = format_amount(value)  # type: ignore[arg-type]
    return element

"""Tests unitaires du parseur UBL en flux.

FR: Vérifie la détection du type, l'extraction des champs, le
    déballage SBDH, les exonérations, la reconstruction des remises
    et les erreurs de lecture.
EN: Verifies type detection, field extraction, SBDH unwrapping, tax
    exemptions, discount recovery and read errors.
"""

import logging
from datetime import date
from decimal import Decimal

import pytest

from ubl_peppol.errors import ParseError, TokenizationError, UnrecognizedDocumentError
from ubl_peppol.models import ApplicationResponse, CreditNote, Invoice, TaxCategory
from ubl_peppol.parser import UBLHandler, parse
from ubl_peppol.parser.events import iter_events
from ubl_peppol.parser.handler import derive_discount, last_token, split_street

SBDH_OPEN = (
    '<StandardBusinessDocument xmlns="http://www.unece.org/cefact/namespaces/'
    'StandardBusinessDocumentHeader">'
    "<StandardBusinessDocumentHeader><HeaderVersion>1.0</HeaderVersion>"
    "<DocumentIdentification><Type>Invoice</Type></DocumentIdentification>"
    "</StandardBusinessDocumentHeader>"
)
SBDH_CLOSE = "</StandardBusinessDocument>"


def _strip_declaration(xml: str) -> str:
    return xml.split("?>", 1)[1]


class TestInvoiceHeader:
    """Tests des champs d'en-tête d'une facture."""

    def test_type_detected(self, invoice_xml: str) -> None:
        """La racine Invoice donne un enregistrement facture."""
        record = parse(invoice_xml)
        assert isinstance(record, Invoice)
        assert record.type == "invoice"

    def test_number_keeps_last_token(self, invoice_xml: str) -> None:
        """Le numéro garde le dernier segment après '/'."""
        assert parse(invoice_xml).number == "0042"

    def test_dates(self, invoice_xml: str) -> None:
        """Dates d'émission et d'échéance."""
        record = parse(invoice_xml)
        assert record.date == date(2026, 9, 15)
        assert record.expires == date(2026, 10, 15)

    def test_header_fields(self, invoice_xml: str) -> None:
        """Note, devise, commande et conditions de paiement."""
        record = parse(invoice_xml)
        assert record.note == "Livraison septembre"
        assert record.currency == "EUR"
        assert record.order_reference == "PO-778"
        assert record.payment_terms == "30 jours fin de mois"

    def test_payment_means(self, invoice_xml: str) -> None:
        """Code, communication et IBAN du fournisseur."""
        record = parse(invoice_xml)
        assert record.payment_means_code == "58"
        assert record.payment_id == "+++123/4567/89012+++"
        assert record.supplier.iban == "BE71096123456769"

    def test_monetary_totals(self, invoice_xml: str) -> None:
        """Les totaux lus sont conservés en Decimal."""
        record = parse(invoice_xml)
        assert record.tax_amount == Decimal("44.21")
        assert record.line_extension_amount == Decimal("222.50")
        assert record.payable_amount == Decimal("266.71")
        assert record.prepaid_amount is None

    def test_expires_preseeded(self) -> None:
        """Une facture sans échéance a expires=None."""
        record = parse("<Invoice><ID>1</ID></Invoice>")
        assert record.expires is None


class TestParties:
    """Tests de l'extraction des parties."""

    def test_supplier(self, invoice_xml: str) -> None:
        """Fournisseur : endpoint, schéma, adresse, TVA, email."""
        supplier = parse(invoice_xml).supplier
        assert supplier.name == "Brasserie du Parc SRL"
        assert supplier.endpoint_id == "0123456749"
        assert supplier.scheme == "0208"
        assert supplier.street == "Rue de la Loi 16"
        assert supplier.housenumber is None
        assert supplier.city == "Bruxelles"
        assert supplier.zipcode == "1000"
        assert supplier.country == "BE"
        assert supplier.vat == "BE0123456749"
        assert supplier.email == "factures@brasserie-du-parc.be"

    def test_customer_street_split(self, invoice_xml: str) -> None:
        """La rue du client est séparée au premier chiffre."""
        customer = parse(invoice_xml).customer
        assert customer.street == "Avenue de la Vision"
        assert customer.housenumber == "5 bis"

    def test_no_empty_strings(self) -> None:
        """Les champs vides ne sont pas stockés."""
        xml = (
            "<Invoice><AccountingSupplierParty><Party>"
            "<PartyName><Name></Name></PartyName>"
            "<PostalAddress><CityName>Gand</CityName></PostalAddress>"
            "</Party></AccountingSupplierParty></Invoice>"
        )
        supplier = parse(xml).supplier
        assert supplier.model_dump(exclude_none=True) == {"city": "Gand"}

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Rue de la Loi 16 bte 2", ("Rue de la Loi", "16 bte 2")),
            ("Grand-Place", ("Grand-Place", "")),
            ("Kerkstraat12", ("Kerkstraat", "12")),
        ],
    )
    def test_split_street(self, text: str, expected: tuple[str, str]) -> None:
        """Découpage rue / numéro."""
        assert split_street(text) == expected


class TestLines:
    """Tests des lignes."""

    def test_lines_in_order(self, invoice_xml: str) -> None:
        """Les lignes gardent l'ordre du document."""
        details = parse(invoice_xml).details
        assert [item.name for item in details] == [
            "Fût de bière 30 L",
            "Verres gravés",
            "Formation hygiène",
        ]

    def test_line_values(self, invoice_xml: str) -> None:
        """Quantité, prix, taux et note."""
        first, second, _ = parse(invoice_xml).details
        assert first.quantity == Decimal("2")
        assert first.price == Decimal("85.00")
        assert first.vat == Decimal("21")
        assert first.discount == Decimal("0")
        assert second.note == "Logo client"

    def test_discount_recovered(self, invoice_xml: str) -> None:
        """10 × 4.50 facturé 40.50 → remise de 10 %."""
        assert parse(invoice_xml).details[1].discount == Decimal("10.00")

    def test_default_category_omitted(self, invoice_xml: str) -> None:
        """Catégorie S à 21 % : égale au défaut, donc omise."""
        assert parse(invoice_xml).details[0].tax_category is None

    def test_explicit_category_kept(self, invoice_xml: str) -> None:
        """Catégorie E à 0 % : différente du défaut Z, donc conservée."""
        assert parse(invoice_xml).details[2].tax_category == TaxCategory.EXEMPT

    def test_exemption_copied_from_subtotal(self, invoice_xml: str) -> None:
        """Le motif d'exonération du sous-total est recopié sur la ligne."""
        first, _, exempt = parse(invoice_xml).details
        assert exempt.tax_exemption_reason_code == "VATEX-EU-132"
        assert exempt.tax_exemption_reason == "Exonération article 132"
        assert first.tax_exemption_reason_code is None

    def test_unknown_category_code_is_standard(self) -> None:
        """Un code de catégorie inconnu donne STANDARD (omis si taux > 0)."""
        xml = (
            "<Invoice><InvoiceLine><Item><ClassifiedTaxCategory>"
            "<ID>ZZ</ID><Percent>0</Percent>"
            "</ClassifiedTaxCategory></Item></InvoiceLine></Invoice>"
        )
        assert parse(xml).details[0].tax_category == TaxCategory.STANDARD

    def test_numeric_degrade_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Un prix illisible vaut 0 et le document est quand même lu."""
        xml = (
            "<Invoice><InvoiceLine><InvoicedQuantity>2</InvoicedQuantity>"
            "<Price><PriceAmount>douze</PriceAmount></Price>"
            "</InvoiceLine></Invoice>"
        )
        with caplog.at_level(logging.WARNING):
            record = parse(xml)
        assert record.details[0].price == Decimal("0")
        assert record.details[0].quantity == Decimal("2")
        assert "douze" in caplog.text

    @pytest.mark.parametrize(
        ("quantity", "price", "net", "expected"),
        [
            ("1", "100", "0", "100"),
            ("3", "10", "20", "33.33"),
            ("1", "100", "100", "0"),
            ("0", "100", "0", "0"),
            ("1", "100", "120", "0"),
        ],
    )
    def test_derive_discount(self, quantity: str, price: str, net: str, expected: str) -> None:
        """Remise reconstruite, bornée, nulle si base ≤ net ou base nulle."""
        result = derive_discount(Decimal(quantity), Decimal(price), Decimal(net))
        assert result == Decimal(expected)


class TestAttachments:
    """Tests des pièces jointes."""

    def test_valid_attachment_kept(self, invoice_xml: str) -> None:
        """La pièce jointe base64 valide est conservée."""
        attachments = parse(invoice_xml).attachments
        assert len(attachments) == 1
        assert attachments[0].filename == "bon-livraison.txt"
        assert attachments[0].mime_type == "text/plain"
        assert attachments[0].data == "Qm9uam91cg=="

    def test_missing_content_dropped(self) -> None:
        """Sans contenu embarqué, la référence est ignorée."""
        xml = (
            "<Invoice><AdditionalDocumentReference><ID>PO-1</ID>"
            "</AdditionalDocumentReference></Invoice>"
        )
        assert parse(xml).attachments == []

    def test_filename_attribute_fallback(self) -> None:
        """Sans ID, le nom vient de l'attribut filename."""
        xml = (
            "<Invoice><AdditionalDocumentReference><Attachment>"
            '<EmbeddedDocumentBinaryObject mimeCode="text/plain" filename="a.txt">'
            "Qm9uam91cg==</EmbeddedDocumentBinaryObject>"
            "</Attachment></AdditionalDocumentReference></Invoice>"
        )
        assert parse(xml).attachments[0].filename == "a.txt"


class TestCreditNote:
    """Tests des avoirs."""

    def test_billing_references(self) -> None:
        """Références de factures créditées, dans l'ordre, dernier segment."""
        xml = (
            "<CreditNote><ID>AV-7</ID>"
            "<BillingReference><InvoiceDocumentReference><ID>2026/FA-1</ID>"
            "</InvoiceDocumentReference></BillingReference>"
            "<BillingReference><InvoiceDocumentReference><ID>FA-2</ID>"
            "</InvoiceDocumentReference></BillingReference>"
            "<CreditNoteLine><CreditedQuantity>3</CreditedQuantity></CreditNoteLine>"
            "</CreditNote>"
        )
        record = parse(xml)
        assert isinstance(record, CreditNote)
        assert record.billing_references == ["FA-1", "FA-2"]
        assert record.details[0].quantity == Decimal("3")


class TestApplicationResponse:
    """Tests des réponses applicatives."""

    def test_fields(self) -> None:
        """Identifiant, code, motif, document acquitté et parties."""
        xml = (
            "<ApplicationResponse><ID>AR-1</ID><IssueDate>2026-09-16</IssueDate>"
            "<SenderParty><EndpointID schemeID=\"0009\">123456789</EndpointID>"
            "<PartyLegalEntity><RegistrationName>Optique</RegistrationName>"
            "</PartyLegalEntity></SenderParty>"
            "<ReceiverParty><EndpointID schemeID=\"0208\">0123456749</EndpointID>"
            "</ReceiverParty>"
            "<DocumentResponse><Response><ResponseCode>RE</ResponseCode>"
            "<Status><StatusReason>Montant erroné</StatusReason></Status></Response>"
            "<DocumentReference><ID>2026/FA-42</ID></DocumentReference>"
            "</DocumentResponse></ApplicationResponse>"
        )
        record = parse(xml)
        assert isinstance(record, ApplicationResponse)
        assert record.id == "AR-1"
        assert record.date == date(2026, 9, 16)
        assert record.response_code == "RE"
        assert record.status_reason == "Montant erroné"
        assert record.document_reference == "FA-42"
        assert record.sender.name == "Optique"
        assert record.sender.scheme == "0009"
        assert record.receiver.endpoint_id == "0123456749"


class TestNamespaces:
    """Tests de l'indépendance vis-à-vis des préfixes."""

    def test_any_prefix(self) -> None:
        """Les noms locaux seuls comptent."""
        xml = (
            '<ns0:Invoice xmlns:ns0="urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"'
            ' xmlns:b="urn:x-basic" xmlns:a="urn:x-aggregate">'
            "<b:ID>FA-9</b:ID>"
            "<a:InvoiceLine><b:InvoicedQuantity>1</b:InvoicedQuantity></a:InvoiceLine>"
            "</ns0:Invoice>"
        )
        record = parse(xml)
        assert record.number == "FA-9"
        assert record.details[0].quantity == Decimal("1")

    def test_bytes_input(self, invoice_xml: str) -> None:
        """Les octets avec déclaration sont acceptés."""
        assert parse(invoice_xml.encode("utf-8")).number == "0042"


class TestSBDHUnwrap:
    """Tests du déballage de l'enveloppe SBDH."""

    def test_envelope_is_transparent(self, invoice_xml: str) -> None:
        """Le document enveloppé donne le même enregistrement."""
        wrapped = SBDH_OPEN + _strip_declaration(invoice_xml) + SBDH_CLOSE
        assert parse(wrapped) == parse(invoice_xml)

    def test_envelope_without_document(self) -> None:
        """Une enveloppe vide est un document non reconnu."""
        with pytest.raises(UnrecognizedDocumentError):
            parse(SBDH_OPEN + SBDH_CLOSE)

    def test_only_first_inner_document(self) -> None:
        """Seul le premier document reconnu est lu."""
        xml = SBDH_OPEN + "<Invoice><ID>A</ID></Invoice><Invoice><ID>B</ID></Invoice>" + SBDH_CLOSE
        assert parse(xml).number == "A"


class TestErrors:
    """Tests des erreurs de lecture."""

    def test_malformed(self) -> None:
        """XML mal formé → TokenizationError."""
        with pytest.raises(TokenizationError):
            parse("<Invoice><ID>1</Invoice>")

    def test_empty(self) -> None:
        """Entrée vide → TokenizationError."""
        with pytest.raises(TokenizationError):
            parse("")

    def test_unknown_root(self) -> None:
        """Racine inconnue → UnrecognizedDocumentError avec la racine."""
        with pytest.raises(UnrecognizedDocumentError) as exc_info:
            parse("<Order><ID>1</ID></Order>")
        assert exc_info.value.root == "Order"

    def test_errors_share_base(self) -> None:
        """Les deux erreurs de lecture dérivent de ParseError."""
        assert issubclass(TokenizationError, ParseError)
        assert issubclass(UnrecognizedDocumentError, ParseError)


class TestHandlerState:
    """Tests de l'état interne du gestionnaire."""

    def test_independent_instances(self, invoice_xml: str) -> None:
        """Deux gestionnaires ne partagent aucun état."""
        first = UBLHandler()
        second = UBLHandler()
        for event in iter_events(invoice_xml):
            first.feed(event)
        assert first.line_items
        assert second.line_items == []
        assert second.result == {}

    def test_last_token(self) -> None:
        """Dernier segment non vide."""
        assert last_token("2026/FA/0042") == "0042"
        assert last_token("FA-1/") == "FA-1"
        assert last_token("FA-1") == "FA-1"

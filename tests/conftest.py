"""Fixtures partagées : enregistrements et documents XML de test."""

from datetime import date
from decimal import Decimal

import pytest

from ubl_peppol.models import (
    ApplicationResponse,
    Attachment,
    CreditNote,
    Invoice,
    LineItem,
    Party,
    TaxCategory,
)

# "Bonjour" en base64
ATTACHMENT_DATA = "Qm9uam91cg=="


@pytest.fixture
def supplier() -> Party:
    """Fournisseur belge avec IBAN."""
    return Party(
        name="Brasserie du Parc SRL",
        country="BE",
        endpoint_id="0123456749",
        vat="BE0123456749",
        street="Rue de la Loi 16",
        city="Bruxelles",
        zipcode="1000",
        email="factures@brasserie-du-parc.be",
        iban="BE71096123456769",
    )


@pytest.fixture
def customer() -> Party:
    """Client français sans identifiant d'adressage."""
    return Party(
        name="Optique Lumière SAS",
        country="FR",
        vat="FR12345678901",
        street="Avenue de la Vision",
        housenumber="5",
        city="Paris",
        zipcode="75011",
    )


@pytest.fixture
def sample_invoice(supplier: Party, customer: Party) -> Invoice:
    """Facture de test avec deux lignes dont une remisée."""
    return Invoice(
        number="FA-2026-042",
        date=date(2026, 9, 15),
        expires=date(2026, 10, 15),
        currency="EUR",
        payment_id="+++123/4567/89012+++",
        supplier=supplier,
        customer=customer,
        note="Livraison septembre",
        payment_terms="30 jours fin de mois",
        details=[
            LineItem(
                name="Fût de bière 30 L",
                quantity=Decimal("2"),
                price=Decimal("85.00"),
                vat=Decimal("21"),
            ),
            LineItem(
                name="Verres gravés",
                quantity=Decimal("10"),
                price=Decimal("4.50"),
                vat=Decimal("21"),
                discount=Decimal("10"),
                note="Logo client",
            ),
        ],
        attachments=[
            Attachment(filename="bon-livraison.txt", mime_type="text/plain", data=ATTACHMENT_DATA),
        ],
    )


@pytest.fixture
def sample_credit_note(supplier: Party, customer: Party) -> CreditNote:
    """Avoir de test créditant deux factures."""
    return CreditNote(
        number="AV-2026-007",
        date=date(2026, 10, 2),
        supplier=supplier,
        customer=customer,
        billing_references=["FA-2026-042", "FA-2026-043"],
        details=[
            LineItem(
                name="Retour fût",
                quantity=Decimal("1"),
                price=Decimal("85.00"),
                vat=Decimal("0"),
                tax_category=TaxCategory.INTRA_COMMUNITY,
                tax_exemption_reason_code="VATEX-EU-IC",
                tax_exemption_reason="Livraison intracommunautaire",
            ),
        ],
    )


@pytest.fixture
def sample_application_response() -> ApplicationResponse:
    """Réponse applicative acceptant une facture."""
    return ApplicationResponse(
        id="AR-2026-001",
        date=date(2026, 9, 16),
        response_code="AP",
        document_reference="FA-2026-042",
        status_reason="Facture acceptée",
        note="Merci",
        sender=Party(name="Optique Lumière SAS", country="FR", endpoint_id="123456789"),
        receiver=Party(name="Brasserie du Parc SRL", country="BE", endpoint_id="0123456749"),
    )


INVOICE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Invoice xmlns="urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
         xmlns:cac="urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"
         xmlns:cbc="urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2">
  <cbc:CustomizationID>urn:cen.eu:en16931:2017#compliant#urn:fdc:peppol.eu:2017:poacc:billing:3.0</cbc:CustomizationID>
  <cbc:ProfileID>urn:fdc:peppol.eu:2017:poacc:billing:01:1.0</cbc:ProfileID>
  <cbc:ID>2026/FA/0042</cbc:ID>
  <cbc:IssueDate>2026-09-15</cbc:IssueDate>
  <cbc:DueDate>2026-10-15</cbc:DueDate>
  <cbc:InvoiceTypeCode>380</cbc:InvoiceTypeCode>
  <cbc:Note>Livraison septembre</cbc:Note>
  <cbc:DocumentCurrencyCode>EUR</cbc:DocumentCurrencyCode>
  <cac:OrderReference>
    <cbc:ID>PO-778</cbc:ID>
  </cac:OrderReference>
  <cac:AdditionalDocumentReference>
    <cbc:ID>bon-livraison.txt</cbc:ID>
    <cac:Attachment>
      <cbc:EmbeddedDocumentBinaryObject mimeCode="text/plain" filename="bon-livraison.txt">Qm9uam91cg==</cbc:EmbeddedDocumentBinaryObject>
    </cac:Attachment>
  </cac:AdditionalDocumentReference>
  <cac:AdditionalDocumentReference>
    <cbc:ID>corrompu.pdf</cbc:ID>
    <cac:Attachment>
      <cbc:EmbeddedDocumentBinaryObject mimeCode="application/pdf">pas du base64 !</cbc:EmbeddedDocumentBinaryObject>
    </cac:Attachment>
  </cac:AdditionalDocumentReference>
  <cac:AccountingSupplierParty>
    <cac:Party>
      <cbc:EndpointID schemeID="0208">0123456749</cbc:EndpointID>
      <cac:PartyName>
        <cbc:Name>Brasserie du Parc SRL</cbc:Name>
      </cac:PartyName>
      <cac:PostalAddress>
        <cbc:StreetName>Rue de la Loi 16</cbc:StreetName>
        <cbc:CityName>Bruxelles</cbc:CityName>
        <cbc:PostalZone>1000</cbc:PostalZone>
        <cac:Country>
          <cbc:IdentificationCode>BE</cbc:IdentificationCode>
        </cac:Country>
      </cac:PostalAddress>
      <cac:PartyTaxScheme>
        <cbc:CompanyID>BE0123456749</cbc:CompanyID>
        <cac:TaxScheme>
          <cbc:ID>VAT</cbc:ID>
        </cac:TaxScheme>
      </cac:PartyTaxScheme>
      <cac:PartyLegalEntity>
        <cbc:RegistrationName>Brasserie du Parc SRL</cbc:RegistrationName>
      </cac:PartyLegalEntity>
      <cac:Contact>
        <cbc:ElectronicMail>factures@brasserie-du-parc.be</cbc:ElectronicMail>
      </cac:Contact>
    </cac:Party>
  </cac:AccountingSupplierParty>
  <cac:AccountingCustomerParty>
    <cac:Party>
      <cbc:EndpointID schemeID="0009">12345678901</cbc:EndpointID>
      <cac:PartyName>
        <cbc:Name>Optique Lumière SAS</cbc:Name>
      </cac:PartyName>
      <cac:PostalAddress>
        <cbc:StreetName>Avenue de la Vision 5 bis</cbc:StreetName>
        <cbc:CityName>Paris</cbc:CityName>
        <cbc:PostalZone>75011</cbc:PostalZone>
        <cac:Country>
          <cbc:IdentificationCode>FR</cbc:IdentificationCode>
        </cac:Country>
      </cac:PostalAddress>
      <cac:PartyTaxScheme>
        <cbc:CompanyID>FR12345678901</cbc:CompanyID>
        <cac:TaxScheme>
          <cbc:ID>VAT</cbc:ID>
        </cac:TaxScheme>
      </cac:PartyTaxScheme>
      <cac:PartyLegalEntity>
        <cbc:RegistrationName>Optique Lumière SAS</cbc:RegistrationName>
      </cac:PartyLegalEntity>
    </cac:Party>
  </cac:AccountingCustomerParty>
  <cac:PaymentMeans>
    <cbc:PaymentMeansCode>58</cbc:PaymentMeansCode>
    <cbc:PaymentID>+++123/4567/89012+++</cbc:PaymentID>
    <cac:PayeeFinancialAccount>
      <cbc:ID>BE71096123456769</cbc:ID>
    </cac:PayeeFinancialAccount>
  </cac:PaymentMeans>
  <cac:PaymentTerms>
    <cbc:Note>30 jours fin de mois</cbc:Note>
  </cac:PaymentTerms>
  <cac:TaxTotal>
    <cbc:TaxAmount currencyID="EUR">44.21</cbc:TaxAmount>
    <cac:TaxSubtotal>
      <cbc:TaxableAmount currencyID="EUR">210.50</cbc:TaxableAmount>
      <cbc:TaxAmount currencyID="EUR">44.21</cbc:TaxAmount>
      <cac:TaxCategory>
        <cbc:ID>S</cbc:ID>
        <cbc:Percent>21.00</cbc:Percent>
        <cac:TaxScheme>
          <cbc:ID>VAT</cbc:ID>
        </cac:TaxScheme>
      </cac:TaxCategory>
    </cac:TaxSubtotal>
    <cac:TaxSubtotal>
      <cbc:TaxableAmount currencyID="EUR">12.00</cbc:TaxableAmount>
      <cbc:TaxAmount currencyID="EUR">0.00</cbc:TaxAmount>
      <cac:TaxCategory>
        <cbc:ID>E</cbc:ID>
        <cbc:Percent>0.00</cbc:Percent>
        <cbc:TaxExemptionReasonCode>VATEX-EU-132</cbc:TaxExemptionReasonCode>
        <cbc:TaxExemptionReason>Exonération article 132</cbc:TaxExemptionReason>
        <cac:TaxScheme>
          <cbc:ID>VAT</cbc:ID>
        </cac:TaxScheme>
      </cac:TaxCategory>
    </cac:TaxSubtotal>
  </cac:TaxTotal>
  <cac:LegalMonetaryTotal>
    <cbc:LineExtensionAmount currencyID="EUR">222.50</cbc:LineExtensionAmount>
    <cbc:TaxExclusiveAmount currencyID="EUR">222.50</cbc:TaxExclusiveAmount>
    <cbc:TaxInclusiveAmount currencyID="EUR">266.71</cbc:TaxInclusiveAmount>
    <cbc:PayableAmount currencyID="EUR">266.71</cbc:PayableAmount>
  </cac:LegalMonetaryTotal>
  <cac:InvoiceLine>
    <cbc:ID>1</cbc:ID>
    <cbc:InvoicedQuantity unitCode="C62">2</cbc:InvoicedQuantity>
    <cbc:LineExtensionAmount currencyID="EUR">170.00</cbc:LineExtensionAmount>
    <cac:Item>
      <cbc:Name>Fût de bière 30 L</cbc:Name>
      <cac:ClassifiedTaxCategory>
        <cbc:ID>S</cbc:ID>
        <cbc:Percent>21.00</cbc:Percent>
        <cac:TaxScheme>
          <cbc:ID>VAT</cbc:ID>
        </cac:TaxScheme>
      </cac:ClassifiedTaxCategory>
    </cac:Item>
    <cac:Price>
      <cbc:PriceAmount currencyID="EUR">85.00</cbc:PriceAmount>
    </cac:Price>
  </cac:InvoiceLine>
  <cac:InvoiceLine>
    <cbc:ID>2</cbc:ID>
    <cbc:Note>Logo client</cbc:Note>
    <cbc:InvoicedQuantity unitCode="C62">10</cbc:InvoicedQuantity>
    <cbc:LineExtensionAmount currencyID="EUR">40.50</cbc:LineExtensionAmount>
    <cac:Item>
      <cbc:Name>Verres gravés</cbc:Name>
      <cac:ClassifiedTaxCategory>
        <cbc:ID>S</cbc:ID>
        <cbc:Percent>21.00</cbc:Percent>
        <cac:TaxScheme>
          <cbc:ID>VAT</cbc:ID>
        </cac:TaxScheme>
      </cac:ClassifiedTaxCategory>
    </cac:Item>
    <cac:Price>
      <cbc:PriceAmount currencyID="EUR">4.50</cbc:PriceAmount>
    </cac:Price>
  </cac:InvoiceLine>
  <cac:InvoiceLine>
    <cbc:ID>3</cbc:ID>
    <cbc:InvoicedQuantity unitCode="C62">1</cbc:InvoicedQuantity>
    <cbc:LineExtensionAmount currencyID="EUR">12.00</cbc:LineExtensionAmount>
    <cac:Item>
      <cbc:Name>Formation hygiène</cbc:Name>
      <cac:ClassifiedTaxCategory>
        <cbc:ID>E</cbc:ID>
        <cbc:Percent>0</cbc:Percent>
        <cac:TaxScheme>
          <cbc:ID>VAT</cbc:ID>
        </cac:TaxScheme>
      </cac:ClassifiedTaxCategory>
    </cac:Item>
    <cac:Price>
      <cbc:PriceAmount currencyID="EUR">12.00</cbc:PriceAmount>
    </cac:Price>
  </cac:InvoiceLine>
</Invoice>
"""


@pytest.fixture
def invoice_xml() -> str:
    """Facture UBL Peppol écrite à la main (trois lignes, deux pièces jointes)."""
    return INVOICE_XML

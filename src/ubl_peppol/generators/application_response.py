"""Générateur de réponses applicatives Peppol (Invoice Response 3.0).

FR: Accusé de traitement d'une facture reçue : émetteur, destinataire,
    code de réponse UNCL4343 et référence du document acquitté.
    Pas de lignes ni de totaux.
EN: Processing acknowledgement for a received invoice: sender, receiver,
    UNCL4343 response code and acknowledged document reference.
    No lines or totals.
"""

import logging

from lxml import etree

from ubl_peppol.generators.base import CAC, CBC, BaseGenerator, _cac, _cbc, _fmt_date
from ubl_peppol.models.document import ApplicationResponse
from ubl_peppol.models.enums import DocumentType
from ubl_peppol.models.party import Party
from ubl_peppol.utils.schemes import customer_endpoint_id, party_scheme

logger = logging.getLogger(__name__)

AR_NS = "urn:oasis:names:specification:ubl:schema:xsd:ApplicationResponse-2"

RESPONSE_CUSTOMIZATION_ID = "urn:fdc:peppol.eu:poacc:trns:invoice_response:3"
RESPONSE_PROFILE_ID = "urn:fdc:peppol.eu:poacc:bis:invoice_response:3"

# UNCL4343 : AB = message reçu
DEFAULT_RESPONSE_CODE = "AB"
RESPONSE_CODE_LIST = "UNCL4343OpSubset"
DOCUMENT_TYPE_CODE_LIST = "UNCL1001"
ACKNOWLEDGED_DOCUMENT_TYPE = "380"


class ApplicationResponseGenerator(BaseGenerator):
    """Générateur de réponses applicatives UBL (ApplicationResponse-2)."""

    document_type = DocumentType.APPLICATION_RESPONSE

    def generate_xml(self, record: ApplicationResponse) -> bytes:  # type: ignore[override]
        """Génère le XML de la réponse applicative."""
        nsmap = {None: AR_NS, "cac": CAC, "cbc": CBC}
        root = etree.Element(f"{{{AR_NS}}}ApplicationResponse", nsmap=nsmap)

        self._build_header(root, record)

        sender = record.sender or Party()
        receiver = record.receiver or Party()
        self._build_party(root, "SenderParty", sender, sender.endpoint_id)
        self._build_party(root, "ReceiverParty", receiver, customer_endpoint_id(receiver))

        self._build_document_response(root, record)

        logger.debug(
            "ApplicationResponse %s généré (code %s)",
            record.id,
            record.response_code or DEFAULT_RESPONSE_CODE,
        )
        return self._serialize(root)

    def _build_header(self, root: etree._Element, record: ApplicationResponse) -> None:
        """Construit l'en-tête (profil, ID, date, note)."""
        etree.SubElement(root, _cbc("CustomizationID")).text = RESPONSE_CUSTOMIZATION_ID
        etree.SubElement(root, _cbc("ProfileID")).text = RESPONSE_PROFILE_ID
        etree.SubElement(root, _cbc("ID")).text = record.id or ""
        if record.date:
            etree.SubElement(root, _cbc("IssueDate")).text = _fmt_date(record.date)
        if record.note:
            etree.SubElement(root, _cbc("Note")).text = record.note

    @staticmethod
    def _build_party(
        root: etree._Element, tag: str, party: Party, endpoint_id: str | None
    ) -> None:
        """Construit SenderParty ou ReceiverParty."""
        party_el = etree.SubElement(root, _cac(tag))
        scheme = party_scheme(party)

        if endpoint_id:
            endpoint = etree.SubElement(party_el, _cbc("EndpointID"))
            endpoint.set("schemeID", scheme)
            endpoint.text = endpoint_id

            identification = etree.SubElement(party_el, _cac("PartyIdentification"))
            identifier = etree.SubElement(identification, _cbc("ID"))
            identifier.set("schemeID", scheme)
            identifier.text = endpoint_id

        legal_entity = etree.SubElement(party_el, _cac("PartyLegalEntity"))
        etree.SubElement(legal_entity, _cbc("RegistrationName")).text = party.name or ""

    @staticmethod
    def _build_document_response(root: etree._Element, record: ApplicationResponse) -> None:
        """Construit DocumentResponse (code de réponse et document acquitté)."""
        document_response = etree.SubElement(root, _cac("DocumentResponse"))

        response = etree.SubElement(document_response, _cac("Response"))
        code = etree.SubElement(response, _cbc("ResponseCode"))
        code.set("listID", RESPONSE_CODE_LIST)
        code.text = record.response_code or DEFAULT_RESPONSE_CODE
        if record.status_reason:
            status = etree.SubElement(response, _cac("Status"))
            etree.SubElement(status, _cbc("StatusReason")).text = record.status_reason

        reference = etree.SubElement(document_response, _cac("DocumentReference"))
        etree.SubElement(reference, _cbc("ID")).text = record.document_reference or ""
        type_code = etree.SubElement(reference, _cbc("DocumentTypeCode"))
        type_code.set("listID", DOCUMENT_TYPE_CODE_LIST)
        type_code.text = ACKNOWLEDGED_DOCUMENT_TYPE

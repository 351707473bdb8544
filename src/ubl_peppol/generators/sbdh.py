"""Enveloppe SBDH (Standard Business Document Header) pour le réseau Peppol.

FR: Construit l'en-tête de routage à partir du contenu du document
    (émetteur, destinataire, type, processus) et y insère le document
    UBL tel quel, prologue XML retiré.
EN: Builds the routing header from the document content (sender,
    receiver, type, process) and nests the UBL document unchanged,
    without its XML prolog.
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import NamedTuple

from lxml import etree

from ubl_peppol.errors import TokenizationError, UnrecognizedDocumentError
from ubl_peppol.models.document import ApplicationResponse, DocumentRecord
from ubl_peppol.models.enums import DocumentType
from ubl_peppol.models.party import Party
from ubl_peppol.utils.schemes import customer_endpoint_id, party_scheme
from ubl_peppol.utils.xml_helpers import to_xml_bytes

logger = logging.getLogger(__name__)

SBDH_NS = "http://www.unece.org/cefact/namespaces/StandardBusinessDocumentHeader"

HEADER_VERSION = "1.0"
TYPE_VERSION = "2.1"
IDENTIFIER_AUTHORITY = "iso6523-actorid-upis"
DOCUMENT_ID_SCHEME = "busdox-docid-qns"
PROCESS_ID_SCHEME = "cenbii-procid-ubl"


class DocumentProfile(NamedTuple):
    """Identifiants Peppol d'un type de document."""

    standard: str
    type_name: str
    document_id: str
    process_id: str


BILLING_PROCESS_ID = "urn:fdc:peppol.eu:2017:poacc:billing:01:1.0"

DOCUMENT_PROFILES: dict[DocumentType, DocumentProfile] = {
    DocumentType.INVOICE: DocumentProfile(
        standard="urn:oasis:names:specification:ubl:schema:xsd:Invoice-2",
        type_name="Invoice",
        document_id=(
            "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2::Invoice"
            "##urn:cen.eu:en16931:2017#compliant"
            "#urn:fdc:peppol.eu:2017:poacc:billing:3.0::2.1"
        ),
        process_id=BILLING_PROCESS_ID,
    ),
    DocumentType.CREDIT: DocumentProfile(
        standard="urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2",
        type_name="CreditNote",
        document_id=(
            "urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2::CreditNote"
            "##urn:cen.eu:en16931:2017#compliant"
            "#urn:fdc:peppol.eu:2017:poacc:billing:3.0::2.1"
        ),
        process_id=BILLING_PROCESS_ID,
    ),
    DocumentType.APPLICATION_RESPONSE: DocumentProfile(
        standard="urn:oasis:names:specification:ubl:schema:xsd:ApplicationResponse-2",
        type_name="ApplicationResponse",
        document_id=(
            "urn:oasis:names:specification:ubl:schema:xsd:ApplicationResponse-2"
            "::ApplicationResponse"
            "##urn:fdc:peppol.eu:poacc:trns:invoice_response:3::2.1"
        ),
        process_id="urn:fdc:peppol.eu:poacc:bis:invoice_response:3",
    ),
}


def _sbdh(tag: str) -> str:
    """Construit un nom qualifié dans le namespace SBDH."""
    return f"{{{SBDH_NS}}}{tag}"


class SBDHWrapper:
    """Construit l'enveloppe SBDH autour d'un document UBL.

    FR: La date de création est l'heure UTC courante ; `now` permet de
        la fixer (tests, rejeu).
    EN: Creation time is the current UTC time; `now` pins it.
    """

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now

    def wrap(self, xml: str | bytes, record: DocumentRecord) -> bytes:
        """Enveloppe un document UBL déjà généré.

        Args:
            xml: Le document UBL (avec ou sans prologue).
            record: L'enregistrement dont il est issu.

        Returns:
            Le document enveloppé, en bytes UTF-8 avec déclaration.
        """
        document_type = DocumentType(record.type)
        profile = DOCUMENT_PROFILES[document_type]
        sender, receiver = self._parties(record)

        root = etree.Element(_sbdh("StandardBusinessDocument"), nsmap={None: SBDH_NS})
        header = etree.SubElement(root, _sbdh("StandardBusinessDocumentHeader"))
        etree.SubElement(header, _sbdh("HeaderVersion")).text = HEADER_VERSION

        self._build_identity(header, "Sender", sender, sender.endpoint_id)
        self._build_identity(header, "Receiver", receiver, customer_endpoint_id(receiver))
        self._build_document_identification(header, record, profile)
        self._build_business_scope(header, profile, sender, receiver)

        root.append(_read_document(xml))

        logger.debug("Document %s enveloppé (SBDH)", document_type)
        return etree.tostring(
            root,
            xml_declaration=True,
            encoding="UTF-8",
            pretty_print=True,
        )

    @staticmethod
    def _parties(record: DocumentRecord) -> tuple[Party, Party]:
        if isinstance(record, ApplicationResponse):
            return record.sender or Party(), record.receiver or Party()
        return record.supplier or Party(), record.customer or Party()

    @staticmethod
    def _build_identity(
        header: etree._Element, tag: str, party: Party, endpoint_id: str | None
    ) -> None:
        """Construit Sender ou Receiver : `{schéma}:{endpoint}`."""
        identity = etree.SubElement(header, _sbdh(tag))
        identifier = etree.SubElement(identity, _sbdh("Identifier"))
        identifier.set("Authority", IDENTIFIER_AUTHORITY)
        identifier.text = f"{party_scheme(party)}:{endpoint_id or ''}"

    def _build_document_identification(
        self,
        header: etree._Element,
        record: DocumentRecord,
        profile: DocumentProfile,
    ) -> None:
        """Construit DocumentIdentification (standard, type, instance, date)."""
        identification = etree.SubElement(header, _sbdh("DocumentIdentification"))
        etree.SubElement(identification, _sbdh("Standard")).text = profile.standard
        etree.SubElement(identification, _sbdh("TypeVersion")).text = TYPE_VERSION
        etree.SubElement(
            identification, _sbdh("InstanceIdentifier")
        ).text = self._instance_identifier(record)
        etree.SubElement(identification, _sbdh("Type")).text = profile.type_name

        created = self.now or datetime.now(UTC)
        etree.SubElement(
            identification, _sbdh("CreationDateAndTime")
        ).text = created.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    @staticmethod
    def _instance_identifier(record: DocumentRecord) -> str:
        identifier = record.id if isinstance(record, ApplicationResponse) else record.number
        return identifier or str(uuid.uuid4())

    @staticmethod
    def _build_business_scope(
        header: etree._Element,
        profile: DocumentProfile,
        sender: Party,
        receiver: Party,
    ) -> None:
        """Construit BusinessScope (document, processus, pays de l'émetteur)."""
        business_scope = etree.SubElement(header, _sbdh("BusinessScope"))
        scopes = [
            ("DOCUMENTID", profile.document_id, DOCUMENT_ID_SCHEME),
            ("PROCESSID", profile.process_id, PROCESS_ID_SCHEME),
        ]
        country = sender.country or receiver.country
        if country:
            scopes.append(("COUNTRY_C1", country, None))

        for scope_type, value, identifier in scopes:
            scope = etree.SubElement(business_scope, _sbdh("Scope"))
            etree.SubElement(scope, _sbdh("Type")).text = scope_type
            etree.SubElement(scope, _sbdh("InstanceIdentifier")).text = value
            if identifier:
                etree.SubElement(scope, _sbdh("Identifier")).text = identifier


def _read_document(xml: str | bytes) -> etree._Element:
    """Lit un document UBL ou SBDH (pièces jointes volumineuses admises).

    Raises:
        TokenizationError: Si le document n'est pas un XML bien formé.
    """
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
    )
    try:
        return etree.fromstring(to_xml_bytes(xml), parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Document XML illisible : {exc}"
        raise TokenizationError(msg) from exc


def wrap(xml: str | bytes, record: DocumentRecord, now: datetime | None = None) -> bytes:
    """Enveloppe un document UBL dans un SBDH Peppol."""
    return SBDHWrapper(now=now).wrap(xml, record)


def unwrap(xml: str | bytes) -> bytes:
    """Extrait le document UBL d'une enveloppe SBDH.

    FR: Un document sans enveloppe est retourné tel quel (en octets).
    EN: A document without an envelope is returned unchanged, as bytes.

    Raises:
        TokenizationError: Si l'entrée n'est pas un XML bien formé.
        UnrecognizedDocumentError: Si l'enveloppe ne contient aucun
            document UBL connu.
    """
    data = to_xml_bytes(xml)
    root = _read_document(data)
    if etree.QName(root).localname != "StandardBusinessDocument":
        return data

    document_names = {profile.type_name for profile in DOCUMENT_PROFILES.values()}
    for child in root:
        if isinstance(child.tag, str) and etree.QName(child).localname in document_names:
            return etree.tostring(
                child, xml_declaration=True, encoding="UTF-8", with_tail=False
            )

    msg = "Enveloppe SBDH sans document Invoice, CreditNote ou ApplicationResponse"
    raise UnrecognizedDocumentError(msg, root="StandardBusinessDocument")

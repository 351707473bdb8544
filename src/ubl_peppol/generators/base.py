"""Interface abstraite pour les générateurs de documents UBL."""

from abc import ABC, abstractmethod

from lxml import etree

from ubl_peppol.models.document import DocumentRecord

# --- Namespaces UBL 2.1 communs ---
CAC = "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"
CBC = "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2"


def _cac(tag: str) -> str:
    """Construit un nom qualifié dans le namespace CAC."""
    return f"{{{CAC}}}{tag}"


def _cbc(tag: str) -> str:
    """Construit un nom qualifié dans le namespace CBC."""
    return f"{{{CBC}}}{tag}"


def _fmt_date(d: object) -> str:
    """Formate une date au format ISO 8601 (YYYY-MM-DD)."""
    return d.strftime("%Y-%m-%d")  # type: ignore[attr-defined]


class GenerationResult:
    """Résultat de la génération d'un document.

    FR: Contient le XML généré et le type de document.
    EN: Contains the generated XML and the document type.
    """

    def __init__(self, xml_bytes: bytes, document_type: str = "") -> None:
        self.xml_bytes = xml_bytes
        self.document_type = document_type


class BaseGenerator(ABC):
    """Classe de base abstraite pour les générateurs UBL.

    FR: Tous les générateurs (facture, avoir, réponse applicative)
        héritent de cette classe. La génération est pure et
        déterministe : aucun horodatage n'est ajouté au document.
    EN: All generators (invoice, credit note, application response)
        inherit from this class. Generation is pure and deterministic.
    """

    document_type: str = ""

    def generate(self, record: DocumentRecord, **kwargs: object) -> GenerationResult:
        """Génère le document et l'encapsule dans un GenerationResult."""
        xml_bytes = self.generate_xml(record)
        return GenerationResult(xml_bytes=xml_bytes, document_type=self.document_type)

    @abstractmethod
    def generate_xml(self, record: DocumentRecord) -> bytes:
        """Génère uniquement le XML du document.

        Args:
            record: L'enregistrement à sérialiser.

        Returns:
            Le contenu XML en bytes (UTF-8, avec déclaration).
        """
        ...

    @staticmethod
    def _serialize(root: etree._Element) -> bytes:
        return etree.tostring(
            root,
            xml_declaration=True,
            encoding="UTF-8",
            pretty_print=True,
        )

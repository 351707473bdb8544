"""Validation Peppol distante (service de validation phax / helger).

FR: Envoie un document généré au service de validation Peppol en SOAP
    et retourne les erreurs et avertissements séparés. Seule opération
    du package à effectuer des entrées/sorties ; le délai est fixé par
    l'appelant ou par le paramètre VALIDATOR_TIMEOUT.
EN: Posts a generated document to the Peppol validation service over
    SOAP and returns errors and warnings separately. This is the only
    I/O in the package; the timeout comes from the caller or the
    VALIDATOR_TIMEOUT setting.
"""

import logging

import httpx
from lxml import etree
from pydantic import BaseModel, Field

from ubl_peppol.conf import get_settings
from ubl_peppol.errors import ValidationServiceError
from ubl_peppol.models.enums import DocumentType
from ubl_peppol.utils.xml_helpers import strip_xml_declaration

logger = logging.getLogger(__name__)

SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
VALIDATION_NS = "http://peppol.helger.com/ws/documentvalidationservice/201701/"

# Identifiants des jeux de validation (VESID)
VESIDS: dict[DocumentType, str] = {
    DocumentType.INVOICE: "eu.peppol.bis3:invoice:3.13.0",
    DocumentType.CREDIT: "eu.peppol.bis3:creditnote:3.13.0",
}

_ERROR_LEVELS = {"ERROR", "FATAL_ERROR"}
_WARNING_LEVELS = {"WARN", "WARNING"}


class ValidationReport(BaseModel):
    """Résultat d'une validation Peppol.

    FR: `success` reflète la réponse du service ; les messages sont
        séparés par niveau.
    EN: `success` mirrors the service verdict; messages split by level.
    """

    success: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def build_request(xml: str | bytes, vesid: str) -> bytes:
    """Construit l'enveloppe SOAP `validateRequestInput`.

    Le document est transmis comme texte échappé dans l'élément XML.
    """
    text = xml.decode("utf-8") if isinstance(xml, bytes) else xml

    envelope = etree.Element(f"{{{SOAP_NS}}}Envelope", nsmap={"S": SOAP_NS})
    body = etree.SubElement(envelope, f"{{{SOAP_NS}}}Body")
    request = etree.SubElement(
        body,
        f"{{{VALIDATION_NS}}}validateRequestInput",
        nsmap={None: VALIDATION_NS},
    )
    request.set("VESID", vesid)
    request.set("displayLocale", "en")
    etree.SubElement(request, f"{{{VALIDATION_NS}}}XML").text = strip_xml_declaration(text)
    return etree.tostring(envelope, xml_declaration=True, encoding="UTF-8")


def parse_response(content: bytes) -> ValidationReport:
    """Extrait le verdict et les messages d'une réponse du service.

    Raises:
        ValidationServiceError: Si la réponse est illisible ou incomplète.
    """
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError as exc:
        msg = f"Réponse du service de validation illisible : {exc}"
        raise ValidationServiceError(msg, body=content.decode("utf-8", "replace")) from exc

    output = next(root.iter("{*}validateResponseOutput"), None)
    if output is None:
        msg = "Réponse du service de validation sans validateResponseOutput"
        raise ValidationServiceError(msg, body=content.decode("utf-8", "replace"))

    report = ValidationReport(success=output.get("success", "").lower() == "true")
    for item in output.iter("{*}Item"):
        level = (item.get("errorLevel") or "").upper()
        text = item.get("errorText") or ""
        location = item.get("errorLocation")
        message = f"{text} ({location})" if location else text
        if level in _ERROR_LEVELS:
            report.errors.append(message)
        elif level in _WARNING_LEVELS:
            report.warnings.append(message)
    return report


def validate_peppol(
    xml: str | bytes,
    document_type: DocumentType | str,
    *,
    vesid: str | None = None,
    timeout: float | None = None,
    endpoint: str | None = None,
    client: httpx.Client | None = None,
) -> ValidationReport:
    """Valide un document UBL auprès du service Peppol distant.

    Args:
        xml: Le document UBL généré (sans enveloppe SBDH).
        document_type: "invoice" ou "credit".
        vesid: Jeu de validation explicite (sinon déduit du type).
        timeout: Délai en secondes (défaut : VALIDATOR_TIMEOUT).
        endpoint: URL du service (défaut : VALIDATOR_URL).
        client: Client httpx à réutiliser (sinon un client est créé).

    Returns:
        ValidationReport avec le verdict, les erreurs et les avertissements.

    Raises:
        ValueError: Si aucun jeu de validation n'existe pour ce type.
        ValidationServiceError: En cas d'erreur de transport, de statut
            HTTP inattendu ou de réponse illisible.
    """
    if vesid is None:
        try:
            vesid = VESIDS[DocumentType(document_type)]
        except (KeyError, ValueError):
            msg = (
                f"Type de document non validable : {document_type!r}. "
                f"Types disponibles : {', '.join(VESIDS)}"
            )
            raise ValueError(msg) from None

    settings = get_settings()
    url = endpoint or settings.validator_url
    if timeout is None:
        timeout = settings.validator_timeout

    headers = {"Content-Type": "text/xml; charset=utf-8", "SOAPAction": ""}
    payload = build_request(xml, vesid)

    logger.info("Validation Peppol %s via %s", vesid, url)
    try:
        if client is not None:
            response = client.post(url, content=payload, headers=headers, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout) as own_client:
                response = own_client.post(url, content=payload, headers=headers)
    except httpx.HTTPError as exc:
        msg = f"Service de validation injoignable : {exc}"
        raise ValidationServiceError(msg) from exc

    if response.status_code != 200:
        msg = f"Service de validation : statut HTTP {response.status_code}"
        raise ValidationServiceError(
            msg,
            status_code=response.status_code,
            body=response.text,
        )

    report = parse_response(response.content)
    if not report.success:
        logger.warning(
            "Validation Peppol en échec : %d erreur(s), %d avertissement(s)",
            len(report.errors),
            len(report.warnings),
        )
    return report

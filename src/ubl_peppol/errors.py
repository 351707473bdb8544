"""Hiérarchie d'exceptions pour le codec UBL.

FR: Exceptions typées pour les erreurs de lecture XML, les documents non
    reconnus, les enregistrements invalides et le service de validation.
EN: Typed exceptions for XML read errors, unrecognized documents, invalid
    records and the remote validation service.
"""


class UBLError(Exception):
    """Erreur de base pour toutes les opérations du codec.

    FR: Classe parente de toutes les exceptions levées par ubl_peppol.
        Permet à un traitement par lot d'ignorer un document fautif.
    EN: Base class for all ubl_peppol exceptions.
    """


class ParseError(UBLError):
    """Échec de lecture d'un document XML."""


class TokenizationError(ParseError):
    """Le flux d'entrée n'est pas un XML bien formé.

    FR: Erreur de syntaxe détectée par le tokeniseur (lxml).
    EN: Syntax error reported by the tokenizer (lxml).
    """


class UnrecognizedDocumentError(ParseError):
    """XML bien formé mais sans racine Invoice, CreditNote ou ApplicationResponse.

    FR: Ni la racine ni le contenu de l'enveloppe SBDH ne correspondent
        à un type de document connu.
    EN: Neither the root nor the SBDH payload is a known document type.
    """

    def __init__(self, message: str, root: str | None = None) -> None:
        super().__init__(message)
        self.root = root


class InvalidDocumentRecordError(UBLError):
    """Enregistrement de document inutilisable pour la génération.

    FR: Champ `type` absent ou inconnu, ou valeurs non convertibles.
    EN: Missing or unknown `type` field, or values that cannot be coerced.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = errors or []


class ValidationServiceError(UBLError):
    """Échec d'appel au service de validation Peppol distant.

    FR: Timeout, erreur réseau, statut HTTP inattendu ou réponse illisible.
    EN: Timeout, network error, unexpected HTTP status or unreadable response.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

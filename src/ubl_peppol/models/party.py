"""Modèle des parties (fournisseur, client, émetteur, destinataire).

FR: Une partie regroupe l'identification Peppol (endpoint + schéma),
    l'adresse postale, le numéro de TVA et les coordonnées.
EN: A party holds the Peppol identification (endpoint + scheme),
    postal address, VAT number and contact details.
"""

from pydantic import BaseModel, Field


class Party(BaseModel):
    """Partie impliquée dans un document.

    FR: Tous les champs sont optionnels ; un champ absent vaut None et
        n'est jamais stocké comme chaîne vide, ce qui garantit la
        stabilité d'un cycle generate → parse.
        Le numéro de TVA est conservé tel quel : il n'est jamais
        reconstruit à partir du pays et des chiffres.
    EN: Every field is optional; absent fields are None, never empty
        strings. The VAT number is kept verbatim.
    """

    name: str | None = Field(default=None, description="Raison sociale / Legal name")
    country: str | None = Field(
        default=None,
        description="Code pays ISO 3166-1 alpha-2 / Country code",
    )
    endpoint_id: str | None = Field(
        default=None,
        description="Identifiant d'adressage Peppol / Peppol endpoint identifier",
    )
    scheme: str | None = Field(
        default=None,
        description=(
            "Schéma de l'identifiant (déduit du pays si absent) / "
            "Endpoint scheme (inferred from country when absent)"
        ),
    )
    street: str | None = Field(default=None, description="Rue / Street")
    housenumber: str | None = Field(
        default=None,
        description="Numéro (client uniquement) / House number (customer only)",
    )
    city: str | None = Field(default=None, description="Ville / City")
    zipcode: str | None = Field(default=None, description="Code postal / Postal code")
    vat: str | None = Field(
        default=None,
        description="Numéro de TVA (verbatim) / VAT identification number",
    )
    email: str | None = Field(default=None, description="Adresse email / Email address")
    iban: str | None = Field(
        default=None,
        description="IBAN (fournisseur uniquement) / IBAN (supplier only)",
    )

    @property
    def street_line(self) -> str | None:
        """Rue et numéro réunis, tels qu'émis dans StreetName."""
        parts = [p for p in (self.street, self.housenumber) if p]
        return " ".join(parts) if parts else None

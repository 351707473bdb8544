"""Configuration du codec via variables d'environnement.

FR: Paramètres UBL_PEPPOL_* lus par pydantic-settings, avec valeurs par
    défaut et conversion typée.
EN: UBL_PEPPOL_* settings read by pydantic-settings, with defaults and
    typed coercion.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "UBL_PEPPOL_"


class Settings(BaseSettings):
    """Paramètres du codec.

    Chaque champ peut être surchargé par UBL_PEPPOL_<NOM>, par exemple
    UBL_PEPPOL_VALIDATOR_TIMEOUT=10.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    default_currency: str = Field(
        default="EUR",
        description="Devise des documents sans DocumentCurrencyCode",
    )
    validator_url: str = Field(
        default="https://peppol.helger.com/wsdvs",
        description="Service de validation Peppol (SOAP)",
    )
    validator_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Délai des appels au service de validation, en secondes",
    )


def get_settings() -> Settings:
    """Lit les paramètres depuis l'environnement courant."""
    return Settings()


def get_setting(name: str) -> object:
    """Retourne la valeur d'un paramètre UBL_PEPPOL.

    FR: Accès par nom (`"VALIDATOR_TIMEOUT"`) aux champs de `Settings`.
    EN: Name-based access to `Settings` fields.

    Raises:
        KeyError: Si le paramètre est inconnu.
        pydantic.ValidationError: Si la valeur d'environnement est invalide.
    """
    field = name.lower()
    if field not in Settings.model_fields:
        msg = f"Paramètre UBL_PEPPOL inconnu : {name}"
        raise KeyError(msg)
    return getattr(get_settings(), field)

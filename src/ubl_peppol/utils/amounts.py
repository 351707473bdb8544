"""Arithmétique décimale exacte et formatage des montants.

FR: Arrondi à 2 décimales (ROUND_HALF_UP), conversion tolérante du texte
    XML en Decimal, et formatage des montants et quantités pour l'émission.
EN: 2-decimal rounding (ROUND_HALF_UP), lenient XML text to Decimal
    conversion, and amount/quantity formatting for output.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    """Arrondit à 2 décimales, demi-unité vers le haut."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def to_decimal(text: str | None, field: str = "") -> Decimal:
    """Convertit un texte XML en Decimal, 0 si absent ou illisible.

    FR: Une valeur illisible est journalisée en avertissement puis
        remplacée par 0, pour privilégier un import partiel plutôt
        qu'un rejet complet du document.
    EN: Unparseable values are logged as a warning and degraded to 0.
    """
    if text is None or not text.strip():
        return ZERO
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        logger.warning("Valeur numérique illisible pour %s : %r, 0 utilisé", field or "?", text)
        return ZERO
    if not value.is_finite():
        logger.warning("Valeur numérique non finie pour %s : %r, 0 utilisé", field or "?", text)
        return ZERO
    return value


def format_amount(amount: Decimal) -> str:
    """Formate un montant avec exactement 2 décimales."""
    rounded = round2(amount)
    if rounded == 0:
        rounded = abs(rounded)
    return f"{rounded:.2f}"


def format_quantity(quantity: Decimal) -> str:
    """Formate une quantité sans notation exponentielle."""
    return f"{quantity:f}"


def format_price(price: Decimal) -> str:
    """Formate un prix unitaire : au moins 2 décimales, sans perte au-delà."""
    if price.as_tuple().exponent >= -2:  # type: ignore[operator]
        return format_amount(price)
    return f"{price:f}"

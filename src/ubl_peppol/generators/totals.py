"""Calcul des totaux et des sous-totaux de TVA.

FR: Arrondi à 2 décimales à chaque étape d'accumulation. La TVA est
    calculée sur le net regroupé par taux, jamais par ligne, pour éviter
    la dérive d'arrondi rejetée par les règles Peppol.
EN: 2-decimal rounding at every accumulation step. VAT is computed on the
    net amount grouped by rate, never per line, to avoid the rounding
    drift rejected by Peppol rules.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import NamedTuple

from ubl_peppol.models.document import LineItem, TaxSubtotal
from ubl_peppol.models.enums import TaxCategory
from ubl_peppol.utils.amounts import HUNDRED, ZERO, round2


class DocumentTotals(NamedTuple):
    """Totaux d'un document : HT, TVA, TTC."""

    subtotal: Decimal
    vat: Decimal
    grand_total: Decimal


def line_base(item: LineItem) -> Decimal:
    """Montant brut de la ligne : quantité × prix, arrondi."""
    return round2(item.quantity * item.price)


def line_allowance(item: LineItem) -> Decimal:
    """Montant de la remise de ligne (0 sans remise)."""
    if item.discount <= 0:
        return ZERO
    return round2(line_base(item) * item.discount / HUNDRED)


def line_net(item: LineItem) -> Decimal:
    """Montant net de la ligne, remise déduite.

    FR: La base et la remise sont calculées à partir de quantité × prix,
        jamais en inversant le net : une remise de 100 % donne un net nul
        sans division.
    EN: Base and allowance derive from quantity × price, never from the
        net amount, so a 100 % discount yields a zero net.
    """
    if item.discount > 0:
        return round2(line_base(item) - line_allowance(item))
    return line_base(item)


def _tax_amount(taxable: Decimal, rate: Decimal) -> Decimal:
    return round2(taxable * rate / HUNDRED)


def document_totals(details: Sequence[LineItem]) -> DocumentTotals:
    """Calcule HT, TVA et TTC d'une liste de lignes.

    >>> from decimal import Decimal
    >>> document_totals([LineItem(quantity=Decimal("1"), price=Decimal("100"), vat=Decimal("21"))])
    DocumentTotals(subtotal=Decimal('100.00'), vat=Decimal('21.00'), grand_total=Decimal('121.00'))
    """
    nets_by_rate: dict[Decimal, Decimal] = {}
    subtotal = ZERO
    for item in details:
        net = line_net(item)
        subtotal += net
        nets_by_rate[item.vat] = nets_by_rate.get(item.vat, ZERO) + net

    vat = sum(
        (_tax_amount(round2(net), rate) for rate, net in nets_by_rate.items()),
        ZERO,
    )
    subtotal = round2(subtotal)
    return DocumentTotals(subtotal=subtotal, vat=round2(vat), grand_total=round2(subtotal + vat))


def tax_subtotals(details: Sequence[LineItem]) -> list[TaxSubtotal]:
    """Regroupe les lignes par (taux, catégorie effective).

    Les groupes suivent l'ordre de première apparition ; les champs
    d'exonération sont ceux de la première ligne du groupe qui les porte.
    """
    groups: dict[tuple[Decimal, TaxCategory], dict[str, object]] = {}
    for item in details:
        key = (item.vat, item.effective_tax_category)
        group = groups.setdefault(key, {"taxable": ZERO})
        group["taxable"] = group["taxable"] + line_net(item)  # type: ignore[operator]
        if item.tax_exemption_reason_code and "code" not in group:
            group["code"] = item.tax_exemption_reason_code
        if item.tax_exemption_reason and "reason" not in group:
            group["reason"] = item.tax_exemption_reason

    subtotals = []
    for (rate, category), group in groups.items():
        taxable = round2(group["taxable"])  # type: ignore[arg-type]
        subtotals.append(
            TaxSubtotal(
                tax_category=category,
                vat=rate,
                taxable_amount=taxable,
                tax_amount=_tax_amount(taxable, rate),
                tax_exemption_reason_code=group.get("code"),  # type: ignore[arg-type]
                tax_exemption_reason=group.get("reason"),  # type: ignore[arg-type]
            )
        )
    return subtotals

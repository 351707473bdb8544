"""Interface en ligne de commande : ubl-parse, ubl-generate, ubl-validate."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from ubl_peppol.codec import generate, generate_with_sbdh, parse
from ubl_peppol.errors import UBLError
from ubl_peppol.generators.sbdh import unwrap
from ubl_peppol.models.enums import DocumentType
from ubl_peppol.validators.peppol import validate_peppol

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _common_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("-v", "--verbose", action="store_true", help="Journalisation détaillée")
    return parser


def parse_main(argv: Sequence[str] | None = None) -> int:
    """Lit un document UBL et affiche son enregistrement en JSON."""
    parser = _common_parser("Lit un document UBL (avec ou sans SBDH) et affiche le JSON")
    parser.add_argument("file", type=Path, help="Document XML")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        record = parse(args.file.read_bytes())
    except UBLError as exc:
        print(f"Erreur : {exc}", file=sys.stderr)
        return 1

    print(record.model_dump_json(indent=2, exclude_none=True))
    return 0


def generate_main(argv: Sequence[str] | None = None) -> int:
    """Génère un document UBL à partir d'un enregistrement JSON."""
    parser = _common_parser("Génère un document UBL à partir d'un enregistrement JSON")
    parser.add_argument("file", type=Path, help="Enregistrement JSON (champ `type` requis)")
    parser.add_argument("--sbdh", action="store_true", help="Envelopper dans un SBDH Peppol")
    parser.add_argument("-o", "--output", type=Path, help="Fichier de sortie (défaut : stdout)")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        data = json.loads(args.file.read_text(encoding="utf-8"))
        xml_bytes = generate_with_sbdh(data) if args.sbdh else generate(data)
    except json.JSONDecodeError as exc:
        print(f"JSON invalide : {exc}", file=sys.stderr)
        return 1
    except UBLError as exc:
        print(f"Erreur : {exc}", file=sys.stderr)
        for detail in getattr(exc, "errors", []):
            print(f"  - {detail}", file=sys.stderr)
        return 1

    if args.output:
        args.output.write_bytes(xml_bytes)
        logger.info("Document écrit dans %s", args.output)
    else:
        sys.stdout.write(xml_bytes.decode("utf-8"))
    return 0


def validate_main(argv: Sequence[str] | None = None) -> int:
    """Valide un document UBL auprès du service Peppol distant."""
    parser = _common_parser("Valide un document UBL auprès du service Peppol")
    parser.add_argument("file", type=Path, help="Document XML")
    parser.add_argument(
        "--type",
        dest="document_type",
        choices=[DocumentType.INVOICE.value, DocumentType.CREDIT.value],
        help="Type de document (défaut : détecté à la lecture)",
    )
    parser.add_argument("--timeout", type=float, help="Délai en secondes")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        # le service valide le document UBL, pas l'enveloppe SBDH
        xml_bytes = unwrap(args.file.read_bytes())
        document_type = args.document_type or parse(xml_bytes).type
        report = validate_peppol(xml_bytes, document_type, timeout=args.timeout)
    except (UBLError, ValueError) as exc:
        print(f"Erreur : {exc}", file=sys.stderr)
        return 2

    for error in report.errors:
        print(f"ERROR {error}")
    for warning in report.warnings:
        print(f"WARN  {warning}")
    print("OK" if report.success else "ÉCHEC")
    return 0 if report.success else 1

"""Command line demo that submits goods introduction documents to the registry."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from crpt.clients import RegistryClient
from crpt.config import get_settings
from crpt.documents import Description, Document, Product
from crpt.errors import AcquireCancelled, RegistryError
from crpt.logging_config import configure_logging

LOGGER = logging.getLogger(__name__)


def sample_document() -> Document:
    """Return the demo document used when no ``--document`` file is given."""

    product = Product(
        certificate_document="CERT-001",
        certificate_document_date="2023-12-01",
        certificate_document_number="123456",
        tnved_code="0401",
        uit_code="010463003407002921wskg1E44R1qym2406401",
    )
    return Document(
        description=Description(participant_inn="1234567890"),
        doc_id="DOC-12345",
        doc_status="IN_PROGRESS",
        doc_type="LP_INTRODUCE_GOODS",
        owner_inn="1234567890",
        participant_inn="0987654321",
        producer_inn="1122334455",
        production_date="2023-12-20",
        production_type="LOCAL",
        products=[product],
    )


def load_document(path: Path) -> Document:
    return Document.from_dict(json.loads(path.read_text(encoding="utf-8")))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--document", type=Path, help="JSON file with the document to submit.")
    parser.add_argument("--signature", default="base64_signature_here", help="Detached document signature.")
    parser.add_argument("--product-group", help="Product group query value (defaults to settings).")
    parser.add_argument("--count", type=int, default=1, help="How many times to submit the document.")
    parser.add_argument("--log-level", default="INFO")
    return parser


def run(argv: Optional[Sequence[str]] = None, client: Optional[RegistryClient] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        document = load_document(args.document) if args.document else sample_document()
    except (OSError, ValueError) as exc:
        LOGGER.error("cannot load document %s: %s", args.document, exc)
        return 1
    if client is None:
        try:
            client = RegistryClient.from_settings(get_settings())
        except (RuntimeError, ValueError) as exc:
            LOGGER.error("invalid client configuration: %s", exc)
            return 1

    failures = 0
    try:
        for _ in range(args.count):
            try:
                client.create_document(document, args.signature, args.product_group)
            except RegistryError as exc:
                failures += 1
                LOGGER.warning("submission failed: %s", exc, extra={"doc_id": document.doc_id})
    except (KeyboardInterrupt, AcquireCancelled):
        LOGGER.warning("submission interrupted")
        return 1
    finally:
        client.close()
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(run())

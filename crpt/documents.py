"""Document records and their canonical JSON rendering."""
from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

DOCUMENT_FORMAT = "MANUAL"
INTRODUCE_GOODS = "LP_INTRODUCE_GOODS"


def _dumps(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _put(payload: Dict[str, Any], key: str, value: Optional[str]) -> None:
    if value is not None:
        payload[key] = value


_Record = TypeVar("_Record")


def _known(record: Type[_Record], data: Mapping[str, Any]) -> _Record:
    """Build ``record`` from ``data``, ignoring keys it has no field for."""

    if not isinstance(data, Mapping):
        raise ValueError(f"{record.__name__} must be a JSON object, got {type(data).__name__}")
    names = {item.name for item in fields(record)}
    return record(**{key: value for key, value in data.items() if key in names})


@dataclass
class Description:
    participant_inn: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"participant_inn": self.participant_inn if self.participant_inn is not None else ""}


@dataclass
class Product:
    """One line item of a document."""

    certificate_document: Optional[str] = None
    certificate_document_date: Optional[str] = None
    certificate_document_number: Optional[str] = None
    owner_inn: Optional[str] = None
    producer_inn: Optional[str] = None
    production_date: Optional[str] = None
    tnved_code: Optional[str] = None
    uit_code: Optional[str] = None
    uitu_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        _put(payload, "certificate_document", self.certificate_document)
        _put(payload, "certificate_document_date", self.certificate_document_date)
        _put(payload, "certificate_document_number", self.certificate_document_number)
        _put(payload, "owner_inn", self.owner_inn)
        _put(payload, "producer_inn", self.producer_inn)
        _put(payload, "production_date", self.production_date)
        _put(payload, "tnved_code", self.tnved_code)
        _put(payload, "uit_code", self.uit_code)
        _put(payload, "uitu_code", self.uitu_code)
        return payload


@dataclass
class Document:
    """Goods introduction document as expected by the registry.

    Unset string fields are left out of the JSON; ``description`` and
    ``products`` are always present.
    """

    description: Optional[Description] = None
    doc_id: Optional[str] = None
    doc_status: Optional[str] = None
    doc_type: Optional[str] = None
    import_request: Optional[str] = None
    owner_inn: Optional[str] = None
    participant_inn: Optional[str] = None
    producer_inn: Optional[str] = None
    production_date: Optional[str] = None
    production_type: Optional[str] = None
    products: List[Product] = field(default_factory=list)
    reg_date: Optional[str] = None
    reg_number: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "description": self.description.to_dict() if self.description is not None else None,
        }
        _put(payload, "doc_id", self.doc_id)
        _put(payload, "doc_status", self.doc_status)
        _put(payload, "doc_type", self.doc_type)
        _put(payload, "importRequest", self.import_request)
        _put(payload, "owner_inn", self.owner_inn)
        _put(payload, "participant_inn", self.participant_inn)
        _put(payload, "producer_inn", self.producer_inn)
        _put(payload, "production_date", self.production_date)
        _put(payload, "production_type", self.production_type)
        payload["products"] = [product.to_dict() for product in self.products]
        _put(payload, "reg_date", self.reg_date)
        _put(payload, "reg_number", self.reg_number)
        return payload

    def to_json(self) -> str:
        """Return the compact JSON string that gets base64-encoded for submission."""

        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Document":
        """Build a document from a mapping that uses the wire key names."""

        description = data.get("description")
        return cls(
            description=_known(Description, description) if description is not None else None,
            doc_id=data.get("doc_id"),
            doc_status=data.get("doc_status"),
            doc_type=data.get("doc_type"),
            import_request=data.get("importRequest"),
            owner_inn=data.get("owner_inn"),
            participant_inn=data.get("participant_inn"),
            producer_inn=data.get("producer_inn"),
            production_date=data.get("production_date"),
            production_type=data.get("production_type"),
            products=[_known(Product, item) for item in data.get("products") or []],
            reg_date=data.get("reg_date"),
            reg_number=data.get("reg_number"),
        )


@dataclass(frozen=True)
class DocumentRequest:
    """Envelope posted to the document creation endpoint."""

    product_document: str
    signature: str
    document_format: str = DOCUMENT_FORMAT
    type: str = INTRODUCE_GOODS

    def to_json(self) -> str:
        return _dumps(
            {
                "product_document": self.product_document,
                "document_format": self.document_format,
                "signature": self.signature,
                "type": self.type,
            }
        )


def encode_document(document: Document) -> str:
    """Base64-encode the document's canonical JSON."""

    return base64.b64encode(document.to_json().encode("utf-8")).decode("ascii")


def build_request_body(document: Document, signature: str, doc_type: str = INTRODUCE_GOODS) -> str:
    request = DocumentRequest(
        product_document=encode_document(document),
        signature=signature,
        type=doc_type,
    )
    return request.to_json()

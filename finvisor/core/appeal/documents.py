"""
Document Parsing
================

Routes each uploaded document to the right extractor and annotates the
fields the appeal depends on.
"""

import asyncio
from typing import Any, Dict, List

from finvisor.config.logging import get_logger
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.openai_client import OpenAIClient
from finvisor.models.schemas import ContentType, DocumentField, DocumentType, DocumentUpload

logger = get_logger(__name__)

TEXT_FIELD_CONFIDENCE = 0.9

DOCUMENT_SCHEMAS: Dict[DocumentType, Dict[str, str]] = {
    DocumentType.W2: {
        "gross_income": "number",
        "federal_tax_withheld": "number",
        "employer_name": "string",
        "employment_dates": "string",
        "state_wages": "number",
        "state_tax": "number",
    },
    DocumentType.FAFSA: {
        "efc": "number",
        "family_size": "number",
        "number_in_college": "number",
        "adjusted_gross_income": "number",
        "assets": "number",
    },
    DocumentType.AID_LETTER: {
        "total_cost": "number",
        "grants": "number",
        "scholarships": "number",
        "loans": "number",
        "work_study": "number",
        "total_aid": "number",
        "unmet_need": "number",
    },
    DocumentType.TAX_RETURN: {
        "adjusted_gross_income": "number",
        "taxable_income": "number",
        "total_tax": "number",
        "filing_status": "string",
    },
}

FLAGGED_KEYS: Dict[DocumentType, List[str]] = {
    DocumentType.W2: ["gross_income", "employment_dates"],
    DocumentType.FAFSA: ["efc", "adjusted_gross_income"],
    DocumentType.AID_LETTER: ["unmet_need", "total_aid"],
    DocumentType.TAX_RETURN: ["adjusted_gross_income"],
}

DOCUMENT_TYPE_NAMES: Dict[DocumentType, str] = {
    DocumentType.W2: "W-2 Form",
    DocumentType.FAFSA: "FAFSA Application",
    DocumentType.AID_LETTER: "Financial Aid Letter",
    DocumentType.TAX_RETURN: "Tax Return",
    DocumentType.OTHER: "Document",
}


def schema_for(doc_type: DocumentType) -> Dict[str, str]:
    return DOCUMENT_SCHEMAS.get(doc_type, {})


def flag_fields(fields: List[DocumentField], doc_type: DocumentType) -> List[DocumentField]:
    """Set ``flag`` on every field whose key contains one of the type's flagged keys."""
    keys = FLAGGED_KEYS.get(doc_type, [])
    return [
        field.model_copy(update={"flag": any(k in field.key.lower() for k in keys)})
        for field in fields
    ]


def mean_confidence(fields: List[DocumentField]) -> float:
    if not fields:
        return 0
    return round(sum(f.confidence for f in fields) / len(fields), 2)


def _confidence(value: Any) -> float:
    try:
        confidence = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return min(max(confidence, 0.0), 1.0)


def _coerce_fields(raw: List[Any]) -> List[DocumentField]:
    fields = []
    for item in raw:
        if not isinstance(item, dict) or "key" not in item:
            continue
        fields.append(
            DocumentField(
                key=str(item["key"]),
                value=str(item.get("value", "")),
                confidence=_confidence(item.get("confidence")),
            )
        )
    return fields


async def extract_fields(doc: DocumentUpload, openai: OpenAIClient) -> List[DocumentField]:
    """Images go through vision, text through schema extraction, PDFs are passed through."""
    if doc.content_type == ContentType.IMAGE:
        parsed = await openai.parse_document_with_vision(doc.content, doc.type.value)
        return _coerce_fields(parsed["fields"])

    if doc.content_type == ContentType.TEXT:
        extracted = await openai.extract_structured_data(doc.content, schema_for(doc.type))
        return [
            DocumentField(key=key, value=str(value), confidence=TEXT_FIELD_CONFIDENCE)
            for key, value in extracted.items()
        ]

    return []


async def parse_document(doc: DocumentUpload, openai: OpenAIClient) -> Dict[str, Any]:
    """
    Parse one document.

    Returns:
        ``{"id", "type", "status": "parsed", "parsedData"}``, or
        ``{"id", "type", "status": "error", "error"}`` when extraction fails
    """
    try:
        fields = flag_fields(await extract_fields(doc, openai), doc.type)
    except (ProviderError, TypeError, ValueError) as e:
        logger.error("Document parse failed", document_id=doc.id, error=str(e))
        return {"id": doc.id, "type": doc.type, "status": "error", "error": str(e)}

    return {
        "id": doc.id,
        "type": doc.type,
        "status": "parsed",
        "parsedData": {
            "type": DOCUMENT_TYPE_NAMES[doc.type],
            "fields": fields,
            "confidence": mean_confidence(fields),
        },
    }


async def parse_documents(docs: List[DocumentUpload], openai: OpenAIClient) -> List[Dict[str, Any]]:
    """Parse all documents concurrently; results keep the input order."""
    return list(await asyncio.gather(*(parse_document(doc, openai) for doc in docs)))

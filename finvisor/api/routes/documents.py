"""
Document Routes
===============

Field extraction for uploaded aid documents.
"""

from fastapi import APIRouter, status

from finvisor.api.responses import fail, ok, provider_failure
from finvisor.config.settings import get_settings
from finvisor.core.appeal.documents import parse_documents
from finvisor.core.providers.base import ProviderError
from finvisor.core.providers.modal import get_modal_client
from finvisor.core.providers.openai_client import get_openai_client
from finvisor.models.schemas import DocumentsRequest

router = APIRouter(prefix="/api/documents", tags=["Documents"])


@router.post("")
async def parse(request: DocumentsRequest):
    """Parse every document; one failing document does not fail the batch."""
    if not request.documents:
        return fail("Documents are required", status.HTTP_400_BAD_REQUEST)

    results = await parse_documents(request.documents, get_openai_client())
    return ok({"documents": results})


@router.put("")
async def parse_batch(request: DocumentsRequest):
    """Hand the whole batch to the Modal document parser."""
    if not request.documents:
        return fail("Documents are required", status.HTTP_400_BAD_REQUEST)
    if not get_settings().is_configured("modal"):
        return fail("Modal not configured", status.HTTP_503_SERVICE_UNAVAILABLE)

    batch = [{"id": d.id, "content": d.content, "type": d.type.value} for d in request.documents]
    try:
        results = await get_modal_client().parse_documents_batch(batch)
    except ProviderError as e:
        return provider_failure(e, "Batch processing", "Batch processing failed")

    return ok({"documents": results}, metadata={"provider": "modal"})

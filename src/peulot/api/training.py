"""Training examples, the style insights derived from them, and Docs import."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from peulot.api.deps import get_docs_client, get_generation_client, get_insights_cache, get_store
from peulot.api.schemas import (
    DriveFileResponse,
    ErrorResponse,
    ImportFromDocsRequest,
    ImportFromDriveRequest,
    InsightsResponse,
    SuccessResponse,
    TrainingExampleCreateRequest,
    TrainingExampleResponse,
)
from peulot.generation.client import GenerationClient
from peulot.generation.insights import InsightsCache
from peulot.integrations.google_workspace import GoogleDocsClient, extract_document_id
from peulot.storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["training"])

StoreDep = Annotated[Storage, Depends(get_store)]
DocsDep = Annotated[GoogleDocsClient, Depends(get_docs_client)]

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    500: {"model": ErrorResponse, "description": "Generation or Google failure"},
}


@router.get("/training-examples", response_model=list[TrainingExampleResponse])
async def list_training_examples(store: StoreDep):
    return [TrainingExampleResponse.from_domain(e) for e in await store.list_training_examples()]


@router.post("/training-examples", response_model=TrainingExampleResponse, responses=_ERRORS)
async def create_training_example(request: TrainingExampleCreateRequest, store: StoreDep):
    example = await store.create_training_example(request.title, request.content, request.notes or None)
    logger.info("Added training example '%s'", example.title)
    return TrainingExampleResponse.from_domain(example)


@router.delete("/training-examples/{example_id}", response_model=SuccessResponse)
async def delete_training_example(example_id: str, store: StoreDep):
    await store.delete_training_example(example_id)
    return SuccessResponse()


@router.get("/training-examples/insights", response_model=InsightsResponse, responses=_ERRORS)
async def training_insights(
    store: StoreDep,
    client: Annotated[GenerationClient, Depends(get_generation_client)],
    cache: Annotated[InsightsCache, Depends(get_insights_cache)],
):
    """Style profile across all training examples (display only)."""
    return InsightsResponse.from_domain(await cache.get_summary(store, client))


async def _import(store: Storage, docs: GoogleDocsClient, document_id: str, notes: str | None):
    title, content = await docs.import_document(document_id)
    example = await store.create_training_example(title, content, notes or None)
    return TrainingExampleResponse.from_domain(example)


@router.post("/training-examples/import-from-docs", response_model=TrainingExampleResponse, responses=_ERRORS)
async def import_from_docs(request: ImportFromDocsRequest, store: StoreDep, docs: DocsDep):
    """Import a Google Doc by URL. The URL is checked before anything leaves the process."""
    document_id = extract_document_id(request.url)
    return await _import(store, docs, document_id, request.notes)


@router.post("/training-examples/import-from-drive", response_model=TrainingExampleResponse, responses=_ERRORS)
async def import_from_drive(request: ImportFromDriveRequest, store: StoreDep, docs: DocsDep):
    return await _import(store, docs, request.document_id, request.notes)


@router.get("/google-drive/docs", response_model=list[DriveFileResponse], responses=_ERRORS)
async def list_drive_docs(docs: DocsDep):
    return [DriveFileResponse.from_domain(f) for f in await docs.list_documents()]

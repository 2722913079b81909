"""API route handlers for peulot and their feedback.

GET    /api/peulot                           — list, newest first
GET    /api/peulot/{id}                      — fetch one
POST   /api/peulot/generate                  — questionnaire → generated, saved peula
POST   /api/peulot/{id}/regenerate-section   — regenerate one of the nine sections
POST   /api/peulot/{id}/export               — write to a shared Google Doc
DELETE /api/peulot/{id}                      — delete (cascades to feedback)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from peulot.api.deps import get_docs_client, get_generation_client, get_insights_cache, get_store
from peulot.api.schemas import (
    ErrorResponse,
    ExportResponse,
    FeedbackCreateRequest,
    FeedbackResponse,
    PeulaFeedbackCreateRequest,
    PeulaResponse,
    QuestionnaireRequest,
    RegenerateSectionRequest,
    SuccessResponse,
    TemplateResponse,
)
from peulot.core.errors import NotFoundError
from peulot.core.templates import PEULA_TEMPLATES
from peulot.generation.client import GenerationClient
from peulot.generation.insights import InsightsCache
from peulot.integrations.google_workspace import GoogleDocsClient
from peulot.pipeline import feedback as ledger
from peulot.pipeline.planner import create_peula
from peulot.pipeline.revision import revise_section
from peulot.storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["peulot"])

StoreDep = Annotated[Storage, Depends(get_store)]
ClientDep = Annotated[GenerationClient, Depends(get_generation_client)]
DocsDep = Annotated[GoogleDocsClient, Depends(get_docs_client)]
InsightsDep = Annotated[InsightsCache, Depends(get_insights_cache)]

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Peula not found"},
    500: {"model": ErrorResponse, "description": "Generation or external service failure"},
}


async def _load_peula(store: Storage, peula_id: str):
    peula = await store.get_peula(peula_id)
    if peula is None:
        raise NotFoundError("Peula not found", details={"id": peula_id})
    return peula


@router.get("/peulot", response_model=list[PeulaResponse])
async def list_peulot(store: StoreDep):
    return [PeulaResponse.from_domain(p) for p in await store.list_peulot()]


@router.get("/peulot/{peula_id}", response_model=PeulaResponse, responses=_ERRORS)
async def get_peula(peula_id: str, store: StoreDep):
    return PeulaResponse.from_domain(await _load_peula(store, peula_id))


@router.post("/peulot/generate", response_model=PeulaResponse, responses=_ERRORS)
async def generate(request: QuestionnaireRequest, store: StoreDep, client: ClientDep, cache: InsightsDep):
    """Generate a nine-section peula from questionnaire answers and save it.

    The prompt carries the training examples, the style profile derived from
    them, and past feedback.
    """
    peula = await create_peula(store, client, request.to_domain(), cache)
    return PeulaResponse.from_domain(peula)


@router.post("/peulot/{peula_id}/regenerate-section", response_model=PeulaResponse, responses=_ERRORS)
async def regenerate(peula_id: str, request: RegenerateSectionRequest, store: StoreDep, client: ClientDep):
    """Regenerate one section; the other eight are left untouched."""
    peula = await revise_section(store, client, peula_id, request.section_index)
    return PeulaResponse.from_domain(peula)


@router.post("/peulot/{peula_id}/export", response_model=ExportResponse, responses=_ERRORS)
async def export(peula_id: str, store: StoreDep, docs: DocsDep):
    peula = await _load_peula(store, peula_id)
    return ExportResponse(document_url=await docs.export_peula(peula))


@router.delete("/peulot/{peula_id}", response_model=SuccessResponse)
async def delete_peula(peula_id: str, store: StoreDep):
    await store.delete_peula(peula_id)
    logger.info("Deleted peula %s", peula_id, extra={"operation": "delete_peula", "peula_id": peula_id})
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

@router.get("/peulot/{peula_id}/feedback", response_model=list[FeedbackResponse])
async def list_peula_feedback(peula_id: str, store: StoreDep):
    return [FeedbackResponse.from_domain(fb) for fb in await ledger.list_for_peula(store, peula_id)]


@router.post("/peulot/{peula_id}/feedback", response_model=FeedbackResponse, responses=_ERRORS)
async def add_peula_feedback(peula_id: str, request: PeulaFeedbackCreateRequest, store: StoreDep):
    fb = await ledger.add_feedback(store, peula_id, request.component_index, request.comment)
    return FeedbackResponse.from_domain(fb)


@router.get("/feedback", response_model=list[FeedbackResponse])
async def list_feedback(store: StoreDep):
    return [FeedbackResponse.from_domain(fb) for fb in await ledger.list_all(store)]


@router.post("/feedback", response_model=FeedbackResponse, responses=_ERRORS)
async def add_feedback(request: FeedbackCreateRequest, store: StoreDep):
    fb = await ledger.add_feedback(store, request.peula_id, request.component_index, request.comment)
    return FeedbackResponse.from_domain(fb)


@router.delete("/feedback/{feedback_id}", response_model=SuccessResponse)
async def delete_feedback(feedback_id: str, store: StoreDep):
    await ledger.delete_feedback(store, feedback_id)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

@router.get("/templates", response_model=list[TemplateResponse])
async def list_templates():
    return [TemplateResponse.from_domain(t) for t in PEULA_TEMPLATES]

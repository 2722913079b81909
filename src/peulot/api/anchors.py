"""Tzofim knowledge anchors — CRUD plus manual reordering.

Anchors are not consumed by generation; they are kept for the settings
screen that curates them.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from peulot.api.deps import get_store
from peulot.api.schemas import (
    AnchorCreateRequest,
    AnchorResponse,
    AnchorUpdateRequest,
    ErrorResponse,
    ReorderAnchorsRequest,
    SuccessResponse,
)
from peulot.core.errors import NotFoundError, ValidationError
from peulot.storage.base import Storage

router = APIRouter(prefix="/api/tzofim-anchors", tags=["anchors"])

StoreDep = Annotated[Storage, Depends(get_store)]

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Anchor not found"},
}


def _required(value: str, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"Anchor {field} cannot be empty", details={field: "required"})
    return value


@router.get("", response_model=list[AnchorResponse])
async def list_anchors(store: StoreDep):
    return [AnchorResponse.from_domain(a) for a in await store.list_anchors()]


@router.post("", response_model=AnchorResponse, responses=_ERRORS)
async def create_anchor(request: AnchorCreateRequest, store: StoreDep):
    anchor = await store.create_anchor(
        _required(request.text, "text"),
        _required(request.category, "category"),
        request.display_order,
    )
    return AnchorResponse.from_domain(anchor)


@router.post("/reorder", response_model=list[AnchorResponse], responses=_ERRORS)
async def reorder_anchors(request: ReorderAnchorsRequest, store: StoreDep):
    """Each listed anchor's displayOrder becomes its 1-based position in ``ids``."""
    if not request.ids:
        raise ValidationError("ids must list at least one anchor")
    if len(set(request.ids)) != len(request.ids):
        raise ValidationError("ids must not contain duplicates")
    return [AnchorResponse.from_domain(a) for a in await store.reorder_anchors(request.ids)]


@router.patch("/{anchor_id}", response_model=AnchorResponse, responses=_ERRORS)
async def update_anchor(anchor_id: str, request: AnchorUpdateRequest, store: StoreDep):
    anchor = await store.update_anchor(
        anchor_id,
        text=_required(request.text, "text") if request.text is not None else None,
        category=_required(request.category, "category") if request.category is not None else None,
        display_order=request.display_order,
    )
    if anchor is None:
        raise NotFoundError("Anchor not found", details={"id": anchor_id})
    return AnchorResponse.from_domain(anchor)


@router.delete("/{anchor_id}", response_model=SuccessResponse)
async def delete_anchor(anchor_id: str, store: StoreDep):
    await store.delete_anchor(anchor_id)
    return SuccessResponse()

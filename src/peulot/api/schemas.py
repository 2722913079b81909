"""Pydantic request/response models for the peulot API.

These are the API contract — camelCase on the wire, decoupled from the
snake_case domain dataclasses. ``from_domain`` bridges the two.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from peulot.core.templates import PeulaTemplate
from peulot.core.types import (
    DriveFile,
    Feedback,
    InsightsSummary,
    Peula,
    PeulaComponent,
    QuestionnaireResponse,
    TrainingExample,
    TrainingInsights,
    TzofimAnchor,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class QuestionnaireRequest(CamelModel):
    """Request body for POST /api/peulot/generate."""

    template_id: str | None = None
    topic: str = Field(..., min_length=1, description="Topic is required")
    age_group: str = Field(..., min_length=1, examples=["12-13"])
    duration: str = Field(..., min_length=1, examples=["60"], description="Total minutes")
    group_size: str = Field(..., min_length=1, examples=["15-20"])
    goals: str = Field(..., min_length=1)
    available_materials: list[str] = []
    special_considerations: str | None = None

    def to_domain(self) -> QuestionnaireResponse:
        return QuestionnaireResponse(
            template_id=self.template_id,
            topic=self.topic,
            age_group=self.age_group,
            duration=self.duration,
            group_size=self.group_size,
            goals=self.goals,
            available_materials=list(self.available_materials),
            special_considerations=self.special_considerations,
        )


class RegenerateSectionRequest(CamelModel):
    section_index: int = Field(..., ge=0, le=8, strict=True)


class FeedbackCreateRequest(CamelModel):
    peula_id: str = Field(..., min_length=1)
    component_index: int = Field(..., strict=True)
    comment: str


class PeulaFeedbackCreateRequest(CamelModel):
    component_index: int = Field(..., strict=True)
    comment: str


class TrainingExampleCreateRequest(CamelModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    notes: str | None = None


class ImportFromDocsRequest(CamelModel):
    url: str = Field(..., min_length=1, examples=["https://docs.google.com/document/d/abc123/edit"])
    notes: str | None = None


class ImportFromDriveRequest(CamelModel):
    document_id: str = Field(..., min_length=1)
    notes: str | None = None


class AnchorCreateRequest(CamelModel):
    text: str
    category: str
    display_order: int | None = None


class AnchorUpdateRequest(CamelModel):
    text: str | None = None
    category: str | None = None
    display_order: int | None = None


class ReorderAnchorsRequest(CamelModel):
    ids: list[str]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class PeulaComponentResponse(CamelModel):
    component: str
    description: str
    best_practices: str
    time_structure: str

    @classmethod
    def from_domain(cls, comp: PeulaComponent) -> "PeulaComponentResponse":
        return cls(
            component=comp.component,
            description=comp.description,
            best_practices=comp.best_practices,
            time_structure=comp.time_structure,
        )


class PeulaContentResponse(CamelModel):
    components: list[PeulaComponentResponse]


class PeulaResponse(CamelModel):
    id: str
    title: str
    topic: str
    age_group: str
    duration: str
    group_size: str
    goals: str
    available_materials: list[str] = []
    special_considerations: str | None = None
    content: PeulaContentResponse
    created_at: datetime

    @classmethod
    def from_domain(cls, peula: Peula) -> "PeulaResponse":
        return cls(
            id=peula.id,
            title=peula.title,
            topic=peula.topic,
            age_group=peula.age_group,
            duration=peula.duration,
            group_size=peula.group_size,
            goals=peula.goals,
            available_materials=list(peula.available_materials),
            special_considerations=peula.special_considerations,
            content=PeulaContentResponse(
                components=[PeulaComponentResponse.from_domain(c) for c in peula.content.components],
            ),
            created_at=peula.created_at,
        )


class FeedbackResponse(CamelModel):
    id: str
    peula_id: str
    component_index: int
    comment: str
    created_at: datetime

    @classmethod
    def from_domain(cls, fb: Feedback) -> "FeedbackResponse":
        return cls(
            id=fb.id,
            peula_id=fb.peula_id,
            component_index=fb.component_index,
            comment=fb.comment,
            created_at=fb.created_at,
        )


class TrainingExampleResponse(CamelModel):
    id: str
    title: str
    content: str
    notes: str | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, example: TrainingExample) -> "TrainingExampleResponse":
        return cls(
            id=example.id,
            title=example.title,
            content=example.content,
            notes=example.notes,
            created_at=example.created_at,
        )


class TrainingInsightsResponse(CamelModel):
    voice_and_tone: str
    signature_moves: list[str]
    facilitation_focus: list[str]
    reflection_patterns: list[str]
    measurement_focus: list[str]

    @classmethod
    def from_domain(cls, insights: TrainingInsights) -> "TrainingInsightsResponse":
        return cls(
            voice_and_tone=insights.voice_and_tone,
            signature_moves=insights.signature_moves,
            facilitation_focus=insights.facilitation_focus,
            reflection_patterns=insights.reflection_patterns,
            measurement_focus=insights.measurement_focus,
        )


class InsightsResponse(CamelModel):
    insights: TrainingInsightsResponse | None = None
    generated_at: datetime | None = None
    example_count: int = 0

    @classmethod
    def from_domain(cls, summary: InsightsSummary) -> "InsightsResponse":
        return cls(
            insights=TrainingInsightsResponse.from_domain(summary.insights) if summary.insights else None,
            generated_at=summary.generated_at,
            example_count=summary.example_count,
        )


class AnchorResponse(CamelModel):
    id: str
    text: str
    category: str
    display_order: int
    created_at: datetime

    @classmethod
    def from_domain(cls, anchor: TzofimAnchor) -> "AnchorResponse":
        return cls(
            id=anchor.id,
            text=anchor.text,
            category=anchor.category,
            display_order=anchor.display_order,
            created_at=anchor.created_at,
        )


class DriveFileResponse(CamelModel):
    id: str
    name: str
    modified_time: str

    @classmethod
    def from_domain(cls, f: DriveFile) -> "DriveFileResponse":
        return cls(id=f.id, name=f.name, modified_time=f.modified_time)


class TemplateResponse(CamelModel):
    id: str
    name: str
    description: str
    topic: str
    goals: str
    icon: str

    @classmethod
    def from_domain(cls, t: PeulaTemplate) -> "TemplateResponse":
        return cls(id=t.id, name=t.name, description=t.description, topic=t.topic, goals=t.goals, icon=t.icon)


class ExportResponse(CamelModel):
    document_url: str


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response body."""

    error: str
    details: Any = None

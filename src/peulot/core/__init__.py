"""Core domain types shared across all peulot modules."""

from peulot.core.errors import (
    ExternalServiceError,
    GenerationError,
    GenerationTimeoutError,
    NotFoundError,
    PeulotError,
    ValidationError,
)
from peulot.core.types import (
    COMPONENT_COUNT,
    COMPONENT_NAMES,
    DriveFile,
    Feedback,
    InsightsSummary,
    Peula,
    PeulaComponent,
    PeulaContent,
    QuestionnaireResponse,
    RegeneratedSection,
    SectionContext,
    TrainingExample,
    TrainingInsights,
    TzofimAnchor,
)

__all__ = [
    "COMPONENT_COUNT",
    "COMPONENT_NAMES",
    "DriveFile",
    "ExternalServiceError",
    "Feedback",
    "GenerationError",
    "GenerationTimeoutError",
    "InsightsSummary",
    "NotFoundError",
    "Peula",
    "PeulaComponent",
    "PeulaContent",
    "PeulotError",
    "QuestionnaireResponse",
    "RegeneratedSection",
    "SectionContext",
    "TrainingExample",
    "TrainingInsights",
    "TzofimAnchor",
    "ValidationError",
]

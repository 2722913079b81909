"""Domain types for the peulot activity planner.

All shared dataclasses live here to prevent circular imports and establish
a single source of truth for the domain model. Every other module imports
from here.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from peulot.core.errors import ValidationError

# ---------------------------------------------------------------------------
# The nine fixed peula sections, addressed by index 0-8
# ---------------------------------------------------------------------------

COMPONENT_NAMES: tuple[str, ...] = (
    "Topic & Educational Goal",
    "Know Your Audience",
    "Choose Methods & Activities",
    "Structure the Peula (Flow)",
    "Time Management",
    "Materials & Logistics",
    "Risk & Safety",
    "Delivery & Facilitation",
    "Reflection & Debrief",
)

COMPONENT_COUNT = len(COMPONENT_NAMES)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_component_index(index) -> bool:
    """True for an int (not bool) in [0, 8]."""
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < COMPONENT_COUNT


# ---------------------------------------------------------------------------
# Peula content
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PeulaComponent:
    """One of the nine sections of a peula."""

    component: str
    description: str
    best_practices: str
    time_structure: str

    @classmethod
    def from_dict(cls, raw: dict) -> "PeulaComponent":
        if not isinstance(raw, dict):
            raise ValidationError("Peula component must be an object")
        values = {}
        for key in ("component", "description", "bestPractices", "timeStructure"):
            val = raw.get(key)
            if not isinstance(val, str):
                raise ValidationError(f"Peula component field '{key}' must be a string")
            values[key] = val
        return cls(
            component=values["component"],
            description=values["description"],
            best_practices=values["bestPractices"],
            time_structure=values["timeStructure"],
        )

    def to_dict(self) -> dict:
        return {
            "component": self.component,
            "description": self.description,
            "bestPractices": self.best_practices,
            "timeStructure": self.time_structure,
        }


@dataclass(frozen=True)
class PeulaContent:
    """The generated body of a peula: exactly nine components."""

    components: tuple[PeulaComponent, ...]

    def __post_init__(self):
        object.__setattr__(self, "components", tuple(self.components))
        if len(self.components) != COMPONENT_COUNT:
            raise ValidationError(
                f"Peula content must have exactly {COMPONENT_COUNT} components, "
                f"got {len(self.components)}"
            )

    @classmethod
    def from_dict(cls, raw) -> "PeulaContent":
        """Decode and validate a stored or generated content blob."""
        if not isinstance(raw, dict) or not isinstance(raw.get("components"), list):
            raise ValidationError("Peula content must be an object with a 'components' list")
        return cls(components=tuple(PeulaComponent.from_dict(c) for c in raw["components"]))

    def to_dict(self) -> dict:
        return {"components": [c.to_dict() for c in self.components]}


@dataclass
class Peula:
    """A saved activity plan."""

    id: str
    title: str
    topic: str
    age_group: str
    duration: str
    group_size: str
    goals: str
    content: PeulaContent
    available_materials: list[str] = field(default_factory=list)
    special_considerations: str | None = None
    created_at: datetime = field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Inputs to generation
# ---------------------------------------------------------------------------

@dataclass
class QuestionnaireResponse:
    """Answers collected by the create-peula questionnaire."""

    topic: str
    age_group: str
    duration: str
    group_size: str
    goals: str
    template_id: str | None = None
    available_materials: list[str] = field(default_factory=list)
    special_considerations: str | None = None


@dataclass
class SectionContext:
    """The stored peula fields a single-section regeneration needs."""

    topic: str
    age_group: str
    duration: str
    group_size: str
    goals: str
    available_materials: list[str] = field(default_factory=list)
    special_considerations: str | None = None

    @classmethod
    def from_peula(cls, peula: Peula) -> "SectionContext":
        return cls(
            topic=peula.topic,
            age_group=peula.age_group,
            duration=peula.duration,
            group_size=peula.group_size,
            goals=peula.goals,
            available_materials=list(peula.available_materials),
            special_considerations=peula.special_considerations,
        )


@dataclass(frozen=True)
class RegeneratedSection:
    """Fresh text for one section; the label is kept from the stored peula."""

    description: str
    best_practices: str
    time_structure: str


# ---------------------------------------------------------------------------
# Feedback, training examples, anchors
# ---------------------------------------------------------------------------

@dataclass
class Feedback:
    """A comment on one section of one peula."""

    id: str
    peula_id: str
    component_index: int
    comment: str
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class TrainingExample:
    """A user-supplied exemplar peula used to steer generation style."""

    id: str
    title: str
    content: str
    notes: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class TzofimAnchor:
    """A reusable methodology snippet with a category and manual order."""

    id: str
    text: str
    category: str
    display_order: int = 0
    created_at: datetime = field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

@dataclass
class TrainingInsights:
    """Style profile derived from all training examples."""

    voice_and_tone: str
    signature_moves: list[str]
    facilitation_focus: list[str]
    reflection_patterns: list[str]
    measurement_focus: list[str]


@dataclass
class InsightsSummary:
    insights: TrainingInsights | None
    generated_at: datetime | None
    example_count: int


# ---------------------------------------------------------------------------
# Google Drive
# ---------------------------------------------------------------------------

@dataclass
class DriveFile:
    id: str
    name: str
    modified_time: str

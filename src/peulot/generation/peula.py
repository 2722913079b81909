"""Peula generation and single-section regeneration.

Both calls assemble a prompt from the store, hand it to the generation
client, and validate the JSON shape before anything is returned. Shape
problems, empty output and transport failures all surface as
GenerationError with a generic retry message; the specific cause is only
logged.
"""

import logging
from dataclasses import dataclass

from peulot.core.errors import GenerationError, GenerationTimeoutError
from peulot.core.types import (
    COMPONENT_COUNT,
    PeulaComponent,
    PeulaContent,
    QuestionnaireResponse,
    RegeneratedSection,
    SectionContext,
)
from peulot.generation.client import GenerationClient, parse_json_content
from peulot.generation.insights import InsightsCache
from peulot.generation.prompts import MAX_PROMPT_EXAMPLES, build_peula_prompt, build_section_prompt
from peulot.observability.tracing import trace
from peulot.storage.base import Storage

logger = logging.getLogger(__name__)

_COMPONENT_FIELDS = ("component", "description", "bestPractices", "timeStructure")
_SECTION_FIELDS = ("description", "bestPractices", "timeStructure")


@dataclass(frozen=True)
class GeneratedPeula:
    title: str
    content: PeulaContent


def _non_empty_str(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_peula_payload(parsed: dict) -> GeneratedPeula:
    """Check a parsed full-generation response and convert it to domain types."""
    title = parsed.get("title")
    if not _non_empty_str(title):
        raise GenerationError("AI response is missing a title")
    components = parsed.get("components")
    if not isinstance(components, list):
        raise GenerationError("AI response 'components' is not a list")
    if len(components) != COMPONENT_COUNT:
        raise GenerationError(
            f"AI response has {len(components)} components, expected {COMPONENT_COUNT}"
        )
    for i, comp in enumerate(components):
        if not isinstance(comp, dict) or not all(_non_empty_str(comp.get(f)) for f in _COMPONENT_FIELDS):
            raise GenerationError(f"AI response component {i} is incomplete")

    return GeneratedPeula(
        title=title.strip(),
        content=PeulaContent(components=tuple(PeulaComponent.from_dict(c) for c in components)),
    )


def validate_section_payload(parsed: dict) -> RegeneratedSection:
    """Check a parsed section-regeneration response."""
    missing = [f for f in _SECTION_FIELDS if not _non_empty_str(parsed.get(f))]
    if missing:
        raise GenerationError(f"AI response is missing {', '.join(missing)}")
    return RegeneratedSection(
        description=parsed["description"],
        best_practices=parsed["bestPractices"],
        time_structure=parsed["timeStructure"],
    )


@trace(name="generate_peula", span_type="CHAIN")
async def generate_peula(
    store: Storage,
    client: GenerationClient,
    responses: QuestionnaireResponse,
    insights_cache: InsightsCache | None = None,
) -> GeneratedPeula:
    """Generate a full nine-section peula from questionnaire answers.

    With an insights cache, the style profile of the training examples is
    added to the prompt when one is available.
    """
    examples = await store.list_training_examples()
    feedback = await store.list_feedback()
    insights = await insights_cache.profile_for_generation(store, client) if insights_cache else None
    prompt = build_peula_prompt(responses, examples, feedback, insights)
    logger.info(
        "Generating peula (topic=%s, %d examples, %d feedback)",
        responses.topic, min(len(examples), MAX_PROMPT_EXAMPLES), len(feedback),
        extra={"operation": "generate_peula"},
    )

    try:
        content = await client.complete(prompt.system, prompt.user, prompt.max_tokens)
        return validate_peula_payload(parse_json_content(content))
    except GenerationTimeoutError:
        raise
    except GenerationError as e:
        logger.error("Peula generation failed: %s", e.message, extra={"operation": "generate_peula"})
        raise GenerationError("Failed to generate peula. Please try again.") from e


@trace(name="regenerate_section", span_type="CHAIN")
async def regenerate_section(
    store: Storage,
    client: GenerationClient,
    section_index: int,
    section_name: str,
    context: SectionContext,
) -> RegeneratedSection:
    """Generate fresh description/bestPractices/timeStructure for one section."""
    feedback = await store.list_feedback()
    prompt = build_section_prompt(section_index, section_name, context, feedback)

    try:
        content = await client.complete(prompt.system, prompt.user, prompt.max_tokens)
        return validate_section_payload(parse_json_content(content))
    except GenerationTimeoutError:
        raise
    except GenerationError as e:
        logger.error(
            "Section regeneration failed: %s", e.message,
            extra={"operation": "regenerate_section", "section_index": section_index},
        )
        raise GenerationError("Failed to regenerate section. Please try again.") from e

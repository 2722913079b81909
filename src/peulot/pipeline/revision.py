"""Revision engine — regenerate one section of a stored peula in place.

The LLM call runs with nothing locked. Only the final write is atomic, and
it applies the new section to the content as stored at write time, so two
revisions of different sections of the same peula never clobber each other.
"""

import logging
import time

from peulot.core.errors import NotFoundError, ValidationError
from peulot.core.types import (
    COMPONENT_COUNT,
    Peula,
    PeulaComponent,
    PeulaContent,
    RegeneratedSection,
    SectionContext,
    is_valid_component_index,
)
from peulot.generation.client import GenerationClient
from peulot.generation.peula import regenerate_section
from peulot.storage.base import Storage

logger = logging.getLogger(__name__)


def validate_section_index(section_index) -> int:
    if not is_valid_component_index(section_index):
        raise ValidationError(
            f"sectionIndex must be an integer between 0 and {COMPONENT_COUNT - 1}",
            details={"sectionIndex": section_index},
        )
    return section_index


def apply_regenerated_section(
    content: PeulaContent,
    section_index: int,
    section: RegeneratedSection,
) -> PeulaContent:
    """Return content with one section replaced; its label and the other eight are kept."""
    current = content.components[section_index]
    replacement = PeulaComponent(
        component=current.component,
        description=section.description,
        best_practices=section.best_practices,
        time_structure=section.time_structure,
    )
    components = list(content.components)
    components[section_index] = replacement
    return PeulaContent(components=tuple(components))


async def revise_section(
    store: Storage,
    client: GenerationClient,
    peula_id: str,
    section_index: int,
) -> Peula:
    """Regenerate section ``section_index`` of a stored peula and persist it.

    The peula loaded up front only supplies prompt context; the write goes
    through ``update_peula_content`` against whatever is stored at that
    moment. Raises NotFoundError if the peula is missing, including when
    it was deleted while generating.
    """
    validate_section_index(section_index)
    peula = await store.get_peula(peula_id)
    if peula is None:
        raise NotFoundError("Peula not found")
    section_name = peula.content.components[section_index].component
    log_extra = {"operation": "regenerate_section", "peula_id": peula.id, "section_index": section_index}

    t0 = time.monotonic()
    section = await regenerate_section(
        store, client, section_index, section_name, SectionContext.from_peula(peula),
    )
    updated = await store.update_peula_content(
        peula.id, lambda current: apply_regenerated_section(current, section_index, section),
    )
    logger.info(
        "Regenerated section %d of peula %s", section_index + 1, peula.id,
        extra={**log_extra, "duration_ms": round((time.monotonic() - t0) * 1000)},
    )
    return updated

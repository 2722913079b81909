"""Feedback ledger — append-only comments on one section of one peula.

Feedback only affects the *next* generation: prompt assembly reads the
ledger each time it builds a prompt; nothing already stored is rewritten.
"""

import logging

from peulot.core.errors import NotFoundError, ValidationError
from peulot.core.types import COMPONENT_COUNT, Feedback, is_valid_component_index
from peulot.storage.base import Storage

logger = logging.getLogger(__name__)


async def add_feedback(store: Storage, peula_id: str, component_index, comment: str) -> Feedback:
    """Validate and store a comment. Raises ValidationError or NotFoundError."""
    if not is_valid_component_index(component_index):
        raise ValidationError(
            f"componentIndex must be an integer between 0 and {COMPONENT_COUNT - 1}",
            details={"componentIndex": component_index},
        )
    comment = (comment or "").strip()
    if not comment:
        raise ValidationError("Feedback comment cannot be empty", details={"comment": "required"})

    if await store.get_peula(peula_id) is None:
        raise NotFoundError("Peula not found")

    fb = await store.create_feedback(peula_id, component_index, comment)
    logger.info(
        "Feedback added to section %d", component_index + 1,
        extra={"operation": "add_feedback", "peula_id": peula_id, "section_index": component_index},
    )
    return fb


async def list_for_peula(store: Storage, peula_id: str) -> list[Feedback]:
    return await store.list_feedback_for_peula(peula_id)


async def list_all(store: Storage) -> list[Feedback]:
    return await store.list_feedback()


async def delete_feedback(store: Storage, feedback_id: str) -> None:
    """Idempotent: deleting an unknown id is not an error."""
    await store.delete_feedback(feedback_id)

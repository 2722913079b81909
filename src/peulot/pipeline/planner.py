"""Questionnaire → generated peula → saved record."""

import logging
import time

from peulot.core.types import Peula, QuestionnaireResponse
from peulot.generation.client import GenerationClient
from peulot.generation.insights import InsightsCache
from peulot.generation.peula import generate_peula
from peulot.storage.base import Storage

logger = logging.getLogger(__name__)


async def create_peula(
    store: Storage,
    client: GenerationClient,
    responses: QuestionnaireResponse,
    insights_cache: InsightsCache | None = None,
) -> Peula:
    """Generate a full peula and persist it. Nothing is written if generation fails."""
    t0 = time.monotonic()
    generated = await generate_peula(store, client, responses, insights_cache)
    peula = await store.create_peula(
        title=generated.title,
        topic=responses.topic,
        age_group=responses.age_group,
        duration=responses.duration,
        group_size=responses.group_size,
        goals=responses.goals,
        content=generated.content,
        available_materials=responses.available_materials,
        special_considerations=responses.special_considerations or None,
    )
    logger.info(
        "Created peula '%s'", peula.title,
        extra={
            "operation": "generate_peula",
            "peula_id": peula.id,
            "duration_ms": round((time.monotonic() - t0) * 1000),
        },
    )
    return peula

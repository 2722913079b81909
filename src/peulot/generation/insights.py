"""Training insights — a cached style profile over all training examples.

The profile is shown to the user and also steers full peula generation.
It is recomputed when the set of examples changes (detected by
fingerprint) and served from cache otherwise, so the returned
generated_at/example_count always describe the computation that produced
the insights.
"""

import asyncio
import logging
from dataclasses import dataclass

from peulot.core.errors import GenerationError, GenerationTimeoutError
from peulot.core.types import InsightsSummary, TrainingExample, TrainingInsights, utcnow
from peulot.generation.client import GenerationClient, parse_json_content
from peulot.generation.prompts import build_insights_prompt
from peulot.storage.base import Storage

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("signatureMoves", "facilitationFocus", "reflectionPatterns", "measurementFocus")


def examples_fingerprint(examples: list[TrainingExample]) -> str:
    return "|".join(sorted(
        f"{e.id}:{e.created_at.isoformat()}:{len(e.content)}:{e.notes or ''}" for e in examples
    ))


def _clean_list(items: list) -> list[str]:
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]


def parse_insights(parsed: dict) -> TrainingInsights:
    if not isinstance(parsed.get("voiceAndTone"), str) or not all(
        isinstance(parsed.get(f), list) for f in _LIST_FIELDS
    ):
        raise GenerationError("Invalid training insights structure from AI")
    return TrainingInsights(
        voice_and_tone=parsed["voiceAndTone"].strip(),
        signature_moves=_clean_list(parsed["signatureMoves"]),
        facilitation_focus=_clean_list(parsed["facilitationFocus"]),
        reflection_patterns=_clean_list(parsed["reflectionPatterns"]),
        measurement_focus=_clean_list(parsed["measurementFocus"]),
    )


@dataclass
class _CacheEntry:
    fingerprint: str
    summary: InsightsSummary


class InsightsCache:
    """Per-process insights cache. One instance is shared by the app."""

    def __init__(self):
        self._entry: _CacheEntry | None = None
        self._lock = asyncio.Lock()

    async def profile_for_generation(self, store: Storage, client: GenerationClient) -> InsightsSummary | None:
        """Style profile to steer a new peula, or None when there is none to offer.

        Generation must not fail because the profile could not be computed: on
        error the last computed profile is used if there is one, otherwise the
        prompt goes without it.
        """
        try:
            summary = await self.get_summary(store, client)
        except GenerationError:
            entry = self._entry
            logger.warning("Generating without fresh style insights (cached profile: %s)",
                           "yes" if entry else "no", extra={"operation": "generate_peula"})
            return entry.summary if entry else None
        return summary if summary.insights is not None else None

    async def get_summary(self, store: Storage, client: GenerationClient) -> InsightsSummary:
        examples = await store.list_training_examples()
        if not examples:
            self._entry = None
            return InsightsSummary(insights=None, generated_at=None, example_count=0)

        fingerprint = examples_fingerprint(examples)
        entry = self._entry
        if entry and entry.fingerprint == fingerprint:
            return entry.summary

        # Single-flight: concurrent requests for the same example set share one LLM call
        async with self._lock:
            entry = self._entry
            if entry and entry.fingerprint == fingerprint:
                return entry.summary
            summary = await self._compute(client, examples)
            self._entry = _CacheEntry(fingerprint=fingerprint, summary=summary)
            return summary

    async def _compute(self, client: GenerationClient, examples: list[TrainingExample]) -> InsightsSummary:
        prompt = build_insights_prompt(examples)
        logger.info("Generating training insights from %d examples", len(examples),
                    extra={"operation": "training_insights"})
        try:
            content = await client.complete(prompt.system, prompt.user, prompt.max_tokens)
            insights = parse_insights(parse_json_content(content))
        except GenerationTimeoutError:
            raise
        except GenerationError as e:
            logger.error("Training insights failed: %s", e.message, extra={"operation": "training_insights"})
            raise GenerationError("Failed to generate training insights. Please try again.") from e

        return InsightsSummary(insights=insights, generated_at=utcnow(), example_count=len(examples))

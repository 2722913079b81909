"""Tests for training insights and their cache."""

import asyncio
import json

import pytest

from peulot.core.errors import GenerationError
from peulot.generation.insights import InsightsCache, parse_insights

_INSIGHTS = {
    "voiceAndTone": "  Warm and energetic.  ",
    "signatureMoves": ["Opens with a game", "", 7],
    "facilitationFocus": ["Asks open questions"],
    "reflectionPatterns": ["Circle sicha"],
    "measurementFocus": ["Chanichim explain back"],
}


class TestParseInsights:
    def test_cleans_lists(self):
        insights = parse_insights(_INSIGHTS)
        assert insights.voice_and_tone == "Warm and energetic."
        assert insights.signature_moves == ["Opens with a game"]

    def test_missing_list(self):
        broken = dict(_INSIGHTS)
        del broken["measurementFocus"]
        with pytest.raises(GenerationError, match="structure"):
            parse_insights(broken)


class TestInsightsCache:
    @pytest.mark.asyncio
    async def test_no_examples_no_llm_call(self, store, fake_llm):
        summary = await InsightsCache().get_summary(store, fake_llm)
        assert summary.insights is None
        assert summary.generated_at is None
        assert summary.example_count == 0
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_cached_until_examples_change(self, store, fake_llm):
        cache = InsightsCache()
        await store.create_training_example("Campfire", "Songs and stories")
        fake_llm.queue(_INSIGHTS, _INSIGHTS)

        first = await cache.get_summary(store, fake_llm)
        second = await cache.get_summary(store, fake_llm)
        assert first is second
        assert first.example_count == 1
        assert len(fake_llm.calls) == 1

        await store.create_training_example("Hike", "Map reading")
        third = await cache.get_summary(store, fake_llm)
        assert third.example_count == 2
        assert len(fake_llm.calls) == 2

    @pytest.mark.asyncio
    async def test_failure_is_reported(self, store, fake_llm):
        await store.create_training_example("Campfire", "Songs and stories")
        fake_llm.queue("nope")
        with pytest.raises(GenerationError, match="Failed to generate training insights"):
            await InsightsCache().get_summary(store, fake_llm)

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_call(self, store):
        await store.create_training_example("Campfire", "Songs and stories")

        class SlowClient:
            calls = 0

            async def complete(self, system, user, max_tokens):
                SlowClient.calls += 1
                await asyncio.sleep(0.01)
                return json.dumps(_INSIGHTS)

        cache = InsightsCache()
        client = SlowClient()
        results = await asyncio.gather(*(cache.get_summary(store, client) for _ in range(3)))

        assert SlowClient.calls == 1
        assert all(r is results[0] for r in results)


class TestProfileForGeneration:
    @pytest.mark.asyncio
    async def test_none_without_examples(self, store, fake_llm):
        assert await InsightsCache().profile_for_generation(store, fake_llm) is None
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_returns_fresh_profile(self, store, fake_llm):
        await store.create_training_example("Campfire", "Songs and stories")
        fake_llm.queue(_INSIGHTS)

        summary = await InsightsCache().profile_for_generation(store, fake_llm)

        assert summary.example_count == 1
        assert summary.insights.voice_and_tone == "Warm and energetic."

    @pytest.mark.asyncio
    async def test_failure_without_cache_gives_none(self, store, fake_llm):
        await store.create_training_example("Campfire", "Songs and stories")
        fake_llm.queue("nope")
        assert await InsightsCache().profile_for_generation(store, fake_llm) is None

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_last_profile(self, store, fake_llm):
        cache = InsightsCache()
        await store.create_training_example("Campfire", "Songs and stories")
        fake_llm.queue(_INSIGHTS)
        first = await cache.get_summary(store, fake_llm)

        await store.create_training_example("Hike", "Map reading")
        fake_llm.queue("nope")

        assert await cache.profile_for_generation(store, fake_llm) is first
        # The insights endpoint itself still reports the failure
        fake_llm.queue("nope")
        with pytest.raises(GenerationError):
            await cache.get_summary(store, fake_llm)

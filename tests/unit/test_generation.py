"""Tests for peula generation, section regeneration and response validation."""

import pytest

from peulot.core.errors import GenerationError, GenerationTimeoutError
from peulot.core.types import QuestionnaireResponse, SectionContext
from peulot.generation.client import parse_json_content
from peulot.generation.insights import InsightsCache
from peulot.generation.peula import (
    generate_peula,
    regenerate_section,
    validate_peula_payload,
    validate_section_payload,
)
from peulot.pipeline.planner import create_peula

_INSIGHTS = {
    "voiceAndTone": "Warm and energetic.",
    "signatureMoves": ["Opens with a game"],
    "facilitationFocus": ["Asks open questions"],
    "reflectionPatterns": ["Circle sicha"],
    "measurementFocus": ["Chanichim explain back"],
}


def _responses() -> QuestionnaireResponse:
    return QuestionnaireResponse(topic="Trust", age_group="12-13", duration="60",
                                 group_size="15-20", goals="Build trust")


def _context() -> SectionContext:
    return SectionContext(topic="Trust", age_group="12-13", duration="60", group_size="15-20",
                          goals="Build trust")


class TestParseJsonContent:
    def test_plain_json(self):
        assert parse_json_content('{"title": "X"}') == {"title": "X"}

    def test_with_markdown_fences(self):
        assert parse_json_content('```json\n{"title": "X"}\n```') == {"title": "X"}

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_content(self, content):
        with pytest.raises(GenerationError, match="No content"):
            parse_json_content(content)

    def test_invalid_json(self):
        with pytest.raises(GenerationError, match="not valid JSON"):
            parse_json_content("Sure! Here is your peula")

    def test_non_object(self):
        with pytest.raises(GenerationError, match="not a JSON object"):
            parse_json_content("[1, 2, 3]")


class TestValidatePeulaPayload:
    def test_valid(self, peula_payload):
        generated = validate_peula_payload(peula_payload("  Night Hike  "))
        assert generated.title == "Night Hike"
        assert len(generated.content.components) == 9

    def test_missing_title(self, peula_payload):
        payload = peula_payload()
        payload["title"] = " "
        with pytest.raises(GenerationError, match="title"):
            validate_peula_payload(payload)

    def test_eight_components(self, peula_payload):
        payload = peula_payload()
        payload["components"].pop()
        with pytest.raises(GenerationError, match="8 components"):
            validate_peula_payload(payload)

    def test_empty_field(self, peula_payload):
        payload = peula_payload()
        payload["components"][4]["bestPractices"] = ""
        with pytest.raises(GenerationError, match="component 4"):
            validate_peula_payload(payload)


class TestValidateSectionPayload:
    def test_valid(self, section_payload):
        section = validate_section_payload(section_payload())
        assert section.best_practices == "fresh practices"

    def test_missing_field(self):
        with pytest.raises(GenerationError, match="timeStructure"):
            validate_section_payload({"description": "d", "bestPractices": "b"})


class TestGeneratePeula:
    @pytest.mark.asyncio
    async def test_success_uses_examples_and_feedback(self, store, fake_llm, peula_payload, make_peula):
        peula = await make_peula()
        await store.create_feedback(peula.id, 1, "Ask about the group's history")
        await store.create_training_example("Campfire Night", "Open with a song.")
        fake_llm.queue(peula_payload("Trust Walk"))

        generated = await generate_peula(store, fake_llm, _responses())

        assert generated.title == "Trust Walk"
        user = fake_llm.calls[0]["user"]
        assert "Example 1: Campfire Night" in user
        assert "Ask about the group's history" in user

    @pytest.mark.asyncio
    async def test_style_insights_added_with_examples(self, store, fake_llm, peula_payload):
        await store.create_training_example("Campfire Night", "Open with a song.")
        fake_llm.queue(_INSIGHTS, peula_payload("Trust Walk"))

        await generate_peula(store, fake_llm, _responses(), InsightsCache())

        assert len(fake_llm.calls) == 2
        assert "Style Insights from 1 uploaded peulot" in fake_llm.calls[1]["user"]

    @pytest.mark.asyncio
    async def test_no_style_insights_without_examples(self, store, fake_llm, peula_payload):
        fake_llm.queue(peula_payload("Trust Walk"))

        await generate_peula(store, fake_llm, _responses(), InsightsCache())

        assert len(fake_llm.calls) == 1
        assert "Style Insights" not in fake_llm.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_wrong_shape_gets_generic_message(self, store, fake_llm):
        fake_llm.queue({"title": "Half a peula", "components": []})
        with pytest.raises(GenerationError, match="Failed to generate peula. Please try again."):
            await generate_peula(store, fake_llm, _responses())

    @pytest.mark.asyncio
    async def test_empty_response(self, store, fake_llm):
        fake_llm.queue(None)
        with pytest.raises(GenerationError, match="Failed to generate peula"):
            await generate_peula(store, fake_llm, _responses())

    @pytest.mark.asyncio
    async def test_timeout_passes_through(self, store, fake_llm):
        fake_llm.queue(GenerationTimeoutError("too slow"))
        with pytest.raises(GenerationTimeoutError):
            await generate_peula(store, fake_llm, _responses())


class TestCreatePeula:
    @pytest.mark.asyncio
    async def test_persists_generated_peula(self, store, fake_llm, peula_payload):
        fake_llm.queue(peula_payload("Trust Walk"))
        responses = _responses()
        responses.available_materials = ["rope"]

        peula = await create_peula(store, fake_llm, responses)

        stored = await store.get_peula(peula.id)
        assert stored.title == "Trust Walk"
        assert stored.topic == "Trust"
        assert stored.available_materials == ["rope"]

    @pytest.mark.asyncio
    async def test_nothing_saved_on_failure(self, store, fake_llm):
        fake_llm.queue("not json")
        with pytest.raises(GenerationError):
            await create_peula(store, fake_llm, _responses())
        assert await store.list_peulot() == []


class TestRegenerateSection:
    @pytest.mark.asyncio
    async def test_success(self, store, fake_llm, section_payload):
        fake_llm.queue(section_payload("new"))
        section = await regenerate_section(store, fake_llm, 3, "4. Structure the Peula (Flow)", _context())
        assert section.description == "new description"
        assert "Regenerate ONLY this section: 4. Structure the Peula (Flow)" in fake_llm.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_failure_message(self, store, fake_llm):
        fake_llm.queue({"description": "only this"})
        with pytest.raises(GenerationError, match="Failed to regenerate section. Please try again."):
            await regenerate_section(store, fake_llm, 0, "1. Topic", _context())

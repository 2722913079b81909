"""Tests for the domain model: nine-section content and index validation."""

import pytest

from peulot.core.errors import ValidationError
from peulot.core.types import (
    COMPONENT_COUNT,
    COMPONENT_NAMES,
    Peula,
    PeulaComponent,
    PeulaContent,
    SectionContext,
    is_valid_component_index,
)


def _components(n: int = COMPONENT_COUNT) -> list[dict]:
    return [
        {"component": f"{i + 1}. Part", "description": "d", "bestPractices": "b", "timeStructure": "t"}
        for i in range(n)
    ]


class TestComponentNames:
    def test_nine_fixed_sections(self):
        assert COMPONENT_COUNT == 9
        assert COMPONENT_NAMES[0] == "Topic & Educational Goal"
        assert COMPONENT_NAMES[5] == "Materials & Logistics"
        assert COMPONENT_NAMES[8] == "Reflection & Debrief"


class TestIsValidComponentIndex:
    @pytest.mark.parametrize("index", [0, 4, 8])
    def test_in_range(self, index):
        assert is_valid_component_index(index)

    @pytest.mark.parametrize("index", [-1, 9, 1.0, "3", None, True, False])
    def test_rejected(self, index):
        assert not is_valid_component_index(index)


class TestPeulaContent:
    def test_from_dict_reads_camel_case(self):
        content = PeulaContent.from_dict({"components": _components()})
        assert len(content.components) == 9
        assert content.components[0].best_practices == "b"
        assert content.components[0].time_structure == "t"

    def test_to_dict_writes_camel_case(self):
        content = PeulaContent.from_dict({"components": _components()})
        first = content.to_dict()["components"][0]
        assert set(first) == {"component", "description", "bestPractices", "timeStructure"}

    def test_wrong_component_count_rejected(self):
        with pytest.raises(ValidationError, match="exactly 9"):
            PeulaContent.from_dict({"components": _components(8)})

    def test_missing_components_list_rejected(self):
        with pytest.raises(ValidationError):
            PeulaContent.from_dict({"sections": []})

    def test_non_string_field_rejected(self):
        raw = _components()
        raw[3]["timeStructure"] = 10
        with pytest.raises(ValidationError, match="timeStructure"):
            PeulaContent.from_dict({"components": raw})

    def test_components_stored_as_tuple(self):
        comps = [PeulaComponent("c", "d", "b", "t")] * 9
        content = PeulaContent(components=comps)
        assert isinstance(content.components, tuple)


class TestSectionContext:
    def test_from_peula_copies_materials(self):
        peula = Peula(
            id="p1", title="T", topic="Trust", age_group="12", duration="60", group_size="10",
            goals="g", content=PeulaContent.from_dict({"components": _components()}),
            available_materials=["rope"], special_considerations="allergies",
        )
        ctx = SectionContext.from_peula(peula)
        ctx.available_materials.append("tape")

        assert ctx.topic == "Trust"
        assert ctx.special_considerations == "allergies"
        assert peula.available_materials == ["rope"]

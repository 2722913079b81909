"""Shared test fixtures."""

import json
from unittest.mock import patch

import mlflow
import pytest

from peulot.core.types import COMPONENT_NAMES, PeulaContent
from peulot.storage.memory import MemStorage


@pytest.fixture(autouse=True)
def _disable_mlflow_tracing():
    """Disable MLflow tracing during tests — no side effects, no mlruns/ writes."""
    mlflow.tracing.disable()
    yield
    mlflow.tracing.enable()


@pytest.fixture(autouse=True)
def _no_mlflow_runs():
    """Keep metric logging from opening real MLflow runs."""
    with patch("mlflow.log_metrics"):
        yield


class FakeGenerationClient:
    """GenerationClient double: replays queued responses and records every prompt.

    A queued dict is returned as JSON text, an exception instance is raised,
    anything else (str or None) is returned as-is.
    """

    def __init__(self):
        self.responses: list = []
        self.calls: list[dict] = []

    def queue(self, *responses) -> "FakeGenerationClient":
        self.responses.extend(responses)
        return self

    async def complete(self, system: str, user: str, max_tokens: int) -> str | None:
        self.calls.append({"system": system, "user": user, "max_tokens": max_tokens})
        if not self.responses:
            raise AssertionError("Unexpected LLM call")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


def _peula_payload(title: str = "Trust Circle", tag: str = "v1") -> dict:
    return {
        "title": title,
        "components": [
            {
                "component": f"{i + 1}. {name}",
                "description": f"{tag} description {i}",
                "bestPractices": f"{tag} practices {i}",
                "timeStructure": f"{i + 5} minutes",
            }
            for i, name in enumerate(COMPONENT_NAMES)
        ],
    }


@pytest.fixture
def store():
    return MemStorage()


@pytest.fixture
def fake_llm():
    return FakeGenerationClient()


@pytest.fixture
def peula_payload():
    """Factory for a well-formed full-generation LLM response."""
    return _peula_payload


@pytest.fixture
def section_payload():
    """Factory for a well-formed single-section LLM response."""
    def _make(tag: str = "fresh") -> dict:
        return {
            "description": f"{tag} description",
            "bestPractices": f"{tag} practices",
            "timeStructure": f"{tag} timing",
        }
    return _make


@pytest.fixture
def make_peula(store):
    """Create a peula in the store with valid nine-section content."""
    async def _make(title: str = "Trust Circle", **overrides):
        fields = {
            "title": title,
            "topic": "Trust",
            "age_group": "12-13",
            "duration": "60",
            "group_size": "15-20",
            "goals": "Build trust within the kvutza",
            "content": PeulaContent.from_dict(_peula_payload(title)),
            "available_materials": ["rope", "blind-folds"],
            "special_considerations": None,
        }
        fields.update(overrides)
        return await store.create_peula(**fields)
    return _make
